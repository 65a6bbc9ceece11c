from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Union, Any, Dict
from enum import Enum
import re


class SlideToolType(str, Enum):
    """Known tool names.

    Keeps a canonical list but components may use arbitrary strings.
    """

    POPULATION_PYRAMID = "population_pyramid"


class Pos(BaseModel):
    """Absolute percentage position/size as {x,y,w,h} (percent 0..100).

    The LayoutEngine will convert this percent mapping to EMU.
    """

    x: Optional[float] = Field(None, description="left percentage (0..100)")
    y: Optional[float] = Field(None, description="top percentage (0..100)")
    w: Optional[float] = Field(None, description="width percentage (0..100)")
    h: Optional[float] = Field(None, description="height percentage (0..100)")


class Component(BaseModel):
    """Single component entry in `components[]`.

    Mirrors the IR used by `render.py`.
    """

    tool: Union[SlideToolType, str] = Field(
        ...,
        description="Tool name (e.g. 'population_pyramid')",
    )
    id: Optional[str] = Field(None, description="Component id")
    pos: Optional[Pos] = Field(None, description="Percent box (x,y,w,h)")
    anchor: Optional[str] = Field(
        None,
        description="Anchor (full/title/body/left/right)",
    )
    z_index: Optional[int] = Field(None, description="Z-order integer")
    data: Optional[Dict[str, Any]] = Field(
        default_factory=dict,
        description="Tool data payload",
    )


class Slide(BaseModel):
    """Slide representation compatible with render.py."""

    id: Optional[str] = Field(
        None,
        description="Slide identifier (auto-generated from title if not provided)",
    )
    title: Optional[str] = Field(None, description="Slide title")
    anchors: Optional[Dict[str, Dict[str, float]]] = Field(
        default_factory=dict,
        description="Anchor overrides (name -> {x,y,w,h})",
    )
    components: List[Component] = Field(
        default_factory=list,
        description="List of components",
    )

    def model_post_init(self, __context) -> None:
        if not self.id and self.title:
            clean_title = re.sub(r"[^\w\s-]", "", self.title)
            clean_title = re.sub(r"[-\s]+", "_", clean_title)
            self.id = clean_title.lower().strip("_")


class PresentationMetadata(BaseModel):
    """Top-level metadata object matching render.py's `meta` map."""

    title: Optional[str] = Field(None, description="Presentation title")
    author: Optional[str] = Field(None, description="Presentation author")
    slide_size: Optional[Dict[str, Any]] = Field(
        default_factory=dict,
        description="Slide size config (e.g. preset: '16x9')",
    )


class PresentationSchema(BaseModel):
    """Top-level IR schema for the presentation used by the renderer.

    Expected top-level keys: version, meta, theme, slides
    """

    model_config = ConfigDict(extra="allow")

    version: int = Field(1, description="IR version")
    meta: PresentationMetadata = Field(
        default_factory=PresentationMetadata,
        description="Presentation metadata (meta)",
    )
    theme: Optional[Dict[str, Any]] = Field(
        default_factory=dict, description="Theme mapping (e.g. font_color)"
    )
    slides: List[Slide] = Field(
        default_factory=list,
        description="Ordered slides",
    )

    def get_slide_count(self) -> int:
        return len(self.slides)

    def get_tools_used(self) -> List[str]:
        tools = set()
        for slide in self.slides:
            for comp in slide.components:
                t = (
                    comp.tool.value
                    if isinstance(comp.tool, SlideToolType)
                    else str(comp.tool)
                )
                tools.add(t)
        return sorted(tools)


# Backwards-compatible export name
Schema = PresentationSchema
