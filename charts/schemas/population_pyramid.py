from pydantic import BaseModel, Field, model_validator, validator
from typing import Dict, List, Literal, Optional

from ..layout import SignAssignment
from ..model import (
    FEMALE,
    MALE,
    RandomPopulationSource,
    Series,
    check_aligned,
    example_population,
)
from ..utils import hex_to_rgb


class PopulationPyramidSchema(BaseModel):
    title: Optional[str] = None
    variant: Literal["detail", "overview"] = Field(default="detail")
    # inline: series をそのまま使う / example: サンプル / random: 乱数生成
    source: Literal["inline", "example", "random"] = Field(default="inline")
    seed: Optional[int] = None
    series: List[Series] = Field(default_factory=list)
    signs: Dict[str, int] = Field(default_factory=lambda: {MALE: 1, FEMALE: -1})
    # pt。0 はバー非表示。ごく小さい値は gap_width の上限 (500) で頭打ちになる
    bar_height: float = Field(default=10.0, ge=0.0, le=25.0)
    left_color: str = Field(default="#34C759")
    right_color: str = Field(default="#007AFF")
    colors: Dict[str, str] = Field(default_factory=dict)
    gradient: bool = Field(default=True)
    show_legend: bool = Field(default=True)
    data_labels: bool = Field(default=False)

    @validator("series", pre=True, always=True)
    def generate_series(cls, v, values):
        if v:
            return v
        source = values.get("source", "inline")
        if source == "example":
            return example_population()
        if source == "random":
            return RandomPopulationSource(seed=values.get("seed")).next_series()
        return v or []

    @validator("series")
    def validate_aligned(cls, v):
        if not v:
            raise ValueError("at least one series is required")
        check_aligned(v)  # BucketMismatchError は ValueError
        return v

    @validator("signs")
    def validate_signs(cls, v):
        for category, sign in v.items():
            if sign not in (1, -1):
                raise ValueError(f"sign for '{category}' must be 1 or -1, got {sign}")
        return v

    @model_validator(mode="after")
    def validate_every_category_signed(self):
        for s in self.series:
            if s.category not in self.signs:
                raise ValueError(f"no sign assigned for category '{s.category}'")
        return self

    @validator("left_color", "right_color")
    def validate_color(cls, v):
        hex_to_rgb(v)
        return v

    @validator("colors")
    def validate_colors(cls, v):
        for color in v.values():
            hex_to_rgb(color)
        return v

    def sign_assignment(self) -> SignAssignment:
        return SignAssignment(self.signs)

    def color_for(self, category: str) -> str:
        """カテゴリ個別指定 > 符号側（正=右, 負=左）の色"""
        if category in self.colors:
            return self.colors[category]
        if self.sign_assignment().sign_for(category) > 0:
            return self.right_color
        return self.left_color


# Export as Schema for consistent naming
Schema = PopulationPyramidSchema
