# -*- coding: utf-8 -*-
"""
layouts.py
- コンポーネントの配置（pos: パーセント指定 or anchor）を EMU の geom に解決する。
"""
from __future__ import annotations

from charts.utils import parse_geom

# anchor -> パーセントボックス {x, y, w, h}
ANCHORS = {
    "full": {"x": 0, "y": 0, "w": 100, "h": 100},
    "title": {"x": 5, "y": 3, "w": 90, "h": 12},
    "body": {"x": 5, "y": 17, "w": 90, "h": 78},
    "left": {"x": 5, "y": 17, "w": 43, "h": 78},
    "right": {"x": 52, "y": 17, "w": 43, "h": 78},
}
DEFAULT_ANCHOR = "body"


class LayoutEngine:
    def __init__(self, slide_spec: dict, prs):
        self.slide_spec = slide_spec or {}
        self.prs = prs
        # スライド単位で anchor の上書きを許可する
        self.anchors = {**ANCHORS, **(self.slide_spec.get("anchors") or {})}

    def resolve(self, comp: dict) -> dict:
        """pos があれば優先、無ければ anchor、どちらも無ければ body"""
        pos = comp.get("pos")
        if pos:
            missing = [k for k in ("x", "y", "w", "h") if pos.get(k) is None]
            if missing:
                raise ValueError(f"pos is missing keys: {missing}")
            return parse_geom(pos, self.prs)
        anchor = comp.get("anchor") or DEFAULT_ANCHOR
        if anchor not in self.anchors:
            raise ValueError(
                f"Unknown anchor '{anchor}'. Known: {sorted(self.anchors)}"
            )
        return parse_geom(self.anchors[anchor], self.prs)
