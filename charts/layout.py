"""
layout.py
- Series 群 -> BarPrimitive 列への純粋な変換（中央軸から左右に伸びるバー）
- 軸ラベルのフォーマッタ（符号付きの値 -> 絶対値のパーセント表記）
"""
from __future__ import annotations

import math
from typing import Callable, Dict, List, Mapping, Sequence, Tuple, Union

from pydantic import BaseModel

from .errors import UnassignedCategoryError
from .model import FEMALE, MALE, Series

# 目盛ラベルを format_axis_percent と同じ見た目にする数値書式（正;負;ゼロ）
AXIS_NUMBER_FORMAT = '0"%";0"%";0"%"'


class BarPrimitive(BaseModel):
    bucket_label: str
    span_start: int = 0
    span_end: int
    category: str

    class Config:
        frozen = True


class SignAssignment:
    """Explicit category -> +1/-1 map. Unknown categories are an error."""

    def __init__(self, mapping: Mapping[str, int]):
        signs = {}
        for category, sign in mapping.items():
            if sign not in (1, -1):
                raise ValueError(
                    f"sign for category '{category}' must be +1 or -1, got {sign!r}"
                )
            signs[category] = int(sign)
        self._signs: Dict[str, int] = signs

    @classmethod
    def default(cls) -> "SignAssignment":
        return cls({MALE: 1, FEMALE: -1})

    def sign_for(self, category: str) -> int:
        try:
            return self._signs[category]
        except KeyError:
            raise UnassignedCategoryError(category) from None

    __call__ = sign_for

    def __contains__(self, category) -> bool:
        return category in self._signs

    def as_dict(self) -> Dict[str, int]:
        return dict(self._signs)

    def positive_categories(self) -> List[str]:
        return [c for c, s in self._signs.items() if s > 0]

    def negative_categories(self) -> List[str]:
        return [c for c, s in self._signs.items() if s < 0]


SignFor = Union[SignAssignment, Callable[[str], int], Mapping[str, int]]


def _as_sign_fn(sign_for: SignFor) -> Callable[[str], int]:
    if isinstance(sign_for, Mapping):
        return SignAssignment(sign_for)
    return sign_for


def layout(series: Sequence[Series], sign_for: SignFor) -> List[BarPrimitive]:
    """
    各系列・各バケットにつき 1 つの BarPrimitive を出力する。
    - span_start は常に 0、span_end = sign(category) * magnitude
    - 出力順: 系列ごと、系列内はバケット順
    """
    sign = _as_sign_fn(sign_for)
    primitives = []
    for s in series:
        k = sign(s.category)
        for b in s.buckets:
            primitives.append(
                BarPrimitive(
                    bucket_label=b.label,
                    span_start=0,
                    span_end=k * b.magnitude,
                    category=s.category,
                )
            )
    return primitives


def align_by_bucket(
    primitives: Sequence[BarPrimitive],
) -> List[Tuple[str, Dict[str, int]]]:
    """
    バケットラベルごとに行をまとめる（縦位置はラベルで決まる）。
    行順はラベルの初出順。対になるバーが無いラベルはその系列が欠けるだけ。
    """
    rows: Dict[str, Dict[str, int]] = {}
    for p in primitives:
        rows.setdefault(p.bucket_label, {})[p.category] = p.span_end
    return list(rows.items())


def categories_of(primitives: Sequence[BarPrimitive]) -> List[str]:
    """カテゴリを初出順で返す"""
    seen = []
    for p in primitives:
        if p.category not in seen:
            seen.append(p.category)
    return seen


def format_axis_percent(value) -> str:
    """軸の生値 v を abs(v)/100 のパーセント表記にする（-37 -> '37%'）"""
    return "{:.0%}".format(abs(value) / 100)


def value_axis_bounds(primitives: Sequence[BarPrimitive], step: int = 10) -> Tuple[int, int]:
    """中央軸が中心に来るよう左右対称の軸範囲を返す（step 単位で切り上げ）"""
    peak = max((abs(p.span_end) for p in primitives), default=0)
    m = max(step, int(math.ceil(peak / float(step))) * step)
    return -m, m
