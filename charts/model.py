"""
model.py
- ピラミッドチャートのデータモデル（Series / Bucket）
- データソース戦略: ランダム生成・静的サンプル・固定シーケンス（テスト用）
- PopulationModel: スナップショットを丸ごと差し替える（部分更新なし）
"""
from __future__ import annotations

import random
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field, validator

from .errors import BucketMismatchError, DuplicateCategoryError

MALE = "Male"
FEMALE = "Female"

AGE_RANGES: Tuple[str, ...] = (
    "0-10",
    "11-20",
    "21-30",
    "31-40",
    "41-50",
    "51-60",
    "61-70",
    "71-80",
    "81-90",
    "91+",
)

# ランダム生成時の magnitude 範囲 [0, 100)
MAGNITUDE_UPPER = 100


class Bucket(BaseModel):
    label: str
    magnitude: int = Field(..., ge=0)

    class Config:
        frozen = True


class Series(BaseModel):
    category: str
    buckets: Tuple[Bucket, ...] = Field(default_factory=tuple)

    class Config:
        frozen = True

    @validator("buckets")
    def validate_unique_labels(cls, v):
        seen = set()
        for b in v:
            if b.label in seen:
                raise ValueError(f"duplicate bucket label '{b.label}'")
            seen.add(b.label)
        return v

    def labels(self) -> Tuple[str, ...]:
        return tuple(b.label for b in self.buckets)

    @classmethod
    def from_pairs(cls, category: str, pairs: Iterable[Tuple[str, int]]) -> "Series":
        """(label, magnitude) のペア列から Series を作る"""
        return cls(
            category=category,
            buckets=tuple(Bucket(label=l, magnitude=m) for l, m in pairs),
        )


def check_aligned(series: Sequence[Series]) -> None:
    """全系列のバケットラベル（順序込み）が一致し、カテゴリが重複しないか検証する"""
    if not series:
        return
    seen = set()
    for s in series:
        if s.category in seen:
            raise DuplicateCategoryError(f"duplicate series category '{s.category}'")
        seen.add(s.category)
    expected = series[0].labels()
    for s in series[1:]:
        if s.labels() != expected:
            raise BucketMismatchError(
                f"series '{s.category}' buckets {list(s.labels())} "
                f"do not match '{series[0].category}' buckets {list(expected)}"
            )


def example_population() -> List[Series]:
    """静的なサンプルデータ（男女 x 年齢帯）"""
    male = (6, 11, 14, 16, 15, 13, 10, 8, 5, 2)
    female = (5, 10, 13, 15, 15, 14, 11, 9, 6, 3)
    return [
        Series.from_pairs(MALE, zip(AGE_RANGES, male)),
        Series.from_pairs(FEMALE, zip(AGE_RANGES, female)),
    ]


# =========================================================
# Data sources
# =========================================================
class SeriesSource:
    """Produces a complete, aligned list of Series on every call."""

    def next_series(self) -> List[Series]:
        raise NotImplementedError


class RandomPopulationSource(SeriesSource):
    """各バケットに [0, 100) の乱数を割り当てる"""

    def __init__(
        self,
        categories: Sequence[str] = (MALE, FEMALE),
        labels: Sequence[str] = AGE_RANGES,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        self.categories = tuple(categories)
        self.labels = tuple(labels)
        self.rng = rng if rng is not None else random.Random(seed)

    def next_series(self) -> List[Series]:
        return [
            Series.from_pairs(
                cat,
                ((label, self.rng.randrange(MAGNITUDE_UPPER)) for label in self.labels),
            )
            for cat in self.categories
        ]


class StaticSource(SeriesSource):
    def __init__(self, series: Optional[Sequence[Series]] = None):
        self._series = tuple(series) if series is not None else tuple(example_population())

    def next_series(self) -> List[Series]:
        return list(self._series)


class FixedSequenceSource(SeriesSource):
    """与えられたバッチを順番に返す（末尾まで来たら先頭に戻る）"""

    def __init__(self, batches: Sequence[Sequence[Series]]):
        if not batches:
            raise ValueError("FixedSequenceSource needs at least one batch")
        self._batches = [tuple(b) for b in batches]
        self._idx = 0

    def next_series(self) -> List[Series]:
        batch = self._batches[self._idx % len(self._batches)]
        self._idx += 1
        return list(batch)


# =========================================================
# Model
# =========================================================
Listener = Callable[[Tuple[Series, ...]], None]


class PopulationModel:
    """
    現在のスナップショットを保持する唯一のハンドル。
    - 書き込みは regenerate() / replace() のみ
    - 検証に通った新しいタプルを 1 回の代入で差し替え、その後に購読者へ通知
    """

    def __init__(self, source: SeriesSource, initial: Optional[Sequence[Series]] = None):
        self.source = source
        self._listeners: List[Listener] = []
        self.generation = 0
        if initial is None:
            initial = source.next_series()
        snapshot = tuple(initial)
        check_aligned(snapshot)
        self._series: Tuple[Series, ...] = snapshot

    @property
    def series(self) -> Tuple[Series, ...]:
        return self._series

    def subscribe(self, callback: Listener) -> None:
        self._listeners.append(callback)

    def unsubscribe(self, callback: Listener) -> None:
        self._listeners.remove(callback)

    def regenerate(self) -> Tuple[Series, ...]:
        return self.replace(self.source.next_series())

    def replace(self, series: Sequence[Series]) -> Tuple[Series, ...]:
        snapshot = tuple(series)
        check_aligned(snapshot)  # 失敗時は旧スナップショットのまま
        self._series = snapshot
        self.generation += 1
        for cb in list(self._listeners):
            cb(snapshot)
        return snapshot
