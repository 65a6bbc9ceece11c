"""
Tests for the pyramid layout transform and axis formatting.
"""

import pytest

from charts.errors import UnassignedCategoryError
from charts.layout import (
    AXIS_NUMBER_FORMAT,
    BarPrimitive,
    SignAssignment,
    align_by_bucket,
    categories_of,
    format_axis_percent,
    layout,
    value_axis_bounds,
)
from charts.model import FEMALE, MALE, Series, example_population


def _series(category, pairs):
    return Series.from_pairs(category, pairs)


# =============================================================================
# layout()
# =============================================================================


class TestLayout:
    def test_end_to_end_example(self):
        a = _series("pos", [("0-10", 40)])
        b = _series("neg", [("0-10", 25)])
        out = layout([a, b], SignAssignment({"pos": 1, "neg": -1}))
        assert out == [
            BarPrimitive(bucket_label="0-10", span_start=0, span_end=40, category="pos"),
            BarPrimitive(bucket_label="0-10", span_start=0, span_end=-25, category="neg"),
        ]
        assert format_axis_percent(out[1].span_end) == "25%"

    def test_span_end_is_sign_times_magnitude(self):
        s = _series(FEMALE, [("a", 3), ("b", 0), ("c", 99)])
        out = layout([s], SignAssignment.default())
        assert [p.span_start for p in out] == [0, 0, 0]
        assert [p.span_end for p in out] == [-3, 0, -99]
        assert {p.category for p in out} == {FEMALE}

    def test_preserves_bucket_order_grouped_by_series(self):
        male = _series(MALE, [("A", 1), ("B", 2), ("C", 3)])
        female = _series(FEMALE, [("A", 4), ("B", 5), ("C", 6)])
        out = layout([male, female], SignAssignment.default())
        assert [(p.category, p.bucket_label) for p in out] == [
            (MALE, "A"),
            (MALE, "B"),
            (MALE, "C"),
            (FEMALE, "A"),
            (FEMALE, "B"),
            (FEMALE, "C"),
        ]

    def test_is_pure(self):
        series = example_population()
        signs = SignAssignment.default()
        assert layout(series, signs) == layout(series, signs)

    def test_accepts_plain_mapping_and_callable(self):
        s = _series("x", [("a", 7)])
        assert layout([s], {"x": -1})[0].span_end == -7
        assert layout([s], lambda c: 1)[0].span_end == 7

    def test_unassigned_category_fails_fast(self):
        s = _series("Other", [("a", 1)])
        with pytest.raises(UnassignedCategoryError) as exc:
            layout([s], SignAssignment.default())
        assert exc.value.category == "Other"
        # KeyError としても捕捉できる
        assert isinstance(exc.value, KeyError)

    def test_empty_input(self):
        assert layout([], SignAssignment.default()) == []


# =============================================================================
# SignAssignment
# =============================================================================


class TestSignAssignment:
    def test_default_is_male_right_female_left(self):
        signs = SignAssignment.default()
        assert signs(MALE) == 1
        assert signs.sign_for(FEMALE) == -1
        assert signs.positive_categories() == [MALE]
        assert signs.negative_categories() == [FEMALE]

    def test_no_string_fallback(self):
        # "male" は "Male" ではない。負側に落とさずエラーにする
        with pytest.raises(UnassignedCategoryError):
            SignAssignment.default().sign_for("male")

    @pytest.mark.parametrize("bad", [0, 2, -2])
    def test_rejects_non_unit_signs(self, bad):
        with pytest.raises(ValueError):
            SignAssignment({"a": bad})

    def test_contains_and_as_dict(self):
        signs = SignAssignment({"a": 1, "b": -1})
        assert "a" in signs
        assert "c" not in signs
        assert signs.as_dict() == {"a": 1, "b": -1}


# =============================================================================
# align_by_bucket()
# =============================================================================


class TestAlignByBucket:
    def test_pairs_primitives_by_label(self):
        male = _series(MALE, [("A", 1), ("B", 2), ("C", 3)])
        female = _series(FEMALE, [("A", 4), ("B", 5), ("C", 6)])
        rows = align_by_bucket(layout([male, female], SignAssignment.default()))
        assert rows == [
            ("A", {MALE: 1, FEMALE: -4}),
            ("B", {MALE: 2, FEMALE: -5}),
            ("C", {MALE: 3, FEMALE: -6}),
        ]

    def test_unmatched_labels_leave_gaps(self):
        male = _series(MALE, [("A", 1), ("B", 2)])
        female = _series(FEMALE, [("B", 5), ("C", 6)])
        rows = dict(align_by_bucket(layout([male, female], SignAssignment.default())))
        assert list(rows) == ["A", "B", "C"]
        assert rows["A"] == {MALE: 1}
        assert rows["C"] == {FEMALE: -6}

    def test_categories_in_first_appearance_order(self):
        out = layout(example_population(), SignAssignment.default())
        assert categories_of(out) == [MALE, FEMALE]


# =============================================================================
# Axis formatting
# =============================================================================


class TestAxisFormat:
    @pytest.mark.parametrize(
        "value, expected",
        [(37, "37%"), (-37, "37%"), (0, "0%"), (100, "100%"), (-100, "100%"), (5, "5%")],
    )
    def test_format_axis_percent(self, value, expected):
        assert format_axis_percent(value) == expected

    def test_number_format_shows_absolute_values(self):
        positive, negative, zero = AXIS_NUMBER_FORMAT.split(";")
        assert "-" not in negative
        assert positive == negative == zero == '0"%"'

    def test_value_axis_bounds_are_symmetric(self):
        s = _series(MALE, [("a", 37)])
        t = _series(FEMALE, [("a", 52)])
        assert value_axis_bounds(layout([s, t], SignAssignment.default())) == (-60, 60)

    def test_value_axis_bounds_minimum_step(self):
        s = _series(MALE, [("a", 0)])
        assert value_axis_bounds(layout([s], SignAssignment.default())) == (-10, 10)
        assert value_axis_bounds([]) == (-10, 10)
