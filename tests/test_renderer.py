"""
Tests for the python-pptx population pyramid renderer.
"""

import pytest
from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.chart import XL_CHART_TYPE, XL_LEGEND_POSITION
from pptx.enum.dml import MSO_FILL
from pptx.util import Inches, Pt
from pydantic import ValidationError

from charts.layout import AXIS_NUMBER_FORMAT, BarPrimitive
from charts.model import AGE_RANGES, FEMALE, MALE
from charts.renderers import population_pyramid as renderer
from charts.schemas.population_pyramid import Schema


class _RecordingLogger:
    def __init__(self):
        self.messages = []

    def info(self, msg):
        self.messages.append(msg)

    warning = error = info


def _render(**data):
    prs = Presentation()
    slide = prs.slides.add_slide(prs.slide_layouts[6])
    geom = {"left": Inches(1), "top": Inches(1), "width": Inches(6), "height": Inches(4)}
    logger = _RecordingLogger()
    primitives = renderer.render(
        slide=slide, data=Schema(**data), geom=geom, context={"logger": logger}
    )
    chart = slide.shapes[0].chart
    return chart, primitives, logger


TWO_BUCKETS = [
    {"category": MALE, "buckets": [{"label": "0-10", "magnitude": 40}, {"label": "11-20", "magnitude": 30}]},
    {"category": FEMALE, "buckets": [{"label": "0-10", "magnitude": 25}, {"label": "11-20", "magnitude": 35}]},
]


class TestChartContent:
    def test_mirrored_bar_chart(self):
        chart, primitives, _ = _render(series=TWO_BUCKETS)
        assert chart.chart_type == XL_CHART_TYPE.BAR_CLUSTERED
        plot = chart.plots[0]
        assert list(plot.categories) == ["0-10", "11-20"]
        names = [s.name for s in plot.series]
        assert names == [MALE, FEMALE]
        assert list(plot.series[0].values) == [40, 30]
        assert list(plot.series[1].values) == [-25, -35]
        assert primitives[0] == BarPrimitive(
            bucket_label="0-10", span_start=0, span_end=40, category=MALE
        )

    def test_rows_overlap_and_do_not_invert(self):
        chart, _, _ = _render(series=TWO_BUCKETS)
        plot = chart.plots[0]
        assert plot.overlap == 100
        assert all(s.invert_if_negative is False for s in plot.series)

    def test_axes(self):
        chart, _, _ = _render(series=TWO_BUCKETS)
        assert chart.category_axis.reverse_order is True
        value_axis = chart.value_axis
        assert value_axis.tick_labels.number_format == AXIS_NUMBER_FORMAT
        assert value_axis.tick_labels.number_format_is_linked is False
        assert value_axis.has_major_gridlines is True
        assert value_axis.minimum_scale == -40
        assert value_axis.maximum_scale == 40

    def test_example_source_renders_all_age_ranges(self):
        chart, primitives, logger = _render(source="example")
        assert list(chart.plots[0].categories) == list(AGE_RANGES)
        assert len(primitives) == 2 * len(AGE_RANGES)
        assert any("10 buckets" in m for m in logger.messages)

    def test_duplicate_category_never_reaches_the_chart(self):
        twice_male = [
            {"category": MALE, "buckets": [{"label": "a", "magnitude": 10}]},
            {"category": MALE, "buckets": [{"label": "a", "magnitude": 20}]},
        ]
        with pytest.raises(ValidationError):
            _render(series=twice_male)


class TestStyle:
    def test_solid_colors_per_category(self):
        chart, _, _ = _render(
            series=TWO_BUCKETS,
            gradient=False,
            left_color="#00FF00",
            right_color="#0000FF",
        )
        male, female = chart.plots[0].series
        assert male.format.fill.fore_color.rgb == RGBColor(0x00, 0x00, 0xFF)
        assert female.format.fill.fore_color.rgb == RGBColor(0x00, 0xFF, 0x00)

    def test_detail_variant_has_title_and_top_legend(self):
        chart, _, _ = _render(series=TWO_BUCKETS, title="Population")
        assert chart.has_title is True
        assert chart.chart_title.text_frame.text == "Population"
        assert chart.has_legend is True
        assert chart.legend.position == XL_LEGEND_POSITION.TOP

    def test_overview_variant_hides_axes_and_legend(self):
        chart, _, _ = _render(series=TWO_BUCKETS, variant="overview", title="ignored")
        assert chart.has_legend is False
        assert chart.has_title is False
        assert chart.category_axis.visible is False
        assert chart.value_axis.visible is False

    def test_data_labels_use_axis_format(self):
        chart, _, _ = _render(series=TWO_BUCKETS, data_labels=True)
        plot = chart.plots[0]
        assert plot.has_data_labels is True
        assert plot.data_labels.number_format == AXIS_NUMBER_FORMAT

    def test_zero_bar_height_hides_bars(self):
        chart, primitives, _ = _render(series=TWO_BUCKETS, bar_height=0)
        plot = chart.plots[0]
        assert len(primitives) == 4
        assert plot.gap_width == renderer.MAX_GAP_WIDTH
        assert all(s.format.fill.type == MSO_FILL.BACKGROUND for s in plot.series)

    def test_small_bar_height_is_still_drawn(self):
        chart, _, _ = _render(series=TWO_BUCKETS, bar_height=0.5, gradient=False)
        plot = chart.plots[0]
        assert plot.gap_width == renderer.MAX_GAP_WIDTH
        assert all(s.format.fill.type == MSO_FILL.SOLID for s in plot.series)

    def test_bar_height_changes_gap_width(self):
        thin, _, _ = _render(series=TWO_BUCKETS, bar_height=2)
        thick, _, _ = _render(series=TWO_BUCKETS, bar_height=25)
        assert thin.plots[0].gap_width > thick.plots[0].gap_width


class TestGapWidth:
    def test_half_band_bar(self):
        # 行の高さ 20pt, バー 10pt -> ギャップはバー幅の 100%
        assert renderer.gap_width_for(10, Pt(200), 10) == 100

    def test_zero_height_is_thinnest(self):
        assert renderer.gap_width_for(0, Pt(200), 10) == renderer.MAX_GAP_WIDTH

    def test_clamped(self):
        assert renderer.gap_width_for(25, Pt(200), 10) == 0
        assert renderer.gap_width_for(0.1, Pt(1000), 1) == renderer.MAX_GAP_WIDTH

    def test_no_buckets(self):
        assert renderer.gap_width_for(10, Pt(200), 0) == renderer.MAX_GAP_WIDTH


class TestChartData:
    def test_missing_pairs_become_gaps(self):
        primitives = [
            BarPrimitive(bucket_label="A", span_end=1, category=MALE),
            BarPrimitive(bucket_label="B", span_end=-2, category=FEMALE),
        ]
        chart_data = renderer.build_chart_data(primitives)
        assert [c.label for c in chart_data.categories] == ["A", "B"]
        male, female = list(chart_data)
        assert list(male.values) == [1, None]
        assert list(female.values) == [None, -2]
