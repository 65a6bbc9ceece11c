from pptx.chart.data import CategoryChartData
from pptx.enum.chart import XL_CHART_TYPE, XL_LEGEND_POSITION, XL_TICK_LABEL_POSITION
from pptx.util import Pt

from ..layout import (
    AXIS_NUMBER_FORMAT,
    align_by_bucket,
    categories_of,
    layout,
    value_axis_bounds,
)
from ..utils import (
    fill_series,
    setup_chart_data_labels,
    setup_chart_legend,
    setup_chart_title,
)
from ..schemas.population_pyramid import PopulationPyramidSchema

# プロット領域が図形の高さに占めるおおよその割合（タイトル・凡例・軸ぶんを除く）
PLOT_HEIGHT_RATIO = 0.75
MAX_GAP_WIDTH = 500


def gap_width_for(bar_height_pt, plot_height_emu, bucket_count):
    """
    バーの太さ（pt）を python-pptx の gap_width（バー幅に対する%、0..500）に換算する。
    1 行の高さ = バー + ギャップ
    """
    if bucket_count <= 0 or bar_height_pt <= 0:
        return MAX_GAP_WIDTH
    band = plot_height_emu / float(bucket_count)
    bar = float(Pt(bar_height_pt))
    gap = (band / bar - 1.0) * 100.0
    return int(max(0, min(MAX_GAP_WIDTH, round(gap))))


def build_chart_data(primitives):
    """ラベルごとに行をそろえて CategoryChartData を作る（欠けは None）"""
    rows = align_by_bucket(primitives)
    chart_data = CategoryChartData(number_format=AXIS_NUMBER_FORMAT)
    chart_data.categories = [label for label, _ in rows]
    for category in categories_of(primitives):
        chart_data.add_series(category, [spans.get(category) for _, spans in rows])
    return chart_data


def render(slide, data: PopulationPyramidSchema, geom: dict, context: dict):
    """人口ピラミッド（左右に伸びる横棒グラフ）を描画する"""
    logger = (context or {}).get("logger")
    primitives = layout(data.series, data.sign_assignment())
    chart_data = build_chart_data(primitives)
    bucket_count = len(chart_data.categories)

    graphic_frame = slide.shapes.add_chart(
        XL_CHART_TYPE.BAR_CLUSTERED,
        geom["left"],
        geom["top"],
        geom["width"],
        geom["height"],
        chart_data,
    )
    chart = graphic_frame.chart

    # 同じ年齢帯のバーを同じ行に重ねる
    plot = chart.plots[0]
    plot.overlap = 100
    plot.gap_width = gap_width_for(
        data.bar_height, geom["height"] * PLOT_HEIGHT_RATIO, bucket_count
    )

    for series in plot.series:
        series.invert_if_negative = False
        if data.bar_height <= 0:
            # 高さ 0 はバーを描かない（gap_width の上限ではバーが残る）
            series.format.fill.background()
        else:
            fill_series(series, data.color_for(series.name), gradient=data.gradient)

    # 先頭のバケットを上に
    category_axis = chart.category_axis
    category_axis.reverse_order = True
    category_axis.tick_label_position = XL_TICK_LABEL_POSITION.LOW

    value_axis = chart.value_axis
    lo, hi = value_axis_bounds(primitives)
    value_axis.minimum_scale = lo
    value_axis.maximum_scale = hi
    value_axis.has_major_gridlines = True
    value_axis.tick_labels.number_format = AXIS_NUMBER_FORMAT
    value_axis.tick_labels.number_format_is_linked = False

    if data.variant == "overview":
        # サムネイル: 軸・凡例なし
        category_axis.visible = False
        value_axis.visible = False
        setup_chart_title(chart, None)
        setup_chart_legend(chart, False, XL_LEGEND_POSITION.TOP)
    else:
        setup_chart_title(chart, data.title)
        setup_chart_legend(chart, data.show_legend, XL_LEGEND_POSITION.TOP)
        if data.data_labels:
            labels = setup_chart_data_labels(chart, True)
            labels.number_format = AXIS_NUMBER_FORMAT
            labels.number_format_is_linked = False

    if logger:
        logger.info(
            f"Rendered population pyramid: {bucket_count} buckets, "
            f"{len(plot.series)} series, gap_width={plot.gap_width}"
        )
    return primitives
