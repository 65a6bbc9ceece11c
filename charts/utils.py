from pptx.dml.color import RGBColor
from pptx.util import Pt


def pct_to_emu(pct, total_emu):
    """パーセンテージをEMUに変換する"""
    return int(total_emu * (pct / 100.0))


def parse_geom(pos_pct, prs):
    """
    パーセンテージで指定された位置とサイズをEMUに変換する。
    pos: {x, y, w, h} in percentage
    prs: Presentation object
    """
    return {
        "left": pct_to_emu(pos_pct["x"], prs.slide_width),
        "top": pct_to_emu(pos_pct["y"], prs.slide_height),
        "width": pct_to_emu(pos_pct["w"], prs.slide_width),
        "height": pct_to_emu(pos_pct["h"], prs.slide_height),
    }


def hex_to_rgb(hex_color):
    """HEXカラーコードをRGBタプルに変換する"""
    hex_color = hex_color.lstrip("#")
    if len(hex_color) != 6:
        raise ValueError(f"Invalid hex color: '#{hex_color}'")
    return tuple(int(hex_color[i : i + 2], 16) for i in (0, 2, 4))


def rgb_to_hex(r, g, b):
    """RGBタプルをHEXカラーコードに変換する"""
    return "#{:02X}{:02X}{:02X}".format(
        max(0, min(255, int(r))),
        max(0, min(255, int(g))),
        max(0, min(255, int(b))),
    )


def tint_color(hex_color, factor=0.20):
    """色を明るく（factor>0）/暗く（factor<0）する"""
    r, g, b = hex_to_rgb(hex_color)
    toward = 255 if factor >= 0 else 0

    def _blend(c):
        return max(0, min(255, int(round(c + (toward - c) * abs(factor)))))

    return rgb_to_hex(_blend(r), _blend(g), _blend(b))


def normalize_color(color_val):
    """HEX(#RRGGBB) or (r,g,b) or [r,g,b] -> (r,g,b)"""
    if isinstance(color_val, (tuple, list)) and len(color_val) == 3:
        return tuple(int(v) for v in color_val)
    if isinstance(color_val, str):
        return hex_to_rgb(color_val)
    return (0, 0, 0)


def to_rgb_color(color_val):
    r, g, b = normalize_color(color_val)
    return RGBColor(r, g, b)


def setup_chart_title(chart, title, font_size=16):
    """チャートのタイトルを設定"""
    if title:
        chart.has_title = True
        chart.chart_title.text_frame.text = title
        chart.chart_title.text_frame.paragraphs[0].font.size = Pt(font_size)
    else:
        chart.has_title = False


def setup_chart_legend(chart, show_legend, position, font_size=12):
    """チャートの凡例を設定"""
    chart.has_legend = bool(show_legend)
    if show_legend:
        chart.legend.position = position
        chart.legend.include_in_layout = False
        chart.legend.font.size = Pt(font_size)


def setup_chart_data_labels(chart, data_labels_config, font_size=10):
    """チャートのデータラベルを設定"""
    if data_labels_config and data_labels_config != "none":
        plot = chart.plots[0]
        plot.has_data_labels = True
        data_labels = plot.data_labels
        data_labels.font.size = Pt(font_size)
        return data_labels
    return None


def fill_series(series, color, gradient=False):
    """系列の塗り（単色 or 明るい色へのグラデーション）"""
    fill = series.format.fill
    if gradient:
        fill.gradient()
        fill.gradient_angle = 0
        stops = fill.gradient_stops
        stops[0].color.rgb = to_rgb_color(tint_color(color, 0.35))
        stops[len(stops) - 1].color.rgb = to_rgb_color(color)
    else:
        fill.solid()
        fill.fore_color.rgb = to_rgb_color(color)
