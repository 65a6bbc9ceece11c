# -*- coding: utf-8 -*-
"""
render.py
- IR(YAML) を読み込み、人口ピラミッドチャートのスライドを決定論的に描画するオーケストレータ。
- 特色:
  * ツールローダ: tool 名から charts.schemas / charts.renderers を動的に読み込む
  * スキーマ検証: 失敗したコンポーネントは警告してスキップ（弱い失敗）
  * IR ノーマライザー: list ルートや components 直下など緩い入力も包んで処理
  * ランダム再生成デッキ: PopulationModel の変更通知ごとに 1 スライド描画
  * --dump-layout: 描画せずにバー配置（BarPrimitive）を YAML で出力
"""
from __future__ import annotations

import argparse
import importlib
import importlib.util
from pathlib import Path
import re
import sys
import yaml

from pptx import Presentation
from pptx.util import Inches
from pptx.enum.shapes import MSO_SHAPE_TYPE
from charts import utils
from charts.layout import format_axis_percent, layout, value_axis_bounds
from charts.model import PopulationModel, RandomPopulationSource, example_population
from layouts import LayoutEngine
from presentation_schema import PresentationSchema

PYRAMID_TOOL = "population_pyramid"


# =========================================================
# Logger
# =========================================================
class ConsoleLogger:
    def __init__(self, quiet: bool = False):
        self.quiet = quiet

    def info(self, msg):
        if not self.quiet:
            print(msg)

    def warning(self, msg):
        print("Warning:", msg)

    def error(self, msg):
        print("Error:", msg)


# =========================================================
# Tool Loader
# =========================================================
def _sanitize_module_name(name: str) -> str:
    n = (name or "").strip()
    n = n.replace("-", "_").replace(" ", "_")
    n = re.sub(r"[^0-9a-zA-Z_]", "_", n)
    return n.lower()


def _load_module(package: str, tool_name: str, attr: str, logger):
    mod_name = _sanitize_module_name(tool_name)
    full = f"{package}.{mod_name}"
    if importlib.util.find_spec(full) is None:
        logger.warning(
            f"Tool '{tool_name}' not found. Expected '{full.replace('.', '/')}.py' "
            f"with '{attr}'."
        )
        return None
    try:
        module = importlib.import_module(full)
    except Exception as e:
        logger.warning(f"Failed to import '{full}': {type(e).__name__}: {e}")
        return None
    if not hasattr(module, attr):
        logger.warning(f"Module '{full}' loaded, but no '{attr}' found.")
        return None
    return module


def load_schema(tool_name: str, logger=None):
    """ツール名から動的にPydanticスキーマを読み込む"""
    module = _load_module("charts.schemas", tool_name, "Schema", logger or ConsoleLogger())
    return module.Schema if module else None


def load_renderer(tool_name: str, logger=None):
    """ツール名から動的にレンダラーを読み込む"""
    return _load_module("charts.renderers", tool_name, "render", logger or ConsoleLogger())


# =========================================================
# Slide size
# =========================================================
def set_slide_size(prs: Presentation, size_info: dict):
    """スライドサイズを設定する"""
    if not size_info:
        return
    if size_info.get("preset") == "16x9":
        prs.slide_width = Inches(10)
        prs.slide_height = Inches(5.625)
    elif "w_mm" in size_info and "h_mm" in size_info:
        # mm to EMU (1mm = 36000 EMU)
        prs.slide_width = int(size_info["w_mm"] * 36000)
        prs.slide_height = int(size_info["h_mm"] * 36000)


# =========================================================
# IR normalizer
# =========================================================
def _normalize_ir(ir):
    """
    受け取った IR を {version, meta, theme, slides} に正規化する。
    - list ルート: components の配列なら 1 スライドに包む / それ以外はスライド配列
    - dict ルート: slides が無くて components だけなら 1 スライドに包む
    """

    def _mk_min(slides):
        return {"version": 1, "meta": {}, "theme": {}, "slides": slides}

    if isinstance(ir, list):
        if ir and all(isinstance(x, dict) for x in ir) and "tool" not in ir[0]:
            return _mk_min(ir)
        return _mk_min([{"id": "auto_1", "components": ir}])

    if isinstance(ir, dict):
        ir.setdefault("version", 1)
        ir.setdefault("meta", {})
        ir.setdefault("theme", {})
        if "slides" not in ir:
            if "components" in ir:
                ir["slides"] = [
                    {
                        "id": ir.get("id", "auto_1"),
                        "title": ir.get("title"),
                        "components": ir["components"],
                    }
                ]
            else:
                ir["slides"] = []
        return ir

    raise TypeError(f"IR must be dict or list. Got: {type(ir)}")


def load_ir(ir_path: str) -> dict:
    with open(ir_path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    return _normalize_ir(raw)


# =========================================================
# Shape helpers
# =========================================================
def _snapshot_ids(slide):
    return {sh.shape_id for sh in slide.shapes}


def _new_shapes(slide, before_ids):
    return [sh for sh in slide.shapes if sh.shape_id not in before_ids]


def _apply_font_color(shapes, hex_color):
    """チャートの文字（タイトル・凡例・軸ラベル）の色をテーマ色で上書き"""
    rgb = utils.to_rgb_color(hex_color)
    for sh in shapes:
        if sh.shape_type != MSO_SHAPE_TYPE.CHART:
            continue
        chart = sh.chart
        if chart.has_title:
            for p in chart.chart_title.text_frame.paragraphs:
                p.font.color.rgb = rgb
        if chart.has_legend:
            chart.legend.font.color.rgb = rgb
        for ax in (chart.category_axis, chart.value_axis):
            ax.tick_labels.font.color.rgb = rgb


# =========================================================
# Render
# =========================================================
def render_component(slide, comp: dict, resolver: LayoutEngine, context: dict, comp_id: str):
    """1 コンポーネントを検証・描画する。スキップ時は None を返す"""
    logger = context["logger"]
    tool_name = comp.get("tool")

    schema_class = load_schema(tool_name, logger)
    renderer = load_renderer(tool_name, logger)
    if schema_class is None or renderer is None:
        logger.warning(f"Tool '{tool_name}' could not be loaded. Skipping component.")
        return None

    try:
        validated_data = schema_class(**(comp.get("data") or {}))
    except Exception as e:
        logger.warning(
            f"Schema validation failed for component '{comp_id}' (tool: '{tool_name}'): {e}"
        )
        logger.warning(f"Skipping component '{comp_id}' due to validation error.")
        return None

    try:
        geom = resolver.resolve(comp)
        before_ids = _snapshot_ids(slide)
        result = renderer.render(
            slide=slide, data=validated_data, geom=geom, context=context
        )
        new_shapes = _new_shapes(slide, before_ids)
        _apply_font_color(new_shapes, context["theme"]["font_color"])
        return result
    except Exception as e:
        # 弱い失敗: コンポーネント描画に失敗しても全体処理は継続
        logger.error(f"Error rendering component {comp_id}: {type(e).__name__}: {e}")
        return None


def _new_context(prs, theme, logger):
    return {
        "prs": prs,
        "theme": theme,
        "logger": logger,
    }


def render_ir(ir: dict, logger=None) -> tuple:
    """正規化済み IR から Presentation を生成し、(prs, results) を返す"""
    logger = logger or ConsoleLogger()
    prs = Presentation()

    meta = ir.get("meta", {}) or {}
    if "slide_size" in meta:
        set_slide_size(prs, meta["slide_size"])

    theme = dict(ir.get("theme", {}) or {})
    theme.setdefault("font_color", "#000000")

    results = {}
    for slide_idx, slide_spec in enumerate(ir.get("slides", []), start=1):
        blank_slide_layout = prs.slide_layouts[6]  # 6は通常「白紙」
        slide = prs.slides.add_slide(blank_slide_layout)
        resolver = LayoutEngine(slide_spec, prs)
        context = _new_context(prs, theme, logger)

        components = slide_spec.get("components", []) or []
        components = sorted(components, key=lambda c: c.get("z_index", 0) or 0)
        for comp_idx, comp in enumerate(components, start=1):
            tool_name = comp.get("tool")
            if not tool_name:
                logger.warning(f"Component is missing 'tool'. Skipping. {comp}")
                continue
            comp_id = comp.get("id") or f"{tool_name}_{slide_idx}_{comp_idx}"
            result = render_component(slide, comp, resolver, context, comp_id)
            if result is not None:
                results[comp_id] = result

    return prs, results


def render_presentation(ir_path: str, output_path: str, logger=None) -> dict:
    """YAML IRを読み込み、PowerPointプレゼンテーションを生成する"""
    prs, results = render_ir(load_ir(ir_path), logger)
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    prs.save(output_path)
    return results


def render_regenerations(
    output_path: str,
    count: int,
    seed=None,
    style: dict = None,
    logger=None,
) -> PopulationModel:
    """
    1 枚目はサンプルデータ、以降は regenerate() のたびに 1 スライド追加する。
    描画は PopulationModel の変更通知で行う（スナップショット単位）。
    """
    logger = logger or ConsoleLogger()
    style = dict(style or {})
    prs = Presentation()
    theme = {"font_color": "#000000"}

    model = PopulationModel(
        RandomPopulationSource(seed=seed), initial=example_population()
    )

    def draw(snapshot):
        slide = prs.slides.add_slide(prs.slide_layouts[6])
        if model.generation == 0:
            title = "Population by age"
        else:
            title = f"Random population #{model.generation}"
        comp = {
            "tool": PYRAMID_TOOL,
            "anchor": "full",
            "data": {
                "title": title,
                "series": [s.model_dump() for s in snapshot],
                **style,
            },
        }
        render_component(
            slide,
            comp,
            LayoutEngine({}, prs),
            _new_context(prs, theme, logger),
            f"{PYRAMID_TOOL}_{model.generation}",
        )

    draw(model.series)
    model.subscribe(draw)
    for _ in range(count):
        model.regenerate()

    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    prs.save(output_path)
    logger.info(f"Saved {len(prs.slides)} slides to {output_path}")
    return model


# =========================================================
# Layout dump
# =========================================================
def dump_layout(ir: dict, logger=None) -> list:
    """描画せずに各ピラミッドのバー配置と軸ラベルを返す"""
    logger = logger or ConsoleLogger()
    schema_class = load_schema(PYRAMID_TOOL, logger)
    out = []
    for slide_idx, slide_spec in enumerate(ir.get("slides", []), start=1):
        for comp_idx, comp in enumerate(slide_spec.get("components", []) or [], start=1):
            if comp.get("tool") != PYRAMID_TOOL:
                continue
            comp_id = comp.get("id") or f"{PYRAMID_TOOL}_{slide_idx}_{comp_idx}"
            try:
                data = schema_class(**(comp.get("data") or {}))
            except Exception as e:
                logger.warning(f"Skipping component '{comp_id}' due to validation error: {e}")
                continue
            primitives = layout(data.series, data.sign_assignment())
            lo, hi = value_axis_bounds(primitives)
            out.append(
                {
                    "component": comp_id,
                    "bars": [p.model_dump() for p in primitives],
                    "axis_labels": {
                        v: format_axis_percent(v) for v in range(lo, hi + 1, 10)
                    },
                }
            )
    return out


# =========================================================
# CLI
# =========================================================
def _build_arg_parser():
    p = argparse.ArgumentParser(description="Render population pyramid PPTX from IR(YAML).")
    p.add_argument(
        "input", nargs="?", default="samples/pyramid.yaml", help="Path to IR YAML"
    )
    p.add_argument(
        "-o", "--output", default="dist/output.pptx", help="Path to output .pptx"
    )
    p.add_argument(
        "--random",
        type=int,
        metavar="N",
        help="Ignore input; render the example pyramid followed by N random regenerations",
    )
    p.add_argument("--seed", type=int, default=None, help="Random seed for --random")
    p.add_argument("--bar-height", type=float, help="Bar height in pt (0..25)")
    p.add_argument("--left-color", help="Color of the negative (left) side, #RRGGBB")
    p.add_argument("--right-color", help="Color of the positive (right) side, #RRGGBB")
    p.add_argument(
        "--dump-layout",
        action="store_true",
        help="Print bar layout of every pyramid component as YAML instead of rendering",
    )
    p.add_argument(
        "--validate",
        action="store_true",
        help="Validate the IR document structure and list the tools it uses",
    )
    p.add_argument("-q", "--quiet", action="store_true", help="Suppress info messages")
    return p


def main(argv=None) -> int:
    args = _build_arg_parser().parse_args(argv)
    logger = ConsoleLogger(quiet=args.quiet)

    if args.random is not None:
        style = {
            k: v
            for k, v in (
                ("bar_height", args.bar_height),
                ("left_color", args.left_color),
                ("right_color", args.right_color),
            )
            if v is not None
        }
        render_regenerations(args.output, args.random, args.seed, style, logger)
        return 0

    if args.validate:
        doc = PresentationSchema(**load_ir(args.input))
        print(f"{doc.get_slide_count()} slides, tools: {', '.join(doc.get_tools_used())}")
        return 0

    if args.dump_layout:
        print(yaml.safe_dump(dump_layout(load_ir(args.input), logger), sort_keys=False))
        return 0

    render_presentation(args.input, args.output, logger)
    logger.info(f"Presentation saved to {args.output}")
    return 0


if __name__ == "__main__":
    # パッケージ直下をパスに追加（相対実行の安定化）
    BASE = Path(__file__).resolve().parent
    if str(BASE) not in sys.path:
        sys.path.insert(0, str(BASE))

    sys.exit(main())
