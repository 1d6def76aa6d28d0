"""dagre-style graph configs laid out with networkx and drawn to SVG with matplotlib."""
import io
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Optional, Sequence, Tuple

import matplotlib
import networkx as nx
from matplotlib.backends.backend_svg import FigureCanvasSVG
from matplotlib.figure import Figure
from matplotlib.patches import FancyArrowPatch, FancyBboxPatch

from .raster import color_to_mpl

DEFAULT_INITIAL_SCALE = 1
DEFAULT_LEFT_MARGIN = 30
DEFAULT_HEIGHT_MARGIN = 40

NODE_SEP = 50
RANK_SEP = 50
NODE_HEIGHT = 30
NODE_PADDING = 10
CHAR_WIDTH = 7
FONT_SIZE = 12

# one point per pixel
SVG_DPI = 72

DEFAULT_NODE_FILL = "#ffffff"
DEFAULT_STROKE = "#333333"


@dataclass
class GraphLayout:
    positions: Dict[Hashable, Tuple[float, float]]
    sizes: Dict[Hashable, Tuple[float, float]]
    ranks: Dict[Hashable, int]
    width: float
    height: float


def combine_styles(global_style: Optional[str], local_style: Optional[str]) -> Optional[str]:
    if global_style and local_style:
        return f"{global_style}; {local_style}"
    return global_style or local_style


def parse_style(style: Optional[str]) -> Dict[str, str]:
    """'fill: #afa; stroke: red' -> {'fill': '#afa', 'stroke': 'red'}; later entries win."""
    result: Dict[str, str] = {}
    for declaration in (style or "").split(";"):
        name, sep, value = declaration.partition(":")
        if sep and name.strip():
            result[name.strip().lower()] = value.strip()
    return result


def _attr_pairs(svg_attr: Any) -> Sequence[Tuple[str, Any]]:
    if isinstance(svg_attr, Mapping):
        return list(svg_attr.items())
    # already a list of key/value pairs
    return [tuple(pair) for pair in svg_attr]


def build_graph(config: Mapping) -> nx.DiGraph:
    """
    Build a DiGraph from a dagre config:

        nodes:          [name | [name, {style?, svg_attr?, ...}]]
        edges:          [[from, to, {label?, style?, ...}?]]
        node_options:   options for every node (``style`` is combined, not replaced)
        node_svg_attr:  attributes for every node, mapping or key/value pairs
        edge_options:   options for every edge
    """
    all_node_options = dict(config.get("node_options") or {})
    all_node_style = all_node_options.pop("style", None)
    all_edge_options = dict(config.get("edge_options") or {})

    graph = nx.DiGraph()
    for node_config in config.get("nodes") or []:
        if isinstance(node_config, str):
            name, options = node_config, {}
        else:
            name = node_config[0]
            options = dict(node_config[1] or {}) if len(node_config) > 1 else {}
        style = options.pop("style", None)
        svg_attr = options.pop("svg_attr", None)

        attrs = {"label": name, **all_node_options, **options}
        combined_style = combine_styles(all_node_style, style)
        if combined_style:
            attrs["style"] = combined_style
        if svg_attr:
            attrs.update(_attr_pairs(svg_attr))
        graph.add_node(name, **attrs)

    all_node_svg_attr = config.get("node_svg_attr")
    if all_node_svg_attr:
        pairs = _attr_pairs(all_node_svg_attr)
        for _, attrs in graph.nodes(data=True):
            attrs.update(pairs)

    for edge_config in config.get("edges") or []:
        source, target = edge_config[0], edge_config[1]
        edge_options = edge_config[2] if len(edge_config) > 2 and edge_config[2] else {}
        graph.add_edge(source, target, **{**all_edge_options, **edge_options})

    # nodes only named by edges
    for name, attrs in graph.nodes(data=True):
        attrs.setdefault("label", name)
        if all_node_style and "style" not in attrs:
            attrs["style"] = all_node_style
    return graph


def _node_size(attrs: Mapping) -> Tuple[float, float]:
    lines = str(attrs.get("label", "")).split("\n")
    width = attrs.get("width") or max(len(line) for line in lines) * CHAR_WIDTH + 2 * NODE_PADDING
    height = attrs.get("height") or max(NODE_HEIGHT, len(lines) * FONT_SIZE * 1.4 + NODE_PADDING)
    return float(width), float(height)


def layout_graph(graph: nx.DiGraph) -> GraphLayout:
    """
    Top-to-bottom layered layout. Each strongly connected component shares a
    rank, ranks follow the topological generations of the condensation, and
    nodes keep insertion order within a rank.
    """
    order = {node: i for i, node in enumerate(graph.nodes)}
    ranks: Dict[Hashable, int] = {}
    if graph.number_of_nodes():
        condensed = nx.condensation(graph)
        for rank, generation in enumerate(nx.topological_generations(condensed)):
            for component in generation:
                for node in condensed.nodes[component]["members"]:
                    ranks[node] = rank

    rows: Dict[int, list] = {}
    for node in sorted(ranks, key=order.__getitem__):
        rows.setdefault(ranks[node], []).append(node)

    sizes = {node: _node_size(graph.nodes[node]) for node in graph.nodes}
    row_widths = {
        rank: sum(sizes[n][0] for n in nodes) + NODE_SEP * (len(nodes) - 1)
        for rank, nodes in rows.items()
    }
    width = max(row_widths.values(), default=0.0)

    positions: Dict[Hashable, Tuple[float, float]] = {}
    y = 0.0
    for rank in sorted(rows):
        nodes = rows[rank]
        row_height = max(sizes[n][1] for n in nodes)
        x = (width - row_widths[rank]) / 2
        for node in nodes:
            node_width = sizes[node][0]
            positions[node] = (x + node_width / 2, y + row_height / 2)
            x += node_width + NODE_SEP
        y += row_height + RANK_SEP
    height = y - RANK_SEP if rows else 0.0

    return GraphLayout(positions=positions, sizes=sizes, ranks=ranks, width=width, height=height)


def _option(options: Mapping, name: str, default: float) -> float:
    value = options.get(name)
    return default if value is None else float(value)


def _boundary_point(center, size, toward) -> Tuple[float, float]:
    cx, cy = center
    dx, dy = toward[0] - cx, toward[1] - cy
    if dx == 0 and dy == 0:
        return center
    half_w, half_h = size[0] / 2, size[1] / 2
    t = min(half_w / abs(dx) if dx else float("inf"), half_h / abs(dy) if dy else float("inf"))
    return cx + dx * t, cy + dy * t


def _stroke_width(style: Mapping[str, str], default: float) -> float:
    value = style.get("stroke-width")
    return float(value.replace("px", "")) if value else default


def render_graph(config: Mapping, size_config: Optional[Sequence[float]] = None) -> Tuple[str, float, float]:
    """
    Render a dagre config to ``(svg, width, height)``.

    ``render_options`` may set ``initial_scale`` (default 1), ``left_margin``
    (default 30) and ``height_margin`` (default 40). The width is
    ``size_config[0]`` when given, otherwise the scaled graph width plus both
    margins; the height is always the scaled graph height plus the height
    margin.
    """
    graph = build_graph(config)
    layout = layout_graph(graph)

    render_options = config.get("render_options") or {}
    scale = _option(render_options, "initial_scale", DEFAULT_INITIAL_SCALE)
    left_margin = _option(render_options, "left_margin", DEFAULT_LEFT_MARGIN)
    height_margin = _option(render_options, "height_margin", DEFAULT_HEIGHT_MARGIN)

    width = float(size_config[0]) if size_config else layout.width * scale + 2 * left_margin
    height = layout.height * scale + height_margin
    width, height = max(width, 1.0), max(height, 1.0)

    def to_px(point):
        return left_margin + point[0] * scale, height_margin / 2 + point[1] * scale

    def scaled(size):
        return size[0] * scale, size[1] * scale

    with matplotlib.rc_context({"svg.hashsalt": "esbook", "svg.fonttype": "none"}):
        fig = Figure(figsize=(width / SVG_DPI, height / SVG_DPI), dpi=SVG_DPI)
        FigureCanvasSVG(fig)
        ax = fig.add_axes((0, 0, 1, 1))
        ax.set_xlim(0, width)
        ax.set_ylim(height, 0)
        ax.axis("off")

        for source, target, attrs in graph.edges(data=True):
            style = parse_style(attrs.get("style"))
            color = color_to_mpl(style.get("stroke", DEFAULT_STROKE))
            line_width = _stroke_width(style, 1.5)
            source_center, target_center = to_px(layout.positions[source]), to_px(layout.positions[target])
            source_size, target_size = scaled(layout.sizes[source]), scaled(layout.sizes[target])

            if source == target:
                x, y = source_center
                start = (x + source_size[0] / 2, y - source_size[1] / 4)
                end = (x + source_size[0] / 2, y + source_size[1] / 4)
                connection = "arc3,rad=-1.5"
            else:
                start = _boundary_point(source_center, source_size, target_center)
                end = _boundary_point(target_center, target_size, source_center)
                # curve edges that do not point down a rank so they stay apart
                same_direction = layout.ranks[target] > layout.ranks[source]
                connection = "arc3,rad=0" if same_direction else "arc3,rad=0.3"

            ax.add_patch(FancyArrowPatch(
                start, end, arrowstyle="-|>", mutation_scale=10 * scale,
                connectionstyle=connection, color=color, linewidth=line_width,
                shrinkA=0, shrinkB=0,
            ))
            if attrs.get("label"):
                ax.text((start[0] + end[0]) / 2, (start[1] + end[1]) / 2, str(attrs["label"]),
                        ha="center", va="center", fontsize=FONT_SIZE * scale * 0.9,
                        bbox={"facecolor": "white", "edgecolor": "none", "pad": 1})

        for node, attrs in graph.nodes(data=True):
            style = parse_style(attrs.get("style"))
            x, y = to_px(layout.positions[node])
            w, h = scaled(layout.sizes[node])
            ax.add_patch(FancyBboxPatch(
                (x - w / 2, y - h / 2), w, h,
                boxstyle=f"round,pad=0,rounding_size={5 * scale}",
                facecolor=color_to_mpl(style.get("fill", DEFAULT_NODE_FILL)),
                edgecolor=color_to_mpl(style.get("stroke", DEFAULT_STROKE)),
                linewidth=_stroke_width(style, 1.5),
            ))
            ax.text(x, y, str(attrs["label"]), ha="center", va="center",
                    fontsize=FONT_SIZE * scale, color=color_to_mpl(style.get("color", "#000000")))

        buf = io.StringIO()
        fig.savefig(buf, format="svg", metadata={"Date": None})

    return buf.getvalue(), width, height
