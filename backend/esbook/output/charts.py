"""Chart.js-style chart configs drawn with matplotlib."""
import io
from collections.abc import Mapping
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from PIL import Image

from .raster import color_to_mpl

DPI = 100

CHART_TYPES = ("line", "bar", "horizontalBar", "scatter", "bubble", "pie", "doughnut")

# Chart.js default palette
PALETTE = ("#36a2eb", "#ff6384", "#4bc0c0", "#ff9f40", "#9966ff", "#ffcd56", "#c9cbcf")


def _palette(index: int) -> str:
    return PALETTE[index % len(PALETTE)]


def _color(value: Any, fallback: str):
    if isinstance(value, (list, tuple)) and value and isinstance(value[0], str):
        value = value[0]
    return color_to_mpl(value if value is not None else fallback)


def _colors(value: Any, count: int, offset: int = 0) -> List[Tuple[float, float, float, float]]:
    if isinstance(value, (list, tuple)) and value and isinstance(value[0], str):
        return [color_to_mpl(value[i % len(value)]) for i in range(count)]
    if value is not None:
        return [color_to_mpl(value)] * count
    return [color_to_mpl(_palette(offset + i)) for i in range(count)]


def _points(data: Sequence[Any], labels: Sequence[Any]):
    xs, ys, rs = [], [], []
    for i, point in enumerate(data):
        if isinstance(point, Mapping):
            xs.append(point.get("x", i))
            ys.append(point.get("y"))
            rs.append(point.get("r", 3))
        else:
            xs.append(labels[i] if i < len(labels) else i)
            ys.append(point)
            rs.append(3)
    return xs, ys, rs


def _option(options: Mapping, name: str) -> Mapping:
    # Chart.js v2 puts title/legend at the top level, v3 under plugins
    value = options.get(name)
    if value is None:
        value = (options.get("plugins") or {}).get(name)
    return value if isinstance(value, Mapping) else {}


def _draw_bars(ax, datasets, labels, horizontal: bool) -> None:
    count = max(1, len(datasets))
    positions = np.arange(max(len(labels), max((len(d.get("data") or []) for d in datasets), default=0)))
    width = 0.8 / count
    for i, dataset in enumerate(datasets):
        values = [v if not isinstance(v, Mapping) else v.get("y", 0) for v in dataset.get("data") or []]
        offsets = positions[:len(values)] - 0.4 + width * (i + 0.5)
        colors = _colors(dataset.get("backgroundColor"), len(values), offset=i)
        if horizontal:
            ax.barh(offsets, values, height=width, color=colors, label=dataset.get("label"))
        else:
            ax.bar(offsets, values, width=width, color=colors, label=dataset.get("label"))
    tick_labels = [str(label) for label in labels] or [str(p) for p in positions]
    if horizontal:
        ax.set_yticks(positions[:len(tick_labels)], tick_labels[:len(positions)])
        ax.invert_yaxis()
    else:
        ax.set_xticks(positions[:len(tick_labels)], tick_labels[:len(positions)])


def _draw_pie(ax, datasets, labels, doughnut: bool) -> None:
    if not datasets:
        return
    dataset = datasets[0]
    values = [float(v) for v in dataset.get("data") or []]
    if not values:
        return
    colors = _colors(dataset.get("backgroundColor"), len(values))
    wedgeprops = {"width": 0.5} if doughnut else {}
    wedges, _ = ax.pie(values, colors=colors, startangle=90, counterclock=False, wedgeprops=wedgeprops)
    for wedge, label in zip(wedges, labels):
        wedge.set_label(str(label))
    ax.axis("equal")


def render_chart(config: Mapping, width: int, height: int) -> Image.Image:
    """
    Draw a Chart.js-style ``config`` and return it as an RGBA image of
    exactly ``width`` x ``height`` pixels.

    Raises ValueError for an unsupported chart type.
    """
    chart_type = config.get("type")
    if chart_type not in CHART_TYPES:
        raise ValueError(f"unsupported chart type: {chart_type!r}")

    data = config.get("data") or {}
    options = config.get("options") or {}
    labels = list(data.get("labels") or [])
    datasets = [d for d in data.get("datasets") or [] if isinstance(d, Mapping)]

    fig = Figure(figsize=(width / DPI, height / DPI), dpi=DPI)
    FigureCanvasAgg(fig)
    ax = fig.add_subplot()

    if chart_type in ("bar", "horizontalBar"):
        horizontal = chart_type == "horizontalBar" or options.get("indexAxis") == "y"
        _draw_bars(ax, datasets, labels, horizontal)
    elif chart_type in ("pie", "doughnut"):
        _draw_pie(ax, datasets, labels, chart_type == "doughnut")
    else:
        for i, dataset in enumerate(datasets):
            xs, ys, rs = _points(dataset.get("data") or [], labels)
            color = _color(dataset.get("borderColor") or dataset.get("backgroundColor"), _palette(i))
            label = dataset.get("label")
            if chart_type == "line":
                ax.plot(xs, ys, color=color, label=label, marker="o", markersize=3)
                if dataset.get("fill"):
                    ax.fill_between(range(len(ys)) if labels else xs, ys, alpha=0.2, color=color)
            elif chart_type == "scatter":
                ax.scatter(xs, ys, color=color, label=label, s=20)
            else:
                # bubble radius is in pixels; marker size is points squared
                sizes = [(2 * float(r) * 72 / DPI) ** 2 for r in rs]
                ax.scatter(xs, ys, s=sizes, color=_color(dataset.get("backgroundColor"), _palette(i)),
                           edgecolors=[color], label=label)

    title = _option(options, "title")
    if title.get("display", bool(title.get("text"))) and title.get("text"):
        text = title["text"]
        ax.set_title(" ".join(text) if isinstance(text, (list, tuple)) else str(text))

    legend = _option(options, "legend")
    has_labels = any(d.get("label") for d in datasets) or (chart_type in ("pie", "doughnut") and labels)
    if legend.get("display", True) and has_labels:
        ax.legend(loc=_legend_location(legend.get("position")), fontsize="small")

    fig.tight_layout()
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=DPI)
    buf.seek(0)
    image = Image.open(buf).convert("RGBA")
    if image.size != (width, height):
        image = image.resize((width, height))
    return image


def _legend_location(position: Optional[str]) -> str:
    return {
        "top": "upper center",
        "bottom": "lower center",
        "left": "center left",
        "right": "center right",
    }.get(position or "", "best")
