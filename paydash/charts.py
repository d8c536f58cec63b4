from __future__ import annotations

import io
import logging
from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

import altair as alt
import pandas as pd
from matplotlib.figure import Figure

from paydash.config import AXIS_TITLE_COLOR, PRIMARY_COLOR
from paydash.errors import RenderFailure
from paydash.formatting import ChartSeries

alt.data_transformers.disable_max_rows()

logger = logging.getLogger(__name__)

DOUGHNUT_INNER_RADIUS = 70


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def plot_keys(labels: List[str]) -> List[str]:
    """Make repeated labels distinct so a nominal axis keeps one mark per item."""
    counts = Counter(labels)
    return [label if counts[label] == 1 else f"{label} #{i + 1}" for i, label in enumerate(labels)]


def _split_detail(line: str) -> Tuple[str, str]:
    title, _, text = line.strip().partition(": ")
    return title, text


def chart_frame(series: ChartSeries) -> pd.DataFrame:
    keys = plot_keys(series.labels)
    frame = pd.DataFrame(
        {
            "rank": list(range(1, len(series) + 1)),
            "item": keys,
            "label": series.labels,
            "value": series.values,
            "summary": [lines[0] if lines else "" for lines in series.tooltips] or [""] * len(series),
        }
    )
    if series.tooltips and not series.is_proportion:
        for title, _ in (_split_detail(line) for line in series.tooltips[0][1:]):
            frame[title] = [dict(_split_detail(line) for line in lines[1:]).get(title, "") for lines in series.tooltips]
    return frame


def _tooltip_fields(frame: pd.DataFrame) -> List[alt.Tooltip]:
    fields = [alt.Tooltip("summary:N", title=" ")]
    base = {"rank", "item", "label", "value", "summary"}
    fields.extend(alt.Tooltip(field=col, type="nominal", title=col) for col in frame.columns if col not in base)
    return fields


def build_chart(series: ChartSeries) -> alt.Chart:
    frame = chart_frame(series)
    tooltip = _tooltip_fields(frame)
    hover = alt.selection_point(fields=["item"], on="mouseover", empty=True)
    opacity = alt.condition(hover, alt.value(series.hover_opacity), alt.value(series.fill_opacity))
    border = series.border_colors[0] if series.border_colors else PRIMARY_COLOR
    stroke = alt.condition(hover, alt.value(series.hover_border_color), alt.value(border))

    if series.is_proportion:
        inner = DOUGHNUT_INNER_RADIUS if series.chart_type == "doughnut" else 0
        return (
            alt.Chart(frame)
            .mark_arc(innerRadius=inner, strokeWidth=3)
            .encode(
                theta=alt.Theta("value:Q", stack=True),
                color=alt.Color(
                    "item:N",
                    sort=None,
                    scale=alt.Scale(domain=frame["item"].tolist(), range=series.colors),
                    legend=alt.Legend(orient="bottom", title=None),
                ),
                order=alt.Order("rank:Q"),
                opacity=opacity,
                stroke=stroke,
                tooltip=tooltip,
            )
            .add_params(hover)
            .properties(height=380)
        )

    x = alt.X(
        "item:N",
        sort=None,
        title=series.x_title,
        axis=alt.Axis(labelAngle=-series.label_angle, grid=False, titleColor=AXIS_TITLE_COLOR),
    )
    y = alt.Y(
        "value:Q",
        title=series.y_title,
        scale=alt.Scale(zero=True),
        axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False, titleColor=AXIS_TITLE_COLOR),
    )
    fill = series.colors[0] if series.colors else PRIMARY_COLOR
    encoding = {"x": x, "y": y, "opacity": opacity, "tooltip": tooltip}
    if series.chart_type == "line":
        mark = alt.Chart(frame).mark_line(
            color=border,
            interpolate="monotone",
            point=alt.OverlayMarkDef(filled=True, size=60, color=border),
        )
    else:
        mark = alt.Chart(frame).mark_bar(
            color=fill,
            strokeWidth=2,
            cornerRadiusTopLeft=5,
            cornerRadiusTopRight=5,
        )
        encoding["stroke"] = stroke
    return (
        mark.encode(**encoding)
        .add_params(hover)
        .properties(height=380)
    )


def render_png(series: ChartSeries, *, width_in: float = 11.0, height_in: float = 5.5, dpi: int = 150) -> bytes:
    """Rasterize the series for the PDF report."""
    fig = Figure(figsize=(width_in, height_in), dpi=dpi)
    try:
        ax = fig.add_subplot(1, 1, 1)
        keys = plot_keys(series.labels)
        if series.is_proportion:
            # Wedges need non-negative sizes with a positive total.
            sizes = [max(v, 0.0) for v in series.values]
            if not any(sizes):
                raise RenderFailure("No positive values to draw as proportions.")
            inner = 0.45 if series.chart_type == "doughnut" else 0
            wedges, _ = ax.pie(
                sizes,
                colors=series.colors or None,
                startangle=90,
                counterclock=False,
                wedgeprops={
                    "linewidth": 3,
                    "edgecolor": series.border_colors[0] if series.border_colors else "white",
                    "alpha": series.fill_opacity,
                    **({"width": 1 - inner} if inner else {}),
                },
            )
            ax.legend(wedges, keys, loc="upper center", bbox_to_anchor=(0.5, -0.02), ncol=min(4, max(1, len(keys))), frameon=False)
            ax.set_aspect("equal")
        else:
            positions = list(range(len(keys)))
            border = series.border_colors[0] if series.border_colors else PRIMARY_COLOR
            if series.chart_type == "line":
                ax.plot(positions, series.values, color=border, marker="o", linewidth=2)
            else:
                fill = series.colors[0] if series.colors else PRIMARY_COLOR
                ax.bar(positions, series.values, color=fill, alpha=series.fill_opacity, edgecolor=border, linewidth=1.5)
            ax.set_xticks(positions)
            ax.set_xticklabels(keys, rotation=series.label_angle, ha="right" if series.label_angle else "center", fontsize=9)
            ax.set_xlabel(series.x_title, color=AXIS_TITLE_COLOR, fontweight="semibold")
            ax.set_ylabel(series.y_title, color=AXIS_TITLE_COLOR, fontweight="semibold")
            ax.set_ylim(bottom=min(0, min(series.values, default=0)))
            ax.grid(axis="y", linestyle="--", alpha=0.4)
            for side in ("top", "right"):
                ax.spines[side].set_visible(False)
        fig.tight_layout()
        buf = io.BytesIO()
        fig.savefig(buf, format="png", dpi=dpi)
        return buf.getvalue()
    finally:
        fig.clear()


class ChartHolder:
    """Owns the one live chart; ``replace`` always tears down the previous one first."""

    def __init__(self) -> None:
        self._series: Optional[ChartSeries] = None

    @property
    def series(self) -> Optional[ChartSeries]:
        return self._series

    @property
    def has_data(self) -> bool:
        return self._series is not None and len(self._series) > 0

    def destroy(self) -> None:
        self._series = None

    def replace(self, series: ChartSeries) -> Dict[str, Any]:
        self.destroy()
        try:
            spec = to_vega_spec(build_chart(series))
        except Exception as exc:
            logger.exception("chart construction failed")
            raise RenderFailure(f"Failed to render chart: {exc}") from exc
        self._series = series
        return spec
