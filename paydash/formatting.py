from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from paydash.config import (
    DEFAULT_COLUMNS,
    HOVER_BORDER_COLOR,
    HOVER_OPACITY,
    NOT_AVAILABLE,
    PALETTE,
    PALETTE_OPACITY,
    PAYMENT_STATUS_COLUMN,
    PLACEHOLDER_LABEL,
    PRIMARY_COLOR,
    PRIMARY_FILL_COLOR,
    PROPORTION_CHART_TYPES,
    SLICE_BORDER_COLOR,
    ColumnConfig,
)
from paydash.data import cell_text
from paydash.display import column_display, format_date_or_text
from paydash.ranking import RankedView
from paydash.selection import ViewSelection


@dataclass(frozen=True)
class ChartSeries:
    """Everything a chart renderer needs; no further lookups into the records."""

    chart_type: str
    labels: List[str]
    values: List[float]
    dataset_label: str
    x_title: str
    y_title: str
    colors: List[str] = field(default_factory=list)
    border_colors: List[str] = field(default_factory=list)
    fill_opacity: float = PALETTE_OPACITY
    hover_opacity: float = HOVER_OPACITY
    hover_border_color: str = HOVER_BORDER_COLOR
    label_angle: int = 0
    tooltips: List[List[str]] = field(default_factory=list)

    @property
    def is_proportion(self) -> bool:
        return self.chart_type in PROPORTION_CHART_TYPES

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class DetailItem:
    rank: int
    label: str
    status: str
    value: float
    value_display: str
    created_date: str
    paid_date: str
    purpose: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "label": self.label,
            "status": self.status,
            "value": self.value,
            "value_display": self.value_display,
            "created_date": self.created_date,
            "paid_date": self.paid_date,
            "purpose": self.purpose,
        }


def item_label(record: Any, label_column: str) -> str:
    return cell_text(record.get(label_column)) or PLACEHOLDER_LABEL


def palette_colors(count: int) -> List[str]:
    return [PALETTE[i % len(PALETTE)] for i in range(count)]


def axis_label_angle(label_count: int) -> int:
    if label_count > 20:
        return 90
    if label_count > 12:
        return 75
    if label_count > 7:
        return 60
    if label_count > 4:
        return 45
    return 0


def view_heading(selection: ViewSelection, columns: ColumnConfig = DEFAULT_COLUMNS) -> str:
    display = column_display(selection.value_column, columns).display_name
    return f"{selection.top_n_label} {selection.label_column} by {display}"


def _status(record: Any) -> str:
    return cell_text(record.get(PAYMENT_STATUS_COLUMN)) or NOT_AVAILABLE


def tooltip_lines(
    view: RankedView,
    index: int,
    columns: ColumnConfig = DEFAULT_COLUMNS,
) -> List[str]:
    """Hover text for one chart point, detail lines only on bar/line charts."""
    selection = view.selection
    record = view.records.iloc[index]
    display = column_display(selection.value_column, columns)
    name = item_label(record, selection.label_column)
    value = view.values[index]
    formatted = display.format(value)
    status = _status(record)

    if selection.is_proportion_chart:
        # Only positive values get a visible slice.
        total = sum(max(v, 0.0) for v in view.values) or 1
        pct = max(value, 0.0) / total * 100
        return [f"{name}: {formatted} ({pct:.1f}%) ({status})"]

    lines = [f"{name}: {display.display_name}: {formatted} ({status})"]
    details = [
        ("Requester", cell_text(record.get(columns.requester)) or NOT_AVAILABLE),
        ("PV Code", cell_text(record.get(columns.code)) or NOT_AVAILABLE),
        ("Create Date", format_date_or_text(record.get(columns.created_date))),
        ("Paid Date", format_date_or_text(record.get(columns.paid_date))),
        ("Paid By", cell_text(record.get(columns.paid_by)) or NOT_AVAILABLE),
        ("Paid Method", cell_text(record.get(columns.payment_method)) or NOT_AVAILABLE),
        ("Purpose", cell_text(record.get(columns.purpose)) or NOT_AVAILABLE),
    ]
    lines.extend(f"  {label}: {text}" for label, text in details)
    return lines


def build_chart_series(view: RankedView, columns: ColumnConfig = DEFAULT_COLUMNS) -> ChartSeries:
    selection = view.selection
    labels = [item_label(record, selection.label_column) for _, record in view.records.iterrows()]
    display = column_display(selection.value_column, columns)

    if selection.is_proportion_chart:
        colors = palette_colors(len(labels))
        borders = [SLICE_BORDER_COLOR] * len(labels)
        hover_border = SLICE_BORDER_COLOR
        angle = 0
    else:
        colors = [PRIMARY_FILL_COLOR] * len(labels)
        borders = [PRIMARY_COLOR] * len(labels)
        hover_border = HOVER_BORDER_COLOR
        angle = axis_label_angle(len(labels))

    return ChartSeries(
        chart_type=selection.chart_type,
        labels=labels,
        values=list(view.values),
        dataset_label=display.display_name,
        x_title=selection.label_column,
        y_title=display.display_name,
        colors=colors,
        border_colors=borders,
        hover_border_color=hover_border,
        label_angle=angle,
        tooltips=[tooltip_lines(view, i, columns) for i in range(len(view))],
    )


def build_detail_items(view: RankedView, columns: ColumnConfig = DEFAULT_COLUMNS) -> List[DetailItem]:
    selection = view.selection
    display = column_display(selection.value_column, columns)
    items: List[DetailItem] = []
    for i, (_, record) in enumerate(view.records.iterrows()):
        value = view.values[i]
        items.append(
            DetailItem(
                rank=i + 1,
                label=item_label(record, selection.label_column),
                status=_status(record),
                value=value,
                value_display=display.format(value),
                created_date=format_date_or_text(record.get(columns.created_date)),
                paid_date=format_date_or_text(record.get(columns.paid_date)),
                purpose=format_date_or_text(record.get(columns.purpose)),
            )
        )
    return items
