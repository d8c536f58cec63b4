from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from paydash.config import (
    CHART_TYPES,
    DEFAULT_CHART_TYPE,
    DEFAULT_LABEL_COLUMN,
    DEFAULT_TOP_N,
    DEFAULT_VALUE_COLUMN,
    PROPORTION_CHART_TYPES,
)

ALL_ITEMS = -1


@dataclass(frozen=True)
class ViewSelection:
    """The four user controls, read together at each render.

    ``top_n`` is ``None`` when every ranked row should be shown.
    """

    top_n: Optional[int] = DEFAULT_TOP_N
    value_column: str = DEFAULT_VALUE_COLUMN
    label_column: str = DEFAULT_LABEL_COLUMN
    chart_type: str = DEFAULT_CHART_TYPE

    @property
    def is_bounded(self) -> bool:
        return self.top_n is not None and self.top_n > 0

    @property
    def is_proportion_chart(self) -> bool:
        return self.chart_type in PROPORTION_CHART_TYPES

    @property
    def top_n_label(self) -> str:
        return f"Top {self.top_n}" if self.is_bounded else "All"


def _as_top_n(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip().lower()
        if text in {"all", "", "none"}:
            return None
        value = text
    try:
        n = int(value)
    except (TypeError, ValueError):
        return DEFAULT_TOP_N
    if n == ALL_ITEMS:
        return None
    return n if n > 0 else DEFAULT_TOP_N


def normalize_selection(raw: Mapping[str, Any]) -> ViewSelection:
    top_n = _as_top_n(raw.get("top_n", DEFAULT_TOP_N))

    value_column = str(raw.get("value_column") or "").strip() or DEFAULT_VALUE_COLUMN
    label_column = str(raw.get("label_column") or "").strip() or DEFAULT_LABEL_COLUMN

    chart_type = str(raw.get("chart_type") or "").strip().lower()
    if chart_type == "donut":
        chart_type = "doughnut"
    if chart_type not in CHART_TYPES:
        chart_type = DEFAULT_CHART_TYPE

    return ViewSelection(
        top_n=top_n,
        value_column=value_column,
        label_column=label_column,
        chart_type=chart_type,
    )
