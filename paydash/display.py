from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional

import numpy as np
import pandas as pd

from paydash.config import DEFAULT_COLUMNS, NOT_AVAILABLE, ColumnConfig
from paydash.data import cell_text, is_date_value


@dataclass(frozen=True)
class ColumnDisplay:
    """How one value column is named and decorated on screen and in exports."""

    display_name: str
    prefix: str = ""
    suffix: str = ""
    max_decimals: int = 2
    excel_format: str = "General"

    def format(self, value: Optional[float]) -> str:
        if value is None:
            return NOT_AVAILABLE
        return f"{self.prefix}{format_decimal(value, self.max_decimals)}{self.suffix}"


def display_policies(columns: ColumnConfig = DEFAULT_COLUMNS) -> Dict[str, ColumnDisplay]:
    return {
        columns.currency_column: ColumnDisplay("Total Paid", prefix="$", excel_format='"$"#,##0.00'),
        columns.duration_column: ColumnDisplay(
            f"{columns.duration_column} Days", suffix=" Days", excel_format='#,##0.00 "Days"'
        ),
    }


def column_display(column: str, columns: ColumnConfig = DEFAULT_COLUMNS) -> ColumnDisplay:
    return display_policies(columns).get(column) or ColumnDisplay(column)


def is_duration_column(column: str, columns: ColumnConfig = DEFAULT_COLUMNS) -> bool:
    return column == columns.duration_column


def format_decimal(value: float, max_decimals: int = 2) -> str:
    """Thousands-grouped decimal with at most ``max_decimals`` fractional digits."""
    q = Decimal(str(value)).quantize(Decimal(10) ** -max_decimals, rounding=ROUND_HALF_UP)
    text = f"{q:,.{max_decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def format_date_or_text(value: object) -> str:
    if is_date_value(value):
        if isinstance(value, np.datetime64):
            value = pd.Timestamp(value)
        return value.strftime("%m/%d/%Y")
    return cell_text(value) or NOT_AVAILABLE
