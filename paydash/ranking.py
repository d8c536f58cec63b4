from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

import pandas as pd

from paydash.config import DEFAULT_COLUMNS, ColumnConfig
from paydash.data import parse_number
from paydash.display import column_display
from paydash.errors import ColumnNotFoundError
from paydash.selection import ViewSelection

logger = logging.getLogger(__name__)

_VALUE = "__rank_value"
_POSITION = "__rank_position"


@dataclass(frozen=True, eq=False)
class RankedView:
    """Records that passed the numeric filter, highest value first.

    ``values[i]`` is the parsed value of ``records.iloc[i]``.
    """

    selection: ViewSelection
    records: pd.DataFrame = field(default_factory=pd.DataFrame)
    values: List[float] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.values)

    @property
    def empty(self) -> bool:
        return not self.values


def check_columns(records: pd.DataFrame, selection: ViewSelection, columns: ColumnConfig = DEFAULT_COLUMNS) -> None:
    if records.empty:
        return
    missing: List[str] = []
    message = ""
    if selection.label_column not in records.columns:
        missing.append(selection.label_column)
        message += f"Label column '{selection.label_column}' not found. "
    if selection.value_column not in records.columns:
        missing.append(selection.value_column)
        display = column_display(selection.value_column, columns).display_name
        message += f"Analysis column '{selection.value_column}' (displaying as '{display}') not found. "
    if missing:
        logger.warning("selected columns missing from dataset: %s", missing)
        raise ColumnNotFoundError(missing, message + "Verify column names or select different ones.")


def rank_records(
    records: pd.DataFrame,
    selection: ViewSelection,
    columns: ColumnConfig = DEFAULT_COLUMNS,
) -> RankedView:
    check_columns(records, selection, columns)
    if records.empty:
        return RankedView(selection=selection)

    scored = records.reset_index(drop=True).assign(
        **{
            _VALUE: pd.to_numeric(records[selection.value_column].map(parse_number), errors="coerce").to_numpy(),
            _POSITION: range(len(records)),
        }
    )
    scored = scored[scored[_VALUE].notna()]
    # Position breaks ties so equal values keep their upload order.
    scored = scored.sort_values([_VALUE, _POSITION], ascending=[False, True])
    if selection.top_n is not None and selection.top_n > 0:
        scored = scored.head(selection.top_n)

    values = [float(v) for v in scored[_VALUE].tolist()]
    ranked = scored.drop(columns=[_VALUE, _POSITION]).reset_index(drop=True)
    return RankedView(selection=selection, records=ranked, values=values)
