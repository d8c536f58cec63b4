from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from paydash.config import DEFAULT_COLUMNS, PAID, PAYMENT_STATUS_COLUMN, ColumnConfig
from paydash.data import cell_text, parse_number


@dataclass(frozen=True)
class DatasetSummary:
    paid_code_count: int = 0
    unique_label_count: int = 0
    total_paid_amount: float = 0.0


def _text_series(df: pd.DataFrame, col: str) -> pd.Series:
    if col not in df.columns:
        return pd.Series(dtype=object)
    return df[col].map(cell_text)


def summarize(records: pd.DataFrame, columns: ColumnConfig = DEFAULT_COLUMNS) -> DatasetSummary:
    if records.empty:
        return DatasetSummary()

    codes = _text_series(records, columns.code)
    paid_code_count = int((codes != "").sum())

    labels = _text_series(records, columns.grouping)
    unique_label_count = int(labels[labels != ""].nunique())

    total_paid_amount = 0.0
    if columns.amount in records.columns and PAYMENT_STATUS_COLUMN in records.columns:
        paid = records[records[PAYMENT_STATUS_COLUMN] == PAID]
        amounts = paid[columns.amount].map(parse_number).dropna()
        total_paid_amount = float(amounts.sum()) if not amounts.empty else 0.0

    return DatasetSummary(
        paid_code_count=paid_code_count,
        unique_label_count=unique_label_count,
        total_paid_amount=total_paid_amount,
    )
