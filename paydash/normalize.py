from __future__ import annotations

import pandas as pd

from paydash.config import DEFAULT_COLUMNS, PAID, PAYMENT_STATUS_COLUMN, UNPAID, ColumnConfig
from paydash.data import RawRows, cell_text, frame_from_rows


def payment_status(value: object) -> str:
    """A payment method cell with any non-blank text marks the row as paid."""
    return PAID if cell_text(value) != "" else UNPAID


def normalize_records(rows: RawRows, columns: ColumnConfig = DEFAULT_COLUMNS) -> pd.DataFrame:
    df = frame_from_rows(rows).copy()
    if columns.payment_method in df.columns:
        df[PAYMENT_STATUS_COLUMN] = df[columns.payment_method].map(payment_status).astype(object)
    else:
        df[PAYMENT_STATUS_COLUMN] = UNPAID
    return df.reset_index(drop=True)
