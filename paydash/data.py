from __future__ import annotations

import io
import logging
import math
import re
from datetime import date, datetime
from pathlib import PurePath
from typing import Any, Iterable, Mapping, Optional, Union

import numpy as np
import pandas as pd

from paydash.config import ACCEPTED_EXTENSIONS
from paydash.errors import FileReadError, InvalidFileType, ParseEmptyError

logger = logging.getLogger(__name__)

RawRows = Union[pd.DataFrame, Iterable[Mapping[str, Any]]]

_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


# ---------------- Cell helpers ----------------
def is_missing(value: object) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def is_date_value(value: object) -> bool:
    if is_missing(value):
        return False
    return isinstance(value, (datetime, date, np.datetime64))


def parse_number(value: object) -> Optional[float]:
    """Permissive float parse: leading numeric prefix of text, finite numbers only."""
    if is_missing(value) or isinstance(value, (bool, np.bool_)):
        return None
    if is_date_value(value) or isinstance(value, pd.Timedelta):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        out = float(value)
        return out if math.isfinite(out) else None
    match = _LEADING_NUMBER.match(str(value).strip())
    if not match:
        return None
    out = float(match.group(0))
    return out if math.isfinite(out) else None


def cell_text(value: object) -> str:
    if is_missing(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.loc[:, ~df.columns.duplicated()]


# ---------------- Loaders ----------------
def validate_extension(filename: str) -> None:
    suffix = PurePath(filename or "").suffix.lower()
    if suffix not in ACCEPTED_EXTENSIONS:
        raise InvalidFileType(filename)


def frame_from_rows(rows: RawRows) -> pd.DataFrame:
    if isinstance(rows, pd.DataFrame):
        return rows
    return pd.DataFrame.from_records(list(rows))


def read_workbook(filename: str, data: Optional[bytes]) -> pd.DataFrame:
    """Parse the first sheet of an uploaded workbook into a RawRow frame.

    The header row gives the column names; date cells come back as
    timestamps. Rows with no values at all are skipped.
    """
    validate_extension(filename)
    if data is None:
        raise FileReadError("File data could not be read.")
    if len(data) == 0:
        raise ParseEmptyError()
    try:
        raw = pd.read_excel(io.BytesIO(data), sheet_name=0)
    except Exception as exc:
        logger.warning("could not parse %s: %s", filename, exc)
        raise FileReadError(f"Error processing file: {exc}") from exc

    df = raw.dropna(how="all").reset_index(drop=True)
    df.columns = [str(c).strip() for c in df.columns]
    df = drop_duplicate_columns(df)
    # Header-less columns that carry no data are spreadsheet formatting residue.
    blank = [c for c in df.columns if c.startswith("Unnamed:") and df[c].isna().all()]
    df = df.drop(columns=blank)
    if df.empty:
        raise ParseEmptyError()
    logger.info("loaded %s: %d rows, %d columns", filename, len(df), len(df.columns))
    return df
