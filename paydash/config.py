from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import Optional, Tuple


ACCEPTED_EXTENSIONS: Tuple[str, ...] = (".xlsx", ".xls")

PAYMENT_STATUS_COLUMN = "payment_status"
PAID = "Paid"
UNPAID = "Unpaid"

PLACEHOLDER_LABEL = "Unnamed Item"
NOT_AVAILABLE = "N/A"

CHART_TYPES: Tuple[str, ...] = ("bar", "line", "pie", "doughnut")
PROPORTION_CHART_TYPES = frozenset({"pie", "doughnut"})
DEFAULT_CHART_TYPE = "bar"

DEFAULT_TOP_N = 10
TOP_N_CHOICES: Tuple[Optional[int], ...] = (5, 10, 15, 20, 25, 50, None)
DEFAULT_VALUE_COLUMN = "Total"
DEFAULT_LABEL_COLUMN = "Supply Name"

# Tailwind 500-ish tones, cycled by item position on pie/doughnut charts.
PALETTE: Tuple[str, ...] = (
    "#3b82f6",
    "#10b981",
    "#f97316",
    "#8b5cf6",
    "#ec4899",
    "#14b8a6",
    "#f59e0b",
    "#6366f1",
    "#ef4444",
    "#0ea5e9",
    "#d946ef",
    "#4d7c0f",
)
PALETTE_OPACITY = 0.85
HOVER_OPACITY = 1.0
SLICE_BORDER_COLOR = "#ffffff"

PRIMARY_COLOR = "#2563eb"
PRIMARY_FILL_COLOR = "#3b82f6"
HOVER_BORDER_COLOR = "#1d4ed8"
AXIS_TITLE_COLOR = "#1d4ed8"


@dataclass(frozen=True)
class ColumnConfig:
    """Designated spreadsheet columns used by the pipeline."""

    payment_method: str = "Paid Method"
    code: str = "PV Code"
    grouping: str = "Supply Name"
    amount: str = "Total"
    requester: str = "Requester"
    created_date: str = "Created Date"
    paid_date: str = "Paid Date"
    paid_by: str = "Paid By"
    purpose: str = "Purpose"
    currency_column: str = "Total"
    duration_column: str = "Processing Speed"


DEFAULT_COLUMNS = ColumnConfig()


_LOGGER_NAME = "paydash"
_configured = False


class LabeledFormatter(logging.Formatter):
    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        line = f"{label} {record.name}: {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure the ``paydash`` logger once; later calls return it unchanged."""
    global _configured
    logger = logging.getLogger(_LOGGER_NAME)
    if _configured:
        return logger
    logger.setLevel(level)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    _configured = True
    return logger


def reset_logging() -> None:
    global _configured
    _configured = False
