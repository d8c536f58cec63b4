from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal, Sequence

MessageKind = Literal["error", "info", "success"]


@dataclass(frozen=True)
class StatusMessage:
    kind: MessageKind
    text: str


class DashboardError(Exception):
    """Base class; ``kind`` decides how the status area styles the message."""

    kind: MessageKind = "error"

    def status(self) -> StatusMessage:
        return StatusMessage(self.kind, str(self))


class InvalidFileType(DashboardError):
    def __init__(self, filename: str = ""):
        self.filename = filename
        super().__init__("Invalid file type. Please upload an Excel file (.xlsx or .xls).")


class FileReadError(DashboardError):
    pass


class ParseEmptyError(DashboardError):
    kind: MessageKind = "info"

    def __init__(self, message: str = "Excel sheet is empty or could not be parsed."):
        super().__init__(message)


class ColumnNotFoundError(DashboardError):
    def __init__(self, missing: Sequence[str], message: str):
        self.missing: List[str] = list(missing)
        super().__init__(message)


class EmptyRankedViewError(DashboardError):
    kind: MessageKind = "info"


class RenderFailure(DashboardError):
    pass


class ExportRefused(DashboardError):
    kind: MessageKind = "info"


class ExportFailure(DashboardError):
    pass
