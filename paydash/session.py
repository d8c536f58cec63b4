from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field, replace
from datetime import date, datetime
from typing import Any, Dict, Iterator, List, Optional

import pandas as pd

from paydash.aggregate import DatasetSummary, summarize
from paydash.charts import ChartHolder, render_png
from paydash.config import DEFAULT_COLUMNS, PAYMENT_STATUS_COLUMN, ColumnConfig
from paydash.data import read_workbook
from paydash.display import column_display
from paydash.errors import (
    ColumnNotFoundError,
    DashboardError,
    EmptyRankedViewError,
    ExportFailure,
    ExportRefused,
    FileReadError,
    RenderFailure,
    StatusMessage,
)
from paydash.export import ExportFile, export_pdf, export_xlsx
from paydash.formatting import ChartSeries, DetailItem, build_chart_series, build_detail_items, view_heading
from paydash.normalize import normalize_records
from paydash.ranking import RankedView, rank_records
from paydash.selection import ViewSelection

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = "Welcome! Upload an Excel file to visualize your data."
NO_FILE_MESSAGE = "No file selected. Please choose an Excel file."
NO_DATA_MESSAGE = "No data to display. Upload an Excel file to see the visualization."
NO_DATA_PLACEHOLDER = "No data available. Please upload a file."
NO_VALID_DATA_PLACEHOLDER = "No valid data for current selections."


@dataclass(frozen=True)
class RenderResult:
    generation: int
    selection: ViewSelection
    heading: str
    summary: DatasetSummary
    status: Optional[StatusMessage] = None
    view: Optional[RankedView] = None
    series: Optional[ChartSeries] = None
    chart_spec: Optional[Dict[str, Any]] = None
    items: List[DetailItem] = field(default_factory=list)
    placeholder: Optional[str] = None
    exports_enabled: bool = False
    stale: bool = False

    def to_payload(self) -> Dict[str, Any]:
        series = None
        if self.series is not None:
            series = {
                "chart_type": self.series.chart_type,
                "labels": self.series.labels,
                "values": self.series.values,
                "dataset_label": self.series.dataset_label,
                "colors": self.series.colors,
                "tooltips": self.series.tooltips,
            }
        return {
            "generation": self.generation,
            "selection": asdict(self.selection),
            "heading": self.heading,
            "summary": asdict(self.summary),
            "status": asdict(self.status) if self.status else None,
            "chart": self.chart_spec,
            "series": series,
            "items": [item.to_dict() for item in self.items],
            "placeholder": self.placeholder,
            "exports_enabled": self.exports_enabled,
            "stale": self.stale,
        }


class DashboardSession:
    """Process-wide state: the normalized dataset and the most recent ranked view.

    Both are replaced wholesale by each completed trigger. Renders are
    numbered; a render that finishes after a newer one started is returned
    marked ``stale`` and never overwrites the newer result.
    """

    def __init__(self, columns: ColumnConfig = DEFAULT_COLUMNS) -> None:
        self.columns = columns
        self._lock = threading.RLock()
        self._records = pd.DataFrame()
        self._source_name: Optional[str] = None
        self._view: Optional[RankedView] = None
        self._chart = ChartHolder()
        self._selection = ViewSelection()
        self._generation = 0
        self._busy = 0
        self._attempted_upload = False
        self.status = StatusMessage("info", WELCOME_MESSAGE)
        self.last_result: Optional[RenderResult] = None

    # ---------------- State ----------------
    @property
    def records(self) -> pd.DataFrame:
        return self._records

    @property
    def source_name(self) -> Optional[str]:
        return self._source_name

    @property
    def has_data(self) -> bool:
        return not self._records.empty

    @property
    def current_view(self) -> Optional[RankedView]:
        return self._view

    @property
    def chart(self) -> ChartHolder:
        return self._chart

    @property
    def selection(self) -> ViewSelection:
        return self._selection

    @property
    def available_columns(self) -> List[str]:
        return [c for c in self._records.columns if c != PAYMENT_STATUS_COLUMN]

    @property
    def exports_enabled(self) -> bool:
        with self._lock:
            return (
                self._busy == 0
                and self._view is not None
                and not self._view.empty
                and self._chart.has_data
            )

    @contextmanager
    def busy(self) -> Iterator[None]:
        """Exports stay disabled while an upload or export is in flight."""
        with self._lock:
            self._busy += 1
        try:
            yield
        finally:
            with self._lock:
                self._busy -= 1

    def _clear_dataset(self) -> None:
        with self._lock:
            self._records = pd.DataFrame()
            self._source_name = None
            self._view = None
            self._chart.destroy()

    # ---------------- Upload ----------------
    def load_upload(
        self, filename: Optional[str], data: Optional[bytes], selection: Optional[ViewSelection] = None
    ) -> RenderResult:
        self._attempted_upload = True
        if not filename:
            self._clear_dataset()
            return self.render(selection, status=StatusMessage("info", NO_FILE_MESSAGE))

        with self.busy():
            try:
                raw = read_workbook(filename, data)
            except DashboardError as exc:
                logger.warning("upload of %s rejected: %s", filename, exc)
                self._clear_dataset()
                return self.render(selection, status=exc.status())
            records = normalize_records(raw, self.columns)
            with self._lock:
                self._records = records
                self._source_name = filename
                self._view = None
        return self.render(selection)

    def fail_upload(self, message: str = "Error reading file. Ensure it is not corrupted.") -> RenderResult:
        """Record an I/O failure that happened before the bytes were available."""
        self._attempted_upload = True
        exc = FileReadError(message)
        logger.warning("upload read failed: %s", message)
        self._clear_dataset()
        return self.render(None, status=exc.status())

    # ---------------- Render ----------------
    def render(
        self, selection: Optional[ViewSelection] = None, *, status: Optional[StatusMessage] = None
    ) -> RenderResult:
        with self._lock:
            if selection is not None:
                self._selection = selection
            selection = self._selection
            self._generation += 1
            generation = self._generation
            records = self._records

        result = self._compute(records, selection, generation, status)

        with self._lock:
            if generation != self._generation:
                logger.info("discarding stale render %d (current %d)", generation, self._generation)
                return replace(result, stale=True)
            return self._commit(result)

    def _compute(
        self,
        records: pd.DataFrame,
        selection: ViewSelection,
        generation: int,
        status: Optional[StatusMessage],
    ) -> RenderResult:
        heading = view_heading(selection, self.columns)
        summary = summarize(records, self.columns)
        base = RenderResult(generation=generation, selection=selection, heading=heading, summary=summary)

        if records.empty:
            # Before any upload the welcome message stays in place.
            if status is None and self._attempted_upload:
                status = StatusMessage("info", NO_DATA_MESSAGE)
            return replace(
                base,
                status=status,
                placeholder=NO_DATA_PLACEHOLDER,
            )

        try:
            view = rank_records(records, selection, self.columns)
        except ColumnNotFoundError as exc:
            return replace(base, status=status or exc.status(), placeholder=f"Error: {exc}")

        if view.empty:
            display = column_display(selection.value_column, self.columns).display_name
            exc = EmptyRankedViewError(
                f"No valid numerical data in '{display}' for {selection.top_n_label.lower()} items. "
                "Check content or options."
            )
            return replace(base, status=status or exc.status(), view=view, placeholder=NO_VALID_DATA_PLACEHOLDER)

        return replace(
            base,
            status=status or StatusMessage("success", f"Chart updated: {heading}."),
            view=view,
            series=build_chart_series(view, self.columns),
            items=build_detail_items(view, self.columns),
        )

    def _commit(self, result: RenderResult) -> RenderResult:
        self._view = result.view
        if result.series is None:
            self._chart.destroy()
        else:
            try:
                result = replace(result, chart_spec=self._chart.replace(result.series))
            except RenderFailure as exc:
                self._chart.destroy()
                result = replace(result, status=exc.status(), chart_spec=None)
        result = replace(result, exports_enabled=self.exports_enabled)
        if result.status is not None:
            self.status = result.status
        self.last_result = result
        return result

    # ---------------- Export ----------------
    def _refuse(self, message: str) -> ExportRefused:
        exc = ExportRefused(message)
        self.status = exc.status()
        return exc

    def export_xlsx(self, *, today: Optional[date] = None) -> ExportFile:
        with self._lock:
            view = self._view
            ready = self.exports_enabled
        if view is None or not ready:
            raise self._refuse("No items to export to Excel.")
        with self.busy():
            try:
                out = export_xlsx(view, today=today, columns=self.columns)
            except DashboardError as exc:
                self.status = exc.status()
                raise
            except Exception as exc:
                logger.exception("xlsx export failed")
                failure = ExportFailure(f"Failed to export Excel: {exc}")
                self.status = failure.status()
                raise failure from exc
        self.status = StatusMessage("success", "Items list exported to Excel successfully!")
        return out

    def export_pdf(self, *, generated_at: Optional[datetime] = None) -> ExportFile:
        with self._lock:
            view = self._view
            series = self._chart.series
            ready = self.exports_enabled
        if view is None or series is None or not ready:
            raise self._refuse("No chart data or items to export.")
        with self.busy():
            try:
                png = render_png(series)
                out = export_pdf(view, png, generated_at=generated_at, columns=self.columns)
            except DashboardError as exc:
                self.status = exc.status()
                raise
            except Exception as exc:
                logger.exception("pdf export failed")
                failure = ExportFailure(f"Failed to export PDF Report: {exc}")
                self.status = failure.status()
                raise failure from exc
        self.status = StatusMessage("success", "Chart exported to PDF successfully!")
        return out
