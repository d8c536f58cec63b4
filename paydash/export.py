from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import pandas as pd
from fpdf import FPDF
from openpyxl.utils import get_column_letter
from PIL import Image

from paydash.config import DEFAULT_COLUMNS, NOT_AVAILABLE, PAYMENT_STATUS_COLUMN, PLACEHOLDER_LABEL, ColumnConfig
from paydash.data import cell_text, is_date_value, is_missing
from paydash.display import column_display, format_date_or_text, is_duration_column
from paydash.errors import ExportRefused
from paydash.ranking import RankedView
from paydash.selection import ViewSelection

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MEDIA_TYPE = "application/pdf"
SHEET_NAME = "Items List"

REPORT_TITLE = "Data Visualization Report"
TITLE_RGB = (30, 58, 138)
MUTED_RGB = (71, 85, 105)
HEADING_RGB = (29, 78, 216)
PAGE_MARGIN_MM = 14
CHART_TOP_MM = 48
MAX_CHART_HEIGHT_RATIO = 0.65
_PUNCTUATION = str.maketrans({"\u2013": "-", "\u2014": "-", "\u2018": "'", "\u2019": "'", "\u201c": '"', "\u201d": '"'})


@dataclass(frozen=True)
class ExportTable:
    columns: List[str]
    rows: List[Dict[str, Any]] = field(default_factory=list)
    value_header: str = ""
    value_format: str = "General"


@dataclass(frozen=True)
class ExportFile:
    filename: str
    content: bytes
    media_type: str


def _filename_part(text: str) -> str:
    return re.sub(r"[{}]", "", re.sub(r"\s+", "_", text.strip()))


def export_filename(
    selection: ViewSelection,
    extension: str,
    *,
    today: Optional[date] = None,
    prefix: str = "",
    columns: ColumnConfig = DEFAULT_COLUMNS,
) -> str:
    today = today or date.today()
    top = f"Top_{selection.top_n}_Items" if selection.is_bounded else "All_Items"
    display = column_display(selection.value_column, columns).display_name
    label = _filename_part(selection.label_column)
    return f"{prefix}{top}_{label}_by_{_filename_part(display)}_{today.isoformat()}.{extension}"


def _raw_or_none(value: object) -> object:
    return None if is_missing(value) else value


def build_export_table(view: RankedView, columns: ColumnConfig = DEFAULT_COLUMNS) -> ExportTable:
    """Row projection of the ranked view for the spreadsheet writer.

    Identity columns (requester, code, paid by, paid method) are only added
    when ranking by the duration column. A fixed column that shares its name
    with the label or value column is written once, holding the label/value.
    """
    if view.empty:
        raise ExportRefused("No items to export to Excel.")
    selection = view.selection
    display = column_display(selection.value_column, columns)
    label_header = selection.label_column
    with_identity = is_duration_column(selection.value_column, columns)
    fixed = ["Status", "Created Date", "Paid Date", "Purpose"]
    if with_identity:
        fixed += ["Requester", "PV Code", "Paid By", "Paid Method"]
    header = list(dict.fromkeys(["Rank", label_header, display.display_name] + fixed))

    rows: List[Dict[str, Any]] = []
    for i, (_, record) in enumerate(view.records.iterrows()):
        row: Dict[str, Any] = {
            "Status": cell_text(record.get(PAYMENT_STATUS_COLUMN)) or NOT_AVAILABLE,
            "Created Date": _raw_or_none(record.get(columns.created_date)),
            "Paid Date": _raw_or_none(record.get(columns.paid_date)),
            "Purpose": cell_text(record.get(columns.purpose)) or NOT_AVAILABLE,
        }
        if with_identity:
            row["Requester"] = _raw_or_none(record.get(columns.requester))
            row["PV Code"] = _raw_or_none(record.get(columns.code))
            row["Paid By"] = _raw_or_none(record.get(columns.paid_by))
            row["Paid Method"] = _raw_or_none(record.get(columns.payment_method))
        # Later keys win: value over fixed columns, label over value, rank over all.
        row[display.display_name] = view.values[i]
        row[label_header] = cell_text(record.get(label_header)) or PLACEHOLDER_LABEL
        row["Rank"] = i + 1
        rows.append({col: row[col] for col in header})

    return ExportTable(columns=header, rows=rows, value_header=display.display_name, value_format=display.excel_format)


def _display_width(value: object) -> int:
    if value is None:
        return 0
    if is_date_value(value):
        return len(format_date_or_text(value))
    return len(str(value))


def column_widths(table: ExportTable) -> List[int]:
    widths = []
    for col in table.columns:
        longest = max([len(col)] + [_display_width(row.get(col)) for row in table.rows])
        widths.append(min(max(longest, 10), 50))
    return widths


def write_xlsx(table: ExportTable) -> bytes:
    df = pd.DataFrame(table.rows, columns=table.columns)
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl", date_format="mm/dd/yyyy", datetime_format="mm/dd/yyyy") as writer:
        df.to_excel(writer, index=False, sheet_name=SHEET_NAME)
        ws = writer.sheets[SHEET_NAME]
        for idx, (col, width) in enumerate(zip(table.columns, column_widths(table)), start=1):
            letter = get_column_letter(idx)
            ws.column_dimensions[letter].width = width
            if col == table.value_header and table.value_format != "General":
                for cell in ws[letter][1:]:
                    cell.number_format = table.value_format
    return buf.getvalue()


def _safe(text: object) -> str:
    """Core PDF fonts are latin-1 only."""
    s = str(text) if text is not None else "-"
    s = s.translate(_PUNCTUATION)
    return s.encode("latin-1", "replace").decode("latin-1")


def report_heading(selection: ViewSelection, columns: ColumnConfig = DEFAULT_COLUMNS) -> str:
    display = column_display(selection.value_column, columns).display_name
    kind = selection.chart_type.capitalize()
    return f'{kind} Chart: {selection.top_n_label} "{selection.label_column}" by "{display}"'


def build_pdf_report(
    chart_png: bytes,
    selection: ViewSelection,
    *,
    generated_at: Optional[datetime] = None,
    columns: ColumnConfig = DEFAULT_COLUMNS,
) -> bytes:
    generated_at = generated_at or datetime.now()
    pdf = FPDF(orientation="L", unit="mm", format="A4")
    pdf.set_auto_page_break(auto=False)
    pdf.add_page()

    pdf.set_font("Helvetica", "B", 18)
    pdf.set_text_color(*TITLE_RGB)
    pdf.text(PAGE_MARGIN_MM, 22, REPORT_TITLE)
    pdf.set_font("Helvetica", "", 10)
    pdf.set_text_color(*MUTED_RGB)
    pdf.text(PAGE_MARGIN_MM, 28, f"Generated on: {generated_at:%B} {generated_at.day}, {generated_at.year}")
    pdf.set_font("Helvetica", "B", 14)
    pdf.set_text_color(*HEADING_RGB)
    pdf.text(PAGE_MARGIN_MM, 40, _safe(report_heading(selection, columns)))

    with Image.open(io.BytesIO(chart_png)) as im:
        w_px, h_px = im.size
    available_w = pdf.w - 2 * PAGE_MARGIN_MM
    img_w = available_w
    img_h = (h_px * available_w) / w_px if w_px else 0
    max_h = pdf.h * MAX_CHART_HEIGHT_RATIO
    if img_h > max_h:
        img_w = img_w * max_h / img_h
        img_h = max_h
    x = PAGE_MARGIN_MM + (available_w - img_w) / 2
    pdf.image(io.BytesIO(chart_png), x=x, y=CHART_TOP_MM, w=img_w, h=img_h)
    return bytes(pdf.output())


def export_xlsx(view: RankedView, *, today: Optional[date] = None, columns: ColumnConfig = DEFAULT_COLUMNS) -> ExportFile:
    table = build_export_table(view, columns)
    content = write_xlsx(table)
    filename = export_filename(view.selection, "xlsx", today=today, columns=columns)
    logger.info("exported %d rows to %s", len(table.rows), filename)
    return ExportFile(filename=filename, content=content, media_type=XLSX_MEDIA_TYPE)


def export_pdf(
    view: RankedView,
    chart_png: bytes,
    *,
    generated_at: Optional[datetime] = None,
    columns: ColumnConfig = DEFAULT_COLUMNS,
) -> ExportFile:
    if view.empty:
        raise ExportRefused("No chart data or items to export.")
    generated_at = generated_at or datetime.now()
    content = build_pdf_report(chart_png, view.selection, generated_at=generated_at, columns=columns)
    filename = export_filename(view.selection, "pdf", today=generated_at.date(), prefix="Report_", columns=columns)
    logger.info("exported chart report to %s", filename)
    return ExportFile(filename=filename, content=content, media_type=PDF_MEDIA_TYPE)
