from __future__ import annotations
from datetime import date, datetime
from io import BytesIO
import pandas as pd
import pytest
from openpyxl import load_workbook

from paydash import export
from paydash.charts import render_png
from paydash.errors import ExportRefused
from paydash.export import (
    SHEET_NAME,
    build_export_table,
    build_pdf_report,
    column_widths,
    export_filename,
    export_pdf,
    export_xlsx,
    report_heading,
    write_xlsx,
)
from paydash.formatting import build_chart_series
from paydash.ranking import RankedView, rank_records
from paydash.selection import ViewSelection

DAY = date(2024, 5, 1)


def test_filename_bounded():
    assert export_filename(ViewSelection(), "xlsx", today=DAY) == "Top_10_Items_Supply_Name_by_Total_Paid_2024-05-01.xlsx"


def test_filename_unbounded_report():
    sel = ViewSelection(top_n=None, value_column="Processing Speed")
    assert export_filename(sel, "pdf", today=DAY, prefix="Report_") == (
        "Report_All_Items_Supply_Name_by_Processing_Speed_Days_2024-05-01.pdf"
    )


def test_filename_zero_top_n_means_all():
    sel = ViewSelection(top_n=0)
    assert export_filename(sel, "xlsx", today=DAY) == "All_Items_Supply_Name_by_Total_Paid_2024-05-01.xlsx"
    assert report_heading(sel) == 'Bar Chart: All "Supply Name" by "Total Paid"'


def test_filename_strips_braces_and_whitespace():
    sel = ViewSelection(top_n=5, value_column="{Net}  Amount", label_column="{Vendor}\tName")
    assert export_filename(sel, "xlsx", today=DAY) == "Top_5_Items_Vendor_Name_by_Net_Amount_2024-05-01.xlsx"


def test_table_base_columns(records):
    table = build_export_table(rank_records(records, ViewSelection(top_n=2)))
    assert table.columns == ["Rank", "Supply Name", "Total Paid", "Status", "Created Date", "Paid Date", "Purpose"]
    assert [row["Rank"] for row in table.rows] == [1, 2]
    first = table.rows[0]
    assert first["Supply Name"] == "Northwind"
    assert first["Total Paid"] == 4200.0
    assert first["Status"] == "Paid"
    assert first["Purpose"] == "Furniture"
    assert table.value_format == '"$"#,##0.00'


def test_table_identity_columns_for_duration(records):
    table = build_export_table(rank_records(records, ViewSelection(top_n=None, value_column="Processing Speed")))
    assert table.columns[-4:] == ["Requester", "PV Code", "Paid By", "Paid Method"]
    acme = table.rows[1]
    assert acme["Supply Name"] == "Acme Parts"
    assert acme["Requester"] == "Lee"
    assert acme["Paid Method"] is None
    assert acme["Paid Date"] is None
    assert acme["Status"] == "Unpaid"


def test_label_matching_identity_column_is_written_once(records):
    sel = ViewSelection(top_n=None, value_column="Processing Speed", label_column="PV Code")
    table = build_export_table(rank_records(records, sel))
    assert table.columns.count("PV Code") == 1
    assert table.columns[:3] == ["Rank", "PV Code", "Processing Speed Days"]
    assert [row["PV Code"] for row in table.rows] == ["PV-004", "PV-002", "PV-001", "PV-003"]

    df = pd.read_excel(BytesIO(write_xlsx(table)), sheet_name=SHEET_NAME)
    assert list(df.columns) == table.columns
    assert "PV Code.1" not in df.columns


def test_label_matching_fixed_column_is_written_once(records):
    table = build_export_table(rank_records(records, ViewSelection(top_n=2, label_column="Purpose")))
    assert table.columns == ["Rank", "Purpose", "Total Paid", "Status", "Created Date", "Paid Date"]
    assert [row["Purpose"] for row in table.rows] == ["Furniture", "Stationery"]

    df = pd.read_excel(BytesIO(write_xlsx(table)), sheet_name=SHEET_NAME)
    assert "Purpose.1" not in df.columns
    assert df["Purpose"].tolist() == ["Furniture", "Stationery"]


def test_table_refuses_empty_view():
    with pytest.raises(ExportRefused) as exc:
        build_export_table(RankedView(selection=ViewSelection()))
    assert str(exc.value) == "No items to export to Excel."
    assert exc.value.status().kind == "info"


def test_column_widths_are_clamped(records):
    table = build_export_table(rank_records(records, ViewSelection()))
    widths = dict(zip(table.columns, column_widths(table)))
    assert widths["Rank"] == 10
    assert widths["Created Date"] == 12
    assert all(10 <= w <= 50 for w in widths.values())


def test_write_xlsx_round_trip(records):
    table = build_export_table(rank_records(records, ViewSelection(top_n=3)))
    content = write_xlsx(table)

    df = pd.read_excel(BytesIO(content), sheet_name=SHEET_NAME)
    assert list(df.columns) == table.columns
    assert df["Supply Name"].tolist() == ["Northwind", "Office Depot", "Acme Parts"]
    assert df["Total Paid"].tolist() == [4200.0, 1250.5, 980.0]

    ws = load_workbook(BytesIO(content))[SHEET_NAME]
    assert ws["C2"].number_format == '"$"#,##0.00'
    assert ws.column_dimensions["A"].width == 10


def test_report_heading():
    sel = ViewSelection(top_n=5, chart_type="doughnut")
    assert report_heading(sel) == 'Doughnut Chart: Top 5 "Supply Name" by "Total Paid"'


def test_pdf_report_is_a_pdf(records):
    view = rank_records(records, ViewSelection(chart_type="pie"))
    png = render_png(build_chart_series(view), dpi=40)
    content = build_pdf_report(png, view.selection, generated_at=datetime(2024, 5, 1, 9, 30))
    assert content.startswith(b"%PDF")


def test_export_xlsx_file(records):
    out = export_xlsx(rank_records(records, ViewSelection()), today=DAY)
    assert out.filename == "Top_10_Items_Supply_Name_by_Total_Paid_2024-05-01.xlsx"
    assert out.media_type == export.XLSX_MEDIA_TYPE
    assert out.content[:2] == b"PK"


def test_export_pdf_file(records):
    view = rank_records(records, ViewSelection(top_n=None))
    png = render_png(build_chart_series(view), dpi=40)
    out = export_pdf(view, png, generated_at=datetime(2024, 5, 1, 9, 30))
    assert out.filename == "Report_All_Items_Supply_Name_by_Total_Paid_2024-05-01.pdf"
    assert out.media_type == "application/pdf"


def test_refused_exports_never_reach_writers(monkeypatch):
    calls = []
    monkeypatch.setattr(export, "write_xlsx", lambda table: calls.append("xlsx"))
    monkeypatch.setattr(export, "build_pdf_report", lambda *a, **kw: calls.append("pdf"))
    empty = RankedView(selection=ViewSelection())

    with pytest.raises(ExportRefused):
        export_xlsx(empty, today=DAY)
    with pytest.raises(ExportRefused) as exc:
        export_pdf(empty, b"", generated_at=datetime(2024, 5, 1))
    assert str(exc.value) == "No chart data or items to export."
    assert calls == []
