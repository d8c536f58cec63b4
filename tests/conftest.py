# Shared pytest fixtures
from __future__ import annotations
from datetime import datetime
from io import BytesIO
from typing import Callable, Optional
import pandas as pd
import pytest

from paydash.normalize import normalize_records
from paydash.session import DashboardSession


@pytest.fixture()
def scenario_rows() -> list[dict]:
    return [
        {"Supply Name": "A", "Total": "100", "Paid Method": "EFT", "PV Code": "PV-1"},
        {"Supply Name": "B", "Total": "50", "Paid Method": "", "PV Code": "PV-2"},
        {"Supply Name": "C", "Total": "200", "Paid Method": "Cash", "PV Code": ""},
    ]


@pytest.fixture()
def payment_rows() -> list[dict]:
    return [
        {
            "PV Code": "PV-001", "Supply Name": "Office Depot", "Total": 1250.5, "Processing Speed": 3,
            "Requester": "Dana", "Created Date": datetime(2024, 1, 5), "Paid Date": datetime(2024, 1, 8),
            "Paid By": "Finance", "Paid Method": "EFT", "Purpose": "Stationery",
        },
        {
            "PV Code": "PV-002", "Supply Name": "Acme Parts", "Total": 980, "Processing Speed": 7,
            "Requester": "Lee", "Created Date": datetime(2024, 1, 10), "Paid Date": None,
            "Paid By": None, "Paid Method": None, "Purpose": "Spare parts",
        },
        {
            "PV Code": "PV-003", "Supply Name": "Office Depot", "Total": 310.25, "Processing Speed": 1.5,
            "Requester": "Dana", "Created Date": datetime(2024, 2, 1), "Paid Date": datetime(2024, 2, 2),
            "Paid By": "Finance", "Paid Method": "Cash", "Purpose": "Toner",
        },
        {
            "PV Code": "PV-004", "Supply Name": "Northwind", "Total": 4200, "Processing Speed": 12,
            "Requester": "Sam", "Created Date": datetime(2024, 2, 12), "Paid Date": datetime(2024, 2, 24),
            "Paid By": "Treasury", "Paid Method": "Cheque", "Purpose": "Furniture",
        },
        {
            "PV Code": None, "Supply Name": "Globex", "Total": "n/a", "Processing Speed": None,
            "Requester": "Lee", "Created Date": datetime(2024, 3, 1), "Paid Date": None,
            "Paid By": None, "Paid Method": None, "Purpose": None,
        },
    ]


@pytest.fixture()
def make_workbook() -> Callable[..., bytes]:
    def _make(rows: list[dict], columns: Optional[list[str]] = None) -> bytes:
        buf = BytesIO()
        with pd.ExcelWriter(buf, engine="openpyxl") as writer:
            pd.DataFrame(rows, columns=columns).to_excel(writer, sheet_name="Payments", index=False)
        return buf.getvalue()

    return _make


@pytest.fixture()
def workbook_bytes(make_workbook, payment_rows) -> bytes:
    return make_workbook(payment_rows)


@pytest.fixture()
def records(payment_rows) -> pd.DataFrame:
    return normalize_records(payment_rows)


@pytest.fixture()
def loaded_session(workbook_bytes) -> DashboardSession:
    session = DashboardSession()
    session.load_upload("payments.xlsx", workbook_bytes)
    return session
