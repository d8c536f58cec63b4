"""Core (UI-agnostic) payment dashboard logic.

This package contains:
- spreadsheet loading (XLSX/XLS -> pandas, first sheet only)
- record normalization (payment status) and dataset summary
- view selection normalization and top-N ranking
- chart series / detail list formatting (Altair -> Vega-Lite spec dict)
- export adapters (XLSX table, PDF report)
- the session object that owns the current dataset and ranked view
"""
