from __future__ import annotations
import pytest

from paydash.selection import ViewSelection, normalize_selection


def test_defaults():
    sel = normalize_selection({})
    assert sel == ViewSelection(top_n=10, value_column="Total", label_column="Supply Name", chart_type="bar")
    assert sel.is_bounded
    assert sel.top_n_label == "Top 10"


@pytest.mark.parametrize("raw", [None, "all", "All", "", -1, "-1"])
def test_unbounded_sentinels(raw):
    sel = normalize_selection({"top_n": raw})
    assert sel.top_n is None
    assert not sel.is_bounded
    assert sel.top_n_label == "All"


@pytest.mark.parametrize("raw,expected", [(5, 5), ("25", 25), (0, 10), (-7, 10), ("many", 10), (2.0, 2)])
def test_top_n_clamps_to_positive(raw, expected):
    assert normalize_selection({"top_n": raw}).top_n == expected


@pytest.mark.parametrize(
    "raw,expected",
    [("pie", "pie"), ("Doughnut", "doughnut"), ("donut", "doughnut"), (" LINE ", "line"), ("radar", "bar"), (None, "bar")],
)
def test_chart_type_always_resolves(raw, expected):
    sel = normalize_selection({"chart_type": raw})
    assert sel.chart_type == expected


def test_blank_columns_fall_back():
    sel = normalize_selection({"value_column": "  ", "label_column": None})
    assert sel.value_column == "Total"
    assert sel.label_column == "Supply Name"


def test_columns_are_trimmed():
    sel = normalize_selection({"value_column": " Processing Speed ", "label_column": "Requester"})
    assert sel.value_column == "Processing Speed"
    assert sel.label_column == "Requester"


def test_proportion_flag():
    assert ViewSelection(chart_type="pie").is_proportion_chart
    assert ViewSelection(chart_type="doughnut").is_proportion_chart
    assert not ViewSelection(chart_type="line").is_proportion_chart


def test_zero_top_n_reads_as_all():
    sel = ViewSelection(top_n=0)
    assert not sel.is_bounded
    assert sel.top_n_label == "All"
