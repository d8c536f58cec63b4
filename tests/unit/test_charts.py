from __future__ import annotations
import pytest

from paydash import charts
from paydash.config import HOVER_BORDER_COLOR, SLICE_BORDER_COLOR
from paydash.charts import ChartHolder, build_chart, chart_frame, plot_keys, render_png, to_vega_spec
from paydash.errors import RenderFailure
from paydash.formatting import ChartSeries, build_chart_series
from paydash.ranking import rank_records
from paydash.selection import ViewSelection

PNG_MAGIC = b"\x89PNG"


def _series(records, **kw) -> ChartSeries:
    return build_chart_series(rank_records(records, ViewSelection(**kw)))


def _mark_type(spec: dict) -> str:
    mark = spec["mark"]
    return mark if isinstance(mark, str) else mark["type"]


def test_plot_keys_disambiguates_repeats():
    assert plot_keys(["A", "B", "A"]) == ["A #1", "B", "A #3"]
    assert plot_keys(["A", "B"]) == ["A", "B"]


def test_chart_frame_columns(records):
    frame = chart_frame(_series(records, top_n=None))
    assert frame["item"].tolist() == ["Northwind", "Office Depot #2", "Acme Parts", "Office Depot #4"]
    assert frame["label"].tolist() == ["Northwind", "Office Depot", "Acme Parts", "Office Depot"]
    assert "Requester" in frame.columns
    assert frame.loc[0, "Requester"] == "Sam"


def test_proportion_frame_has_no_detail_columns(records):
    frame = chart_frame(_series(records, chart_type="pie"))
    assert list(frame.columns) == ["rank", "item", "label", "value", "summary"]


@pytest.mark.parametrize("chart_type,mark", [("bar", "bar"), ("line", "line"), ("pie", "arc"), ("doughnut", "arc")])
def test_vega_spec_per_chart_type(records, chart_type, mark):
    spec = to_vega_spec(build_chart(_series(records, chart_type=chart_type)))
    assert _mark_type(spec) == mark
    assert "$schema" in spec


def test_doughnut_has_hole(records):
    pie = to_vega_spec(build_chart(_series(records, chart_type="pie")))
    doughnut = to_vega_spec(build_chart(_series(records, chart_type="doughnut")))
    assert pie["mark"]["innerRadius"] == 0
    assert doughnut["mark"]["innerRadius"] == charts.DOUGHNUT_INNER_RADIUS


def test_bar_border_darkens_on_hover(records):
    series = _series(records)
    stroke = to_vega_spec(build_chart(series))["encoding"]["stroke"]
    assert stroke["condition"]["value"] == HOVER_BORDER_COLOR
    assert stroke["value"] == series.border_colors[0]


def test_slice_border_stays_white_on_hover(records):
    stroke = to_vega_spec(build_chart(_series(records, chart_type="pie")))["encoding"]["stroke"]
    assert stroke["condition"]["value"] == SLICE_BORDER_COLOR
    assert stroke["value"] == SLICE_BORDER_COLOR


@pytest.mark.parametrize("chart_type", ["bar", "line", "pie", "doughnut"])
def test_render_png(records, chart_type):
    assert render_png(_series(records, chart_type=chart_type), dpi=40).startswith(PNG_MAGIC)


def test_render_png_pie_without_positive_values():
    series = ChartSeries(chart_type="pie", labels=["A"], values=[-3.0], dataset_label="x", x_title="", y_title="")
    with pytest.raises(RenderFailure):
        render_png(series)


def test_holder_replace_and_destroy(records):
    holder = ChartHolder()
    assert not holder.has_data
    spec = holder.replace(_series(records))
    assert holder.has_data
    assert spec["mark"]["type"] == "bar"
    holder.destroy()
    assert holder.series is None
    assert not holder.has_data


def test_holder_drops_old_chart_when_build_fails(records, monkeypatch):
    holder = ChartHolder()
    holder.replace(_series(records))

    def boom(series):
        raise ValueError("bad encoding")

    monkeypatch.setattr(charts, "build_chart", boom)
    with pytest.raises(RenderFailure) as exc:
        holder.replace(_series(records, chart_type="line"))
    assert str(exc.value) == "Failed to render chart: bad encoding"
    assert not holder.has_data

