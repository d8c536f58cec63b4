import streamlit as st
from contextlib import contextmanager
from datetime import date, datetime
from typing import List, Optional

from paydash.aggregate import DatasetSummary
from paydash.config import (
    CHART_TYPES,
    DEFAULT_LABEL_COLUMN,
    DEFAULT_TOP_N,
    DEFAULT_VALUE_COLUMN,
    TOP_N_CHOICES,
    ColumnConfig,
    setup_logging,
)
from paydash.display import column_display
from paydash.errors import DashboardError, StatusMessage
from paydash.selection import normalize_selection
from paydash.session import DashboardSession, RenderResult

setup_logging()


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #1e3a8a;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;margin-bottom: 8px;}
        .item-row {display: flex;justify-content: space-between;padding: 6px 0;border-bottom: 1px solid #f3f4f6;}
        .item-meta {color: #6b7280;font-size: 0.8rem;}
        .status-paid {color: #059669;font-weight: 600;}
        .status-unpaid {color: #dc2626;font-weight: 600;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body


def get_session() -> DashboardSession:
    if "dashboard" not in st.session_state:
        st.session_state["dashboard"] = DashboardSession()
    return st.session_state["dashboard"]


def show_status(message: StatusMessage):
    if message.kind == "error":
        st.error(message.text)
    elif message.kind == "success":
        st.success(message.text)
    else:
        st.info(message.text)


def top_n_caption(value: Optional[int]) -> str:
    return "All" if value is None else f"Top {value}"


def column_options(available: List[str], preferred: str) -> List[str]:
    if preferred in available:
        return available
    return [preferred] + available


def render_stats(summary: DatasetSummary, columns: ColumnConfig):
    amount = column_display(columns.currency_column, columns)
    cols = st.columns(3)
    cols[0].metric("Paid PV Codes", f"{summary.paid_code_count:,}", help="Rows with a non-empty PV Code.")
    cols[1].metric("Unique Supply Names", f"{summary.unique_label_count:,}")
    cols[2].metric(
        "Total Paid Amount",
        amount.format(summary.total_paid_amount),
        help="Sum of Total over rows with a payment method.",
    )


def render_items(result: RenderResult):
    if not result.items:
        st.info(result.placeholder or "No valid data for current selections.")
        return
    rows = []
    for item in result.items:
        status_cls = "status-paid" if item.status == "Paid" else "status-unpaid"
        rows.append(
            f"<div class='item-row'><div><b>{item.rank}. {item.label}</b> "
            f"<span class='{status_cls}'>({item.status})</span><br/>"
            f"<span class='item-meta'>Created: {item.created_date} · Paid: {item.paid_date} · "
            f"Purpose: {item.purpose}</span></div><div><b>{item.value_display}</b></div></div>"
        )
    st.markdown("".join(rows), unsafe_allow_html=True)


def prepare_xlsx():
    # Runs as a button callback so the status set here shows on the same rerun.
    try:
        st.session_state["xlsx_file"] = get_session().export_xlsx(today=date.today())
    except DashboardError:
        st.session_state.pop("xlsx_file", None)


def prepare_pdf():
    try:
        st.session_state["pdf_file"] = get_session().export_pdf(generated_at=datetime.now())
    except DashboardError:
        st.session_state.pop("pdf_file", None)


def render_exports(session: DashboardSession):
    enabled = session.exports_enabled
    cols = st.columns(2)
    cols[0].button("Prepare Excel", disabled=not enabled, key="prep_xlsx", on_click=prepare_xlsx)
    cols[1].button("Prepare PDF", disabled=not enabled, key="prep_pdf", on_click=prepare_pdf)

    for col, key, label in ((cols[0], "xlsx_file", "Download Excel"), (cols[1], "pdf_file", "Download PDF")):
        out = st.session_state.get(key)
        if out is not None and enabled:
            col.download_button(label, data=out.content, file_name=out.filename, mime=out.media_type, key=f"dl_{key}")


# ---------- UI setup ----------
st.set_page_config(page_title="Payment Data Visualizer", layout="wide")
inject_base_styles()
st.markdown(
    "<div class='app-top-bar'><div class='page-title'>Payment Data Visualizer</div></div>",
    unsafe_allow_html=True,
)
st.caption("Rank spreadsheet rows by a numeric column and chart the leaders.")

session = get_session()

# ----- Sidebar: upload + view controls -----
with st.sidebar:
    st.markdown("### Data")
    uploaded = st.file_uploader("Excel file", type=["xlsx", "xls"])

    st.markdown("---")
    st.markdown("### View")
    chart_type = st.radio("Chart type", list(CHART_TYPES), index=0, format_func=str.capitalize, horizontal=True)
    top_n = st.selectbox(
        "Show",
        list(TOP_N_CHOICES),
        index=list(TOP_N_CHOICES).index(DEFAULT_TOP_N),
        format_func=top_n_caption,
    )
    available = session.available_columns
    value_options = column_options(available, DEFAULT_VALUE_COLUMN)
    value_column = st.selectbox(
        "Analyze by",
        value_options,
        index=value_options.index(DEFAULT_VALUE_COLUMN),
        format_func=lambda c: column_display(c, session.columns).display_name,
    )
    label_options = column_options(available, DEFAULT_LABEL_COLUMN)
    label_column = st.selectbox("Label by", label_options, index=label_options.index(DEFAULT_LABEL_COLUMN))

selection = normalize_selection(
    {"top_n": top_n, "value_column": value_column, "label_column": label_column, "chart_type": chart_type}
)

# A new upload is processed once; reruns from other widgets only re-render.
upload_key = (uploaded.name, uploaded.size) if uploaded is not None else None
if upload_key != st.session_state.get("_upload_key"):
    st.session_state["_upload_key"] = upload_key
    st.session_state.pop("xlsx_file", None)
    st.session_state.pop("pdf_file", None)
    if uploaded is None:
        if session.has_data:
            result = session.load_upload(None, None, selection)
        else:
            result = session.render(selection)
    else:
        result = session.load_upload(uploaded.name, uploaded.getvalue(), selection)
    st.session_state["_last_selection"] = selection
    if session.has_data:
        # Columns changed, so the selectors need to be rebuilt from the new dataset.
        st.rerun()
elif selection != st.session_state.get("_last_selection") or session.last_result is None:
    st.session_state["_last_selection"] = selection
    st.session_state.pop("xlsx_file", None)
    st.session_state.pop("pdf_file", None)
    result = session.render(selection)
else:
    result = session.last_result

show_status(session.status)
render_stats(result.summary, session.columns)

left, right = st.columns([3, 2])
with left:
    with card(result.heading):
        if result.chart_spec is not None:
            st.vega_lite_chart(result.chart_spec)
        else:
            st.info(result.placeholder or "No chart to display.")
with right:
    with card("Ranked items"):
        render_items(result)

st.markdown("---")
render_exports(session)
