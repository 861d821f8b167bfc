"""Streamlit dashboard to upload invoices and follow their extraction status."""
import asyncio
from datetime import datetime
from pathlib import Path
from typing import List

import streamlit as st

# Allow running via "streamlit run invoicedash/ui/dashboard.py" without installing the package
# by ensuring the repository root is on ``sys.path``.
if __package__ in {None, ""}:
    import sys

    sys.path.append(str(Path(__file__).resolve().parents[2]))

from invoicedash.app import App, build_app
from invoicedash.core.logging import configure_logging
from invoicedash.core.models import CreateInvoiceInput, Invoice, InvoiceType, LoginCredentials
from invoicedash.core.status import InvoiceProcessingStatus, classify, pending_invoices, status_label
from invoicedash.processing.stats import compute_stats, expense_breakdown, monthly_revenue

UPLOAD_DIR = Path(".invoicedash/uploads")


def _session_app() -> App:
    """Build the app once per browser session."""

    if "app" not in st.session_state:
        configure_logging()
        st.session_state.app = build_app()
    return st.session_state.app


def _rerun_app() -> None:
    """Trigger a Streamlit rerun, compatible with newer and older APIs."""

    rerun = getattr(st, "rerun", None) or getattr(st, "experimental_rerun", None)
    if not rerun:
        raise RuntimeError("Streamlit does not expose a rerun helper.")
    rerun()


def _refresh_pending(app: App) -> int:
    """Run one reconciler cycle over the processing invoices; return how many were refreshed."""

    result = asyncio.run(app.poller().refresh_now())
    return len(result.refreshed)


def _invoice_rows(invoices: List[Invoice]) -> List[dict]:
    rows = []
    for invoice in invoices:
        rows.append(
            {
                "Id": invoice.id,
                "Name": invoice.name,
                "Type": invoice.type.value,
                "Date": invoice.date.date().isoformat() if invoice.date else "",
                "Status": status_label(classify(invoice)),
                "Total": invoice.total_amount if invoice.invoice_data else None,
            }
        )
    return rows


def _login_form(app: App) -> None:
    st.subheader("Sign in")
    with st.form("login"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        remember_me = st.checkbox("Remember me")
        submitted = st.form_submit_button("Log in")
    if submitted:
        if app.auth.login(LoginCredentials(email, password, remember_me=remember_me)):
            _rerun_app()
        else:
            st.error(app.auth.state.error)


def _upload_form(app: App) -> None:
    with st.sidebar.form("upload", clear_on_submit=True):
        st.subheader("Upload invoice")
        uploaded = st.file_uploader("Document", type=["pdf", "csv", "xlsx"])
        name = st.text_input("Name")
        invoice_type = st.selectbox("Type", [t.value for t in InvoiceType])
        date = st.date_input("Date")
        submitted = st.form_submit_button("Upload")
    if not submitted or uploaded is None:
        return

    UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    target = UPLOAD_DIR / uploaded.name
    target.write_bytes(uploaded.getbuffer())
    details = CreateInvoiceInput(
        name=name or target.stem,
        date=datetime.combine(date, datetime.min.time()),
        type=InvoiceType(invoice_type),
    )
    if app.invoices.create_invoice(details, file=target):
        st.sidebar.success(f"Uploaded {target.name}")
        _rerun_app()
    else:
        st.sidebar.error(app.invoices.state.error)


def _overview(invoices: List[Invoice]) -> None:
    stats = compute_stats(invoices)
    row = st.columns(4)
    row[0].metric("Invoices", stats.total_invoices)
    row[1].metric("Processed", stats.completed)
    row[2].metric("Revenue", f"{stats.revenue:,.2f}")
    row[3].metric("Expenses", f"{stats.expenses:,.2f}")

    charts = st.columns(2)
    with charts[0]:
        st.caption("Monthly revenue")
        st.bar_chart({row.month: row.revenue for row in monthly_revenue(invoices)})
    with charts[1]:
        st.caption("Expenses by category")
        breakdown = expense_breakdown(invoices)
        if breakdown:
            st.bar_chart({item.category: item.amount for item in breakdown})
        else:
            st.info("No processed expense invoices yet.")


def _invoice_table(app: App) -> None:
    """Render the invoice list with a badge while anything is processing."""

    invoices = app.invoices.state.invoices
    pending = len(pending_invoices(invoices))
    if pending:
        st.info(f"{status_label(InvoiceProcessingStatus.PROCESSING)} {pending} invoice(s) being extracted")
    if not invoices:
        st.caption("No invoices yet. Upload one from the sidebar.")
        return
    st.dataframe(
        _invoice_rows(invoices),
        hide_index=True,
        use_container_width=True,
        column_config={"Total": st.column_config.NumberColumn("Total", format="%.2f")},
    )


def main() -> None:
    """Launch the invoice dashboard."""

    st.set_page_config(page_title="Invoices", layout="wide")
    st.title("Invoices")
    app = _session_app()

    if not app.auth.state.is_authenticated:
        _login_form(app)
        return

    with st.sidebar:
        if st.button("Log out"):
            app.auth.logout()
            st.session_state.pop("loaded", None)
            _rerun_app()
    _upload_form(app)

    if not st.session_state.get("loaded"):
        if not app.invoices.fetch_invoices(page=1, limit=100):
            st.error(app.invoices.state.error)
        st.session_state.loaded = True

    if st.button("Refresh processing invoices"):
        refreshed = _refresh_pending(app)
        st.toast(f"Refreshed {refreshed} invoice(s)")

    interval = app.settings.poll_interval_ms / 1000 if app.settings.poll_interval_ms > 0 else None

    @st.fragment(run_every=interval)
    def _live_table() -> None:
        if pending_invoices(app.invoices.state.invoices):
            _refresh_pending(app)
        _invoice_table(app)

    _live_table()
    _overview(app.invoices.state.invoices)


if __name__ == "__main__":
    main()
