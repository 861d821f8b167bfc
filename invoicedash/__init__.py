"""Client for the invoicing backend with polling of invoices still being extracted."""
from invoicedash.app import App, build_app, watch_invoices
from invoicedash.core import (
    Invoice,
    InvoiceProcessingStatus,
    InvoiceType,
    Settings,
    classify,
    configure_logging,
    load_settings,
    pending_invoices,
)
from invoicedash.processing import InvoicePoller, compute_stats
from invoicedash.state import AuthStore, InvoiceStore

__all__ = [
    "App",
    "AuthStore",
    "Invoice",
    "InvoicePoller",
    "InvoiceProcessingStatus",
    "InvoiceStore",
    "InvoiceType",
    "Settings",
    "build_app",
    "classify",
    "compute_stats",
    "configure_logging",
    "load_settings",
    "pending_invoices",
    "watch_invoices",
]
