"""State containers and view-models shared by the CLI and dashboard."""
from invoicedash.state.auth import AuthState, AuthStore
from invoicedash.state.invoices import ImportResult, InvoiceState, InvoiceStore
from invoicedash.state.store import JsonPersistence, Store

__all__ = [
    "AuthState",
    "AuthStore",
    "ImportResult",
    "InvoiceState",
    "InvoiceStore",
    "JsonPersistence",
    "Store",
]
