"""Core building blocks for the invoicedash package."""
from invoicedash.core.config import Settings, load_settings
from invoicedash.core.logging import configure_logging
from invoicedash.core.models import (
    CreateInvoiceInput,
    ExpenseCategory,
    Invoice,
    InvoiceLine,
    InvoiceStats,
    InvoiceType,
    LoginCredentials,
    MonthlyRevenue,
    PaginatedInvoices,
    Pagination,
    RegisterCredentials,
    UpdateInvoiceInput,
    User,
)
from invoicedash.core.status import (
    InvoiceProcessingStatus,
    classify,
    is_terminal,
    pending_invoices,
    status_counts,
    status_label,
)

__all__ = [
    "Settings",
    "load_settings",
    "configure_logging",
    "CreateInvoiceInput",
    "ExpenseCategory",
    "Invoice",
    "InvoiceLine",
    "InvoiceStats",
    "InvoiceType",
    "LoginCredentials",
    "MonthlyRevenue",
    "PaginatedInvoices",
    "Pagination",
    "RegisterCredentials",
    "UpdateInvoiceInput",
    "User",
    "InvoiceProcessingStatus",
    "classify",
    "is_terminal",
    "pending_invoices",
    "status_counts",
    "status_label",
]
