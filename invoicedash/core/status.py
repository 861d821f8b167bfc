"""Processing status derived from invoice fields.

Status is never stored on the record: it is recomputed from ``file_path`` and
``invoice_data`` on every read so the dashboard cannot drift from the backend.
"""
from enum import Enum
from typing import Dict, Iterable, List, Tuple

from invoicedash.core.models import Invoice


class InvoiceProcessingStatus(str, Enum):
    UPLOADED = "UPLOADED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    # No backend field produces this yet; see DESIGN.md.
    ERROR = "ERROR"


TERMINAL_STATUSES = frozenset({InvoiceProcessingStatus.COMPLETED, InvoiceProcessingStatus.ERROR})

_STATUS_LABELS: Dict[InvoiceProcessingStatus, Tuple[str, str]] = {
    InvoiceProcessingStatus.UPLOADED: ("⚪", "Uploaded"),
    InvoiceProcessingStatus.PROCESSING: ("🟡", "Processing..."),
    InvoiceProcessingStatus.COMPLETED: ("🟢", "Processed"),
    InvoiceProcessingStatus.ERROR: ("🔴", "Error"),
}


def classify(invoice: Invoice) -> InvoiceProcessingStatus:
    """Return the processing status of an invoice; first matching rule wins."""

    if not invoice.file_path:
        return InvoiceProcessingStatus.UPLOADED
    if not invoice.invoice_data:
        return InvoiceProcessingStatus.PROCESSING
    return InvoiceProcessingStatus.COMPLETED


def is_terminal(status: InvoiceProcessingStatus) -> bool:
    return status in TERMINAL_STATUSES


def pending_invoices(invoices: Iterable[Invoice]) -> List[Invoice]:
    """Return the invoices still waiting on backend extraction, in input order."""

    return [invoice for invoice in invoices if classify(invoice) is InvoiceProcessingStatus.PROCESSING]


def status_counts(invoices: Iterable[Invoice]) -> Dict[InvoiceProcessingStatus, int]:
    counts = {status: 0 for status in InvoiceProcessingStatus}
    for invoice in invoices:
        counts[classify(invoice)] += 1
    return counts


def status_label(status: InvoiceProcessingStatus, with_icon: bool = True) -> str:
    """Return a badge label such as ``"🟡 Processing..."``."""

    icon, label = _STATUS_LABELS.get(status, ("⚪", "Unknown"))
    return f"{icon} {label}" if with_icon else label
