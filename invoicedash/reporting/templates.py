"""Mapping utilities to flatten invoices into spreadsheet rows."""
from datetime import datetime
from typing import Any, Dict, Iterable, List

from invoicedash.core.models import Invoice
from invoicedash.core.status import classify


INVOICE_HEADERS = [
    "Id",
    "Name",
    "Type",
    "Date",
    "Created_At",
    "Status",
    "Lines",
    "Total_Amount",
    "Description",
    "File",
]


def _clean_text(value: str | None) -> str:
    if not value:
        return ""
    return " ".join(value.split())


def _format_amount(value: float | None) -> str:
    if value is None:
        return ""
    return f"{value:.2f}"


def _format_date(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.date().isoformat()


def invoice_to_row(invoice: Invoice) -> Dict[str, Any]:
    """Convert an Invoice into the export template dictionary."""

    lines = invoice.invoice_data or []
    row = {
        "Id": invoice.id,
        "Name": _clean_text(invoice.name),
        "Type": invoice.type.value,
        "Date": _format_date(invoice.date),
        "Created_At": _format_date(invoice.created_at),
        "Status": classify(invoice).value,
        "Lines": len(lines),
        "Total_Amount": _format_amount(invoice.total_amount) if lines else "",
        "Description": " | ".join(_clean_text(line.content) for line in lines),
        "File": invoice.file_path or "",
    }
    return row


def invoices_to_rows(invoices: Iterable[Invoice]) -> List[Dict[str, Any]]:
    """Convert an iterable of invoices into template-aligned rows."""

    return [invoice_to_row(invoice) for invoice in invoices]
