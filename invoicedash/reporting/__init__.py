"""Export destinations for invoice rows."""
from invoicedash.reporting.sinks import push_to_google_sheets, write_csv, write_excel
from invoicedash.reporting.templates import INVOICE_HEADERS, invoice_to_row, invoices_to_rows

__all__ = [
    "INVOICE_HEADERS",
    "invoice_to_row",
    "invoices_to_rows",
    "push_to_google_sheets",
    "write_csv",
    "write_excel",
]
