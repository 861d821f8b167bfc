"""Status classification drives both the badges and the polling pending set."""
import pytest

from invoicedash.core.models import Invoice, InvoiceLine
from invoicedash.core.status import (
    InvoiceProcessingStatus,
    classify,
    is_terminal,
    pending_invoices,
    status_counts,
    status_label,
)

LINE = InvoiceLine(content="Consulting", amount=10.0)


@pytest.mark.parametrize(
    "file_path, invoice_data, expected",
    [
        (None, None, InvoiceProcessingStatus.UPLOADED),
        ("", None, InvoiceProcessingStatus.UPLOADED),
        (None, [LINE], InvoiceProcessingStatus.UPLOADED),
        ("", [LINE], InvoiceProcessingStatus.UPLOADED),
        ("uploads/a.pdf", None, InvoiceProcessingStatus.PROCESSING),
        ("uploads/a.pdf", [], InvoiceProcessingStatus.PROCESSING),
        ("uploads/a.pdf", [LINE], InvoiceProcessingStatus.COMPLETED),
    ],
)
def test_classify_covers_every_field_combination(file_path, invoice_data, expected) -> None:
    invoice = Invoice(id=1, file_path=file_path, invoice_data=invoice_data)

    assert classify(invoice) is expected


def test_classify_never_returns_error(make_invoice) -> None:
    invoices = [make_invoice(1, "uploaded"), make_invoice(2, "processing"), make_invoice(3, "completed")]

    assert InvoiceProcessingStatus.ERROR not in {classify(invoice) for invoice in invoices}


def test_pending_invoices_keeps_only_processing_in_order(make_invoice) -> None:
    invoices = [
        make_invoice(1, "processing"),
        make_invoice(2, "completed"),
        make_invoice(3, "uploaded"),
        make_invoice(4, "processing"),
    ]

    assert [invoice.id for invoice in pending_invoices(invoices)] == [1, 4]


def test_single_pending_invoice_among_mixed_records(make_invoice) -> None:
    invoices = [
        make_invoice(1, "completed"),
        make_invoice(2, "processing"),
        make_invoice(3, "uploaded"),
    ]

    assert len(pending_invoices(invoices)) == 1


def test_status_counts_include_zero_buckets(make_invoice) -> None:
    counts = status_counts([make_invoice(1, "completed"), make_invoice(2, "completed")])

    assert counts[InvoiceProcessingStatus.COMPLETED] == 2
    assert counts[InvoiceProcessingStatus.PROCESSING] == 0
    assert set(counts) == set(InvoiceProcessingStatus)


def test_terminal_statuses() -> None:
    assert is_terminal(InvoiceProcessingStatus.COMPLETED)
    assert is_terminal(InvoiceProcessingStatus.ERROR)
    assert not is_terminal(InvoiceProcessingStatus.PROCESSING)
    assert not is_terminal(InvoiceProcessingStatus.UPLOADED)


def test_status_label_badges() -> None:
    assert status_label(InvoiceProcessingStatus.PROCESSING) == "🟡 Processing..."
    assert status_label(InvoiceProcessingStatus.COMPLETED, with_icon=False) == "Processed"
