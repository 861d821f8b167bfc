"""Revenue and expense aggregates behind the dashboard widgets."""
from __future__ import annotations

import calendar
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from invoicedash.core.models import (
    ExpenseCategory,
    Invoice,
    InvoiceStats,
    InvoiceType,
    MonthlyRevenue,
)
from invoicedash.core.status import InvoiceProcessingStatus, status_counts

OTHER_CATEGORY = "Other"


def compute_stats(invoices: Iterable[Invoice]) -> InvoiceStats:
    """Count invoices per processing status and total their extracted amounts.

    Revenue sums the lines of issued (``EMIS``) invoices and expenses the lines
    of received (``RECUS``) ones; invoices still processing contribute nothing.
    """

    invoice_list = list(invoices)
    counts = status_counts(invoice_list)
    revenue = sum(invoice.total_amount for invoice in invoice_list if invoice.type is InvoiceType.EMIS)
    expenses = sum(invoice.total_amount for invoice in invoice_list if invoice.type is InvoiceType.RECUS)
    return InvoiceStats(
        total_invoices=len(invoice_list),
        completed=counts[InvoiceProcessingStatus.COMPLETED],
        processing=counts[InvoiceProcessingStatus.PROCESSING],
        uploaded=counts[InvoiceProcessingStatus.UPLOADED],
        revenue=round(revenue, 2),
        expenses=round(expenses, 2),
    )


def monthly_revenue(invoices: Iterable[Invoice], year: Optional[int] = None) -> List[MonthlyRevenue]:
    """Return twelve rows (Jan..Dec) of issued-invoice revenue for ``year``.

    Without ``year`` the most recent year found on an issued invoice is used.
    """

    issued = [
        invoice
        for invoice in invoices
        if invoice.type is InvoiceType.EMIS and (invoice.date or invoice.created_at)
    ]
    if year is None and issued:
        year = max((invoice.date or invoice.created_at).year for invoice in issued)

    totals: Dict[int, float] = defaultdict(float)
    for invoice in issued:
        when = invoice.date or invoice.created_at
        if when.year == year:
            totals[when.month] += invoice.total_amount

    return [
        MonthlyRevenue(month=calendar.month_abbr[month], revenue=round(totals[month], 2))
        for month in range(1, 13)
    ]


def expense_breakdown(invoices: Iterable[Invoice], top: int = 5) -> List[ExpenseCategory]:
    """Group received-invoice lines by description, largest first.

    Everything past the ``top`` categories is folded into ``"Other"``.
    """

    totals: Dict[str, float] = defaultdict(float)
    for invoice in invoices:
        if invoice.type is not InvoiceType.RECUS:
            continue
        for line in invoice.invoice_data or []:
            category = " ".join(line.content.split()) or OTHER_CATEGORY
            totals[category] += line.amount

    ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    categories = [ExpenseCategory(name, round(amount, 2)) for name, amount in ranked[:top]]
    remainder = sum(amount for _, amount in ranked[top:])
    if remainder:
        categories.append(ExpenseCategory(OTHER_CATEGORY, round(remainder, 2)))
    return categories
