"""Polling and aggregation over the invoice collection."""
from invoicedash.processing.polling import DEFAULT_INTERVAL_MS, CycleResult, InvoicePoller
from invoicedash.processing.stats import compute_stats, expense_breakdown, monthly_revenue

__all__ = [
    "DEFAULT_INTERVAL_MS",
    "CycleResult",
    "InvoicePoller",
    "compute_stats",
    "expense_breakdown",
    "monthly_revenue",
]
