"""Invoice view-model: API calls that keep a shared invoice store current."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from invoicedash.api.errors import ApiError
from invoicedash.api.invoices import InvoiceService
from invoicedash.core.models import (
    CreateInvoiceInput,
    Invoice,
    InvoiceType,
    Pagination,
    UpdateInvoiceInput,
    replace_invoice,
)
from invoicedash.state.store import JsonPersistence, Store

logger = logging.getLogger(__name__)

PERSISTED_FIELDS = ("invoices", "current_invoice", "pagination")
IMPORTABLE_SUFFIXES = (".pdf", ".csv", ".xlsx")


@dataclass(frozen=True)
class InvoiceState:
    invoices: List[Invoice] = field(default_factory=list)
    current_invoice: Optional[Invoice] = None
    loading: bool = False
    error: Optional[str] = None
    pagination: Pagination = field(default_factory=Pagination)


def encode_state(state: InvoiceState) -> Dict[str, Any]:
    return {
        "invoices": [invoice.to_dict() for invoice in state.invoices],
        "current_invoice": state.current_invoice.to_dict() if state.current_invoice else None,
        "pagination": state.pagination.to_dict(),
    }


def decode_state(state: InvoiceState, payload: Dict[str, Any]) -> InvoiceState:
    changes: Dict[str, Any] = {}
    if "invoices" in payload:
        changes["invoices"] = [Invoice.from_dict(item) for item in payload["invoices"] or []]
    if "current_invoice" in payload:
        current = payload["current_invoice"]
        changes["current_invoice"] = Invoice.from_dict(current) if current else None
    if "pagination" in payload:
        changes["pagination"] = Pagination.from_dict(payload["pagination"] or {})
    return replace(state, **changes)


@dataclass
class ImportResult:
    created: List[Invoice] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)


class InvoiceStore:
    """Owns the invoice collection shown by the CLI and the dashboard.

    Every operation reports failures through ``state.error`` and the log
    instead of raising, except ``refresh_invoice`` which the polling
    reconciler relies on to tell failed refreshes apart.
    """

    def __init__(self, service: InvoiceService, persist_path: Optional[Path] = None) -> None:
        self.service = service
        persistence = JsonPersistence(persist_path, PERSISTED_FIELDS) if persist_path else None
        self.store: Store[InvoiceState] = Store(
            InvoiceState(), persistence=persistence, encode=encode_state, decode=decode_state
        )
        self.store.hydrate()

    @property
    def state(self) -> InvoiceState:
        return self.store.state

    def subscribe(self, listener: Callable[[InvoiceState], None]) -> Callable[[], None]:
        return self.store.subscribe(listener)

    def _fail(self, exc: ApiError, action: str) -> None:
        logger.error("%s: %s", action, exc.message)
        self.store.update(loading=False, error=exc.message)

    def fetch_invoices(self, page: int = 1, limit: int = 10) -> bool:
        self.store.update(loading=True, error=None)
        try:
            response = self.service.get_invoices(page, limit)
        except ApiError as exc:
            self._fail(exc, "Fetching invoices failed")
            return False
        self.store.update(invoices=response.invoices, pagination=response.pagination, loading=False)
        logger.info(
            "Loaded %d invoices (page %d/%d)",
            len(response.invoices),
            response.pagination.page,
            response.pagination.total_pages,
        )
        return True

    def fetch_invoice(self, invoice_id: int) -> Optional[Invoice]:
        self.store.update(loading=True, error=None)
        try:
            invoice = self.service.get_invoice(invoice_id)
        except ApiError as exc:
            self._fail(exc, f"Fetching invoice {invoice_id} failed")
            return None
        self.store.update(
            invoices=replace_invoice(self.state.invoices, invoice),
            current_invoice=invoice,
            loading=False,
        )
        return invoice

    async def refresh_invoice(self, invoice_id: int) -> Invoice:
        """Fetch the canonical record and swap it into the collection.

        Raises ``ApiError`` so the caller can keep the previous value.
        """

        invoice = await asyncio.to_thread(self.service.get_invoice, invoice_id)
        changes: Dict[str, Any] = {"invoices": replace_invoice(self.state.invoices, invoice)}
        current = self.state.current_invoice
        if current is not None and current.id == invoice.id:
            changes["current_invoice"] = invoice
        self.store.update(**changes)
        return invoice

    def create_invoice(self, input: CreateInvoiceInput, file: Optional[Path] = None) -> Optional[Invoice]:
        self.store.update(loading=True, error=None)
        try:
            if file is not None:
                invoice = self.service.create_invoice_with_file(file, input)
            else:
                invoice = self.service.create_invoice(input)
        except ApiError as exc:
            self._fail(exc, "Creating invoice failed")
            return None
        self.store.update(
            invoices=[invoice, *self.state.invoices], current_invoice=invoice, loading=False
        )
        logger.info("Created invoice %s (%s)", invoice.id, invoice.name)
        return invoice

    def update_invoice(self, input: UpdateInvoiceInput, file: Optional[Path] = None) -> Optional[Invoice]:
        self.store.update(loading=True, error=None)
        try:
            if file is not None:
                invoice = self.service.update_invoice_with_file(input.id, file, input)
            else:
                invoice = self.service.update_invoice(input)
        except ApiError as exc:
            self._fail(exc, f"Updating invoice {input.id} failed")
            return None
        self.store.update(
            invoices=replace_invoice(self.state.invoices, invoice),
            current_invoice=invoice,
            loading=False,
        )
        logger.info("Updated invoice %s", invoice.id)
        return invoice

    def delete_invoice(self, invoice_id: int) -> bool:
        self.store.update(loading=True, error=None)
        try:
            self.service.delete_invoice(invoice_id)
        except ApiError as exc:
            self._fail(exc, f"Deleting invoice {invoice_id} failed")
            return False
        current = self.state.current_invoice
        self.store.update(
            invoices=[invoice for invoice in self.state.invoices if invoice.id != invoice_id],
            current_invoice=None if current is not None and current.id == invoice_id else current,
            loading=False,
        )
        logger.info("Deleted invoice %s", invoice_id)
        return True

    def import_invoices(
        self,
        paths: Iterable[Path],
        type: InvoiceType = InvoiceType.RECUS,
        date: Optional[datetime] = None,
    ) -> ImportResult:
        """Upload each supported file as a new invoice named after the file."""

        result = ImportResult()
        for path in paths:
            if path.suffix.lower() not in IMPORTABLE_SUFFIXES:
                logger.warning("Skipping %s: unsupported file type", path.name)
                result.skipped.append(path.name)
                continue
            input = CreateInvoiceInput(name=path.stem, date=date or datetime.now(), type=type)
            invoice = self.create_invoice(input, file=path)
            if invoice is None:
                result.failed[path.name] = self.state.error or "unknown error"
            else:
                result.created.append(invoice)

        logger.info(
            "Imported %d invoices (%d failed, %d skipped)",
            len(result.created),
            len(result.failed),
            len(result.skipped),
        )
        return result

    def set_current_invoice(self, invoice: Optional[Invoice]) -> None:
        self.store.update(current_invoice=invoice)

    def clear_error(self) -> None:
        self.store.update(error=None)
