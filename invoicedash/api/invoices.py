"""Invoice CRUD over GraphQL, plus multipart uploads over REST."""
from __future__ import annotations

import json
import logging
import mimetypes
from pathlib import Path
from typing import Any, Callable, Dict, TypeVar

from invoicedash.api.errors import ApiError
from invoicedash.api.graphql import (
    CREATE_INVOICE_MUTATION,
    GET_INVOICE_QUERY,
    GET_INVOICES_QUERY,
    REMOVE_INVOICE_MUTATION,
    UPDATE_INVOICE_MUTATION,
    GraphQLClient,
)
from invoicedash.api.transport import HttpTransport
from invoicedash.core.models import (
    CreateInvoiceInput,
    Invoice,
    PaginatedInvoices,
    UpdateInvoiceInput,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _upload_form(input: CreateInvoiceInput) -> Dict[str, Any]:
    form: Dict[str, Any] = {
        "name": input.name,
        "date": input.date.isoformat(),
        "type": input.type.value,
    }
    if input.tag_ids:
        form["tagIds"] = json.dumps(list(input.tag_ids))
    return form


def _decode(parse: Callable[[], T], fallback_message: str) -> T:
    """Run ``parse`` over a backend payload, reporting malformed records as ``ApiError``."""

    try:
        return parse()
    except (KeyError, TypeError, ValueError) as exc:
        logger.error("%s: unexpected payload (%s: %s)", fallback_message, type(exc).__name__, exc)
        raise ApiError(fallback_message) from exc


class InvoiceService:
    """Backend operations on invoices.

    Line items are never sent: the backend fills ``invoiceData`` after its
    OCR + LLM pass, which is what the polling reconciler waits for.
    """

    def __init__(self, transport: HttpTransport) -> None:
        self.transport = transport
        self.graphql = GraphQLClient(transport)

    def get_invoices(self, page: int = 1, limit: int = 10) -> PaginatedInvoices:
        data = self.graphql.execute(
            GET_INVOICES_QUERY,
            {"page": page, "limit": limit},
            fallback_message="Failed to fetch invoices",
        )
        return _decode(
            lambda: PaginatedInvoices.from_dict(data.get("invoices") or {}), "Failed to fetch invoices"
        )

    def get_invoice(self, invoice_id: int) -> Invoice:
        data = self.graphql.execute(
            GET_INVOICE_QUERY, {"id": invoice_id}, fallback_message="Failed to fetch invoice"
        )
        payload = data.get("invoice")
        if not payload:
            raise ApiError(f"Invoice {invoice_id} not found", status_code=404)
        return _decode(lambda: Invoice.from_dict(payload), "Failed to fetch invoice")

    def create_invoice(self, input: CreateInvoiceInput) -> Invoice:
        data = self.graphql.execute(
            CREATE_INVOICE_MUTATION,
            {"createInvoiceInput": input.to_variables()},
            fallback_message="Failed to create invoice",
        )
        return _decode(lambda: Invoice.from_dict(data["createInvoice"]), "Failed to create invoice")

    def create_invoice_with_file(self, file_path: Path, input: CreateInvoiceInput) -> Invoice:
        return self._upload("POST", "invoices", file_path, input, "Failed to create invoice")

    def update_invoice(self, input: UpdateInvoiceInput) -> Invoice:
        data = self.graphql.execute(
            UPDATE_INVOICE_MUTATION,
            {"updateInvoiceInput": input.to_variables()},
            fallback_message="Failed to update invoice",
        )
        return _decode(lambda: Invoice.from_dict(data["updateInvoice"]), "Failed to update invoice")

    def update_invoice_with_file(
        self, invoice_id: int, file_path: Path, input: CreateInvoiceInput
    ) -> Invoice:
        return self._upload(
            "PUT", f"invoices/{invoice_id}", file_path, input, "Failed to update invoice"
        )

    def delete_invoice(self, invoice_id: int) -> bool:
        self.graphql.execute(
            REMOVE_INVOICE_MUTATION, {"id": invoice_id}, fallback_message="Failed to delete invoice"
        )
        return True

    def _upload(
        self,
        method: str,
        path: str,
        file_path: Path,
        input: CreateInvoiceInput,
        fallback_message: str,
    ) -> Invoice:
        content_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
        logger.info("Uploading %s (%s) to /%s", file_path.name, content_type, path)
        with file_path.open("rb") as handle:
            body = self.transport.request(
                method,
                self.transport.settings.rest_url(path),
                fallback_message,
                data=_upload_form(input),
                files={"file": (file_path.name, handle, content_type)},
            )
        if not isinstance(body, dict):
            raise ApiError(fallback_message)
        return _decode(lambda: Invoice.from_dict(body), fallback_message)
