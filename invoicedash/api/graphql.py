"""GraphQL documents and a minimal JSON-over-HTTP executor."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from invoicedash.api.errors import ApiError
from invoicedash.api.transport import HttpTransport

logger = logging.getLogger(__name__)

INVOICE_FIELDS = """
    id
    name
    filePath
    createdAt
    date
    type
    invoiceData {
      id
      content
      amount
    }
"""

GET_INVOICES_QUERY = f"""
query GetInvoices($page: Int = 1, $limit: Int = 10) {{
  invoices(page: $page, limit: $limit) {{
    invoices {{{INVOICE_FIELDS}}}
    total
    page
    limit
    totalPages
  }}
}}
"""

GET_INVOICE_QUERY = f"""
query GetInvoice($id: Int!) {{
  invoice(id: $id) {{{INVOICE_FIELDS}}}
}}
"""

CREATE_INVOICE_MUTATION = """
mutation CreateInvoice($createInvoiceInput: CreateInvoiceInput!) {
  createInvoice(createInvoiceInput: $createInvoiceInput) {
    id
    name
    filePath
    createdAt
    date
    type
  }
}
"""

UPDATE_INVOICE_MUTATION = """
mutation UpdateInvoice($updateInvoiceInput: UpdateInvoiceInput!) {
  updateInvoice(updateInvoiceInput: $updateInvoiceInput) {
    id
    name
    filePath
    createdAt
    date
    type
  }
}
"""

REMOVE_INVOICE_MUTATION = """
mutation RemoveInvoice($id: Int!) {
  removeInvoice(id: $id)
}
"""


class GraphQLClient:
    """Execute GraphQL documents against the configured endpoint."""

    def __init__(self, transport: HttpTransport) -> None:
        self.transport = transport

    def execute(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        fallback_message: str = "GraphQL request failed",
    ) -> Dict[str, Any]:
        """Return the ``data`` object, raising ``ApiError`` on any reported error."""

        body = self.transport.request(
            "POST",
            self.transport.settings.graphql_url,
            fallback_message,
            json={"query": query, "variables": variables or {}},
        )
        if not isinstance(body, dict):
            raise ApiError(fallback_message)

        errors = body.get("errors") or []
        if errors:
            first = errors[0] if isinstance(errors[0], dict) else {}
            message = first.get("message") or fallback_message
            logger.warning("GraphQL error: %s", message)
            raise ApiError(message)

        data = body.get("data")
        if not isinstance(data, dict):
            raise ApiError(fallback_message)
        return data
