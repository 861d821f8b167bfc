"""Data models for invoices, users, and dashboard aggregates."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from invoicedash.core.utils import format_timestamp, parse_timestamp


class InvoiceType(str, Enum):
    """Direction of an invoice: issued to a client or received from a supplier."""

    EMIS = "EMIS"
    RECUS = "RECUS"


@dataclass(frozen=True)
class InvoiceLine:
    """A single line item extracted from the source document by OCR + LLM."""

    content: str
    amount: float
    id: Optional[int] = None
    invoice_id: Optional[int] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "InvoiceLine":
        return cls(
            content=payload.get("content") or "",
            amount=float(payload.get("amount") or 0),
            id=payload.get("id"),
            invoice_id=payload.get("invoiceId"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "amount": self.amount,
            "invoiceId": self.invoice_id,
        }


@dataclass(frozen=True)
class Invoice:
    """Canonical invoice record as returned by the backend.

    ``invoice_data`` is filled asynchronously once extraction finishes, so it
    stays ``None`` (or empty) while the document is being processed.
    """

    id: int
    name: str = ""
    file_path: Optional[str] = None
    invoice_data: Optional[List[InvoiceLine]] = None
    type: InvoiceType = InvoiceType.EMIS
    created_at: Optional[datetime] = None
    date: Optional[datetime] = None
    user_id: Optional[int] = None

    @property
    def total_amount(self) -> float:
        return round(sum(line.amount for line in self.invoice_data or []), 2)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Invoice":
        raw_lines = payload.get("invoiceData")
        lines = [InvoiceLine.from_dict(item) for item in raw_lines] if raw_lines is not None else None
        return cls(
            id=int(payload["id"]),
            name=payload.get("name") or "",
            file_path=payload.get("filePath"),
            invoice_data=lines,
            type=InvoiceType(payload.get("type") or InvoiceType.EMIS.value),
            created_at=parse_timestamp(payload.get("createdAt")),
            date=parse_timestamp(payload.get("date")),
            user_id=payload.get("userId"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return the backend-shaped dictionary used for persistence."""

        return {
            "id": self.id,
            "name": self.name,
            "filePath": self.file_path,
            "invoiceData": (
                [line.to_dict() for line in self.invoice_data] if self.invoice_data is not None else None
            ),
            "type": self.type.value,
            "createdAt": format_timestamp(self.created_at),
            "date": format_timestamp(self.date),
            "userId": self.user_id,
        }


@dataclass
class CreateInvoiceInput:
    name: str
    date: datetime
    type: InvoiceType = InvoiceType.EMIS
    tag_ids: List[int] = field(default_factory=list)

    def to_variables(self) -> Dict[str, Any]:
        """GraphQL input shape; extracted lines are never sent by the client."""

        variables: Dict[str, Any] = {
            "name": self.name,
            "date": self.date.isoformat(),
            "type": self.type.value,
        }
        if self.tag_ids:
            variables["tagIds"] = list(self.tag_ids)
        return variables


@dataclass
class UpdateInvoiceInput(CreateInvoiceInput):
    id: int = 0

    def to_variables(self) -> Dict[str, Any]:
        variables = super().to_variables()
        variables["id"] = self.id
        return variables


@dataclass(frozen=True)
class Pagination:
    page: int = 1
    limit: int = 10
    total: int = 0
    total_pages: int = 0

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Pagination":
        return cls(
            page=int(payload.get("page", 1)),
            limit=int(payload.get("limit", 10)),
            total=int(payload.get("total", 0)),
            total_pages=int(payload.get("totalPages", 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
        }


@dataclass(frozen=True)
class PaginatedInvoices:
    invoices: List[Invoice]
    pagination: Pagination

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "PaginatedInvoices":
        return cls(
            invoices=[Invoice.from_dict(item) for item in payload.get("invoices") or []],
            pagination=Pagination.from_dict(payload),
        )


@dataclass(frozen=True)
class User:
    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    token: str = ""

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "User":
        return cls(
            id=str(payload.get("id", "")),
            email=payload.get("email") or "",
            first_name=payload.get("firstName") or "",
            last_name=payload.get("lastName") or "",
            token=payload.get("token") or payload.get("access_token") or "",
        )

    @property
    def display_name(self) -> str:
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.email


@dataclass
class LoginCredentials:
    email: str
    password: str
    remember_me: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"email": self.email, "password": self.password, "rememberMe": self.remember_me}


@dataclass
class RegisterCredentials:
    email: str
    password: str
    first_name: str
    last_name: str
    accept_terms: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "password": self.password,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "acceptTerms": self.accept_terms,
        }


@dataclass(frozen=True)
class InvoiceStats:
    total_invoices: int = 0
    completed: int = 0
    processing: int = 0
    uploaded: int = 0
    revenue: float = 0.0
    expenses: float = 0.0


@dataclass(frozen=True)
class MonthlyRevenue:
    month: str
    revenue: float


@dataclass(frozen=True)
class ExpenseCategory:
    category: str
    amount: float


def replace_invoice(invoices: Iterable[Invoice], updated: Invoice) -> List[Invoice]:
    """Return a new list with the entry matching ``updated.id`` swapped in."""

    return [updated if invoice.id == updated.id else invoice for invoice in invoices]
