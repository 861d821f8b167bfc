"""Pytest configuration to make the local package importable without installation."""
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import requests

# Ensure repository root is on sys.path for module resolution
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from invoicedash.app import App, build_app
from invoicedash.core.config import Settings
from invoicedash.core.models import Invoice, InvoiceLine, InvoiceType

TOKEN = "tok-123"
PASSWORD = "Secret1!"
EXTRACTED_LINES = [
    {"id": 1, "content": "Consulting", "amount": 1200.0},
    {"id": 2, "content": "Travel", "amount": 300.5},
]


class FakeResponse:
    """Just enough of ``requests.Response`` for the transport."""

    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None) -> None:
        self.status_code = status_code
        if text is not None:
            self.content = text.encode("utf-8")
        elif payload is not None:
            self.content = json.dumps(payload).encode("utf-8")
        else:
            self.content = b""

    def json(self) -> Any:
        return json.loads(self.content.decode("utf-8"))


class FakeBackend:
    """In-memory invoicing API used in place of ``requests.Session``.

    Uploaded invoices start with a file path and no extracted lines; each
    ``GetInvoice`` read counts down ``extract_after`` until the lines appear.
    """

    def __init__(self) -> None:
        self.records: Dict[int, Dict[str, Any]] = {}
        self.extract_after: Dict[int, int] = {}
        self.fail_ids: set = set()
        self.calls: List[Dict[str, Any]] = []
        self.offline = False
        self.reads_before_extraction = 2
        self._next_id = 1

    # -- helpers for tests --------------------------------------------------

    def add(self, name: str = "invoice", file_path: Optional[str] = None, lines=None, **extra) -> Dict[str, Any]:
        record = {
            "id": self._next_id,
            "name": name,
            "filePath": file_path,
            "createdAt": "2024-03-01T09:00:00.000Z",
            "date": "2024-03-01T00:00:00.000Z",
            "type": "EMIS",
            "invoiceData": lines,
        }
        record.update(extra)
        self.records[record["id"]] = record
        self._next_id += 1
        return record

    def add_processing(self, name: str = "scan", reads: Optional[int] = None, **extra) -> Dict[str, Any]:
        record = self.add(name, file_path=f"uploads/{name}.pdf", lines=None, **extra)
        self.extract_after[record["id"]] = self.reads_before_extraction if reads is None else reads
        return record

    def operations(self) -> List[str]:
        names = []
        for call in self.calls:
            query = (call.get("json") or {}).get("query")
            if query:
                names.append(query.split("(")[0].split()[-1])
            else:
                names.append(f"{call['method']} {call['url']}")
        return names

    # -- requests.Session surface -------------------------------------------

    def request(self, method: str, url: str, headers=None, json=None, data=None, files=None, timeout=None):
        call = {"method": method, "url": url, "headers": headers or {}, "json": json, "data": data, "timeout": timeout}
        if files:
            name, handle, content_type = files["file"]
            call["file"] = (name, handle.read(), content_type)
        self.calls.append(call)

        if self.offline:
            raise requests.ConnectionError("connection refused")

        path = url.split("://", 1)[-1].split("/", 1)[-1]
        if path == "login":
            return self._login(json)
        if path == "register":
            return FakeResponse(201, {"id": 2, "email": json["email"], "firstName": json["firstName"], "token": TOKEN})
        if call["headers"].get("Authorization") != f"Bearer {TOKEN}":
            return FakeResponse(401, {"message": "Unauthorized", "statusCode": 401})
        if path == "logout":
            return FakeResponse(204)
        if path == "graphql":
            return self._graphql(json["query"], json.get("variables") or {})
        if path == "invoices" and method == "POST":
            record = self.add_processing(Path(call["file"][0]).stem)
            record.update(name=data["name"], type=data["type"], date=data["date"])
            return FakeResponse(201, record)
        if path.startswith("invoices/") and method == "PUT":
            record = self.records[int(path.split("/")[1])]
            record.update(name=data["name"], filePath=f"uploads/{call['file'][0]}", invoiceData=None)
            self.extract_after[record["id"]] = self.reads_before_extraction
            return FakeResponse(200, record)
        return FakeResponse(404, {"message": f"Cannot {method} /{path}"})

    def _login(self, body: Dict[str, Any]) -> FakeResponse:
        if body.get("password") != PASSWORD:
            return FakeResponse(401, {"message": "Invalid credentials", "statusCode": 401})
        return FakeResponse(
            200,
            {"id": 1, "email": body["email"], "firstName": "Ada", "lastName": "Lovelace", "access_token": TOKEN},
        )

    def _graphql(self, query: str, variables: Dict[str, Any]) -> FakeResponse:
        if query.lstrip().startswith("query GetInvoices"):
            page, limit = variables.get("page", 1), variables.get("limit", 10)
            ordered = sorted(self.records.values(), key=lambda item: item["id"], reverse=True)
            chunk = ordered[(page - 1) * limit : page * limit]
            total_pages = (len(ordered) + limit - 1) // limit
            return FakeResponse(
                200,
                {
                    "data": {
                        "invoices": {
                            "invoices": [dict(item) for item in chunk],
                            "total": len(ordered),
                            "page": page,
                            "limit": limit,
                            "totalPages": total_pages,
                        }
                    }
                },
            )
        if query.lstrip().startswith("query GetInvoice"):
            invoice_id = variables["id"]
            if invoice_id in self.fail_ids:
                return FakeResponse(500, {"message": "Internal server error"})
            record = self.records.get(invoice_id)
            if record is None:
                return FakeResponse(200, {"errors": [{"message": "Invoice not found"}], "data": None})
            self._advance_extraction(record)
            return FakeResponse(200, {"data": {"invoice": dict(record)}})
        if query.lstrip().startswith("mutation CreateInvoice"):
            payload = variables["createInvoiceInput"]
            record = self.add(payload["name"], type=payload["type"], date=payload["date"])
            return FakeResponse(200, {"data": {"createInvoice": dict(record)}})
        if query.lstrip().startswith("mutation UpdateInvoice"):
            payload = variables["updateInvoiceInput"]
            record = self.records[payload["id"]]
            record.update(name=payload["name"], type=payload["type"], date=payload["date"])
            return FakeResponse(200, {"data": {"updateInvoice": dict(record)}})
        if query.lstrip().startswith("mutation RemoveInvoice"):
            if self.records.pop(variables["id"], None) is None:
                return FakeResponse(200, {"errors": [{"message": "Invoice not found"}], "data": None})
            return FakeResponse(200, {"data": {"removeInvoice": True}})
        return FakeResponse(400, {"errors": [{"message": "Unknown operation"}]})

    def _advance_extraction(self, record: Dict[str, Any]) -> None:
        remaining = self.extract_after.get(record["id"])
        if remaining is None:
            return
        remaining -= 1
        if remaining <= 0:
            record["invoiceData"] = [dict(line, invoiceId=record["id"]) for line in EXTRACTED_LINES]
            del self.extract_after[record["id"]]
        else:
            self.extract_after[record["id"]] = remaining


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep local env files and overrides from leaking into tests."""

    import invoicedash.core.config as config

    monkeypatch.setattr(config, "_ENV_LOADED", True)
    # env files write straight into os.environ; give each test its own copy
    monkeypatch.setattr(os, "environ", os.environ.copy())
    for key in list(os.environ):
        if key.startswith("INVOICEDASH_"):
            del os.environ[key]


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at the fake backend with files under ``tmp_path``."""

    return Settings(
        graphql_url="http://api.test/graphql",
        api_url="http://api.test/",
        request_timeout=2.0,
        poll_interval_ms=10,
        session_file=tmp_path / "session.json",
        state_file=tmp_path / "invoices.json",
    )


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def app(settings: Settings, backend: FakeBackend) -> App:
    """A fully wired app talking to ``backend`` with a logged-in session."""

    built = build_app(settings=settings, http_session=backend)
    built.session.save(TOKEN)
    return built


@pytest.fixture
def make_invoice():
    """Factory for invoices in a given processing state."""

    def _make(invoice_id: int, state: str = "processing", **fields) -> Invoice:
        values: Dict[str, Any] = {"name": f"invoice-{invoice_id}", "type": InvoiceType.EMIS}
        if state in ("processing", "completed"):
            values["file_path"] = f"uploads/{invoice_id}.pdf"
        if state == "completed":
            values["invoice_data"] = [InvoiceLine(content="Consulting", amount=100.0)]
        values.update(fields)
        return Invoice(id=invoice_id, **values)

    return _make
