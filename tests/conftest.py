from __future__ import annotations

import asyncio
import json
import sys
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from yayasan_erp.core.config import Settings
from yayasan_erp.models.accounts import Account
from yayasan_erp.models.journal_entries import JournalEntryDraft
from yayasan_erp.services.backend_client import BackendClient
from yayasan_erp.services.journals import JournalService
from yayasan_erp.services.metrics import reset_metrics
from yayasan_erp.services.query_cache import QueryCache

BASE_URL = "http://backend.test/api/v1"
API_PREFIX = "/api/v1"

ACCOUNTS: List[Dict[str, Any]] = [
    {"id": 1, "code": "1000", "name": "Aset", "is_header": True, "is_active": True},
    {"id": 3, "code": "4101", "name": "Pendapatan SPP", "is_header": False, "is_active": True},
    {"id": 2, "code": "1101", "name": "Kas", "is_header": False, "is_active": True},
    {"id": 4, "code": "1102", "name": "Bank Lama", "is_header": False, "is_active": False},
]


def _ok(data: Any, status: int = 200, message: str = "OK") -> httpx.Response:
    return httpx.Response(status, json={"success": True, "message": message, "data": data})


def _fail(status: int, error: str) -> httpx.Response:
    return httpx.Response(status, json={"success": False, "error": error, "code": status})


class FakeBackend:
    """In-memory stand-in for the ERP REST API, served through httpx.MockTransport."""

    def __init__(self):
        self.requests: List[Dict[str, Any]] = []
        self.journals: Dict[str, Dict[str, Any]] = {}
        self.fail_writes: Optional[int] = None
        self.fail_reads: Optional[int] = None
        self._next_id = 1

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: str, route: str) -> int:
        return sum(1 for r in self.requests if r["method"] == method and r["route"] == route)

    def add_journal(self, **fields) -> Dict[str, Any]:
        journal_id = str(self._next_id)
        record = {
            "id": journal_id,
            "journal_number": f"JU/2026/10/{self._next_id:04d}",
            "journal_date": "2026-10-19T00:00:00Z",
            "description": "Penerimaan SPP Oktober",
            "reference_no": None,
            "branch_id": 1,
            "branch_name": "Pusat",
            "total_debit": 0,
            "total_credit": 0,
            "status": "draft",
            "created_by_name": "Bendahara",
            "created_at": "2026-10-19T08:15:00Z",
            "journal_lines": [],
        }
        record.update(fields)
        self.journals[journal_id] = record
        self._next_id += 1
        return record

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        route = request.url.path[len(API_PREFIX):]
        self.requests.append({
            "method": request.method,
            "route": route,
            "params": dict(request.url.params),
            "json": body,
            "headers": dict(request.headers),
        })
        parts = route.strip("/").split("/")

        if request.method == "GET":
            if self.fail_reads:
                return _fail(self.fail_reads, "Read failed")
            if parts == ["accounts"]:
                return _ok(ACCOUNTS)
            if parts == ["journals"]:
                return self._list(request, status=None)
            if parts[:2] == ["journals", "status"]:
                return self._list(request, status=parts[2])
            if len(parts) == 2 and parts[0] == "journals":
                journal = self.journals.get(parts[1])
                if journal is None:
                    return _fail(404, "Journal not found")
                return _ok(journal)

        if self.fail_writes:
            return _fail(self.fail_writes, "Journal could not be saved")

        if request.method == "POST" and parts == ["journals"]:
            items = body["items"]
            record = self.add_journal(
                journal_date=body["journal_date"] + "T00:00:00Z",
                description=body["description"],
                reference_no=body.get("reference_no"),
                total_debit=sum(item["debit"] for item in items),
                total_credit=sum(item["credit"] for item in items),
                journal_lines=[{"id": str(i + 1), **item} for i, item in enumerate(items)],
            )
            return _ok(record, status=201, message="Journal created")

        if len(parts) >= 2 and parts[0] == "journals":
            journal = self.journals.get(parts[1])
            if journal is None:
                return _fail(404, "Journal not found")
            if request.method == "DELETE" and len(parts) == 2:
                del self.journals[parts[1]]
                return _ok(None, message="Journal deleted")
            action = parts[2] if len(parts) == 3 else None
            if action == "submit":
                journal["status"] = "pending"
            elif action == "review":
                journal["status"] = "approved" if body["action"] == "approve" else "rejected"
            elif action == "post":
                journal["status"] = "posted"
            elif action == "unpost":
                journal["status"] = "approved"
            else:
                return _fail(400, "Unsupported action")
            return _ok(journal)

        return _fail(404, "Route not found")

    def _list(self, request: httpx.Request, status: Optional[str]) -> httpx.Response:
        page = int(request.url.params.get("page", 1))
        page_size = int(request.url.params.get("page_size", 20))
        search = request.url.params.get("search", "").lower()
        rows = [
            j for j in self.journals.values()
            if (status is None or j["status"] == status)
            and (not search or search in j["description"].lower())
        ]
        start = (page - 1) * page_size
        return _ok({
            "journals": rows[start:start + page_size],
            "total": len(rows),
            "page": page,
            "page_size": page_size,
            "total_pages": (len(rows) + page_size - 1) // page_size,
        })


@pytest.fixture(autouse=True)
def clean_metrics():
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def accounts() -> List[Account]:
    return [Account.model_validate(row) for row in ACCOUNTS]


@pytest.fixture()
def settings() -> Settings:
    return Settings(api_base_url=BASE_URL, api_token="test-token")


@pytest.fixture()
def client(backend, settings):
    from fastapi.testclient import TestClient

    from main import create_app

    app = create_app(settings=settings, transport=backend.transport)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def run_service(backend):
    """Run `scenario(service)` against the fake backend on a fresh event loop."""

    def _run(scenario, transport: Optional[httpx.AsyncBaseTransport] = None):
        async def _main():
            client = BackendClient(BASE_URL, token="test-token", transport=transport or backend.transport)
            service = JournalService(client, QueryCache())
            try:
                return await scenario(service)
            finally:
                await client.aclose()

        return asyncio.run(_main())

    return _run


def line(account_id: str = "2", description: str = "Kas masuk", debit: Any = 0, credit: Any = 0) -> Dict[str, Any]:
    return {"account_id": account_id, "description": description, "debit": debit, "credit": credit}


@pytest.fixture()
def make_draft():
    """Build a JournalEntryDraft; `items` defaults to a balanced 5.000.000 receipt."""

    def _make(items=None, **fields) -> JournalEntryDraft:
        payload = {
            "form_id": "form-1",
            "journal_date": "2026-10-19",
            "description": "Penerimaan SPP Oktober",
            "reference_no": "KW-001",
            "items": items if items is not None else [
                line("2", "Kas masuk", debit=Decimal("5000000")),
                line("3", "SPP Oktober", credit=Decimal("5000000")),
            ],
        }
        payload.update(fields)
        return JournalEntryDraft.model_validate(payload)

    return _make


@pytest.fixture()
def draft_json():
    """JSON body for the journal form endpoints."""

    def _make(items=None, **fields) -> Dict[str, Any]:
        payload = {
            "form_id": "form-1",
            "journal_date": "2026-10-19",
            "description": "Penerimaan SPP Oktober",
            "reference_no": "KW-001",
            "items": items if items is not None else [
                line("2", "Kas masuk", debit=5000000),
                line("3", "SPP Oktober", credit=5000000),
            ],
        }
        payload.update(fields)
        return payload

    return _make
