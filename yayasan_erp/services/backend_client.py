"""
ERP Backend Client

Thin async client for the Yayasan ERP REST API. All business rules live in
the backend; this client only builds requests, unwraps the response
envelope and turns failures into typed errors.

Envelope:
    success: {"success": true, "message": "...", "data": {...}}
    failure: {"success": false, "error": "...", "code": 400}
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

from yayasan_erp.core.config import Settings
from yayasan_erp.models.accounts import Account
from yayasan_erp.models.journal_entries import JournalPage, JournalSummary, ReviewAction
from yayasan_erp.services.errors import (
    BackendAuthError,
    BackendRejectedError,
    BackendUnavailableError,
    NotFoundError,
)
from yayasan_erp.services.validation import JournalEntryInput

logger = logging.getLogger(__name__)


class BackendClient:
    """
    Client for the ERP backend.

    Endpoints used by the finance screens:
    - /accounts: chart of accounts (populates the account selector)
    - /journals: journal list, detail, create and delete
    - /journals/{id}/submit|review|post|unpost: journal workflow
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.base_url = base_url
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "BackendClient":
        return cls(
            base_url=settings.api_base_url,
            token=settings.api_token,
            timeout=settings.api_timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    # ==================== TRANSPORT ====================

    @staticmethod
    def _decode(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {"error": response.text.strip() or response.reason_phrase}
        if isinstance(body, dict):
            return body
        return {"data": body}

    @staticmethod
    def _raise_for(status: int, body: Dict[str, Any], path: str, resource: str) -> None:
        detail = body.get("error") or body.get("message") or None
        if status == 404:
            raise NotFoundError(resource, detail=detail, path=path)
        if status in (401, 403):
            raise BackendAuthError(status, detail=detail, path=path)
        if status >= 500:
            raise BackendUnavailableError(detail or f"HTTP {status}", status=status, path=path)
        raise BackendRejectedError(status, detail=detail, path=path)

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        resource: str = "Resource",
    ) -> Any:
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            logger.warning("Backend %s %s failed: %s", method, path, exc)
            raise BackendUnavailableError(str(exc) or exc.__class__.__name__, path=path) from exc

        body = self._decode(response)
        if response.status_code >= 400:
            logger.info("Backend %s %s returned %s", method, path, response.status_code)
            self._raise_for(response.status_code, body, path, resource)
        if body.get("success") is False:
            # Some handlers answer 200 with a failure envelope
            self._raise_for(int(body.get("code") or 400), body, path, resource)
        return body.get("data")

    # ==================== PARSING ====================

    @staticmethod
    def _journal(data: Any) -> JournalSummary:
        payload = dict(data or {})
        if "items" not in payload and "journal_lines" in payload:
            payload["items"] = payload.pop("journal_lines") or []
        return JournalSummary.model_validate(payload)

    @classmethod
    def _journal_page(cls, data: Any, page: int, page_size: int) -> JournalPage:
        if isinstance(data, list):
            rows, meta = data, {}
        else:
            meta = dict(data or {})
            rows = meta.get("journals") or meta.get("data") or meta.get("items") or []
        total = int(meta.get("total", len(rows)))
        size = int(meta.get("page_size") or page_size)
        total_pages = meta.get("total_pages")
        if total_pages is None:
            total_pages = (total + size - 1) // size if size else 0
        return JournalPage(
            items=[cls._journal(row) for row in rows],
            total=total,
            page=int(meta.get("page") or page),
            page_size=size,
            total_pages=int(total_pages),
        )

    # ==================== ACCOUNTS ====================

    async def list_accounts(self) -> List[Account]:
        data = await self._request("GET", "/accounts", resource="Accounts")
        if isinstance(data, dict):
            data = data.get("accounts") or data.get("data") or []
        return [Account.model_validate(row) for row in data or []]

    # ==================== JOURNALS ====================

    async def list_journals(
        self,
        page: int = 1,
        page_size: int = 20,
        search: str = "",
        status: Optional[str] = None,
    ) -> JournalPage:
        params: Dict[str, Any] = {"page": page, "page_size": page_size}
        if search:
            params["search"] = search
        path = f"/journals/status/{status}" if status else "/journals"
        data = await self._request("GET", path, params=params, resource="Journals")
        return self._journal_page(data, page, page_size)

    async def get_journal(self, journal_id: str) -> JournalSummary:
        data = await self._request("GET", f"/journals/{journal_id}", resource="Journal")
        return self._journal(data)

    async def create_journal(self, entry: JournalEntryInput) -> JournalSummary:
        data = await self._request(
            "POST", "/journals", json=entry.model_dump(mode="json"), resource="Journal"
        )
        return self._journal(data)

    async def delete_journal(self, journal_id: str) -> None:
        await self._request("DELETE", f"/journals/{journal_id}", resource="Journal")

    async def submit_journal(self, journal_id: str, notes: str = "") -> JournalSummary:
        data = await self._request(
            "POST", f"/journals/{journal_id}/submit", json={"notes": notes}, resource="Journal"
        )
        return self._journal(data)

    async def review_journal(
        self, journal_id: str, action: ReviewAction, notes: str = ""
    ) -> JournalSummary:
        data = await self._request(
            "POST",
            f"/journals/{journal_id}/review",
            json={"action": ReviewAction(action).value, "notes": notes},
            resource="Journal",
        )
        return self._journal(data)

    async def post_journal(self, journal_id: str, post_date: date) -> JournalSummary:
        data = await self._request(
            "POST",
            f"/journals/{journal_id}/post",
            json={"post_date": post_date.isoformat()},
            resource="Journal",
        )
        return self._journal(data)

    async def unpost_journal(self, journal_id: str) -> JournalSummary:
        data = await self._request("POST", f"/journals/{journal_id}/unpost", resource="Journal")
        return self._journal(data)
