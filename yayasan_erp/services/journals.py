"""
Journal and account reads/writes for the finance screens.

Reads go through the query cache keyed by their parameters; writes are
mutations that invalidate every cached ``("journals", ...)`` read so lists
and detail pages reflect the change on the next request.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from yayasan_erp.models.accounts import Account
from yayasan_erp.models.journal_entries import JournalPage, JournalSummary, ReviewAction
from yayasan_erp.services.backend_client import BackendClient
from yayasan_erp.services.query_cache import QueryCache
from yayasan_erp.services.validation import JournalEntryInput

logger = logging.getLogger(__name__)

ACCOUNTS_KEY = ("accounts",)
JOURNALS_KEY = ("journals",)


class JournalService:
    def __init__(
        self,
        client: BackendClient,
        cache: QueryCache,
        default_page_size: int = 20,
        max_page_size: int = 100,
    ) -> None:
        self.client = client
        self.cache = cache
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    # ---- reads ----

    async def accounts(self) -> List[Account]:
        return await self.cache.fetch(ACCOUNTS_KEY, self.client.list_accounts)

    async def selectable_accounts(self) -> List[Account]:
        """Postable (active, non-header) accounts ordered by code."""
        accounts = await self.accounts()
        return sorted((acc for acc in accounts if acc.is_postable), key=lambda acc: acc.code)

    async def list_journals(
        self,
        page: int = 1,
        page_size: Optional[int] = None,
        search: str = "",
        status: Optional[str] = None,
    ) -> JournalPage:
        page = max(1, page)
        size = page_size or self.default_page_size
        size = max(1, min(size, self.max_page_size))
        search = (search or "").strip()
        status = status if status and status != "all" else None
        key = JOURNALS_KEY + ("list", page, size, search, status)
        return await self.cache.fetch(
            key, lambda: self.client.list_journals(page=page, page_size=size, search=search, status=status)
        )

    async def get_journal(self, journal_id: str) -> JournalSummary:
        key = JOURNALS_KEY + ("detail", journal_id)
        return await self.cache.fetch(key, lambda: self.client.get_journal(journal_id))

    # ---- writes ----

    async def create_journal(self, entry: JournalEntryInput) -> JournalSummary:
        journal = await self.cache.mutate(
            lambda: self.client.create_journal(entry), invalidates=[JOURNALS_KEY]
        )
        logger.info("Created journal %s (%s)", journal.journal_number or journal.id, journal.id)
        return journal

    async def delete_journal(self, journal_id: str) -> None:
        await self.cache.mutate(lambda: self.client.delete_journal(journal_id), invalidates=[JOURNALS_KEY])

    async def submit_for_review(self, journal_id: str, notes: str = "") -> JournalSummary:
        return await self.cache.mutate(
            lambda: self.client.submit_journal(journal_id, notes), invalidates=[JOURNALS_KEY]
        )

    async def review(self, journal_id: str, action: ReviewAction, notes: str = "") -> JournalSummary:
        return await self.cache.mutate(
            lambda: self.client.review_journal(journal_id, action, notes), invalidates=[JOURNALS_KEY]
        )

    async def post(self, journal_id: str, post_date: Optional[date] = None) -> JournalSummary:
        return await self.cache.mutate(
            lambda: self.client.post_journal(journal_id, post_date or date.today()),
            invalidates=[JOURNALS_KEY],
        )

    async def unpost(self, journal_id: str) -> JournalSummary:
        return await self.cache.mutate(
            lambda: self.client.unpost_journal(journal_id), invalidates=[JOURNALS_KEY]
        )
