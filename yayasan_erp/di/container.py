"""Dependency injection container for the services of one application root."""
from typing import Optional

import httpx

from yayasan_erp.core.config import Settings
from yayasan_erp.services.backend_client import BackendClient
from yayasan_erp.services.journal_form import SubmissionGuard
from yayasan_erp.services.journals import JournalService
from yayasan_erp.services.query_cache import QueryCache


class ServiceContainer:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self._transport = transport
        self._backend = None
        self._cache = None
        self._journals = None
        self._submissions = None

    def backend(self) -> BackendClient:
        if self._backend is None:
            self._backend = BackendClient.from_settings(self.settings, transport=self._transport)
        return self._backend

    def cache(self) -> QueryCache:
        if self._cache is None:
            self._cache = QueryCache(stale_after=self.settings.cache_stale_seconds)
        return self._cache

    def journals(self) -> JournalService:
        if self._journals is None:
            self._journals = JournalService(
                client=self.backend(),
                cache=self.cache(),
                default_page_size=self.settings.default_page_size,
                max_page_size=self.settings.max_page_size,
            )
        return self._journals

    def submissions(self) -> SubmissionGuard:
        if self._submissions is None:
            self._submissions = SubmissionGuard()
        return self._submissions

    async def aclose(self) -> None:
        if self._cache is not None:
            self._cache.clear()
        if self._backend is not None:
            await self._backend.aclose()
            self._backend = None
            self._journals = None
