"""
Keyed read cache with explicit invalidation.

Reads are identified by a tuple key built from the query parameters, e.g.
``("journals", "list", 1, 20, "", None)``. Writes go through `mutate`, which
drops every cached read under the given key prefixes once the write
succeeded, so the next read reflects the change.

One cache belongs to one application root (see `ServiceContainer`); it is
never shared across apps.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Tuple, TypeVar

from yayasan_erp.services.metrics import record_cache_event

logger = logging.getLogger(__name__)

T = TypeVar("T")
QueryKey = Tuple[Any, ...]


class QueryStatus(str, Enum):
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class QueryState:
    status: QueryStatus
    data: Any = None
    error: Optional[BaseException] = None
    updated_at: Optional[float] = None

    @property
    def is_loading(self) -> bool:
        return self.status == QueryStatus.LOADING

    @property
    def is_error(self) -> bool:
        return self.status == QueryStatus.ERROR


def _consume_exception(task: "asyncio.Task[Any]") -> None:
    # Callers that were cancelled never see a failed load; mark it retrieved
    if not task.cancelled():
        task.exception()


class QueryCache:
    def __init__(self, stale_after: float = 30.0, clock: Callable[[], float] = time.monotonic):
        self.stale_after = stale_after
        self._clock = clock
        self._entries: Dict[QueryKey, QueryState] = {}
        self._inflight: Dict[QueryKey, "asyncio.Task[Any]"] = {}

    def _is_fresh(self, state: QueryState) -> bool:
        if state.status != QueryStatus.SUCCESS or state.updated_at is None:
            return False
        return (self._clock() - state.updated_at) < self.stale_after

    def peek(self, key: Iterable[Any]) -> Optional[QueryState]:
        """Current state for a key without triggering a load."""
        return self._entries.get(tuple(key))

    async def fetch(
        self,
        key: Iterable[Any],
        loader: Callable[[], Awaitable[T]],
        force: bool = False,
    ) -> T:
        """
        Return cached data for `key`, loading it with `loader` when missing or stale.

        Concurrent fetches of the same key share a single load task. A caller
        that is cancelled stops waiting but never cancels the shared load. A
        failed load is recorded as an error state (keeping the last good data)
        and the exception is re-raised to every caller.
        """
        key = tuple(key)
        state = self._entries.get(key)
        if not force and state is not None and self._is_fresh(state):
            record_cache_event("hit")
            return state.data

        task = self._inflight.get(key)
        if task is not None:
            record_cache_event("shared")
        else:
            record_cache_event("miss")
            previous = state.data if state is not None else None
            previous_at = state.updated_at if state is not None else None
            self._entries[key] = QueryState(QueryStatus.LOADING, data=previous, updated_at=previous_at)
            task = asyncio.ensure_future(self._load(key, loader, state))
            task.add_done_callback(_consume_exception)
            self._inflight[key] = task
        return await asyncio.shield(task)

    async def _load(self, key: QueryKey, loader: Callable[[], Awaitable[T]], state: Optional[QueryState]) -> T:
        task = asyncio.current_task()
        previous = state.data if state is not None else None
        previous_at = state.updated_at if state is not None else None
        try:
            data = await loader()
        except asyncio.CancelledError:
            if self._inflight.get(key) is task:
                if state is not None:
                    self._entries[key] = state
                else:
                    self._entries.pop(key, None)
            raise
        except Exception as exc:
            logger.warning("Query %s failed: %s", key, exc)
            if self._inflight.get(key) is task:
                self._entries[key] = QueryState(
                    QueryStatus.ERROR, data=previous, error=exc, updated_at=previous_at
                )
            raise
        else:
            # An invalidation during the load makes this result stale already
            if self._inflight.get(key) is task:
                self._entries[key] = QueryState(QueryStatus.SUCCESS, data=data, updated_at=self._clock())
            return data
        finally:
            if self._inflight.get(key) is task:
                del self._inflight[key]

    def invalidate(self, prefix: Iterable[Any]) -> int:
        """Drop every cached read whose key starts with `prefix`. Returns how many were dropped."""
        prefix = tuple(prefix)
        size = len(prefix)
        matched = [key for key in set(self._entries) | set(self._inflight) if key[:size] == prefix]
        for key in matched:
            self._entries.pop(key, None)
            self._inflight.pop(key, None)
            record_cache_event("invalidated")
        if matched:
            logger.debug("Invalidated %d cached queries under %s", len(matched), prefix)
        return len(matched)

    async def mutate(
        self,
        mutation: Callable[[], Awaitable[T]],
        invalidates: Iterable[Iterable[Any]] = (),
    ) -> T:
        """Run a write; on success invalidate the given key prefixes. Failures invalidate nothing."""
        result = await mutation()
        for prefix in invalidates:
            self.invalidate(prefix)
        return result

    def clear(self) -> None:
        """Drop every entry and cancel loads still in flight."""
        for task in self._inflight.values():
            task.cancel()
        self._entries.clear()
        self._inflight.clear()

    def __len__(self) -> int:
        return len(self._entries)
