"""Keyed query cache with in-flight de-duplication and prefix invalidation."""

import asyncio
import copy
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Tuple

from area_admin.core.errors import ErrorKind

logger = logging.getLogger(__name__)

QueryKey = Tuple[Any, ...]
QueryFn = Callable[[], Awaitable[Any]]

DEFAULT_STALE_TIME = 30.0
DEFAULT_RETRY = 1
DEFAULT_MAX_ENTRIES = 1000


class QueryStatus(str, Enum):
    """Lifecycle of a single query key."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class QueryState:
    """What the cache knows about one key."""

    status: QueryStatus = QueryStatus.IDLE
    data: Any = None
    error: Optional[BaseException] = None
    updated_at: Optional[float] = None


def _matches(key: QueryKey, prefix: QueryKey) -> bool:
    return key[: len(prefix)] == tuple(prefix)


def _is_retryable(error: BaseException) -> bool:
    kind = getattr(error, "kind", None)
    if kind is ErrorKind.TRANSPORT:
        return True
    return kind is ErrorKind.HTTP and error.is_server_error


class QueryClient:
    """Process-wide cache of query results.

    Results are keyed by the full parameter tuple, so a response for one
    parameter set can never overwrite the entry of another. Only this class
    writes the cache: on a completed fetch, through ``set`` or through
    ``invalidate``.

    A client returned by ``scoped`` shares the cache but prefixes every key
    with its scope, so the entries of one browser session are never served
    to, joined by or invalidated from another. At most ``max_entries``
    entries are kept; the least recently used one is evicted first.
    """

    def __init__(
        self,
        stale_time: float = DEFAULT_STALE_TIME,
        retry: int = DEFAULT_RETRY,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.stale_time = stale_time
        self.retry = retry
        self.max_entries = max_entries
        self.scope: QueryKey = ()
        self._clock = clock
        self._states: "OrderedDict[QueryKey, QueryState]" = OrderedDict()
        self._in_flight: Dict[QueryKey, "asyncio.Task[Any]"] = {}

    def scoped(self, *scope: Any) -> "QueryClient":
        """Return a client over the same cache whose keys start with ``scope``."""
        view = copy.copy(self)
        view.scope = self.scope + scope
        return view

    def size(self) -> int:
        """Number of cached entries in this client's scope."""
        return sum(1 for key in self._states if _matches(key, self.scope))

    def _key(self, key: QueryKey) -> QueryKey:
        return self.scope + tuple(key)

    def _store(self, full_key: QueryKey, state: QueryState) -> None:
        self._states[full_key] = state
        self._states.move_to_end(full_key)
        while len(self._states) > self.max_entries:
            evicted, _ = self._states.popitem(last=False)
            logger.debug(f"Evicted cached query {evicted}")

    def state(self, key: QueryKey) -> QueryState:
        """Current state of a key; unknown keys are idle."""
        return self._states.get(self._key(key), QueryState())

    def get(self, key: QueryKey) -> Any:
        """Return the cached data for a key, or None."""
        return self.state(key).data

    def set(self, key: QueryKey, value: Any) -> None:
        """Store data for a key as a fresh successful result."""
        self._store(
            self._key(key),
            QueryState(status=QueryStatus.SUCCESS, data=value, updated_at=self._clock()),
        )

    def is_fresh(self, key: QueryKey) -> bool:
        return self._is_fresh(self._key(key))

    def _is_fresh(self, full_key: QueryKey) -> bool:
        state = self._states.get(full_key)
        if state is None or state.status is not QueryStatus.SUCCESS:
            return False
        return self._clock() - state.updated_at < self.stale_time

    def is_fetching(self, key: QueryKey) -> bool:
        return self._key(key) in self._in_flight

    def invalidate(self, prefix: QueryKey) -> int:
        """Drop every entry whose key starts with ``prefix``.

        Fetches in flight for a matching key still resolve their callers but
        no longer write their result into the cache.

        Returns:
            int: Number of cached entries dropped.
        """
        full_prefix = self._key(prefix)
        stale_keys = [key for key in self._states if _matches(key, full_prefix)]
        for key in stale_keys:
            del self._states[key]
        for key in [key for key in self._in_flight if _matches(key, full_prefix)]:
            del self._in_flight[key]

        logger.info(f"Invalidated {len(stale_keys)} cached queries for prefix {tuple(prefix)}")
        return len(stale_keys)

    def clear(self) -> None:
        """Drop every entry of this client's scope."""
        self.invalidate(())

    async def fetch_query(self, key: QueryKey, fn: QueryFn, force: bool = False) -> Any:
        """Return data for ``key``, fetching it with ``fn`` when needed.

        Fresh cached data is returned as-is unless ``force`` is set. Otherwise
        concurrent callers for the same key share a single call to ``fn``.
        """
        full_key = self._key(key)
        if not force and self._is_fresh(full_key):
            logger.debug(f"Cache hit for {key}")
            self._states.move_to_end(full_key)
            return self._states[full_key].data

        task = self._in_flight.get(full_key)
        if task is None:
            logger.debug(f"Cache miss for {key}, fetching")
            previous = self._states.get(full_key, QueryState())
            self._store(
                full_key,
                QueryState(
                    status=QueryStatus.LOADING,
                    data=previous.data,
                    updated_at=previous.updated_at,
                ),
            )
            task = asyncio.ensure_future(self._run(full_key, fn))
            self._in_flight[full_key] = task

        return await asyncio.shield(task)

    async def _run(self, key: QueryKey, fn: QueryFn) -> Any:
        attempt = 0
        while True:
            try:
                data = await fn()
                break
            except Exception as e:
                if attempt < self.retry and _is_retryable(e):
                    attempt += 1
                    logger.warning(f"Query {key} failed ({e}), retrying ({attempt}/{self.retry})")
                    continue
                self._finish(key, QueryState(status=QueryStatus.ERROR, error=e))
                raise

        self._finish(
            key,
            QueryState(status=QueryStatus.SUCCESS, data=data, updated_at=self._clock()),
        )
        return data

    def _finish(self, key: QueryKey, state: QueryState) -> None:
        current = asyncio.current_task()
        if self._in_flight.get(key) is not current:
            # Invalidated while in flight.
            return
        del self._in_flight[key]
        if state.status is QueryStatus.ERROR:
            previous = self._states.get(key, QueryState())
            state.data = previous.data
            state.updated_at = previous.updated_at
        self._store(key, state)

    async def mutate(
        self,
        fn: Callable[..., Awaitable[Any]],
        *args: Any,
        invalidate: Iterable[QueryKey] = (),
    ) -> Any:
        """Run a mutation, then invalidate the given prefixes.

        Invalidation happens only after the mutation completed successfully;
        a failed mutation propagates its error and leaves the cache alone.
        """
        result = await fn(*args)
        for prefix in invalidate:
            self.invalidate(prefix)
        return result
