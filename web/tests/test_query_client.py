"""Tests for the query cache."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from area_admin.core.errors import HttpError, TransportError
from area_admin.services.query_client import QueryClient, QueryStatus


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


@pytest.mark.asyncio
async def test_concurrent_fetches_share_one_call():
    """Callers of the same key await the same in-flight request."""
    query_client = QueryClient()
    gate = asyncio.Event()
    calls = 0

    async def fetch():
        nonlocal calls
        calls += 1
        await gate.wait()
        return "page"

    first = asyncio.ensure_future(query_client.fetch_query(("areas", 1), fetch))
    second = asyncio.ensure_future(query_client.fetch_query(("areas", 1), fetch))
    await asyncio.sleep(0)
    assert query_client.state(("areas", 1)).status is QueryStatus.LOADING
    assert query_client.is_fetching(("areas", 1))

    gate.set()
    results = await asyncio.gather(first, second)

    assert results == ["page", "page"]
    assert calls == 1
    assert query_client.state(("areas", 1)).status is QueryStatus.SUCCESS


@pytest.mark.asyncio
async def test_different_keys_fetch_separately():
    query_client = QueryClient()
    fetch = AsyncMock(side_effect=["one", "two"])

    assert await query_client.fetch_query(("areas", 1), fetch) == "one"
    assert await query_client.fetch_query(("areas", 2), fetch) == "two"
    assert fetch.await_count == 2


@pytest.mark.asyncio
async def test_fresh_data_is_served_until_stale():
    clock = FakeClock()
    query_client = QueryClient(stale_time=30.0, clock=clock)
    fetch = AsyncMock(side_effect=["first", "second"])

    assert await query_client.fetch_query(("area", "x"), fetch) == "first"
    clock.now += 10
    assert await query_client.fetch_query(("area", "x"), fetch) == "first"
    assert fetch.await_count == 1

    clock.now += 30
    assert await query_client.fetch_query(("area", "x"), fetch) == "second"
    assert fetch.await_count == 2


@pytest.mark.asyncio
async def test_force_bypasses_fresh_data():
    query_client = QueryClient()
    fetch = AsyncMock(side_effect=["first", "second"])

    await query_client.fetch_query(("areas", 1), fetch)
    assert await query_client.fetch_query(("areas", 1), fetch, force=True) == "second"


def test_invalidate_matches_key_prefix():
    query_client = QueryClient()
    query_client.set(("areas", (1, 10)), "page 1")
    query_client.set(("areas", (2, 10)), "page 2")
    query_client.set(("area", "xyz"), "record")

    dropped = query_client.invalidate(("areas",))

    assert dropped == 2
    assert query_client.get(("areas", (1, 10))) is None
    assert query_client.get(("areas", (2, 10))) is None
    assert query_client.get(("area", "xyz")) == "record"
    assert query_client.state(("areas", (1, 10))).status is QueryStatus.IDLE


@pytest.mark.asyncio
async def test_fetch_invalidated_in_flight_is_not_cached():
    query_client = QueryClient()
    gate = asyncio.Event()

    async def fetch():
        await gate.wait()
        return "old"

    pending = asyncio.ensure_future(query_client.fetch_query(("areas", 1), fetch))
    await asyncio.sleep(0)
    query_client.invalidate(("areas",))
    gate.set()

    assert await pending == "old"
    assert query_client.get(("areas", 1)) is None
    assert not query_client.is_fetching(("areas", 1))


@pytest.mark.asyncio
async def test_transport_errors_are_retried():
    query_client = QueryClient(retry=1)
    fetch = AsyncMock(side_effect=[TransportError("down"), "page"])

    assert await query_client.fetch_query(("areas", 1), fetch) == "page"
    assert fetch.await_count == 2


@pytest.mark.asyncio
async def test_client_errors_are_not_retried():
    query_client = QueryClient(retry=1)
    fetch = AsyncMock(side_effect=HttpError(404, {"detail": "Not found."}, "Not Found"))

    with pytest.raises(HttpError):
        await query_client.fetch_query(("area", "missing"), fetch)

    assert fetch.await_count == 1
    state = query_client.state(("area", "missing"))
    assert state.status is QueryStatus.ERROR
    assert isinstance(state.error, HttpError)


@pytest.mark.asyncio
async def test_failed_refetch_keeps_previous_data():
    clock = FakeClock()
    query_client = QueryClient(stale_time=1.0, retry=0, clock=clock)
    fetch = AsyncMock(side_effect=["page", HttpError(500, None, "Internal Server Error")])

    await query_client.fetch_query(("areas", 1), fetch)
    clock.now += 5
    with pytest.raises(HttpError):
        await query_client.fetch_query(("areas", 1), fetch)

    assert query_client.state(("areas", 1)).status is QueryStatus.ERROR
    assert query_client.get(("areas", 1)) == "page"


@pytest.mark.asyncio
async def test_mutation_invalidates_after_completion():
    query_client = QueryClient()
    query_client.set(("areas", 1), "page")

    async def mutation(value):
        # The cache is untouched while the mutation runs.
        assert query_client.get(("areas", 1)) == "page"
        return value * 2

    with patch.object(query_client, "invalidate", wraps=query_client.invalidate) as invalidate:
        result = await query_client.mutate(mutation, 21, invalidate=[("areas",)])

    assert result == 42
    invalidate.assert_called_once_with(("areas",))
    assert query_client.get(("areas", 1)) is None


@pytest.mark.asyncio
async def test_failed_mutation_does_not_invalidate():
    query_client = QueryClient()
    query_client.set(("areas", 1), "page")
    mutation = AsyncMock(side_effect=HttpError(409, None, "Conflict"))

    with pytest.raises(HttpError):
        await query_client.mutate(mutation, "xyz", invalidate=[("areas",)])

    assert query_client.get(("areas", 1)) == "page"


@pytest.mark.asyncio
async def test_sessions_have_separate_entries():
    query_client = QueryClient()
    alice = query_client.scoped("alice")
    bob = query_client.scoped("bob")
    alice_fetch = AsyncMock(return_value="alice page")
    bob_fetch = AsyncMock(return_value="bob page")

    assert await alice.fetch_query(("areas", 1), alice_fetch) == "alice page"
    assert await bob.fetch_query(("areas", 1), bob_fetch) == "bob page"

    assert bob_fetch.await_count == 1
    assert alice.size() == 1
    assert bob.invalidate(("areas",)) == 1
    assert alice.get(("areas", 1)) == "alice page"
    assert bob.get(("areas", 1)) is None
    assert query_client.get(("areas", 1)) is None


@pytest.mark.asyncio
async def test_sessions_do_not_join_each_others_fetch():
    query_client = QueryClient()
    gate = asyncio.Event()

    async def slow_fetch():
        await gate.wait()
        return "alice page"

    first = asyncio.ensure_future(query_client.scoped("alice").fetch_query(("areas", 1), slow_fetch))
    await asyncio.sleep(0)

    bob_fetch = AsyncMock(return_value="bob page")
    assert await query_client.scoped("bob").fetch_query(("areas", 1), bob_fetch) == "bob page"
    gate.set()
    assert await first == "alice page"


@pytest.mark.asyncio
async def test_oldest_entries_are_evicted():
    query_client = QueryClient(stale_time=0, max_entries=3)

    for page in range(50):
        await query_client.fetch_query(("areas", page), AsyncMock(return_value=page))

    assert query_client.size() == 3
    assert query_client.get(("areas", 49)) == 49
    assert query_client.get(("areas", 0)) is None


@pytest.mark.asyncio
async def test_cache_hit_keeps_entry_from_eviction():
    query_client = QueryClient(max_entries=2)
    query_client.set(("areas", 1), "one")
    query_client.set(("areas", 2), "two")
    unused = AsyncMock()

    assert await query_client.fetch_query(("areas", 1), unused) == "one"
    query_client.set(("areas", 3), "three")

    unused.assert_not_awaited()
    assert query_client.get(("areas", 1)) == "one"
    assert query_client.get(("areas", 2)) is None


def test_max_entries_must_be_positive():
    with pytest.raises(ValueError):
        QueryClient(max_entries=0)
