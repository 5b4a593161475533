"""Tests for the bounded key scan and the partial results it can produce."""

import logging

import pytest

from kv_cookie_store import InMemoryKeyValueClient, KVCookieStore


class FailingScanClient(InMemoryKeyValueClient):
    """Serves the first *ok_calls* scans, then raises on every scan."""

    def __init__(self, ok_calls: int = 0):
        super().__init__()
        self.ok_calls = ok_calls
        self.scan_calls = 0

    async def scan(self, cursor, match="*", count=10):
        self.scan_calls += 1
        if self.scan_calls > self.ok_calls:
            raise ConnectionError("store went away")
        return await super().scan(cursor, match=match, count=count)


class DuplicatingScanClient(InMemoryKeyValueClient):
    """Repeats every key within a batch and re-sends the previous batch, as SCAN may."""

    def __init__(self):
        super().__init__()
        self.previous = []

    async def scan(self, cursor, match="*", count=10):
        if cursor == 0:
            self.previous = []
        next_cursor, keys = await super().scan(cursor, match=match, count=count)
        batch = self.previous + keys + keys
        self.previous = keys
        return next_cursor, batch


async def fill(client, n):
    for i in range(n):
        await client.hset(f"k{i}", "f", "1")


def recorder():
    batches = []

    async def on_keys(keys):
        batches.append(keys)

    return batches, on_keys


async def test_scan_visits_every_key_and_completes(client, store):
    await fill(client, 12)
    store.scan_count = 5
    batches, on_keys = recorder()

    assert await store._scan("k*", on_keys) is True
    assert sorted(k for batch in batches for k in batch) == sorted(f"k{i}" for i in range(12))


async def test_scan_skips_empty_batches(client, store):
    await fill(client, 5)
    store.scan_count = 1
    batches, on_keys = recorder()

    assert await store._scan("nothing-matches", on_keys) is True
    assert batches == []


async def test_scan_stops_at_time_ceiling(client, clock, caplog):
    await fill(client, 5)
    clock.step = 6.0
    store = KVCookieStore(client, "t", clock=clock, scan_count=1)
    batches, on_keys = recorder()

    with caplog.at_level(logging.WARNING, logger="kv_cookie_store.store"):
        complete = await store._scan("k*", on_keys)

    assert complete is False
    assert batches == [["k0"], ["k1"]]
    assert "may be incomplete" in caplog.text


async def test_scan_error_is_logged_not_raised(caplog):
    client = FailingScanClient()
    store = KVCookieStore(client, "t")
    batches, on_keys = recorder()

    with caplog.at_level(logging.ERROR, logger="kv_cookie_store.store"):
        complete = await store._scan("*", on_keys)

    assert complete is False
    assert batches == []
    assert "aborted" in caplog.text


async def test_scan_aborts_when_callback_fails(client, store):
    await fill(client, 3)
    store.scan_count = 1
    calls = []

    async def on_keys(keys):
        calls.append(keys)
        raise RuntimeError("hgetall failed")

    assert await store._scan("k*", on_keys) is False
    assert calls == [["k0"]]


async def test_scan_without_client():
    store = KVCookieStore(None)
    batches, on_keys = recorder()
    assert await store._scan("*", on_keys) is False
    assert batches == []


# ── partial results surface without errors ───────────────────


@pytest.fixture
async def half_broken(make_cookie):
    client = FailingScanClient(ok_calls=1)
    store = KVCookieStore(client, "t", scan_count=2)
    for i in range(4):
        await store.put_cookie(make_cookie(key=f"c{i}", domain=f"d{i}.com"))
    return store


async def test_get_all_returns_partial_result_on_scan_error(half_broken):
    cookies = await half_broken.get_all_cookies()
    assert [c.key for c in cookies] == ["c0", "c1"]


async def test_find_cookies_returns_empty_on_scan_error(make_cookie):
    client = FailingScanClient()
    store = KVCookieStore(client, "t")
    await store.put_cookie(make_cookie(key="sid"))
    assert await store.find_cookies("example.com", "/", True) == []


async def test_wildcard_remove_leaves_keys_on_scan_error(half_broken):
    await half_broken.remove_all_cookies()
    half_broken.client.ok_calls = 100
    remaining = await half_broken.get_all_cookies()
    assert [c.key for c in remaining] == ["c2", "c3"]


# ── keys repeated by the scan are read once ──────────────────


async def test_get_all_returns_each_cookie_once_when_scan_repeats_keys(make_cookie):
    store = KVCookieStore(DuplicatingScanClient(), "t", scan_count=1)
    await store.put_cookie(make_cookie(key="a", domain="a.com"))
    await store.put_cookie(make_cookie(key="b", domain="b.com"))
    assert [c.key for c in await store.get_all_cookies()] == ["a", "b"]


async def test_find_cookies_returns_each_cookie_once_when_scan_repeats_keys(make_cookie):
    store = KVCookieStore(DuplicatingScanClient(), "t", scan_count=1)
    await store.put_cookie(make_cookie(key="a"))
    await store.put_cookie(make_cookie(key="b", path="/"))
    cookies = await store.find_cookies("example.com", "/", True)
    assert [c.key for c in cookies] == ["a", "b"]


async def test_repeated_keys_are_fetched_once(make_cookie):
    client = DuplicatingScanClient()
    store = KVCookieStore(client, "t")
    await store.put_cookie(make_cookie(key="a"))
    fetched = []
    real_hgetall = client.hgetall

    async def counting_hgetall(key):
        fetched.append(key)
        return await real_hgetall(key)

    client.hgetall = counting_hgetall
    await store.get_all_cookies()
    assert fetched == [store.key_name("example.com", "/")]
