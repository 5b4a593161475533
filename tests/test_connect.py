"""Tests for connecting a not-yet-ready client, and the fatal connect failure."""

import asyncio
import logging

import pytest

from kv_cookie_store import InMemoryKeyValueClient, KVCookieStore, StoreConnectionError


class LazyClient(InMemoryKeyValueClient):
    """In-memory client that must be connected before use."""

    def __init__(self, fail: bool = False):
        super().__init__()
        self.fail = fail
        self.connect_calls = 0
        self._ready = False

    @property
    def is_ready(self):
        return self._ready

    async def connect(self):
        self.connect_calls += 1
        if self.fail:
            exc = ConnectionRefusedError("connection refused")
            self._emit_error(exc)
            raise exc
        self._ready = True


async def test_ready_client_is_not_reconnected(client):
    store = KVCookieStore(client)
    await store.wait_ready()
    assert store._connect_task is None


async def test_connect_starts_on_construction():
    client = LazyClient()
    store = KVCookieStore(client)
    assert store._connect_task is not None

    await store.wait_ready()
    assert client.is_ready
    assert client.connect_calls == 1


async def test_operations_wait_for_connect(make_cookie):
    client = LazyClient()
    store = KVCookieStore(client)
    await store.put_cookie(make_cookie(key="sid"))
    assert [c.key for c in await store.get_all_cookies()] == ["sid"]
    assert client.connect_calls == 1


def test_connect_deferred_without_running_loop(make_cookie):
    client = LazyClient()
    store = KVCookieStore(client)
    assert store._connect_task is None

    async def scenario():
        await store.put_cookie(make_cookie(key="sid"))
        return await store.find_cookie("example.com", "/", "sid")

    found = asyncio.run(scenario())
    assert found.key == "sid"
    assert client.connect_calls == 1


async def test_connect_failure_is_fatal(make_cookie, caplog):
    client = LazyClient(fail=True)
    with caplog.at_level(logging.ERROR, logger="kv_cookie_store.store"):
        store = KVCookieStore(client, "broken")
        with pytest.raises(StoreConnectionError, match="broken"):
            await store.wait_ready()

    assert "Key-value client error" in caplog.text
    assert any(r.levelno == logging.CRITICAL for r in caplog.records)

    with pytest.raises(StoreConnectionError):
        await store.put_cookie(make_cookie())
    with pytest.raises(StoreConnectionError):
        await store.get_all_cookies()
    assert client.connect_calls == 1
