"""Shared test fixtures."""

import pytest

from kv_cookie_store import Cookie, InMemoryKeyValueClient, KVCookieStore


class FakeClock:
    """Monotonic clock that moves forward by *step* seconds every time it is read."""

    def __init__(self, start: float = 1000.0, step: float = 0.0):
        self._now = start
        self.step = step

    def monotonic(self) -> float:
        now = self._now
        self._now += self.step
        return now


@pytest.fixture
def client():
    return InMemoryKeyValueClient()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(client, clock):
    return KVCookieStore(client, "test", clock=clock)


@pytest.fixture
def make_cookie():
    def factory(key="sid", value="v", domain="example.com", path="/", **kwargs):
        return Cookie(key=key, value=value, domain=domain, path=path, **kwargs)

    return factory
