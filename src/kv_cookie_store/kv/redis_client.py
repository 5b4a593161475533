"""RedisKeyValueClient — the production backend, wrapping ``redis.asyncio``."""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

try:
    import redis.asyncio as aioredis
    from redis.exceptions import ConnectionError as RedisConnectionError
    from redis.exceptions import TimeoutError as RedisTimeoutError
except ImportError as exc:
    raise ImportError(
        "RedisKeyValueClient requires the 'redis' package. "
        "Install it with: pip install kv-cookie-store[redis]"
    ) from exc

from kv_cookie_store.kv.base import KeyValueClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _decode(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class RedisKeyValueClient(KeyValueClient):
    """Key-value client backed by a Redis server.

    Parameters:
        redis: An ``redis.asyncio.Redis`` instance.  Replies may be bytes or
               already-decoded strings.
        ready: Pass ``True`` if the caller has already verified the
               connection; otherwise the cookie store will ``connect()``.
    """

    def __init__(self, redis: aioredis.Redis, *, ready: bool = False) -> None:
        super().__init__()
        self._redis = redis
        self._ready = ready

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> RedisKeyValueClient:
        """Build a client from a ``redis://`` URL.  No I/O happens until ``connect()``."""
        kwargs.setdefault("decode_responses", True)
        return cls(aioredis.from_url(url, **kwargs))

    @property
    def redis(self) -> aioredis.Redis:
        return self._redis

    @property
    def is_ready(self) -> bool:
        return self._ready

    async def connect(self) -> None:
        await self._call(self._redis.ping())
        self._ready = True

    async def close(self) -> None:
        await self._redis.aclose()
        self._ready = False

    async def _call(self, command: Awaitable[T]) -> T:
        try:
            return await command
        except (RedisConnectionError, RedisTimeoutError) as exc:
            self._emit_error(exc)
            raise

    # ── KeyValueClient protocol ──────────────────────────────

    async def hget(self, key: str, field: str) -> str | None:
        value = await self._call(self._redis.hget(key, field))
        return _decode(value)

    async def hset(self, key: str, field: str, value: str) -> int:
        return int(await self._call(self._redis.hset(key, field, value)))

    async def hdel(self, key: str, field: str) -> int:
        return int(await self._call(self._redis.hdel(key, field)))

    async def hgetall(self, key: str) -> dict[str, str]:
        data = await self._call(self._redis.hgetall(key))
        return {_decode(k): _decode(v) for k, v in data.items()}

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(await self._call(self._redis.delete(*keys)))

    async def scan(self, cursor: int, match: str = "*", count: int = 10) -> tuple[int, list[str]]:
        next_cursor, keys = await self._call(
            self._redis.scan(cursor=cursor, match=match, count=count)
        )
        logger.debug(
            "SCAN %s match=%r -> %d keys, cursor %s", cursor, match, len(keys), next_cursor
        )
        return int(next_cursor), [_decode(k) for k in keys]
