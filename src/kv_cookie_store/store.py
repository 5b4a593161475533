"""KVCookieStore — persists cookies as hashes in a key-value store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from operator import attrgetter
from typing import TYPE_CHECKING, ClassVar

from kv_cookie_store._internal.clock import Clock, SystemClock
from kv_cookie_store.cookie import Cookie
from kv_cookie_store.exceptions import (
    CookieDecodeError,
    CookieValidationError,
    StoreConnectionError,
    StoreUnavailableError,
)
from kv_cookie_store.permute import permute_domain, permute_path

if TYPE_CHECKING:
    from kv_cookie_store.kv.base import KeyValueClient

logger = logging.getLogger(__name__)

DEFAULT_STORE_ID = "default"
WILDCARD = "*"
SCAN_COUNT = 100
SCAN_TIMEOUT = 10.0

KeysCallback = Callable[[list[str]], Awaitable[None]]


class KVCookieStore:
    """Cookie jar storage backed by a hash-per-key, cursor-scannable store.

    Cookies are grouped into one hash per ``(store id, domain, path)``:

    * ``cookie-store:<id>:cookie:<domain>:<path>`` -> ``{cookie key: cookie json}``

    A later write of the same cookie key into the same bucket replaces the
    earlier one, which is how updates happen.

    Bulk reads enumerate keys with a bounded cursor scan.  A scan that fails
    or runs past ``scan_timeout`` seconds is logged and stops early, so bulk
    reads and wildcard removals may act on a partial key set without
    raising.

    Parameters:
        client:       Key-value client.  If it is not ready yet the store
                      starts connecting it; a failed connect makes every
                      later operation raise :class:`StoreConnectionError`.
        store_id:     Namespace separating independent jars sharing one
                      backend.  Defaults to ``"default"``.
        clock:        Injectable clock for the scan ceiling.
        scan_count:   Keys requested per scan round trip.
        scan_timeout: Wall-clock ceiling for one scan, in seconds.
    """

    synchronous: ClassVar[bool] = False

    def __init__(
        self,
        client: KeyValueClient | None,
        store_id: str | None = None,
        *,
        clock: Clock | None = None,
        scan_count: int = SCAN_COUNT,
        scan_timeout: float = SCAN_TIMEOUT,
    ) -> None:
        self._client = client
        self._id = store_id or DEFAULT_STORE_ID
        self._clock = clock or SystemClock()
        self.scan_count = scan_count
        self.scan_timeout = scan_timeout
        self._connect_task: asyncio.Task[None] | None = None

        if client is not None and not client.is_ready:
            client.add_error_listener(self._log_client_error)
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                # No loop yet; the first operation starts the connect.
                loop = None
            if loop is not None:
                self._start_connect()

    @property
    def id(self) -> str:
        return self._id

    @property
    def client(self) -> KeyValueClient | None:
        return self._client

    # ── connection ───────────────────────────────────────────

    @staticmethod
    def _log_client_error(exc: BaseException) -> None:
        logger.error("Key-value client error: %s", exc)

    def _start_connect(self) -> None:
        task = asyncio.ensure_future(self._connect())
        task.add_done_callback(self._on_connect_done)
        self._connect_task = task

    async def _connect(self) -> None:
        assert self._client is not None
        try:
            await self._client.connect()
        except Exception as exc:
            raise StoreConnectionError(
                f"Could not connect cookie store '{self._id}': {exc}"
            ) from exc

    @staticmethod
    def _on_connect_done(task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.critical("%s", exc)

    async def wait_ready(self) -> None:
        """Wait for the initial connect.  Raises :class:`StoreConnectionError` if it failed."""
        if self._client is None:
            return
        if self._connect_task is None:
            if self._client.is_ready:
                return
            self._start_connect()
        assert self._connect_task is not None
        await self._connect_task

    # ── key naming ───────────────────────────────────────────

    def key_name(self, domain: str, path: str | None = None) -> str:
        """Return the lookup key for a domain bucket, or a domain+path bucket."""
        if path:
            return f"cookie-store:{self._id}:cookie:{domain}:{path}"
        return f"cookie-store:{self._id}:cookie:{domain}"

    # ── single-cookie operations ─────────────────────────────

    async def find_cookie(self, domain: str, path: str, key: str) -> Cookie | None:
        """Return the cookie named *key* stored under *domain* and *path*, if any.

        A stored record that cannot be parsed is reported as an error, not
        as a missing cookie.
        """
        if self._client is None:
            return None
        await self.wait_ready()
        lookup_key = self.key_name(domain, path)
        data = await self._client.hget(lookup_key, key)
        if not data:
            return None
        cookie = Cookie.from_json(data)
        if cookie is None:
            raise CookieDecodeError(lookup_key, key)
        return cookie

    @staticmethod
    def validate_cookie(cookie: Cookie) -> None:
        """Raise :class:`CookieValidationError` unless *cookie* has a domain and a path."""
        if not cookie.domain or not cookie.path:
            raise CookieValidationError(cookie.key)

    async def put_cookie(self, cookie: Cookie) -> None:
        """Write *cookie* into its bucket, replacing any cookie with the same key."""
        self.validate_cookie(cookie)
        client = self._require_client("put_cookie")
        await self.wait_ready()
        assert cookie.domain is not None and cookie.path is not None
        await client.hset(self.key_name(cookie.domain, cookie.path), cookie.key, cookie.to_json())

    async def update_cookie(self, old_cookie: Cookie, new_cookie: Cookie) -> None:
        """Replace *old_cookie* with *new_cookie*.

        No comparison is made; the jar has already decided the update is due.
        """
        await self.put_cookie(new_cookie)

    async def remove_cookie(self, domain: str, path: str, key: str) -> None:
        """Delete one cookie.  Removing a cookie that does not exist is a no-op."""
        client = self._require_client("remove_cookie")
        await self.wait_ready()
        await client.hdel(self.key_name(domain, path), key)

    # ── bulk operations ──────────────────────────────────────

    async def find_cookies(
        self,
        domain: str,
        path: str,
        allow_special_use_domain: bool = True,
    ) -> list[Cookie]:
        """Return every stored cookie a request to *domain* and *path* could see.

        Looks under each ancestor domain crossed with each ancestor path, so
        cookies set on ``b.com`` and ``/`` are found for ``a.b.com/x``.
        Expiry and attribute matching are left to the jar.
        Results are ordered by ``creation_index``.
        """
        client = self._client
        if client is None or not domain:
            return []
        await self.wait_ready()

        domains = permute_domain(domain, allow_special_use_domain) or [domain]
        paths = permute_path(path) or [path]
        patterns = [f"{self.key_name(d)}:{p}" for d in domains for p in paths]

        cookies: list[Cookie] = []
        seen: set[str] = set()

        async def collect(keys: list[str]) -> None:
            cookies.extend(await self._read_buckets(client, keys, seen))

        await asyncio.gather(*(self._scan(pattern, collect) for pattern in patterns))
        return _by_creation(cookies)

    async def get_all_cookies(self) -> list[Cookie]:
        """Return every cookie under this store id, ordered by ``creation_index``."""
        client = self._client
        if client is None:
            return []
        await self.wait_ready()

        cookies: list[Cookie] = []
        seen: set[str] = set()

        async def collect(keys: list[str]) -> None:
            cookies.extend(await self._read_buckets(client, keys, seen))

        await self._scan(self.key_name(WILDCARD), collect)
        return _by_creation(cookies)

    async def remove_cookies(self, domain: str, path: str | None = None) -> None:
        """Delete a whole bucket, or every path bucket of *domain*.

        ``"*"`` (or no path) removes all paths under *domain*; ``"*"`` as the
        domain matches every domain.  The wildcard form goes through a scan
        and may leave keys behind if the scan stops early.
        """
        client = self._client
        if path and path != WILDCARD:
            if client is None:
                raise StoreUnavailableError("remove_cookies")
            await self.wait_ready()
            await client.delete(self.key_name(domain, path))
            return

        if client is None:
            return
        await self.wait_ready()

        async def drop(keys: list[str]) -> None:
            await client.delete(*keys)

        await self._scan(f"{self.key_name(domain)}:{WILDCARD}", drop)

    async def remove_all_cookies(self) -> None:
        await self.remove_cookies(WILDCARD, WILDCARD)

    # ── internals ────────────────────────────────────────────

    def _require_client(self, operation: str) -> KeyValueClient:
        if self._client is None:
            raise StoreUnavailableError(operation)
        return self._client

    async def _read_buckets(
        self, client: KeyValueClient, keys: Iterable[str], seen: set[str]
    ) -> list[Cookie]:
        """Read the buckets in *keys* not already in *seen*, then mark them seen.

        SCAN may hand back the same key more than once within one walk.
        """
        fresh = [key for key in dict.fromkeys(keys) if key not in seen]
        seen.update(fresh)
        buckets = await asyncio.gather(*(client.hgetall(key) for key in fresh))
        return list(_decode_buckets(buckets))

    async def _scan(self, pattern: str, on_keys: KeysCallback) -> bool:
        """Walk every key matching the glob *pattern*, handing each batch to *on_keys*.

        Returns ``True`` when the cursor came back to ``0``.  Returns ``False``
        when the scan stopped early: a store error (logged, not raised) or the
        ``scan_timeout`` ceiling.
        """
        client = self._client
        if client is None:
            return False

        started = self._clock.monotonic()
        cursor = 0
        while True:
            try:
                cursor, keys = await client.scan(cursor, match=pattern, count=self.scan_count)
                if keys:
                    await on_keys(keys)
            except Exception:
                logger.exception("Scan for %r aborted", pattern)
                return False
            if cursor == 0:
                return True
            elapsed = self._clock.monotonic() - started
            if elapsed >= self.scan_timeout:
                logger.warning(
                    "Scan for %r stopped after %.1fs; results may be incomplete",
                    pattern,
                    elapsed,
                )
                return False


def _decode_buckets(buckets: Iterable[dict[str, str]]) -> Iterable[Cookie]:
    for bucket in buckets:
        for field, data in bucket.items():
            cookie = Cookie.from_json(data)
            if cookie is None:
                logger.debug("Skipping undecodable cookie record %r", field)
                continue
            yield cookie


def _by_creation(cookies: list[Cookie]) -> list[Cookie]:
    return sorted(cookies, key=attrgetter("creation_index"))
