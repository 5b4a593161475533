"""Callback-style façade for jars that dispatch store calls as ``op(..., cb)``."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

if TYPE_CHECKING:
    from kv_cookie_store.cookie import Cookie
    from kv_cookie_store.store import KVCookieStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

Callback = Callable[[BaseException | None, Any], None]


def dispatch(coro: Coroutine[Any, Any, T], callback: Callback) -> asyncio.Task[None]:
    """Run *coro* on the current loop and report its outcome as ``callback(err, result)``.

    Exceptions from *coro* are delivered as ``err``.  An exception raised by
    *callback* itself is logged.  Neither propagates out of the returned
    task, which is returned so callers can await completion.
    """

    async def runner() -> None:
        err: BaseException | None = None
        result: Any = None
        try:
            result = await coro
        except Exception as exc:
            err = exc
        try:
            callback(err, result)
        except Exception:
            logger.exception("Cookie store callback %r raised", callback)

    return asyncio.ensure_future(runner())


class CallbackCookieStore:
    """Exposes a :class:`KVCookieStore` through ``(err, result)`` completion callbacks.

    Every method schedules the underlying coroutine and returns the task.
    Must be called from inside a running event loop.

    Example:
        >>> jar_store = CallbackCookieStore(KVCookieStore(client))
        >>> jar_store.find_cookie("example.com", "/", "sid", lambda err, c: print(err, c))
    """

    synchronous: ClassVar[bool] = False

    def __init__(self, store: KVCookieStore) -> None:
        self._store = store

    @property
    def store(self) -> KVCookieStore:
        return self._store

    def find_cookie(
        self, domain: str, path: str, key: str, callback: Callback
    ) -> asyncio.Task[None]:
        return dispatch(self._store.find_cookie(domain, path, key), callback)

    def find_cookies(
        self,
        domain: str,
        path: str,
        allow_special_use_domain: bool | Callback,
        callback: Callback | None = None,
    ) -> asyncio.Task[None]:
        """Find visible cookies.  The callback may be passed as the third argument."""
        if callback is None:
            if not callable(allow_special_use_domain):
                raise TypeError("find_cookies() requires a callback")
            callback = allow_special_use_domain
            allow_special_use_domain = True
        return dispatch(
            self._store.find_cookies(domain, path, bool(allow_special_use_domain)),
            callback,
        )

    def put_cookie(self, cookie: Cookie, callback: Callback) -> asyncio.Task[None]:
        # Validation errors are raised here, before anything is scheduled.
        self._store.validate_cookie(cookie)
        return dispatch(self._store.put_cookie(cookie), callback)

    def update_cookie(
        self, old_cookie: Cookie, new_cookie: Cookie, callback: Callback
    ) -> asyncio.Task[None]:
        self._store.validate_cookie(new_cookie)
        return dispatch(self._store.update_cookie(old_cookie, new_cookie), callback)

    def remove_cookie(
        self, domain: str, path: str, key: str, callback: Callback
    ) -> asyncio.Task[None]:
        return dispatch(self._store.remove_cookie(domain, path, key), callback)

    def remove_cookies(
        self, domain: str, path: str | None, callback: Callback
    ) -> asyncio.Task[None]:
        return dispatch(self._store.remove_cookies(domain, path), callback)

    def remove_all_cookies(self, callback: Callback) -> asyncio.Task[None]:
        return dispatch(self._store.remove_all_cookies(), callback)

    def get_all_cookies(self, callback: Callback) -> asyncio.Task[None]:
        return dispatch(self._store.get_all_cookies(), callback)
