# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Builds key-value clients and cookie stores from :class:`CookieStoreConfig`.

Optional backends are imported only when selected, so the ``sqlite`` and
``redis`` extras are needed only by the deployments that use them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from kv_cookie_store.exceptions import CookieStoreConfigError
from kv_cookie_store.kv.memory import InMemoryKeyValueClient
from kv_cookie_store.store import KVCookieStore

if TYPE_CHECKING:
    from kv_cookie_store._internal.clock import Clock
    from kv_cookie_store.config import CookieStoreConfig
    from kv_cookie_store.kv.base import KeyValueClient


def create_client(config: CookieStoreConfig) -> KeyValueClient:
    """Create the key-value client selected by *config*.

    Args:
        config: Store configuration

    Returns:
        An unconnected client (the in-memory client is always ready)

    Raises:
        CookieStoreConfigError: If the backend is missing required settings
    """
    if config.backend == "sqlite":
        if not config.path:
            raise CookieStoreConfigError("sqlite backend requires 'path'")
        from kv_cookie_store.kv.sqlite import SQLiteKeyValueClient

        return SQLiteKeyValueClient(config.path)

    if config.backend == "redis":
        if not config.url:
            raise CookieStoreConfigError("redis backend requires 'url'")
        from kv_cookie_store.kv.redis_client import RedisKeyValueClient

        return RedisKeyValueClient.from_url(config.url)

    if config.backend == "memory":
        return InMemoryKeyValueClient()

    raise CookieStoreConfigError(f"unknown backend '{config.backend}'")


def create_cookie_store(
    config: CookieStoreConfig,
    client: KeyValueClient | None = None,
    clock: Clock | None = None,
) -> KVCookieStore:
    """Create a :class:`KVCookieStore` wired to the configured backend.

    Args:
        config: Store configuration
        client: Optional client to use instead of creating one from config.
                Useful for testing.
        clock: Optional clock for the scan ceiling

    Returns:
        KVCookieStore instance
    """
    return KVCookieStore(
        client or create_client(config),
        config.store_id,
        clock=clock,
        scan_count=config.scan_count,
        scan_timeout=config.scan_timeout,
    )
