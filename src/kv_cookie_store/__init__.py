"""kv_cookie_store — HTTP cookie persistence on a key-value store.

Cookies live in one hash per (store id, domain, path).  The store exposes
the operations a cookie jar needs (find, put, update, remove, list) as
coroutines, with a callback façade for jars that dispatch that way.
"""

from kv_cookie_store.callbacks import CallbackCookieStore
from kv_cookie_store.config import CookieStoreConfig
from kv_cookie_store.cookie import Cookie
from kv_cookie_store.exceptions import (
    CookieDecodeError,
    CookieStoreConfigError,
    CookieStoreError,
    CookieValidationError,
    StoreConnectionError,
    StoreError,
    StoreUnavailableError,
)
from kv_cookie_store.factory import create_client, create_cookie_store
from kv_cookie_store.kv import InMemoryKeyValueClient, KeyValueClient
from kv_cookie_store.permute import permute_domain, permute_path
from kv_cookie_store.store import KVCookieStore

__all__ = [
    "CallbackCookieStore",
    "Cookie",
    "CookieDecodeError",
    "CookieStoreConfig",
    "CookieStoreConfigError",
    "CookieStoreError",
    "CookieValidationError",
    "InMemoryKeyValueClient",
    "KVCookieStore",
    "KeyValueClient",
    "StoreConnectionError",
    "StoreError",
    "StoreUnavailableError",
    "create_client",
    "create_cookie_store",
    "permute_domain",
    "permute_path",
]
