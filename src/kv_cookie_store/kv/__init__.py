"""Key-value backends the cookie store persists into.

``SQLiteKeyValueClient`` and ``RedisKeyValueClient`` need optional extras and
are imported from their own modules.
"""

from kv_cookie_store.kv.base import KeyValueClient
from kv_cookie_store.kv.memory import InMemoryKeyValueClient

__all__ = ["InMemoryKeyValueClient", "KeyValueClient"]
