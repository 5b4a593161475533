"""KeyValueClient — the hash-per-key, cursor-scannable store the cookie adapter talks to."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

ErrorListener = Callable[[BaseException], None]


class KeyValueClient(ABC):
    """Abstract base for all key-value backends.

    The model is Redis's: every key addresses a hash of ``field -> value``
    strings, and the key space is enumerated with a cursor.  A hash whose
    last field is deleted ceases to exist.

    ``scan`` returns ``(next_cursor, keys)``.  A ``next_cursor`` of ``0``
    means the iteration is complete; a batch may be empty even when the
    iteration is not.
    """

    def __init__(self) -> None:
        self._error_listeners: list[ErrorListener] = []

    # ── lifecycle ────────────────────────────────────────────

    @property
    @abstractmethod
    def is_ready(self) -> bool:
        """``True`` once the client can serve commands."""
        ...

    @abstractmethod
    async def connect(self) -> None:
        """Establish the connection.  Raises if the store is unreachable."""
        ...

    def add_error_listener(self, listener: ErrorListener) -> None:
        """Register *listener* to be called with client-level errors."""
        self._error_listeners.append(listener)

    def remove_error_listener(self, listener: ErrorListener) -> None:
        if listener in self._error_listeners:
            self._error_listeners.remove(listener)

    def _emit_error(self, exc: BaseException) -> None:
        for listener in list(self._error_listeners):
            listener(exc)

    # ── hash commands ────────────────────────────────────────

    @abstractmethod
    async def hget(self, key: str, field: str) -> str | None:
        """Return one field of the hash at *key*, or ``None``."""
        ...

    @abstractmethod
    async def hset(self, key: str, field: str, value: str) -> int:
        """Set one field.  Returns ``1`` if the field is new, ``0`` if overwritten."""
        ...

    @abstractmethod
    async def hdel(self, key: str, field: str) -> int:
        """Delete one field.  Returns the number of fields removed."""
        ...

    @abstractmethod
    async def hgetall(self, key: str) -> dict[str, str]:
        """Return the whole hash at *key* (empty dict if absent)."""
        ...

    # ── key commands ─────────────────────────────────────────

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """Delete whole keys.  Returns how many existed."""
        ...

    @abstractmethod
    async def scan(self, cursor: int, match: str = "*", count: int = 10) -> tuple[int, list[str]]:
        """Return the next batch of keys matching the glob *match*."""
        ...
