"""InMemoryKeyValueClient — zero-config, dict-backed client for development and testing."""

from __future__ import annotations

import functools
import itertools
import re

from kv_cookie_store.kv.base import KeyValueClient


@functools.lru_cache(maxsize=256)
def _compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile a Redis ``MATCH`` pattern.

    ``*`` and ``?`` are wildcards, ``[...]`` is a class (``^`` negates,
    ``a-z`` is a range) and a backslash makes the next character literal.
    An unterminated class runs to the end of the pattern, as in Redis.
    """
    out: list[str] = []
    i, n = 0, len(pattern)
    while i < n:
        char = pattern[i]
        i += 1
        if char == "*":
            out.append(".*")
        elif char == "?":
            out.append(".")
        elif char == "\\" and i < n:
            out.append(re.escape(pattern[i]))
            i += 1
        elif char == "[":
            negate = i < n and pattern[i] == "^"
            if negate:
                i += 1
            members: list[str] = []
            while i < n and pattern[i] != "]":
                if pattern[i] == "\\" and i + 1 < n:
                    members.append(re.escape(pattern[i + 1]))
                    i += 2
                elif i + 2 < n and pattern[i + 1] == "-" and pattern[i + 2] != "]":
                    low, high = sorted((pattern[i], pattern[i + 2]))
                    members.append(f"{re.escape(low)}-{re.escape(high)}")
                    i += 3
                else:
                    members.append(re.escape(pattern[i]))
                    i += 1
            i += 1
            if members:
                out.append(f"[{'^' if negate else ''}{''.join(members)}]")
            else:
                # "[]" matches nothing, "[^]" matches any one character.
                out.append("." if negate else "(?!)")
        else:
            out.append(re.escape(char))
    return re.compile("".join(out), re.DOTALL)


class InMemoryKeyValueClient(KeyValueClient):
    """In-memory hashes.  Data is lost on process exit.

    Each key gets a sequence number when it is created; scan cursors are
    sequence numbers, so deleting keys mid-scan never skips the survivors.
    """

    def __init__(self) -> None:
        super().__init__()
        self._hashes: dict[str, dict[str, str]] = {}
        self._sequence: dict[str, int] = {}
        self._counter = itertools.count(1)

    @property
    def is_ready(self) -> bool:
        return True

    async def connect(self) -> None:
        return None

    def _drop(self, key: str) -> bool:
        self._sequence.pop(key, None)
        return self._hashes.pop(key, None) is not None

    async def hget(self, key: str, field: str) -> str | None:
        return self._hashes.get(key, {}).get(field)

    async def hset(self, key: str, field: str, value: str) -> int:
        fields = self._hashes.get(key)
        if fields is None:
            fields = self._hashes[key] = {}
            self._sequence[key] = next(self._counter)
        added = field not in fields
        fields[field] = value
        return int(added)

    async def hdel(self, key: str, field: str) -> int:
        fields = self._hashes.get(key)
        if fields is None or field not in fields:
            return 0
        del fields[field]
        if not fields:
            self._drop(key)
        return 1

    async def hgetall(self, key: str) -> dict[str, str]:
        return dict(self._hashes.get(key, {}))

    async def delete(self, *keys: str) -> int:
        return sum(self._drop(key) for key in keys)

    async def scan(self, cursor: int, match: str = "*", count: int = 10) -> tuple[int, list[str]]:
        remaining = [(seq, key) for key, seq in self._sequence.items() if seq > cursor]
        batch = remaining[:count]
        pattern = _compile_glob(match)
        keys = [key for _, key in batch if pattern.fullmatch(key)]
        next_cursor = batch[-1][0] if len(remaining) > count else 0
        return next_cursor, keys
