"""SQLiteKeyValueClient — durable, single-file hash storage using aiosqlite."""

from __future__ import annotations

import asyncio

try:
    import aiosqlite
except ImportError as exc:
    raise ImportError(
        "SQLiteKeyValueClient requires the 'aiosqlite' package. "
        "Install it with: pip install kv-cookie-store[sqlite]"
    ) from exc

from kv_cookie_store.kv.base import KeyValueClient

_CREATE_TABLES = (
    """
    CREATE TABLE IF NOT EXISTS kv_keys (
        id   INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS kv_fields (
        key_id INTEGER NOT NULL,
        field  TEXT NOT NULL,
        value  TEXT NOT NULL,
        PRIMARY KEY (key_id, field)
    )
    """,
)


def _to_sqlite_glob(pattern: str) -> str:
    """Rewrite Redis ``\\x`` escapes into the ``[x]`` classes GLOB understands.

    GLOB has no escape character.  Inside a ``[...]`` class the backslash is
    dropped and the escaped character kept as a member.
    """
    out: list[str] = []
    in_class = False
    chars = iter(pattern)
    for char in chars:
        if char == "\\":
            char = next(chars, "\\")
            out.append(char if in_class or char not in "*?[" else f"[{char}]")
            continue
        if char == "[" and not in_class:
            in_class = True
        elif char == "]" and in_class:
            in_class = False
        out.append(char)
    return "".join(out)


class SQLiteKeyValueClient(KeyValueClient):
    """Persistent hashes backed by a single SQLite file.

    Keys live in ``kv_keys`` with an ever-increasing ``id`` that doubles as
    the scan cursor; ``GLOB`` provides Redis-style pattern matching.

    Parameters:
        db_path: Path to the SQLite database file.  Use ``":memory:"``
                 for an in-memory database (useful for testing).
    """

    def __init__(self, db_path: str = "cookie_store.db") -> None:
        super().__init__()
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        return self._db is not None

    async def connect(self) -> None:
        await self._connect()

    async def _connect(self) -> aiosqlite.Connection:
        if self._db is None:
            try:
                db = await aiosqlite.connect(self._db_path)
                for statement in _CREATE_TABLES:
                    await db.execute(statement)
                await db.commit()
            except Exception as exc:
                self._emit_error(exc)
                raise
            self._db = db
        return self._db

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    async def _key_id(self, db: aiosqlite.Connection, key: str) -> int | None:
        cursor = await db.execute("SELECT id FROM kv_keys WHERE name = ?", (key,))
        row = await cursor.fetchone()
        return None if row is None else int(row[0])

    # ── KeyValueClient protocol ──────────────────────────────

    async def hget(self, key: str, field: str) -> str | None:
        db = await self._connect()
        cursor = await db.execute(
            "SELECT f.value FROM kv_fields f JOIN kv_keys k ON k.id = f.key_id "
            "WHERE k.name = ? AND f.field = ?",
            (key, field),
        )
        row = await cursor.fetchone()
        return None if row is None else str(row[0])

    async def hset(self, key: str, field: str, value: str) -> int:
        db = await self._connect()
        async with self._write_lock:
            await db.execute("INSERT OR IGNORE INTO kv_keys (name) VALUES (?)", (key,))
            key_id = await self._key_id(db, key)
            cursor = await db.execute(
                "SELECT 1 FROM kv_fields WHERE key_id = ? AND field = ?",
                (key_id, field),
            )
            existed = (await cursor.fetchone()) is not None
            await db.execute(
                "INSERT OR REPLACE INTO kv_fields (key_id, field, value) VALUES (?, ?, ?)",
                (key_id, field, value),
            )
            await db.commit()
        return 0 if existed else 1

    async def hdel(self, key: str, field: str) -> int:
        db = await self._connect()
        async with self._write_lock:
            key_id = await self._key_id(db, key)
            if key_id is None:
                return 0
            cursor = await db.execute(
                "DELETE FROM kv_fields WHERE key_id = ? AND field = ?",
                (key_id, field),
            )
            removed = cursor.rowcount
            await db.execute(
                "DELETE FROM kv_keys WHERE id = ? "
                "AND NOT EXISTS (SELECT 1 FROM kv_fields WHERE key_id = ?)",
                (key_id, key_id),
            )
            await db.commit()
        return removed

    async def hgetall(self, key: str) -> dict[str, str]:
        db = await self._connect()
        cursor = await db.execute(
            "SELECT f.field, f.value FROM kv_fields f JOIN kv_keys k ON k.id = f.key_id "
            "WHERE k.name = ?",
            (key,),
        )
        rows = await cursor.fetchall()
        return {row[0]: row[1] for row in rows}

    async def delete(self, *keys: str) -> int:
        db = await self._connect()
        deleted = 0
        async with self._write_lock:
            for key in keys:
                key_id = await self._key_id(db, key)
                if key_id is None:
                    continue
                await db.execute("DELETE FROM kv_fields WHERE key_id = ?", (key_id,))
                await db.execute("DELETE FROM kv_keys WHERE id = ?", (key_id,))
                deleted += 1
            await db.commit()
        return deleted

    async def scan(self, cursor: int, match: str = "*", count: int = 10) -> tuple[int, list[str]]:
        db = await self._connect()
        result = await db.execute(
            "SELECT id, name FROM kv_keys WHERE id > ? AND name GLOB ? ORDER BY id LIMIT ?",
            (cursor, _to_sqlite_glob(match), count),
        )
        rows = await result.fetchall()
        next_cursor = int(rows[-1][0]) if len(rows) == count else 0
        return next_cursor, [row[1] for row in rows]
