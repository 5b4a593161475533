"""Tests specific to SQLiteKeyValueClient."""

import sqlite3

import pytest

from kv_cookie_store.kv.sqlite import SQLiteKeyValueClient, _to_sqlite_glob


async def test_not_ready_until_connected():
    kv = SQLiteKeyValueClient(":memory:")
    assert not kv.is_ready
    await kv.connect()
    assert kv.is_ready
    await kv.close()
    assert not kv.is_ready


async def test_commands_connect_lazily():
    kv = SQLiteKeyValueClient(":memory:")
    await kv.hset("h", "f", "1")
    assert kv.is_ready
    await kv.close()


async def test_data_survives_reopen(tmp_path):
    db_path = str(tmp_path / "cookies.db")
    kv = SQLiteKeyValueClient(db_path)
    await kv.hset("cookie-store:default:cookie:example.com:/", "sid", "{}")
    await kv.close()

    reopened = SQLiteKeyValueClient(db_path)
    assert await reopened.hgetall("cookie-store:default:cookie:example.com:/") == {"sid": "{}"}
    await reopened.close()


async def test_scan_cursor_is_stable_across_deletes(tmp_path):
    kv = SQLiteKeyValueClient(str(tmp_path / "scan.db"))
    for i in range(6):
        await kv.hset(f"k{i}", "f", "1")
    seen = []
    cursor = 0
    while True:
        cursor, keys = await kv.scan(cursor, match="k*", count=2)
        seen.extend(keys)
        await kv.delete(*keys)
        if cursor == 0:
            break
    assert seen == [f"k{i}" for i in range(6)]
    await kv.close()


async def test_connect_failure_reaches_listeners(tmp_path):
    kv = SQLiteKeyValueClient(str(tmp_path / "missing-dir" / "cookies.db"))
    errors = []
    kv.add_error_listener(errors.append)
    with pytest.raises(sqlite3.OperationalError):
        await kv.connect()
    assert len(errors) == 1
    assert not kv.is_ready


@pytest.mark.parametrize(
    "pattern, expected",
    [
        ("cookie:*", "cookie:*"),
        ("h\\*llo", "h[*]llo"),
        ("h\\?\\[x", "h[?][[]x"),
        ("a\\bc", "abc"),
        ("[\\*a]", "[*a]"),
        ("trailing\\", "trailing\\"),
    ],
)
def test_redis_escapes_become_glob_classes(pattern, expected):
    assert _to_sqlite_glob(pattern) == expected
