from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from session_store.dal import SessionDAL


@pytest.fixture
def dal(db) -> SessionDAL:
    return SessionDAL(db, "sessions")


async def test_write_then_read(dal, db):
    await dal.write("abc", {"user": "x"}, 5000)

    doc = await dal.read("abc")
    assert doc is not None
    assert doc.key == "abc"
    assert doc.session == {"user": "x"}
    assert doc.expires == 5000

    raw = await db["sessions"].find_one({"_id": "abc"})
    assert raw == {"_id": "abc", "expires": 5000, "session": {"user": "x"}, "type": "connect-session"}


async def test_read_missing_returns_none(dal):
    assert await dal.read("nope") is None


async def test_write_overwrites(dal, db):
    await dal.write("abc", {"n": 1}, 1000)
    await dal.write("abc", {"n": 2}, 2000)

    assert await db["sessions"].count_documents({}) == 1
    doc = await dal.read("abc")
    assert doc.session == {"n": 2}
    assert doc.expires == 2000


async def test_remove_is_idempotent(dal):
    await dal.write("abc", {}, 1000)
    assert await dal.remove("abc") is True
    assert await dal.remove("abc") is False
    assert await dal.read("abc") is None


async def test_list_all_and_expired(dal):
    await dal.write("old", {}, 100)
    await dal.write("older", {}, 50)
    await dal.write("new", {}, 10_000)

    assert sorted(d.key for d in await dal.list_all()) == ["new", "old", "older"]
    assert [d.key for d in await dal.list_expired(1000)] == ["older", "old"]
    assert await dal.list_expired(10) == []
    assert await dal.count() == 3


async def test_remove_expired_checks_live_document(dal):
    await dal.write("abc", {}, 100)
    # refreshed after being listed as expired
    await dal.write("abc", {}, 10_000)

    assert await dal.remove_expired("abc", 1000) is False
    assert await dal.read("abc") is not None

    assert await dal.remove_expired("abc", 20_000) is True
    assert await dal.read("abc") is None


async def test_ensure_indexes(dal, db):
    await dal.ensure_indexes()
    info = await db["sessions"].index_information()
    assert any(idx["key"] == [("expires", 1)] for idx in info.values())


async def test_backend_errors_propagate(dal):
    dal.col = MagicMock()
    dal.col.find_one = AsyncMock(side_effect=ServerSelectionTimeoutError("down"))
    dal.col.delete_one = AsyncMock(side_effect=ServerSelectionTimeoutError("down"))

    with pytest.raises(ServerSelectionTimeoutError):
        await dal.read("abc")
    with pytest.raises(ServerSelectionTimeoutError):
        await dal.remove("abc")


async def test_documents_that_are_not_sessions_are_skipped(dal, db):
    await dal.write("abc", {"user": "x"}, 100)
    await db["sessions"].insert_one({"_id": "other", "kind": "other", "expires": 1})
    await db["sessions"].insert_one({"_id": "broken", "type": "connect-session", "expires": "soon"})

    assert await dal.read("other") is None
    assert await dal.read("broken") is None
    assert [d.key for d in await dal.list_all()] == ["abc"]
    assert [d.key for d in await dal.list_expired(1000)] == ["abc"]
    assert await dal.count() == 1
    assert sorted(await dal.list_keys()) == ["abc", "broken", "other"]

    assert await dal.remove_expired("other", 1000) is False
    assert await db["sessions"].find_one({"_id": "other"}) is not None
