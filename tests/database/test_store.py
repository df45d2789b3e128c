"""Tests for the in-memory record store."""

import pytest

from firm_docs.database.store import ETAG_FIELD, InMemoryRecordStore
from firm_docs.errors import ConcurrencyConflictError, NotFoundError


@pytest.fixture
def mem() -> InMemoryRecordStore:
    return InMemoryRecordStore()


async def test_insert_assigns_etag(mem: InMemoryRecordStore) -> None:
    stored = await mem.insert("docs", {"id": "a", "name": "one"})
    assert stored["name"] == "one"
    assert stored[ETAG_FIELD]


async def test_insert_duplicate_id_conflicts(mem: InMemoryRecordStore) -> None:
    await mem.insert("docs", {"id": "a"})
    with pytest.raises(ConcurrencyConflictError):
        await mem.insert("docs", {"id": "a"})


async def test_find_by_id_returns_copy(mem: InMemoryRecordStore) -> None:
    await mem.insert("docs", {"id": "a", "tags": ["x"]})
    found = await mem.find_by_id("docs", "a")
    found["tags"].append("y")
    again = await mem.find_by_id("docs", "a")
    assert again["tags"] == ["x"]


async def test_find_by_id_missing(mem: InMemoryRecordStore) -> None:
    assert await mem.find_by_id("docs", "nope") is None


async def test_find_many_filters_on_equality(mem: InMemoryRecordStore) -> None:
    await mem.insert("docs", {"id": "a", "kind": "report", "template_id": "t1"})
    await mem.insert("docs", {"id": "b", "kind": "report", "template_id": None})
    await mem.insert("docs", {"id": "c", "kind": "template"})

    reports = await mem.find_many("docs", {"kind": "report"})
    linked = await mem.find_many("docs", {"kind": "report", "template_id": "t1"})

    assert {r["id"] for r in reports} == {"a", "b"}
    assert [r["id"] for r in linked] == ["a"]
    assert len(await mem.find_many("docs")) == 3


async def test_replace_with_matching_etag(mem: InMemoryRecordStore) -> None:
    stored = await mem.insert("docs", {"id": "a", "v": 1})
    replaced = await mem.replace("docs", {"id": "a", "v": 2}, expected_etag=stored[ETAG_FIELD])
    assert replaced["v"] == 2
    assert replaced[ETAG_FIELD] != stored[ETAG_FIELD]


async def test_replace_with_stale_etag_conflicts(mem: InMemoryRecordStore) -> None:
    stored = await mem.insert("docs", {"id": "a", "v": 1})
    await mem.replace("docs", {"id": "a", "v": 2})
    with pytest.raises(ConcurrencyConflictError):
        await mem.replace("docs", {"id": "a", "v": 3}, expected_etag=stored[ETAG_FIELD])
    assert (await mem.find_by_id("docs", "a"))["v"] == 2


async def test_replace_missing_record(mem: InMemoryRecordStore) -> None:
    with pytest.raises(NotFoundError):
        await mem.replace("docs", {"id": "ghost"})


async def test_delete(mem: InMemoryRecordStore) -> None:
    await mem.insert("docs", {"id": "a"})
    await mem.delete("docs", "a")
    assert await mem.find_by_id("docs", "a") is None
    with pytest.raises(NotFoundError):
        await mem.delete("docs", "a")


async def test_ping(mem: InMemoryRecordStore) -> None:
    assert await mem.ping() is True
