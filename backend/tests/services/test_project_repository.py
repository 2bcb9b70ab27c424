"""Project Repository - verifies the SQL-backed ProjectStore on aiosqlite.

Tests:
    - upsert inserts, then overwrites in place keeping created_at
    - list() newest first; get() of unknown id is None; delete removes
    - Count and byte quotas raise QuotaExceededError and store nothing
"""

import pytest

from mindcanvas.core.errors import QuotaExceededError
from mindcanvas.infrastructure.project_repository import SqlProjectStore


def _record(project_id, updated_at=1000, name="Map", created_at=1000):
    return {
        "id": project_id,
        "name": name,
        "nodes": [{"id": "root", "kind": "root", "label": "T", "position": {"x": 0, "y": 0}}],
        "edges": [],
        "viewport": None,
        "createdAt": created_at,
        "updatedAt": updated_at,
    }


async def test_upsert_then_get(test_db):
    store = SqlProjectStore(test_db)
    await store.upsert(_record("p1"))
    assert await store.get("p1") == _record("p1")


async def test_get_unknown_is_none(test_db):
    assert await SqlProjectStore(test_db).get("missing") is None


async def test_overwrite_keeps_created_at(test_db):
    store = SqlProjectStore(test_db)
    await store.upsert(_record("p1", updated_at=1000, created_at=1000))
    await store.upsert(_record("p1", updated_at=2000, created_at=9999, name="Renamed"))
    record = await store.get("p1")
    assert record["createdAt"] == 1000
    assert record["updatedAt"] == 2000
    assert record["name"] == "Renamed"
    assert len(await store.list()) == 1


async def test_list_newest_first(test_db):
    store = SqlProjectStore(test_db)
    await store.upsert(_record("old", updated_at=1))
    await store.upsert(_record("new", updated_at=3))
    await store.upsert(_record("mid", updated_at=2))
    assert [r["id"] for r in await store.list()] == ["new", "mid", "old"]


async def test_delete(test_db):
    store = SqlProjectStore(test_db)
    await store.upsert(_record("p1"))
    await store.delete("p1")
    assert await store.get("p1") is None


async def test_count_quota(test_db):
    store = SqlProjectStore(test_db, quota=2)
    await store.upsert(_record("a"))
    await store.upsert(_record("b"))
    with pytest.raises(QuotaExceededError) as exc:
        await store.upsert(_record("c"))
    assert exc.value.http_status == 507
    assert await store.get("c") is None
    # overwriting an existing project is still allowed at capacity
    await store.upsert(_record("a", updated_at=5))


async def test_byte_quota(test_db):
    store = SqlProjectStore(test_db, max_bytes=200)
    record = _record("big", name="x" * 500)
    with pytest.raises(QuotaExceededError):
        await store.upsert(record)
    assert await store.list() == []
