"""
World state store tests (memory, SQL, Redis).
"""

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import postgresql

from postal_ledger.app.models.world_state import WorldStateEntry
from postal_ledger.app.services.state_store import MemoryStateStore, RedisStateStore, SqlStateStore


@pytest.mark.asyncio
async def test_memory_store_round_trip():
    store = MemoryStateStore()
    assert await store.get("PKG001") is None

    await store.put("PKG001", b'{"id":"PKG001"}')
    assert await store.get("PKG001") == b'{"id":"PKG001"}'
    assert store.keys() == ["PKG001"]


@pytest.mark.asyncio
async def test_sql_store_reads_its_own_writes(db_session):
    store = SqlStateStore(db_session)
    assert await store.get("PKG001") is None

    await store.put("PKG001", b"v1")
    assert await store.get("PKG001") == b"v1"


@pytest.mark.asyncio
async def test_sql_store_versions_updates(db_session):
    store = SqlStateStore(db_session)
    await store.put("PKG001", b"v1")
    await store.put("PKG001", b"v2")
    await db_session.commit()

    result = await db_session.execute(select(WorldStateEntry).where(WorldStateEntry.key == "PKG001"))
    entry = result.scalar_one()
    assert entry.value == b"v2"
    assert entry.version == 2


@pytest.mark.asyncio
async def test_sql_store_rollback_discards_write(db_session):
    store = SqlStateStore(db_session)
    await store.put("PKG001", b"v1")
    await db_session.rollback()

    assert await store.get("PKG001") is None


@pytest.mark.asyncio
async def test_redis_store_uses_prefix(mock_redis):
    store = RedisStateStore(mock_redis, prefix="postal:state:")
    assert await store.get("PKG001") is None

    await store.put("PKG001", b"v1")
    assert mock_redis.store == {"postal:state:PKG001": b"v1"}
    assert await store.get("PKG001") == b"v1"


@pytest.mark.asyncio
async def test_redis_store_accepts_decoded_values(mock_redis):
    store = RedisStateStore(mock_redis, prefix="")
    mock_redis.store["PKG001"] = '{"id":"PKG001"}'

    assert await store.get("PKG001") == b'{"id":"PKG001"}'


def test_sql_store_locks_rows_only_for_writes():
    dialect = postgresql.dialect()

    writer = SqlStateStore(None)
    reader = SqlStateStore(None, lock_rows=False)

    assert "FOR UPDATE" in str(writer._select("PKG001").compile(dialect=dialect))
    assert "FOR UPDATE" not in str(reader._select("PKG001").compile(dialect=dialect))
