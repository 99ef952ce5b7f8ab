"""
World state stores.

Three interchangeable StateStore implementations: an in-process dict, a SQL
table (committed with the request's session) and Redis.
"""

from typing import Dict, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from postal_ledger.app.core.config import settings
from postal_ledger.app.models.world_state import WorldStateEntry


class MemoryStateStore:
    """Dict-backed store. Shared by every request when selected as backend."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})

    async def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    async def put(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    def keys(self):
        return list(self._data)


class SqlStateStore:
    """
    Store rows in the world_state table through the caller's session.

    Writes are flushed immediately so a later get in the same invocation
    sees them; the caller commits or rolls back. With lock_rows the rows read
    are locked (SELECT ... FOR UPDATE) until then; read-only invocations
    pass lock_rows=False.
    """

    def __init__(self, db: AsyncSession, lock_rows: bool = True):
        self.db = db
        self.lock_rows = lock_rows

    def _select(self, key: str):
        query = select(WorldStateEntry).where(WorldStateEntry.key == key)
        if self.lock_rows:
            query = query.with_for_update()
        return query

    async def _entry(self, key: str) -> Optional[WorldStateEntry]:
        result = await self.db.execute(self._select(key))
        return result.scalar_one_or_none()

    async def get(self, key: str) -> Optional[bytes]:
        entry = await self._entry(key)
        return entry.value if entry else None

    async def put(self, key: str, value: bytes) -> None:
        entry = await self._entry(key)
        if entry is None:
            self.db.add(WorldStateEntry(key=key, value=value, version=1))
        else:
            entry.value = value
            entry.version = entry.version + 1
        await self.db.flush()


class RedisStateStore:
    """Store values under a key prefix in Redis."""

    def __init__(self, client, prefix: str = None):
        self.client = client
        self.prefix = prefix if prefix is not None else settings.redis_key_prefix

    async def get(self, key: str) -> Optional[bytes]:
        value = await self.client.get(f"{self.prefix}{key}")
        if isinstance(value, str):
            value = value.encode("utf-8")
        return value

    async def put(self, key: str, value: bytes) -> None:
        await self.client.set(f"{self.prefix}{key}", value)
