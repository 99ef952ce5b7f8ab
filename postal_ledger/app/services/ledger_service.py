"""
Ledger Service - transaction processing for the postal contract.

Wraps each contract call in an invocation: per-key lock, a fresh event
buffer, commit or rollback of the session, then event fan-out.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from postal_ledger.app.core.config import settings
from postal_ledger.app.domain.ledger.contract import PostalContract
from postal_ledger.app.domain.ledger.interfaces import StateStore, StaticIdentity
from postal_ledger.app.domain.ledger.records import ParcelRecord
from postal_ledger.app.models.parcel_enums import ParcelStatus
from postal_ledger.app.services.event_hub import (
    ChaincodeEvent,
    EventHub,
    TransactionEvents,
    event_hub,
    record_event,
)
from postal_ledger.app.services.key_locks import KeyLockRegistry
from postal_ledger.app.services.state_store import MemoryStateStore, RedisStateStore, SqlStateStore

logger = logging.getLogger("postal_ledger")

STATE_BACKENDS = ("sql", "redis", "memory")


@dataclass
class TransactionResult:
    """Outcome of one committed (or evaluated) invocation."""
    tx_id: str
    parcel: ParcelRecord
    event: Optional[ChaincodeEvent] = None


class LedgerService:
    """
    Submit/evaluate entry point for parcel transactions.

    Args:
        hub: Event hub receiving committed events
        backend: World state backend ("sql", "redis" or "memory")
        redis_client: Client for the redis backend
        memory_store: Shared store for the memory backend
    """

    def __init__(
        self,
        hub: EventHub,
        backend: str = "sql",
        redis_client=None,
        memory_store: Optional[MemoryStateStore] = None
    ):
        if backend not in STATE_BACKENDS:
            raise ValueError(f"Unknown state backend '{backend}'. Expected one of: {', '.join(STATE_BACKENDS)}")
        if backend == "redis" and redis_client is None:
            raise ValueError("redis backend requires a redis client")
        self.hub = hub
        self.backend = backend
        self.redis_client = redis_client
        self.memory_store = memory_store or MemoryStateStore()
        self.locks = KeyLockRegistry()

    def store_for(self, db: AsyncSession, read_only: bool = False) -> StateStore:
        if self.backend == "sql":
            return SqlStateStore(db, lock_rows=not read_only)
        if self.backend == "redis":
            return RedisStateStore(self.redis_client)
        return self.memory_store

    async def _invoke(
        self,
        db: AsyncSession,
        caller: str,
        parcel_id: str,
        operation: Callable[[PostalContract], Awaitable[ParcelRecord]],
        read_only: bool = False
    ) -> TransactionResult:
        tx_id = uuid.uuid4().hex
        events = TransactionEvents(tx_id)

        async with self.locks.hold(parcel_id):
            contract = PostalContract(self.store_for(db, read_only), events, StaticIdentity(caller))
            try:
                parcel = await operation(contract)
                if not read_only:
                    if events.pending is not None:
                        record_event(db, events.pending, parcel_id=parcel_id)
                    await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.debug("tx %s finished for %s", tx_id, parcel_id)
        if events.pending is not None:
            self.hub.publish(events.pending)
        return TransactionResult(tx_id=tx_id, parcel=parcel, event=events.pending)

    async def create_parcel(self, db: AsyncSession, caller: str, parcel_id: str, destination: str) -> TransactionResult:
        return await self._invoke(
            db, caller, parcel_id,
            lambda contract: contract.create_parcel(parcel_id, destination)
        )

    async def transport(self, db: AsyncSession, caller: str, parcel_id: str, new_address: str) -> TransactionResult:
        return await self._invoke(
            db, caller, parcel_id,
            lambda contract: contract.transport(parcel_id, new_address)
        )

    async def change_status(self, db: AsyncSession, caller: str, parcel_id: str, new_status: str | ParcelStatus) -> TransactionResult:
        return await self._invoke(
            db, caller, parcel_id,
            lambda contract: contract.change_status(parcel_id, new_status)
        )

    async def query_parcel(self, db: AsyncSession, caller: str, parcel_id: str) -> TransactionResult:
        return await self._invoke(
            db, caller, parcel_id,
            lambda contract: contract.query_parcel(parcel_id),
            read_only=True
        )


def build_ledger_service() -> LedgerService:
    """Build the service for the configured backend."""
    redis_client = None
    if settings.state_backend == "redis":
        from postal_ledger.app.core.redis_client import redis_client
    return LedgerService(event_hub, backend=settings.state_backend, redis_client=redis_client)


ledger_service = build_ledger_service()


async def get_ledger_service() -> LedgerService:
    """FastAPI dependency for the ledger service."""
    return ledger_service
