"""
Event Hub - chaincode event delivery.

A transaction collects its event in a TransactionEvents buffer (the
EventSink handed to the contract). After the transaction commits, the hub
records it and notifies in-process subscribers without waiting on them.
"""

import asyncio
import inspect
import json
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from postal_ledger.app.models.ledger_event import LedgerEvent

logger = logging.getLogger("postal_ledger")


@dataclass
class ChaincodeEvent:
    """An event as seen by subscribers."""
    event_name: str
    payload: bytes
    tx_id: str

    def json(self) -> dict:
        return json.loads(self.payload.decode("utf-8"))


class TransactionEvents:
    """
    EventSink for a single transaction.

    Like a peer's stub, a transaction carries at most one event: a later
    set_event replaces an earlier one.
    """

    def __init__(self, tx_id: str):
        self.tx_id = tx_id
        self.pending: Optional[ChaincodeEvent] = None

    def set_event(self, name: str, payload: bytes) -> None:
        if not name:
            raise ValueError("event name must not be empty")
        self.pending = ChaincodeEvent(event_name=name, payload=bytes(payload), tx_id=self.tx_id)


Subscriber = Callable[[ChaincodeEvent], object]


class EventHub:
    """Fan-out of committed chaincode events to in-process listeners."""

    def __init__(self):
        self._subscribers: List[Subscriber] = []
        self._tasks: set = set()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a listener (sync or async). Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def _deliver(self, callback: Subscriber, event: ChaincodeEvent) -> None:
        try:
            result = callback(event)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Event subscriber failed for %s (tx %s)", event.event_name, event.tx_id)

    def publish(self, event: ChaincodeEvent) -> None:
        """Schedule delivery to every subscriber and return immediately."""
        loop = asyncio.get_running_loop()
        for callback in list(self._subscribers):
            task = loop.create_task(self._deliver(callback, event))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for in-flight deliveries (shutdown and tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


def record_event(db: AsyncSession, event: ChaincodeEvent, parcel_id: Optional[str] = None) -> LedgerEvent:
    """Stage a LedgerEvent row in the caller's transaction."""
    row = LedgerEvent(
        event_name=event.event_name,
        parcel_id=parcel_id,
        payload=event.payload.decode("utf-8"),
        tx_id=event.tx_id,
    )
    db.add(row)
    return row


async def list_events(
    db: AsyncSession,
    parcel_id: Optional[str] = None,
    event_name: Optional[str] = None,
    tx_id: Optional[str] = None,
    after_id: int = 0,
    limit: int = 100
) -> list[LedgerEvent]:
    """
    Committed events in emission order.

    Args:
        db: Database session
        parcel_id: Only events for this parcel
        event_name: Only events with this name
        tx_id: Only the event of this transaction
        after_id: Only events with a larger id (for polling)
        limit: Maximum number of rows
    """
    query = select(LedgerEvent).where(LedgerEvent.id > after_id)

    if parcel_id:
        query = query.where(LedgerEvent.parcel_id == parcel_id)

    if event_name:
        query = query.where(LedgerEvent.event_name == event_name)

    if tx_id:
        query = query.where(LedgerEvent.tx_id == tx_id)

    query = query.order_by(LedgerEvent.id).limit(limit)

    result = await db.execute(query)
    return result.scalars().all()


# Process-wide hub used by the API
event_hub = EventHub()
