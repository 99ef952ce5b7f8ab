"""
Ledger service tests: invocation boundaries across backends.
"""

import asyncio
import pytest

from postal_ledger.app.core.exceptions import InvalidTransitionError, NotFoundError
from postal_ledger.app.models.parcel_enums import ParcelStatus
from postal_ledger.app.services.event_hub import EventHub, list_events
from postal_ledger.app.services.ledger_service import LedgerService

CALLER = "x509::/OU=employee/CN=postalWorker::/CN=ca.org1.postal.com"


@pytest.fixture
def hub():
    return EventHub()


@pytest.mark.asyncio
async def test_unknown_backend_rejected(hub):
    with pytest.raises(ValueError):
        LedgerService(hub, backend="couchdb")


@pytest.mark.asyncio
async def test_redis_backend_requires_client(hub):
    with pytest.raises(ValueError):
        LedgerService(hub, backend="redis")


@pytest.mark.asyncio
async def test_sql_backend_commits_parcel(hub, db_session):
    ledger = LedgerService(hub, backend="sql")

    result = await ledger.create_parcel(db_session, CALLER, "PKG001", "Atlanta")
    assert result.parcel.owner == CALLER
    assert result.event is None
    assert len(result.tx_id) == 32

    queried = await ledger.query_parcel(db_session, CALLER, "PKG001")
    assert queried.parcel == result.parcel


@pytest.mark.asyncio
async def test_delivery_event_recorded_and_published(hub, db_session):
    ledger = LedgerService(hub, backend="sql")
    received = []
    hub.subscribe(received.append)

    await ledger.create_parcel(db_session, CALLER, "PKG001", "Atlanta")
    result = await ledger.transport(db_session, CALLER, "PKG001", "Atlanta")
    await hub.drain()

    assert result.event.event_name == "Distribution"
    assert [e.tx_id for e in received] == [result.tx_id]

    rows = await list_events(db_session, parcel_id="PKG001")
    assert len(rows) == 1
    assert rows[0].tx_id == result.tx_id
    assert rows[0].payload == '{"id":"PKG001","msg":"Delivered"}'


@pytest.mark.asyncio
async def test_rejected_transition_publishes_nothing(hub, db_session):
    ledger = LedgerService(hub, backend="sql")
    received = []
    hub.subscribe(received.append)

    await ledger.create_parcel(db_session, CALLER, "PKG001", "Atlanta")
    await ledger.change_status(db_session, CALLER, "PKG001", "DAMAGED")

    with pytest.raises(InvalidTransitionError):
        await ledger.change_status(db_session, CALLER, "PKG001", "GOOD")

    await hub.drain()
    assert received == []
    assert (await ledger.query_parcel(db_session, CALLER, "PKG001")).parcel.status == ParcelStatus.DAMAGED


@pytest.mark.asyncio
async def test_memory_backend_shares_state_across_sessions(hub, db_session):
    ledger = LedgerService(hub, backend="memory")

    await ledger.create_parcel(db_session, CALLER, "PKG001", "Atlanta")
    assert ledger.memory_store.keys() == ["PKG001"]

    with pytest.raises(NotFoundError):
        await ledger.transport(db_session, CALLER, "PKG002", "Atlanta")


@pytest.mark.asyncio
async def test_redis_backend(hub, db_session, mock_redis):
    ledger = LedgerService(hub, backend="redis", redis_client=mock_redis)

    await ledger.create_parcel(db_session, CALLER, "PKG001", "Atlanta")
    result = await ledger.transport(db_session, CALLER, "PKG001", "Atlanta")

    assert result.event is not None
    assert any(key.endswith("PKG001") for key in mock_redis.store)
    assert len(await list_events(db_session, parcel_id="PKG001")) == 1


@pytest.mark.asyncio
async def test_concurrent_transports_on_one_parcel_all_apply(hub):
    ledger = LedgerService(hub, backend="memory")

    class NullSession:
        async def commit(self):
            pass

        async def rollback(self):
            pass

        def add(self, obj):
            pass

    db = NullSession()
    await ledger.create_parcel(db, CALLER, "PKG001", "Atlanta")

    addresses = [f"Hub {i}" for i in range(10)] + ["Atlanta"]
    results = await asyncio.gather(*[ledger.transport(db, CALLER, "PKG001", a) for a in addresses])

    assert sum(1 for r in results if r.event is not None) == 1
    final = await ledger.query_parcel(db, CALLER, "PKG001")
    assert final.parcel.current_address == "Atlanta"


@pytest.mark.asyncio
async def test_sql_queries_do_not_lock_rows(hub, db_session):
    ledger = LedgerService(hub, backend="sql")

    assert ledger.store_for(db_session).lock_rows is True
    assert ledger.store_for(db_session, read_only=True).lock_rows is False
