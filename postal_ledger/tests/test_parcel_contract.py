"""
Unit tests for the postal contract.

Runs the contract directly against an in-memory store and a recording
event sink.
"""

import json
import pytest

from postal_ledger.app.core.exceptions import InvalidArgumentError, InvalidTransitionError, NotFoundError
from postal_ledger.app.domain.ledger.contract import PostalContract
from postal_ledger.app.domain.ledger.interfaces import StaticIdentity
from postal_ledger.app.domain.ledger.records import INITIAL_ADDRESS, ParcelRecord
from postal_ledger.app.models.parcel_enums import ParcelStatus
from postal_ledger.app.services.state_store import MemoryStateStore

OWNER = "x509::/OU=employee/CN=postalWorker::/CN=ca.org1.postal.com"


class RecordingSink:
    def __init__(self):
        self.events = []

    def set_event(self, name, payload):
        self.events.append((name, json.loads(payload)))


class FailingStore(MemoryStateStore):
    async def put(self, key, value):
        raise ConnectionError("state database unavailable")


@pytest.fixture
def store():
    return MemoryStateStore()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def contract(store, sink):
    return PostalContract(store, sink, StaticIdentity(OWNER))


@pytest.mark.asyncio
async def test_create_then_query(contract):
    created = await contract.create_parcel("PKG001", "Atlanta")
    queried = await contract.query_parcel("PKG001")

    assert queried == created
    assert queried.status == ParcelStatus.GOOD
    assert queried.current_address == "Sorting Center"
    assert queried.destination == "Atlanta"
    assert queried.owner == OWNER


@pytest.mark.asyncio
async def test_stored_record_format(contract, store):
    await contract.create_parcel("PKG001", "Atlanta")

    raw = await store.get("PKG001")
    assert raw == (
        b'{"docType":"parcel","id":"PKG001","destination":"Atlanta",'
        b'"currentAddress":"Sorting Center","status":"GOOD","owner":"' + OWNER.encode() + b'"}'
    )
    assert ParcelRecord.from_bytes(raw).doc_type == "parcel"


@pytest.mark.asyncio
async def test_create_overwrites_existing_parcel(contract):
    await contract.create_parcel("PKG001", "Atlanta")
    await contract.transport("PKG001", "Nairobi")
    await contract.change_status("PKG001", "DAMAGED")

    recreated = await contract.create_parcel("PKG001", "Lagos")

    assert recreated.destination == "Lagos"
    assert recreated.current_address == "Sorting Center"
    assert recreated.status == ParcelStatus.GOOD
    assert (await contract.query_parcel("PKG001")) == recreated


@pytest.mark.asyncio
@pytest.mark.parametrize("parcel_id,destination", [("", "Atlanta"), ("PKG001", ""), ("  ", "Atlanta")])
async def test_create_rejects_empty_arguments(contract, store, parcel_id, destination):
    with pytest.raises(InvalidArgumentError):
        await contract.create_parcel(parcel_id, destination)
    assert store.keys() == []


@pytest.mark.asyncio
async def test_query_missing_parcel(contract):
    with pytest.raises(NotFoundError) as exc:
        await contract.query_parcel("NOPE")
    assert exc.value.message == "NOPE does not exist"


@pytest.mark.asyncio
async def test_transport_and_change_status_require_existing_parcel(contract, store):
    with pytest.raises(NotFoundError):
        await contract.transport("NOPE", "Atlanta")
    with pytest.raises(NotFoundError):
        await contract.change_status("NOPE", "DAMAGED")
    assert store.keys() == []


@pytest.mark.asyncio
async def test_transport_away_from_destination_emits_nothing(contract, sink):
    await contract.create_parcel("PKG001", "Atlanta")
    parcel = await contract.transport("PKG001", "Nairobi")

    assert parcel.current_address == "Nairobi"
    assert sink.events == []


@pytest.mark.asyncio
async def test_transport_to_destination_emits_distribution(contract, sink):
    await contract.create_parcel("PKG001", "Atlanta")
    parcel = await contract.transport("PKG001", "Atlanta")

    assert parcel.current_address == "Atlanta"
    assert sink.events == [("Distribution", {"id": "PKG001", "msg": "Delivered"})]


@pytest.mark.asyncio
async def test_repeated_delivery_fires_every_time(contract, sink):
    await contract.create_parcel("PKG001", "Atlanta")
    await contract.transport("PKG001", "Atlanta")
    await contract.transport("PKG001", "Atlanta")

    assert len(sink.events) == 2


@pytest.mark.asyncio
async def test_destination_match_is_exact(contract, sink):
    await contract.create_parcel("PKG001", "Atlanta")
    await contract.transport("PKG001", "atlanta")

    assert sink.events == []


@pytest.mark.asyncio
async def test_destroyed_parcel_can_still_be_transported(contract):
    await contract.create_parcel("PKG001", "Atlanta")
    await contract.change_status("PKG001", "DESTROYED")

    parcel = await contract.transport("PKG001", "Landfill")
    assert parcel.current_address == "Landfill"
    assert parcel.status == ParcelStatus.DESTROYED


@pytest.mark.asyncio
@pytest.mark.parametrize("requested", ["GOOD", "DAMAGED", "DESTROYED"])
async def test_destroyed_is_terminal(contract, requested):
    await contract.create_parcel("PKG001", "Atlanta")
    await contract.change_status("PKG001", "DESTROYED")

    with pytest.raises(InvalidTransitionError) as exc:
        await contract.change_status("PKG001", requested)
    assert exc.value.message == "Parcel is DESTROYED"


@pytest.mark.asyncio
async def test_damaged_cannot_be_repaired(contract):
    await contract.create_parcel("PKG001", "Atlanta")
    await contract.change_status("PKG001", "DAMAGED")

    with pytest.raises(InvalidTransitionError) as exc:
        await contract.change_status("PKG001", "GOOD")
    assert exc.value.message == "Cannot repair DAMAGED parcel"
    assert (await contract.query_parcel("PKG001")).status == ParcelStatus.DAMAGED


@pytest.mark.asyncio
async def test_good_to_good_is_allowed(contract):
    await contract.create_parcel("PKG001", "Atlanta")
    parcel = await contract.change_status("PKG001", "GOOD")
    assert parcel.status == ParcelStatus.GOOD


@pytest.mark.asyncio
async def test_status_is_case_insensitive(contract):
    await contract.create_parcel("PKG001", "Atlanta")
    parcel = await contract.change_status("PKG001", "damaged")
    assert parcel.status == ParcelStatus.DAMAGED


@pytest.mark.asyncio
async def test_unknown_status_leaves_record_untouched(contract, store):
    await contract.create_parcel("PKG001", "Atlanta")
    before = await store.get("PKG001")

    with pytest.raises(InvalidArgumentError):
        await contract.change_status("PKG001", "LOST")

    assert await store.get("PKG001") == before


@pytest.mark.asyncio
async def test_storage_failure_propagates(sink):
    contract = PostalContract(FailingStore(), sink, StaticIdentity(OWNER))

    with pytest.raises(ConnectionError):
        await contract.create_parcel("PKG001", "Atlanta")


@pytest.mark.asyncio
async def test_lifecycle_scenario(contract, sink):
    await contract.create_parcel("PKG001", "Atlanta")

    await contract.transport("PKG001", "Nairobi")
    assert sink.events == []

    parcel = await contract.transport("PKG001", "Atlanta")
    assert parcel.current_address == "Atlanta"
    assert len(sink.events) == 1

    assert (await contract.change_status("PKG001", "DAMAGED")).status == ParcelStatus.DAMAGED

    with pytest.raises(InvalidTransitionError):
        await contract.change_status("PKG001", "GOOD")

    assert (await contract.change_status("PKG001", "DESTROYED")).status == ParcelStatus.DESTROYED

    with pytest.raises(InvalidTransitionError):
        await contract.change_status("PKG001", "GOOD")

    final = await contract.query_parcel("PKG001")
    assert final.status == ParcelStatus.DESTROYED
    assert final.current_address == "Atlanta"


@pytest.mark.asyncio
async def test_initial_address_is_fixed(contract):
    parcel = await contract.create_parcel("PKG001", "Atlanta")
    assert parcel.current_address == INITIAL_ADDRESS == "Sorting Center"
