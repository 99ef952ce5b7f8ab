"""
Postal Contract (Domain Logic).

The parcel state machine. Each operation is one read of a single key, an
optional write of that key and at most one event. The caller owns the
transaction boundary and per-key serialisation (see services/ledger_service).
"""

import logging
from typing import Optional, Union

from postal_ledger.app.core.exceptions import (
    InvalidArgumentError,
    InvalidTransitionError,
    NotFoundError,
)
from postal_ledger.app.domain.ledger.interfaces import EventSink, IdentityProvider, StateStore
from postal_ledger.app.domain.ledger.records import (
    DISTRIBUTION_EVENT,
    INITIAL_ADDRESS,
    ParcelRecord,
    distribution_payload,
)
from postal_ledger.app.models.parcel_enums import ParcelStatus

logger = logging.getLogger("postal_ledger")


def parse_status(value: Union[str, ParcelStatus]) -> ParcelStatus:
    """Normalise a status argument, accepting any letter case."""
    if isinstance(value, ParcelStatus):
        return value
    try:
        return ParcelStatus(str(value).strip().upper())
    except ValueError:
        valid = ", ".join(s.value for s in ParcelStatus)
        raise InvalidArgumentError(
            f"Invalid status '{value}'. Must be one of: {valid}",
            argument="status"
        )


def check_transition(current: ParcelStatus, requested: ParcelStatus) -> None:
    """
    Enforce the status ordering.

    DESTROYED is terminal, including DESTROYED -> DESTROYED.
    DAMAGED cannot go back to GOOD. Everything else is allowed.
    """
    if current == ParcelStatus.DESTROYED:
        raise InvalidTransitionError(
            "Parcel is DESTROYED",
            current_status=current.value,
            requested_status=requested.value
        )
    if current == ParcelStatus.DAMAGED and requested == ParcelStatus.GOOD:
        raise InvalidTransitionError(
            "Cannot repair DAMAGED parcel",
            current_status=current.value,
            requested_status=requested.value
        )


def _require(value: Optional[str], argument: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidArgumentError(f"{argument} must not be empty", argument=argument)
    return value


class PostalContract:
    """
    Parcel lifecycle operations over injected collaborators.

    Args:
        store: World state the parcel records live in
        events: Sink for chaincode events (Distribution)
        identity: Invoking client, recorded as owner on creation
    """

    def __init__(self, store: StateStore, events: EventSink, identity: IdentityProvider):
        self.store = store
        self.events = events
        self.identity = identity

    async def _load(self, parcel_id: str) -> ParcelRecord:
        raw = await self.store.get(parcel_id)
        if not raw:
            raise NotFoundError(parcel_id)
        return ParcelRecord.from_bytes(raw)

    async def create_parcel(self, parcel_id: str, destination: str) -> ParcelRecord:
        """
        Create a parcel at the sorting center in GOOD condition.

        An existing record under the same id is overwritten.
        """
        _require(parcel_id, "id")
        _require(destination, "destination")

        parcel = ParcelRecord(
            id=parcel_id,
            destination=destination,
            current_address=INITIAL_ADDRESS,
            status=ParcelStatus.GOOD,
            owner=self.identity.get_id(),
        )
        await self.store.put(parcel_id, parcel.to_bytes())
        logger.info("Parcel %s created for destination %r", parcel_id, destination)
        return parcel

    async def transport(self, parcel_id: str, new_address: str) -> ParcelRecord:
        """
        Move a parcel to a new address.

        Reaching the destination fires a Distribution event on every such
        call; status does not restrict transport.
        """
        _require(parcel_id, "id")
        _require(new_address, "new_address")

        parcel = await self._load(parcel_id)
        parcel.current_address = new_address

        if new_address == parcel.destination:
            self.events.set_event(DISTRIBUTION_EVENT, distribution_payload(parcel_id))
            logger.info("Parcel %s delivered to %r", parcel_id, new_address)

        await self.store.put(parcel_id, parcel.to_bytes())
        return parcel

    async def change_status(self, parcel_id: str, new_status: Union[str, ParcelStatus]) -> ParcelRecord:
        _require(parcel_id, "id")
        requested = parse_status(new_status)

        parcel = await self._load(parcel_id)
        try:
            check_transition(parcel.status, requested)
        except InvalidTransitionError as exc:
            logger.warning("Parcel %s: rejected %s -> %s (%s)",
                           parcel_id, parcel.status.value, requested.value, exc.message)
            raise

        parcel.status = requested
        await self.store.put(parcel_id, parcel.to_bytes())
        logger.info("Parcel %s status set to %s", parcel_id, requested.value)
        return parcel

    async def query_parcel(self, parcel_id: str) -> ParcelRecord:
        _require(parcel_id, "id")
        return await self._load(parcel_id)
