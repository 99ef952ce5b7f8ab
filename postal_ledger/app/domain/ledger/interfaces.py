"""
Collaborator interfaces for the parcel contract.

The contract never reaches for global state: storage, caller identity and
event emission are each handed in through one of these protocols.
"""

from typing import Optional, Protocol


class StateStore(Protocol):
    """Key-value world state. Exact-match keys, no range queries."""

    async def get(self, key: str) -> Optional[bytes]:
        ...

    async def put(self, key: str, value: bytes) -> None:
        ...


class IdentityProvider(Protocol):
    """Supplies the invoking client's identity as an opaque string."""

    def get_id(self) -> str:
        ...


class EventSink(Protocol):
    """Accepts a named event for out-of-band delivery to subscribers."""

    def set_event(self, name: str, payload: bytes) -> None:
        ...


class StaticIdentity:
    """IdentityProvider for a fixed, already-resolved identity string."""

    def __init__(self, identity_id: str):
        self.identity_id = identity_id

    def get_id(self) -> str:
        return self.identity_id
