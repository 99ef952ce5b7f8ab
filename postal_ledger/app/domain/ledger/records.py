"""
Parcel ledger record and its storage encoding.

Records are stored as compact JSON objects with the field order
docType, id, destination, currentAddress, status, owner.
"""

import json
from pydantic import BaseModel, Field
from postal_ledger.app.models.parcel_enums import ParcelStatus

PARCEL_DOC_TYPE = "parcel"
DISTRIBUTION_EVENT = "Distribution"
DELIVERED_MESSAGE = "Delivered"
INITIAL_ADDRESS = "Sorting Center"


class ParcelRecord(BaseModel):
    """A parcel as held in world state."""
    doc_type: str = Field(default=PARCEL_DOC_TYPE, alias="docType")
    id: str
    destination: str
    current_address: str = Field(..., alias="currentAddress")
    status: ParcelStatus = ParcelStatus.GOOD
    owner: str

    class Config:
        populate_by_name = True

    def to_bytes(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode("utf-8")

    @classmethod
    def from_bytes(cls, raw: bytes) -> "ParcelRecord":
        return cls.model_validate_json(raw)


def distribution_payload(parcel_id: str) -> bytes:
    """Payload of the Distribution event fired when a parcel reaches its destination."""
    return json.dumps({"id": parcel_id, "msg": DELIVERED_MESSAGE}, separators=(",", ":")).encode("utf-8")
