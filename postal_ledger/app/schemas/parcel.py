"""
Parcel Pydantic schemas.

Defines request models for parcel transactions. Responses are the ledger
record itself (ParcelRecord), serialized with its camelCase field names.
"""

from pydantic import BaseModel, Field


class ParcelCreate(BaseModel):
    """Schema for creating a new parcel."""
    id: str = Field(..., min_length=1, max_length=255, description="Parcel identifier (ledger key)")
    destination: str = Field(..., min_length=1, max_length=500, description="Delivery address")


class ParcelTransport(BaseModel):
    """Schema for moving a parcel."""
    new_address: str = Field(..., min_length=1, max_length=500, description="Address the parcel is moved to")


class ParcelStatusChange(BaseModel):
    """Schema for changing a parcel's condition."""
    status: str = Field(..., min_length=1, description="GOOD, DAMAGED or DESTROYED (any case)")
