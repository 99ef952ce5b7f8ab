"""
Identity Pydantic schemas.

Defines request and response schemas for registration and enrollment.
"""

from pydantic import BaseModel, Field
from typing import Dict
from postal_ledger.app.models.enums import IdentityRole


class IdentityRegister(BaseModel):
    """Schema for registering an identity (admin only)."""
    username: str = Field(..., min_length=1, max_length=100, description="Enrollment id")
    role: IdentityRole = Field(default=IdentityRole.CLIENT, description="client or employee")


class EnrollRequest(BaseModel):
    """Schema for enrolling with an enrollment secret."""
    username: str = Field(..., min_length=1, description="Enrollment id")
    secret: str = Field(..., min_length=1, description="Enrollment secret")


class RegistrationResponse(BaseModel):
    """Returned by registration. The secret is shown only once."""
    username: str
    role: IdentityRole
    msp_id: str
    affiliation: str
    attributes: Dict[str, str]
    enrollment_secret: str


class EnrollmentResponse(BaseModel):
    """Returned by successful enrollment."""
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    username: str
    identity: str = Field(..., description="Client identity string")
    role: IdentityRole
    msp_id: str


class IdentityResponse(BaseModel):
    """The caller's identity as resolved from its token."""
    username: str
    identity: str
    role: IdentityRole
    msp_id: str
