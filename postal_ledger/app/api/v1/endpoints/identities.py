"""
Identity API endpoints.

Admin enrollment, identity registration (admin only), enrollment and
identity lookup.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from postal_ledger.app.core.config import settings
from postal_ledger.app.core.dependencies import get_current_identity
from postal_ledger.app.core.exceptions import AuthenticationError
from postal_ledger.app.core.guards import require_admin
from postal_ledger.app.db.session import get_db
from postal_ledger.app.schemas.identity import (
    EnrollRequest,
    EnrollmentResponse,
    IdentityRegister,
    IdentityResponse,
    RegistrationResponse,
)
from postal_ledger.app.services import identity_service
from postal_ledger.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/identities", tags=["Identities"])


def _enrollment_response(identity, token: str) -> EnrollmentResponse:
    return EnrollmentResponse(
        access_token=token,
        token_type="bearer",
        username=identity.username,
        identity=identity_service.format_identity_id(identity.username, identity.role),
        role=identity.role,
        msp_id=identity.msp_id
    )


@router.post("/admin/enroll", response_model=EnrollmentResponse)
async def enroll_admin(
    credentials: EnrollRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Enroll the bootstrap admin with the configured admin secret.
    """
    if credentials.username != settings.admin_username:
        raise AuthenticationError("Invalid enrollment id or secret")

    await identity_service.ensure_admin(db)
    identity, token = await identity_service.enroll_identity(db, credentials.username, credentials.secret)

    await log_event(
        db=db,
        action=AuditAction.IDENTITY_ENROLLED,
        actor=identity.username,
        target=identity.username,
        metadata={"role": identity.role.value}
    )

    return _enrollment_response(identity, token)


@router.post("", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
async def register_identity(
    registration: IdentityRegister,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new client or employee identity (admin only).

    The returned enrollment secret is not stored in clear text anywhere.
    """
    identity, secret = await identity_service.register_identity(db, registration.username, registration.role)

    await log_event(
        db=db,
        action=AuditAction.IDENTITY_REGISTERED,
        actor=admin["identity"],
        target=identity.username,
        metadata={"role": identity.role.value, "affiliation": identity.affiliation}
    )

    return RegistrationResponse(
        username=identity.username,
        role=identity.role,
        msp_id=identity.msp_id,
        affiliation=identity.affiliation,
        attributes=identity.attributes,
        enrollment_secret=secret
    )


@router.post("/enroll", response_model=EnrollmentResponse)
async def enroll(
    credentials: EnrollRequest,
    db: AsyncSession = Depends(get_db)
):
    """Exchange an enrollment secret for an access token."""
    identity, token = await identity_service.enroll_identity(db, credentials.username, credentials.secret)

    await log_event(
        db=db,
        action=AuditAction.IDENTITY_ENROLLED,
        actor=identity.username,
        target=identity.username,
        metadata={"role": identity.role.value}
    )

    return _enrollment_response(identity, token)


@router.get("/me", response_model=IdentityResponse)
async def me(current_identity: dict = Depends(get_current_identity)):
    """Identity of the caller as carried in its token."""
    return IdentityResponse(
        username=current_identity["sub"],
        identity=current_identity["identity"],
        role=current_identity["role"],
        msp_id=current_identity["msp_id"]
    )
