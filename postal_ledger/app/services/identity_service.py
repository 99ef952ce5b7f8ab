"""
Identity Service - registration and enrollment.

Plays the part of the organisation's certificate authority: the admin
registers identities (getting back an enrollment secret) and identities
enroll with that secret to obtain a signed access token.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from postal_ledger.app.core.config import settings
from postal_ledger.app.core.exceptions import (
    AuthenticationError,
    IdentityExistsError,
    InvalidArgumentError,
)
from postal_ledger.app.core.jwt import create_access_token
from postal_ledger.app.core.security import generate_enrollment_secret, get_secret_hash, verify_secret
from postal_ledger.app.models.enums import IdentityRole
from postal_ledger.app.models.identity import Identity

logger = logging.getLogger("postal_ledger")


def format_identity_id(username: str, role: IdentityRole) -> str:
    """Client identity string recorded as a parcel's owner."""
    return f"x509::/OU={role.value}/CN={username}::/CN={settings.ca_name}"


def build_attributes(role: IdentityRole) -> dict:
    """Certificate attributes carried by an enrolled identity."""
    return {
        "role": role.value,
        "postalEmployee": str(role == IdentityRole.EMPLOYEE).lower(),
    }


async def get_identity(db: AsyncSession, username: str) -> Optional[Identity]:
    result = await db.execute(select(Identity).where(Identity.username == username))
    return result.scalar_one_or_none()


async def ensure_admin(db: AsyncSession) -> Identity:
    """Register the bootstrap admin from settings if it is missing."""
    admin = await get_identity(db, settings.admin_username)
    if admin:
        return admin

    admin = Identity(
        username=settings.admin_username,
        role=IdentityRole.ADMIN,
        msp_id=settings.msp_id,
        affiliation=settings.affiliation,
        attributes=build_attributes(IdentityRole.ADMIN),
        hashed_secret=get_secret_hash(settings.admin_secret),
        enrolled=False,
    )
    db.add(admin)
    await db.commit()
    await db.refresh(admin)
    logger.info("Bootstrap admin %s registered", admin.username)
    return admin


async def register_identity(
    db: AsyncSession,
    username: str,
    role: IdentityRole = IdentityRole.CLIENT,
    secret: Optional[str] = None
) -> Tuple[Identity, str]:
    """
    Register a new identity.

    Args:
        db: Database session
        username: Enrollment id, unique
        role: client or employee (admins are bootstrapped, never registered)
        secret: Enrollment secret to use; generated when omitted

    Returns:
        (identity, enrollment secret in clear text)

    Raises:
        InvalidArgumentError: empty username or admin role requested
        IdentityExistsError: username already registered
    """
    if not username or not username.strip():
        raise InvalidArgumentError("username must not be empty", argument="username")
    if role == IdentityRole.ADMIN:
        raise InvalidArgumentError("Admin identities cannot be registered", argument="role")

    if await get_identity(db, username):
        raise IdentityExistsError(username)

    secret = secret or generate_enrollment_secret()
    identity = Identity(
        username=username,
        role=role,
        msp_id=settings.msp_id,
        affiliation=settings.affiliation,
        attributes=build_attributes(role),
        hashed_secret=get_secret_hash(secret),
        enrolled=False,
    )
    db.add(identity)
    await db.commit()
    await db.refresh(identity)

    logger.info("Identity %s registered with role %s", username, role.value)
    return identity, secret


async def enroll_identity(db: AsyncSession, username: str, secret: str) -> Tuple[Identity, str]:
    """
    Exchange an enrollment secret for an access token.

    Returns:
        (identity, access token)

    Raises:
        AuthenticationError: unknown username or wrong secret
    """
    identity = await get_identity(db, username)
    if not identity or not verify_secret(secret, identity.hashed_secret):
        logger.warning("Enrollment failed for %s", username)
        raise AuthenticationError("Invalid enrollment id or secret")

    identity.enrolled = True
    identity.enrolled_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(identity)

    return identity, issue_token(identity)


def issue_token(identity: Identity) -> str:
    return create_access_token(data={
        "sub": identity.username,
        "identity": format_identity_id(identity.username, identity.role),
        "role": identity.role.value,
        "msp_id": identity.msp_id,
    })
