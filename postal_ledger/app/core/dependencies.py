"""
Authentication dependencies for FastAPI.

This module provides dependencies for protecting routes with JWT authentication.
"""

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from postal_ledger.app.core.exceptions import AuthenticationError
from postal_ledger.app.core.jwt import decode_access_token
from postal_ledger.app.db.session import get_db
from postal_ledger.app.models.identity import Identity

# HTTP Bearer security scheme
security = HTTPBearer(auto_error=False)


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    FastAPI dependency resolving the invoking identity.

    1. Validates JWT token signature and expiry
    2. Verifies the identity is still registered and enrolled

    Returns:
        Decoded token payload (sub, identity, role, msp_id)

    Raises:
        AuthenticationError: 401 if authentication fails for any reason
    """
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError("Could not validate credentials")

    username = payload.get("sub")
    if not username or not payload.get("identity"):
        raise AuthenticationError("Invalid token payload")

    result = await db.execute(select(Identity).where(Identity.username == username))
    identity = result.scalar_one_or_none()

    if not identity or not identity.enrolled:
        raise AuthenticationError(f'Identity "{username}" is not enrolled')

    return payload
