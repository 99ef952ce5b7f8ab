"""
Security guards for role-based access control.
"""

from typing import List
from fastapi import Depends
from postal_ledger.app.core.exceptions import InsufficientPermissionsError
from postal_ledger.app.models.enums import IdentityRole
from postal_ledger.app.core.dependencies import get_current_identity


def require_role(allowed_roles: List[IdentityRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.post("/identities")
        async def register(current: dict = Depends(require_role([IdentityRole.ADMIN]))):
            ...

    Raises:
        InsufficientPermissionsError if the identity's role is not allowed
    """
    async def role_checker(current_identity: dict = Depends(get_current_identity)) -> dict:
        try:
            role = IdentityRole(current_identity.get("role"))
        except ValueError:
            raise InsufficientPermissionsError("Invalid role in token")

        if role not in allowed_roles:
            raise InsufficientPermissionsError(
                f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )

        return current_identity

    return role_checker


require_admin = require_role([IdentityRole.ADMIN])
