"""
Audit logging service for ledger transactions and membership actions.

Provides centralized logging for compliance monitoring.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from postal_ledger.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    PARCEL_CREATED = "PARCEL_CREATED"
    PARCEL_TRANSPORTED = "PARCEL_TRANSPORTED"
    PARCEL_STATUS_CHANGED = "PARCEL_STATUS_CHANGED"

    IDENTITY_REGISTERED = "IDENTITY_REGISTERED"
    IDENTITY_ENROLLED = "IDENTITY_ENROLLED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor: Optional[str] = None,
    target: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Log a ledger or membership event to the audit log.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor: Identity string of whoever performed the action
        target: Parcel id or username acted upon
        metadata: Additional context as JSON

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor=actor,
        action=action,
        target=target,
        meta_data=metadata
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log

