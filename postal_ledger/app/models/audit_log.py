"""
Audit Log Database Model.

Tracks ledger transactions and membership actions for compliance monitoring.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from postal_ledger.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model for tracking ledger and membership events.

    Events logged:
    - PARCEL_CREATED / PARCEL_TRANSPORTED / PARCEL_STATUS_CHANGED
    - IDENTITY_REGISTERED / IDENTITY_ENROLLED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for system actions)
    actor = Column(String(255), nullable=True, index=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # Ledger key or username the action applied to
    target = Column(String(255), nullable=True, index=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    # Timestamp
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor}, target={self.target})>"
