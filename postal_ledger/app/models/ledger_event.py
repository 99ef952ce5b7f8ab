"""
Ledger Event database model.

Chaincode events (e.g. Distribution) recorded alongside the state write
that produced them, so clients can poll for them after submitting.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from postal_ledger.app.db.session import Base


class LedgerEvent(Base):
    __tablename__ = "ledger_events"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    event_name = Column(String(100), nullable=False, index=True)
    parcel_id = Column(String(255), nullable=True, index=True)

    # Raw event payload as emitted by the contract (JSON text)
    payload = Column(Text, nullable=False)

    tx_id = Column(String(64), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<LedgerEvent(id={self.id}, name='{self.event_name}', parcel_id='{self.parcel_id}')>"
