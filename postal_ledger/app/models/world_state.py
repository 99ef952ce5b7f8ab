"""
World State database model.

One row per ledger key holding the latest serialized value, the SQL
stand-in for a peer's state database.
"""

from sqlalchemy import Column, Integer, String, LargeBinary, DateTime
from sqlalchemy.sql import func
from postal_ledger.app.db.session import Base


class WorldStateEntry(Base):
    """Latest committed value for a ledger key."""
    __tablename__ = "world_state"

    key = Column(String(255), primary_key=True)
    value = Column(LargeBinary, nullable=False)

    # Incremented on every put
    version = Column(Integer, nullable=False, default=1)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<WorldStateEntry(key='{self.key}', version={self.version})>"
