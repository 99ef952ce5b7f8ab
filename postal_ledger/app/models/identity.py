"""
Identity database model.

Registered network identities. Registration issues an enrollment
secret; enrollment exchanges it for an access token.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, JSON
from sqlalchemy.sql import func
from postal_ledger.app.db.session import Base
from postal_ledger.app.models.enums import IdentityRole


class Identity(Base):
    """
    Identity model for the postal network membership.

    Mirrors what a CA registration records: enrollment id, affiliation,
    MSP and certificate attributes (role, postalEmployee).
    """
    __tablename__ = "identities"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    username = Column(String(100), unique=True, index=True, nullable=False)

    role = Column(Enum(IdentityRole), default=IdentityRole.CLIENT, nullable=False)
    msp_id = Column(String(100), nullable=False)
    affiliation = Column(String(255), nullable=False)
    attributes = Column(JSON, nullable=False, default=dict)

    hashed_secret = Column(String(255), nullable=False)
    enrolled = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    enrolled_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Identity(id={self.id}, username='{self.username}', role='{self.role.value}')>"
