"""
Ledger event Pydantic schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Any, Dict, List, Optional


class LedgerEventResponse(BaseModel):
    id: int
    event_name: str
    parcel_id: Optional[str]
    payload: Dict[str, Any]
    tx_id: str
    created_at: datetime


class LedgerEventListResponse(BaseModel):
    events: List[LedgerEventResponse]
    last_id: int
