"""
Ledger event API endpoints.

Lets clients poll committed chaincode events, e.g. to see a Distribution
event after submitting a transport.
"""

import json
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from postal_ledger.app.core.dependencies import get_current_identity
from postal_ledger.app.db.session import get_db
from postal_ledger.app.schemas.event import LedgerEventListResponse, LedgerEventResponse
from postal_ledger.app.services.event_hub import list_events

router = APIRouter(prefix="/events", tags=["Events"])


@router.get("", response_model=LedgerEventListResponse)
async def get_events(
    parcel_id: Optional[str] = Query(None, description="Only events for this parcel"),
    event_name: Optional[str] = Query(None, description="Only events with this name"),
    tx_id: Optional[str] = Query(None, description="Only the event of this transaction"),
    after_id: int = Query(0, ge=0, description="Only events newer than this id"),
    limit: int = Query(100, ge=1, le=500, description="Maximum number of events"),
    current_identity: dict = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    events = await list_events(db, parcel_id=parcel_id, event_name=event_name, tx_id=tx_id,
                              after_id=after_id, limit=limit)

    return LedgerEventListResponse(
        events=[
            LedgerEventResponse(
                id=e.id,
                event_name=e.event_name,
                parcel_id=e.parcel_id,
                payload=json.loads(e.payload),
                tx_id=e.tx_id,
                created_at=e.created_at
            )
            for e in events
        ],
        last_id=events[-1].id if events else after_id
    )
