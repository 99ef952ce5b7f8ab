"""
Parcel Ledger API Endpoints.

Submit (create, transport, change status) and evaluate (query) parcel
transactions as the authenticated identity.
"""

from fastapi import APIRouter, Depends, Response, status, Path
from sqlalchemy.ext.asyncio import AsyncSession
from postal_ledger.app.db.session import get_db
from postal_ledger.app.domain.ledger.records import ParcelRecord
from postal_ledger.app.schemas.parcel import ParcelCreate, ParcelTransport, ParcelStatusChange
from postal_ledger.app.core.dependencies import get_current_identity
from postal_ledger.app.core.exceptions import InvalidArgumentError
from postal_ledger.app.services.ledger_service import LedgerService, get_ledger_service
from postal_ledger.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/parcels", tags=["Parcels"])


@router.post("", response_model=ParcelRecord, status_code=status.HTTP_201_CREATED)
async def create_parcel(
    parcel_data: ParcelCreate,
    response: Response,
    current_identity: dict = Depends(get_current_identity),
    ledger: LedgerService = Depends(get_ledger_service),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a parcel at the sorting center, owned by the caller.

    A parcel already stored under the same id is replaced. Ids containing
    "/" are rejected.
    """
    if "/" in parcel_data.id:
        raise InvalidArgumentError("id must not contain '/'", argument="id")

    result = await ledger.create_parcel(
        db, current_identity["identity"], parcel_data.id, parcel_data.destination
    )
    parcel = result.parcel
    response.headers["X-Transaction-ID"] = result.tx_id

    await log_event(
        db=db,
        action=AuditAction.PARCEL_CREATED,
        actor=current_identity["identity"],
        target=parcel.id,
        metadata={"destination": parcel.destination}
    )

    return parcel


@router.post("/{parcel_id}/transport", response_model=ParcelRecord)
async def transport_parcel(
    transport_data: ParcelTransport,
    response: Response,
    parcel_id: str = Path(..., description="Parcel ID"),
    current_identity: dict = Depends(get_current_identity),
    ledger: LedgerService = Depends(get_ledger_service),
    db: AsyncSession = Depends(get_db)
):
    """
    Move a parcel to a new address.

    Fires a Distribution event when the new address is the destination.
    """
    result = await ledger.transport(
        db, current_identity["identity"], parcel_id, transport_data.new_address
    )
    parcel = result.parcel
    response.headers["X-Transaction-ID"] = result.tx_id

    await log_event(
        db=db,
        action=AuditAction.PARCEL_TRANSPORTED,
        actor=current_identity["identity"],
        target=parcel.id,
        metadata={
            "current_address": parcel.current_address,
            "delivered": parcel.current_address == parcel.destination
        }
    )

    return parcel


@router.post("/{parcel_id}/status", response_model=ParcelRecord)
async def change_parcel_status(
    status_data: ParcelStatusChange,
    response: Response,
    parcel_id: str = Path(..., description="Parcel ID"),
    current_identity: dict = Depends(get_current_identity),
    ledger: LedgerService = Depends(get_ledger_service),
    db: AsyncSession = Depends(get_db)
):
    """
    Change a parcel's condition.

    DESTROYED parcels cannot change; DAMAGED parcels cannot become GOOD.
    """
    result = await ledger.change_status(
        db, current_identity["identity"], parcel_id, status_data.status
    )
    parcel = result.parcel
    response.headers["X-Transaction-ID"] = result.tx_id

    await log_event(
        db=db,
        action=AuditAction.PARCEL_STATUS_CHANGED,
        actor=current_identity["identity"],
        target=parcel.id,
        metadata={"status": parcel.status.value}
    )

    return parcel


@router.get("/{parcel_id}", response_model=ParcelRecord)
async def query_parcel(
    parcel_id: str = Path(..., description="Parcel ID"),
    current_identity: dict = Depends(get_current_identity),
    ledger: LedgerService = Depends(get_ledger_service),
    db: AsyncSession = Depends(get_db)
):
    """Read a parcel record. No state change, no event."""
    result = await ledger.query_parcel(db, current_identity["identity"], parcel_id)
    return result.parcel
