"""
Settlement routes.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from tripmatrix.core.utils import format_response
from tripmatrix.db.session import get_db
from tripmatrix.services.settlement_service import calculate_settlement
from tripmatrix.api.dependencies import get_current_uid
from tripmatrix.api.routes.trips import check_trip_access

router = APIRouter(prefix="/settlement", tags=["settlement"])


@router.get("/{trip_id}")
async def get_settlement(
    trip_id: int,
    uid: str = Depends(get_current_uid),
    db: Session = Depends(get_db)
):
    """
    Calculate who pays whom for a trip.
    Computed from the current expenses on every request; nothing is stored.
    """
    trip = check_trip_access(trip_id, uid, db)

    result = calculate_settlement(trip_id, db, trip=trip)
    return format_response(result.model_dump(by_alias=True, mode="json"))
