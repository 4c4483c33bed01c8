"""
Trip management routes.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from tripmatrix.core.config import settings
from tripmatrix.core.utils import format_response
from tripmatrix.db.session import get_db
from tripmatrix.models.trip import Trip, TripParticipant, ExpenseVisibility
from tripmatrix.schemas.trip import TripCreate, TripUpdate, TripResponse, ParticipantAdd, TripParticipantResponse
from tripmatrix.api.dependencies import get_current_uid, get_optional_uid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trips", tags=["trips"])


def get_trip_or_404(trip_id: int, db: Session) -> Trip:
    """Load a trip or raise 404."""
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if not trip:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Trip not found"
        )
    return trip


def check_trip_access(trip_id: int, uid: str, db: Session) -> Trip:
    """Check that the user is the creator or a participant of the trip."""
    trip = get_trip_or_404(trip_id, db)

    if not trip.is_member(uid):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized"
        )

    return trip


def _require_member(trip: Trip, uid: Optional[str]) -> None:
    if not uid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )
    if not trip.is_member(uid):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized"
        )


def check_trip_read_access(trip_id: int, uid: Optional[str], db: Session) -> Trip:
    """Public trips are readable by anyone; private ones only by members."""
    trip = get_trip_or_404(trip_id, db)
    if not trip.is_public:
        _require_member(trip, uid)
    return trip


def check_expense_read_access(trip_id: int, uid: Optional[str], db: Session) -> Trip:
    """Apply trip privacy and the trip's expense visibility setting."""
    trip = check_trip_read_access(trip_id, uid, db)

    if trip.expense_visibility == ExpenseVisibility.MEMBERS:
        _require_member(trip, uid)
    elif trip.expense_visibility == ExpenseVisibility.CREATOR:
        if not uid:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required"
            )
        if trip.creator_id != uid:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the trip creator can view expenses"
            )

    return trip


def _trip_payload(trip: Trip) -> dict:
    return TripResponse.model_validate(trip).model_dump(by_alias=True, mode="json")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    uid: str = Depends(get_current_uid),
    db: Session = Depends(get_db)
):
    """Create a new trip; the creator joins as its first participant."""
    base_currency = trip_data.base_currency or settings.DEFAULT_CURRENCY

    guest_names = [guest.guest_name for guest in trip_data.guests]
    if uid in guest_names or len(set(guest_names)) != len(guest_names):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Participant names must be unique within a trip"
        )

    new_trip = Trip(
        creator_id=uid,
        title=trip_data.title,
        description=trip_data.description,
        is_public=trip_data.is_public,
        base_currency=base_currency.upper(),
        total_expense=0.0,
        expense_visibility=trip_data.expense_visibility
    )
    db.add(new_trip)
    db.flush()

    db.add(TripParticipant(trip_id=new_trip.id, uid=uid, is_guest=False))
    for guest in trip_data.guests:
        db.add(TripParticipant(
            trip_id=new_trip.id,
            guest_name=guest.guest_name,
            guest_email=guest.guest_email,
            is_guest=True
        ))
    db.commit()
    db.refresh(new_trip)

    logger.info(f"Created trip {new_trip.id} for {uid} with {len(trip_data.guests)} guests")
    return format_response(_trip_payload(new_trip))


@router.get("/{trip_id}")
async def get_trip(
    trip_id: int,
    uid: Optional[str] = Depends(get_optional_uid),
    db: Session = Depends(get_db)
):
    """Get trip details with participants."""
    trip = check_trip_read_access(trip_id, uid, db)
    return format_response(_trip_payload(trip))


@router.put("/{trip_id}")
async def update_trip(
    trip_id: int,
    trip_data: TripUpdate,
    uid: str = Depends(get_current_uid),
    db: Session = Depends(get_db)
):
    """Update trip details, e.g. mark the trip completed."""
    trip = check_trip_access(trip_id, uid, db)

    for field, value in trip_data.model_dump(exclude_unset=True).items():
        if value is None and field != "description":
            continue
        setattr(trip, field, value)
    db.commit()
    db.refresh(trip)

    logger.info(f"Updated trip {trip_id} by {uid}: status={trip.status.value}")
    return format_response(_trip_payload(trip))


@router.post("/{trip_id}/participants", status_code=status.HTTP_201_CREATED)
async def add_participant(
    trip_id: int,
    participant_data: ParticipantAdd,
    uid: str = Depends(get_current_uid),
    db: Session = Depends(get_db)
):
    """Add a registered user or a guest to the trip."""
    trip = check_trip_access(trip_id, uid, db)

    participant_id = participant_data.uid or participant_data.guest_name
    if participant_id in trip.participant_ids():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Participant already exists"
        )

    participant = TripParticipant(
        trip_id=trip_id,
        uid=participant_data.uid or None,
        guest_name=participant_data.guest_name,
        guest_email=participant_data.guest_email,
        is_guest=not participant_data.uid
    )
    db.add(participant)
    db.commit()
    db.refresh(participant)

    return format_response(
        TripParticipantResponse.model_validate(participant).model_dump(by_alias=True, mode="json")
    )
