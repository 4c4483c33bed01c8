"""
Pydantic schemas for Trip entity.
"""
from pydantic import Field, model_validator
from typing import List, Optional
from datetime import datetime
from tripmatrix.models.trip import TripStatus, ExpenseVisibility
from tripmatrix.schemas.base import CamelModel


class GuestInvite(CamelModel):
    """A guest joining without an account."""
    guest_name: str
    guest_email: Optional[str] = None


class TripCreate(CamelModel):
    """Schema for trip creation."""
    title: str
    description: Optional[str] = None
    is_public: bool = False
    base_currency: Optional[str] = Field(None, min_length=3, max_length=3)
    expense_visibility: ExpenseVisibility = ExpenseVisibility.EVERYONE
    guests: List[GuestInvite] = []


class ParticipantAdd(CamelModel):
    """Schema for adding a linked user or a guest to a trip."""
    uid: Optional[str] = None
    guest_name: Optional[str] = None
    guest_email: Optional[str] = None

    @model_validator(mode="after")
    def check_exactly_one(self):
        """Exactly one of uid or guest_name must be given."""
        if bool(self.uid) == bool(self.guest_name):
            raise ValueError("Provide either uid or guestName")
        return self


class TripParticipantResponse(CamelModel):
    """Schema for trip participant response."""
    participant_id: str
    uid: Optional[str] = None
    guest_name: Optional[str] = None
    is_guest: bool


class TripResponse(CamelModel):
    """Schema for trip response."""
    id: int
    creator_id: str
    title: str
    description: Optional[str] = None
    is_public: bool
    status: TripStatus
    base_currency: str
    total_expense: float
    expense_visibility: ExpenseVisibility
    participants: List[TripParticipantResponse] = []
    created_at: datetime
    updated_at: datetime


class TripUpdate(CamelModel):
    """Schema for trip update; omitted fields are left unchanged."""
    title: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = None
    status: Optional[TripStatus] = None
    expense_visibility: Optional[ExpenseVisibility] = None
