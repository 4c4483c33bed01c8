"""
Trip model for trip logging and shared expenses.
"""
from sqlalchemy import Column, String, Boolean, Float, Text, Enum as SQLEnum, ForeignKey, Integer
from sqlalchemy.orm import relationship
from tripmatrix.db.base import BaseModel
import enum


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ExpenseVisibility(str, enum.Enum):
    """Who may read a trip's expenses."""
    EVERYONE = "everyone"
    MEMBERS = "members"
    CREATOR = "creator"


class Trip(BaseModel):
    """Trip model representing one logged journey."""
    __tablename__ = "trips"

    creator_id = Column(String(128), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    is_public = Column(Boolean, default=False, nullable=False)
    status = Column(SQLEnum(TripStatus), default=TripStatus.IN_PROGRESS, nullable=False)
    base_currency = Column(String(3), nullable=False, default="USD")
    total_expense = Column(Float, nullable=False, default=0.0)  # Running sum of expense amounts
    expense_visibility = Column(
        SQLEnum(ExpenseVisibility),
        default=ExpenseVisibility.EVERYONE,
        nullable=False
    )

    # Relationships
    participants = relationship(
        "TripParticipant",
        back_populates="trip",
        cascade="all, delete-orphan",
        order_by="TripParticipant.id"
    )
    expenses = relationship("Expense", back_populates="trip", cascade="all, delete-orphan")

    def participant_ids(self) -> list:
        """Identifiers (uid or guest name) of everyone on the trip."""
        return [p.participant_id for p in self.participants]

    def is_member(self, uid: str) -> bool:
        """Whether a registered user created or joined this trip."""
        if not uid:
            return False
        if self.creator_id == uid:
            return True
        return any(not p.is_guest and p.uid == uid for p in self.participants)


class TripParticipant(BaseModel):
    """A registered user or a named guest taking part in a trip."""
    __tablename__ = "trip_participants"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    uid = Column(String(128), nullable=True, index=True)  # If linked user
    guest_name = Column(String(100), nullable=True)  # If guest
    guest_email = Column(String(100), nullable=True)
    is_guest = Column(Boolean, default=False, nullable=False)

    # Relationships
    trip = relationship("Trip", back_populates="participants")

    @property
    def participant_id(self) -> str:
        """Identifier used in expense ledgers."""
        return self.guest_name if self.is_guest else self.uid
