"""
Expense model for shared trip spending.
"""
from sqlalchemy import Column, String, Float, ForeignKey, Integer, Text, JSON
from sqlalchemy.orm import relationship
from tripmatrix.db.base import BaseModel


class Expense(BaseModel):
    """Expense model representing a single shared spending event."""
    __tablename__ = "expenses"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")  # Informational, never converted
    paid_by = Column(String(128), nullable=False)  # uid or guest name
    split_between = Column(JSON, nullable=False)  # Ordered list of uids or guest names
    calculated_shares = Column(JSON, nullable=False)  # participant -> share amount
    description = Column(Text, nullable=True)
    place_id = Column(String(128), nullable=True, index=True)  # Optional link to a visited place
    category = Column(String(50), nullable=True)

    # Relationships
    trip = relationship("Trip", back_populates="expenses")
