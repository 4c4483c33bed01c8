"""Models package - Import all models for SQLAlchemy registration."""
from tripmatrix.models.trip import Trip, TripParticipant, TripStatus, ExpenseVisibility
from tripmatrix.models.expense import Expense

__all__ = [
    "Trip",
    "TripParticipant",
    "TripStatus",
    "ExpenseVisibility",
    "Expense",
]
