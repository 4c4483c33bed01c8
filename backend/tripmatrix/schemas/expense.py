"""
Pydantic schemas for Expense entity.
"""
from pydantic import Field
from typing import Dict, List, Optional
from datetime import datetime
from tripmatrix.schemas.base import CamelModel


class ExpenseCreate(CamelModel):
    """Schema for expense creation."""
    trip_id: int
    amount: float
    currency: Optional[str] = Field(None, min_length=3, max_length=3)  # Falls back to the trip's base currency
    paid_by: str  # uid or guest name
    split_between: List[str]  # uids or guest names sharing this expense
    description: Optional[str] = None
    place_id: Optional[str] = None
    category: Optional[str] = None


class ExpenseUpdate(CamelModel):
    """Schema for expense update."""
    amount: Optional[float] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    paid_by: Optional[str] = None
    split_between: Optional[List[str]] = None
    description: Optional[str] = None
    place_id: Optional[str] = None
    category: Optional[str] = None


class ExpenseResponse(CamelModel):
    """Schema for expense response."""
    id: int = Field(serialization_alias="expenseId")
    trip_id: int
    amount: float
    currency: str
    paid_by: str
    split_between: List[str]
    calculated_shares: Dict[str, float]
    description: Optional[str] = None
    place_id: Optional[str] = None
    category: Optional[str] = None
    created_at: datetime
