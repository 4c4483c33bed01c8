"""
Pydantic schemas for settlements and expense summaries.
"""
from pydantic import Field
from typing import Dict, List
from tripmatrix.schemas.base import CamelModel


class Settlement(CamelModel):
    """A single proposed payment from a debtor to a creditor."""
    from_: str = Field(alias="from")  # debtor
    to: str  # creditor
    amount: float  # positive, rounded to 2 decimals


class ExpenseSummary(CamelModel):
    """Schema for a trip's expense summary."""
    total_spent: float
    expense_per_place: Dict[str, float]  # place id -> total
    expense_per_category: Dict[str, float]  # category -> total
    split_due: Dict[str, float]  # participant -> shares owed minus amount paid
    settlements: List[Settlement]


class SettlementSummary(CamelModel):
    """Schema for settlement summary."""
    net_balances: Dict[str, float]  # participant -> net balance (positive = is owed)
    transfers: List[Settlement]
    total_expenses_base: float
    participant_count: int
    base_currency: str
    summary: str
