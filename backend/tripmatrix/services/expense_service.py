"""
Expense service for expense-related business logic.
"""
import logging
import math
from typing import Dict, List
from sqlalchemy.orm import Session
from tripmatrix.models.expense import Expense
from tripmatrix.models.trip import Trip
from tripmatrix.schemas.expense import ExpenseCreate, ExpenseUpdate

logger = logging.getLogger(__name__)


def compute_shares(amount: float, participants: List[str]) -> Dict[str, float]:
    """
    Split an expense equally between participants.

    Every participant gets the same float quotient ``amount / len(participants)``;
    remainders are not redistributed, so the shares may differ from ``amount``
    by a floating-point epsilon.

    Raises ValueError for an empty or duplicated participant list and for an
    amount that is not a positive finite number.
    """
    if not participants:
        raise ValueError("splitBetween must contain at least one participant")
    if isinstance(amount, bool) or not math.isfinite(amount) or amount <= 0:
        raise ValueError(f"amount must be a positive number, got {amount!r}")
    if len(set(participants)) != len(participants):
        raise ValueError("splitBetween must not contain duplicate participants")

    share_per_person = amount / len(participants)
    return {participant: share_per_person for participant in participants}


def create_expense(trip: Trip, expense_data: ExpenseCreate, db: Session) -> Expense:
    """Create an expense, calculate shares and update the trip total."""
    calculated_shares = compute_shares(expense_data.amount, expense_data.split_between)

    currency = expense_data.currency or trip.base_currency
    expense = Expense(
        trip_id=trip.id,
        amount=float(expense_data.amount),
        currency=currency.upper(),
        paid_by=expense_data.paid_by,
        split_between=list(expense_data.split_between),
        calculated_shares=calculated_shares,
        description=expense_data.description or "",
        place_id=expense_data.place_id or None,
        category=expense_data.category.lower() if expense_data.category else None
    )
    db.add(expense)

    trip.total_expense = (trip.total_expense or 0.0) + expense.amount

    db.commit()
    db.refresh(expense)

    logger.info(
        f"Created expense {expense.id} on trip {trip.id}: {expense.amount} {expense.currency} "
        f"paid by {expense.paid_by}, split {len(calculated_shares)} ways"
    )
    return expense


def update_expense(expense: Expense, expense_data: ExpenseUpdate, db: Session) -> Expense:
    """
    Apply an edit to an expense.
    Shares are fully recalculated whenever the amount or the split changes.
    """
    changes = expense_data.model_dump(exclude_unset=True)
    old_amount = expense.amount

    amount = changes.get("amount")
    if amount is None:
        amount = expense.amount
    split_between = changes.get("split_between")
    if split_between is None:
        split_between = expense.split_between

    if "amount" in changes or "split_between" in changes:
        # Reassign rather than mutate so the JSON columns are flagged dirty
        expense.calculated_shares = compute_shares(amount, split_between)
        expense.split_between = list(split_between)
        expense.amount = float(amount)

    if changes.get("paid_by"):
        expense.paid_by = changes["paid_by"]
    if changes.get("currency"):
        expense.currency = changes["currency"].upper()
    if "description" in changes:
        expense.description = changes["description"] or ""
    if "place_id" in changes:
        expense.place_id = changes["place_id"] or None
    if "category" in changes:
        expense.category = changes["category"].lower() if changes["category"] else None

    trip = expense.trip
    if trip is not None and expense.amount != old_amount:
        trip.total_expense = max(0.0, (trip.total_expense or 0.0) - old_amount + expense.amount)

    db.commit()
    db.refresh(expense)

    logger.info(f"Updated expense {expense.id}: fields {sorted(changes)}")
    return expense


def delete_expense(expense: Expense, db: Session) -> None:
    """Delete an expense and take its amount off the trip total."""
    trip = expense.trip
    if trip is not None:
        trip.total_expense = max(0.0, (trip.total_expense or 0.0) - expense.amount)

    expense_id = expense.id
    db.delete(expense)
    db.commit()

    logger.info(f"Deleted expense {expense_id}")


def get_expense(expense_id: int, db: Session) -> Expense:
    """Fetch one expense or raise ValueError."""
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if not expense:
        raise ValueError("Expense not found")
    return expense


def list_trip_expenses(trip_id: int, db: Session, newest_first: bool = False) -> List[Expense]:
    """All expenses of a trip as one snapshot, in recording order by default."""
    query = db.query(Expense).filter(Expense.trip_id == trip_id)
    if newest_first:
        query = query.order_by(Expense.created_at.desc(), Expense.id.desc())
    else:
        query = query.order_by(Expense.created_at.asc(), Expense.id.asc())
    return query.all()
