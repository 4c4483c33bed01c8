"""
Expense management routes.
"""
import logging
from typing import Iterable, List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from tripmatrix.core.utils import format_response
from tripmatrix.db.session import get_db
from tripmatrix.models.expense import Expense
from tripmatrix.models.trip import Trip
from tripmatrix.schemas.expense import ExpenseCreate, ExpenseResponse, ExpenseUpdate
from tripmatrix.services import expense_service
from tripmatrix.services.settlement_service import calculate_expense_summary
from tripmatrix.api.dependencies import get_current_uid, get_optional_uid
from tripmatrix.api.routes.trips import check_trip_access, check_expense_read_access

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/expenses", tags=["expenses"])


def _expense_payload(expense: Expense) -> dict:
    return ExpenseResponse.model_validate(expense).model_dump(by_alias=True, mode="json")


def _check_participants(trip: Trip, paid_by: Optional[str], split_between: Optional[Iterable[str]]) -> None:
    """Payer and split must name people on the trip."""
    known = set(trip.participant_ids())
    unknown = []
    if paid_by is not None and paid_by not in known:
        unknown.append(paid_by)
    for participant in split_between or []:
        if participant not in known and participant not in unknown:
            unknown.append(participant)
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Not participants of this trip: {', '.join(unknown)}"
        )


def _load_expense_for_member(expense_id: int, uid: str, db: Session) -> Expense:
    try:
        expense = expense_service.get_expense(expense_id, db)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    check_trip_access(expense.trip_id, uid, db)
    return expense


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_expense(
    expense_data: ExpenseCreate,
    uid: str = Depends(get_current_uid),
    db: Session = Depends(get_db)
):
    """Record a shared expense and split it equally."""
    trip = check_trip_access(expense_data.trip_id, uid, db)
    _check_participants(trip, expense_data.paid_by, expense_data.split_between)

    try:
        expense = expense_service.create_expense(trip, expense_data, db)
    except ValueError as e:
        logger.warning(f"Rejected expense for trip {trip.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    return format_response(_expense_payload(expense))


@router.get("/trip/{trip_id}")
async def get_trip_expenses(
    trip_id: int,
    uid: Optional[str] = Depends(get_optional_uid),
    db: Session = Depends(get_db)
):
    """List a trip's expenses, newest first."""
    check_expense_read_access(trip_id, uid, db)

    expenses = expense_service.list_trip_expenses(trip_id, db, newest_first=True)
    return format_response([_expense_payload(expense) for expense in expenses])


@router.get("/trip/{trip_id}/summary")
async def get_expense_summary(
    trip_id: int,
    uid: Optional[str] = Depends(get_optional_uid),
    db: Session = Depends(get_db)
):
    """Totals, per-place and per-category rollups, split due and settlements."""
    check_expense_read_access(trip_id, uid, db)

    expenses: List[Expense] = expense_service.list_trip_expenses(trip_id, db)
    summary = calculate_expense_summary(expenses)
    return format_response(summary.model_dump(by_alias=True, mode="json"))


@router.put("/{expense_id}")
async def update_expense(
    expense_id: int,
    expense_data: ExpenseUpdate,
    uid: str = Depends(get_current_uid),
    db: Session = Depends(get_db)
):
    """Edit an expense; shares are recalculated when amount or split change."""
    expense = _load_expense_for_member(expense_id, uid, db)
    _check_participants(expense.trip, expense_data.paid_by, expense_data.split_between)

    try:
        expense = expense_service.update_expense(expense, expense_data, db)
    except ValueError as e:
        logger.warning(f"Rejected update of expense {expense_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    return format_response(_expense_payload(expense))


@router.delete("/{expense_id}")
async def delete_expense(
    expense_id: int,
    uid: str = Depends(get_current_uid),
    db: Session = Depends(get_db)
):
    """Delete an expense."""
    expense = _load_expense_for_member(expense_id, uid, db)
    expense_service.delete_expense(expense, db)
    return format_response({"expenseId": expense_id})
