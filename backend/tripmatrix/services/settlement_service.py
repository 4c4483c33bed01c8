"""
Settlement service: balances, expense rollups and greedy transfer matching.

Expenses are read by attribute (``amount``, ``paid_by``, ``split_between``,
``calculated_shares``, ``place_id``, ``category``), so ORM rows and any
object of the same shape can be passed in. Nothing here touches the
database except ``calculate_settlement``, which only reads.
"""
import logging
import math
from functools import reduce
from typing import Dict, Iterable, List, Mapping, Optional
from sqlalchemy.orm import Session
from tripmatrix.models.trip import Trip
from tripmatrix.schemas.settlement import ExpenseSummary, Settlement, SettlementSummary

logger = logging.getLogger(__name__)

# Balances within one cent of zero count as settled
SETTLEMENT_THRESHOLD = 0.01
SETTLEMENT_CENTS = 100


def round_half_up(amount: float) -> float:
    """Round to whole cents, halves away from zero for positive amounts."""
    return math.floor(amount * SETTLEMENT_CENTS + 0.5) / SETTLEMENT_CENTS


class BalanceSheet:
    """Net balances and expense rollups for one ledger snapshot."""

    def __init__(
        self,
        balances: Dict[str, float],
        total_spent: float,
        expense_per_place: Dict[str, float],
        expense_per_category: Dict[str, float]
    ):
        self.balances = balances  # positive = is owed money, negative = owes money
        self.total_spent = total_spent
        self.expense_per_place = expense_per_place
        self.expense_per_category = expense_per_category

    @property
    def split_due(self) -> Dict[str, float]:
        """Shares owed minus amount paid, per participant."""
        return {participant: 0.0 - balance for participant, balance in self.balances.items()}


def _apply_expense(balances: Mapping[str, float], expense) -> Dict[str, float]:
    """Return a new balance map with one expense posted to it."""
    updated = dict(balances)
    # Payer is credited the full amount
    updated[expense.paid_by] = updated.get(expense.paid_by, 0.0) + expense.amount
    # Everyone in the split is debited their share, the payer included
    shares = expense.calculated_shares or {}
    for participant in expense.split_between:
        updated[participant] = updated.get(participant, 0.0) - shares.get(participant, 0.0)
    return updated


def _rollup(expenses: List, key: str) -> Dict[str, float]:
    """Sum expense amounts by an optional attribute, skipping expenses without it."""
    totals: Dict[str, float] = {}
    for expense in expenses:
        value = getattr(expense, key, None)
        if value:
            totals[value] = totals.get(value, 0.0) + expense.amount
    return totals


def aggregate_balances(expenses: Iterable) -> BalanceSheet:
    """
    Compute each participant's net balance across all expenses.

    Participants keep the order in which they first appear in the ledger.
    Share maps are trusted as given: one that does not sum to its expense
    amount yields balances that no longer sum to zero.
    """
    expenses = list(expenses)
    balances = reduce(_apply_expense, expenses, {})
    return BalanceSheet(
        balances=balances,
        total_spent=sum((expense.amount for expense in expenses), 0.0),
        expense_per_place=_rollup(expenses, "place_id"),
        expense_per_category=_rollup(expenses, "category")
    )


def minimize_transfers(balances: Mapping[str, float]) -> List[Settlement]:
    """
    Turn net balances into pairwise transfers that settle every debt.

    Greedy: the largest remaining debtor pays the largest remaining creditor
    the smaller of the two amounts. Ties keep the input order (stable sort).
    Produces at most ``len(creditors) + len(debtors) - 1`` transfers; this is
    not guaranteed to be the global minimum.
    """
    creditors = [(uid, bal) for uid, bal in balances.items() if bal > SETTLEMENT_THRESHOLD]
    debtors = [(uid, -bal) for uid, bal in balances.items() if bal < -SETTLEMENT_THRESHOLD]

    creditors.sort(key=lambda x: x[1], reverse=True)
    debtors.sort(key=lambda x: x[1], reverse=True)

    transfers = []
    cred_idx = 0
    debt_idx = 0

    while cred_idx < len(creditors) and debt_idx < len(debtors):
        creditor_id, cred_amount = creditors[cred_idx]
        debtor_id, debt_amount = debtors[debt_idx]

        transfer_amount = min(cred_amount, debt_amount)
        transfers.append(Settlement(
            from_=debtor_id,
            to=creditor_id,
            amount=round_half_up(transfer_amount)
        ))
        logger.debug(f"Transfer {debtor_id} -> {creditor_id}: {transfer_amount:.4f}")

        creditors[cred_idx] = (creditor_id, cred_amount - transfer_amount)
        debtors[debt_idx] = (debtor_id, debt_amount - transfer_amount)

        if creditors[cred_idx][1] < SETTLEMENT_THRESHOLD:
            cred_idx += 1
        if debtors[debt_idx][1] < SETTLEMENT_THRESHOLD:
            debt_idx += 1

    return transfers


def calculate_expense_summary(expenses: Iterable) -> ExpenseSummary:
    """Build the expense summary (totals, rollups, split due, settlements) for a ledger."""
    sheet = aggregate_balances(expenses)
    return ExpenseSummary(
        total_spent=sheet.total_spent,
        expense_per_place=sheet.expense_per_place,
        expense_per_category=sheet.expense_per_category,
        split_due=sheet.split_due,
        settlements=minimize_transfers(sheet.balances)
    )


def format_settlement_text(
    sheet: BalanceSheet,
    transfers: List[Settlement],
    base_currency: str
) -> str:
    """Human-readable settlement report."""
    lines = [
        f"Total expenses: {sheet.total_spent:.2f} {base_currency}",
        f"Participants: {len(sheet.balances)}",
        "",
        "Net balances:",
    ]
    for participant, balance in sheet.balances.items():
        lines.append(f"  {participant}: {balance:+.2f} {base_currency}")
    lines.append("")
    lines.append("Transfers:")
    if not transfers:
        lines.append("  Everyone is settled up.")
    for transfer in transfers:
        lines.append(f"  {transfer.from_} -> {transfer.to}: {transfer.amount:.2f} {base_currency}")
    return "\n".join(lines)


def calculate_settlement(trip_id: int, db: Session, trip: Optional[Trip] = None) -> SettlementSummary:
    """
    Calculate the settlement plan for a trip from its current expenses.
    The result is computed fresh on every call and never stored.
    """
    from tripmatrix.services.expense_service import list_trip_expenses

    if trip is None:
        trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if not trip:
        raise ValueError("Trip not found")

    expenses = list_trip_expenses(trip_id, db)
    sheet = aggregate_balances(expenses)
    transfers = minimize_transfers(sheet.balances)

    logger.info(
        f"Calculated settlement for trip {trip_id}: {len(expenses)} expenses, "
        f"{len(sheet.balances)} participants, {len(transfers)} transfers"
    )

    return SettlementSummary(
        net_balances=sheet.balances,
        transfers=transfers,
        total_expenses_base=sheet.total_spent,
        participant_count=len(sheet.balances),
        base_currency=trip.base_currency,
        summary=format_settlement_text(sheet, transfers, trip.base_currency)
    )
