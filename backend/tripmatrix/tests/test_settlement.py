"""
Tests for greedy settlement matching and the expense summary.
"""
import random
import pytest
from tripmatrix.models import Expense
from tripmatrix.services.expense_service import compute_shares
from tripmatrix.services.settlement_service import (
    SETTLEMENT_THRESHOLD,
    aggregate_balances,
    calculate_expense_summary,
    minimize_transfers,
    round_half_up,
)


def make_expense(amount, paid_by, split_between, place_id=None):
    return Expense(
        amount=amount,
        paid_by=paid_by,
        split_between=list(split_between),
        calculated_shares=compute_shares(amount, split_between),
        place_id=place_id,
    )


def as_tuples(transfers):
    return [(t.from_, t.to, t.amount) for t in transfers]


def apply_transfers(balances, transfers):
    """Debtor pays, so their balance rises; creditor receives, so theirs falls."""
    settled = dict(balances)
    for transfer in transfers:
        settled[transfer.from_] += transfer.amount
        settled[transfer.to] -= transfer.amount
    return settled


def cent_balances(rng, size):
    """Zero-sum balances in whole cents, none inside the settled dead zone."""
    while True:
        cents = [rng.choice([-1, 1]) * rng.randint(2, 50000) for _ in range(size - 1)]
        last = -sum(cents)
        if abs(last) >= 2:
            cents.append(last)
            return {f"p{i}": c / 100 for i, c in enumerate(cents)}


def counts(balances):
    creditors = sum(1 for b in balances.values() if b > SETTLEMENT_THRESHOLD)
    debtors = sum(1 for b in balances.values() if b < -SETTLEMENT_THRESHOLD)
    return creditors, debtors


def test_one_payer_three_way_split():
    sheet = aggregate_balances([make_expense(90, "alice", ["alice", "bob", "carol"])])
    transfers = minimize_transfers(sheet.balances)
    assert as_tuples(transfers) == [("bob", "alice", 30.0), ("carol", "alice", 30.0)]


def test_two_expenses_single_transfer():
    sheet = aggregate_balances([
        make_expense(100, "alice", ["alice", "bob"]),
        make_expense(40, "bob", ["alice", "bob"]),
    ])
    assert as_tuples(minimize_transfers(sheet.balances)) == [("bob", "alice", 30.0)]


def test_already_settled_returns_empty():
    balances = {"alice": 0.004, "bob": -0.01, "carol": 0.01, "dave": 0.0}
    assert minimize_transfers(balances) == []


def test_empty_balances():
    assert minimize_transfers({}) == []


def test_one_debtor_pays_several_creditors():
    balances = {"ann": 50.0, "ben": 30.0, "cat": 20.0, "dan": -100.0}
    transfers = minimize_transfers(balances)
    assert as_tuples(transfers) == [
        ("dan", "ann", 50.0),
        ("dan", "ben", 30.0),
        ("dan", "cat", 20.0),
    ]
    assert sum(t.amount for t in transfers) == pytest.approx(100.0)


def test_largest_first():
    balances = {"a": 10.0, "b": 40.0, "c": -15.0, "d": -35.0}
    assert as_tuples(minimize_transfers(balances)) == [
        ("d", "b", 35.0),
        ("c", "b", 5.0),
        ("c", "a", 10.0),
    ]


def test_dead_zone_participants_are_skipped():
    balances = {"alice": 20.005, "bob": -20.0, "carol": -0.005}
    assert as_tuples(minimize_transfers(balances)) == [("bob", "alice", 20.0)]


def test_ties_keep_input_order():
    first = minimize_transfers({"alice": 60.0, "bob": -30.0, "carol": -30.0})
    second = minimize_transfers({"alice": 60.0, "carol": -30.0, "bob": -30.0})
    assert [t.from_ for t in first] == ["bob", "carol"]
    assert [t.from_ for t in second] == ["carol", "bob"]


def test_amounts_rounded_to_cents():
    sheet = aggregate_balances([make_expense(100, "alice", ["alice", "bob", "carol"])])
    transfers = minimize_transfers(sheet.balances)
    assert as_tuples(transfers) == [("bob", "alice", 33.33), ("carol", "alice", 33.33)]
    settled = apply_transfers(sheet.balances, transfers)
    assert all(abs(b) <= 0.01 for b in settled.values())


def test_transfers_settle_all_balances():
    rng = random.Random(11)
    for _ in range(200):
        balances = cent_balances(rng, rng.randint(2, 9))
        transfers = minimize_transfers(balances)
        settled = apply_transfers(balances, transfers)
        assert all(abs(b) <= 0.01 for b in settled.values())
        assert all(t.amount > 0 for t in transfers)
        assert all(round(t.amount, 2) == t.amount for t in transfers)


def test_transfer_count_bound():
    rng = random.Random(5)
    people = ["a", "b", "c", "d", "e", "f", "g"]
    for _ in range(100):
        expenses = []
        for _ in range(rng.randint(1, 20)):
            split = rng.sample(people, rng.randint(1, len(people)))
            expenses.append(make_expense(round(rng.uniform(1, 300), 2), rng.choice(people), split))
        balances = aggregate_balances(expenses).balances
        creditors, debtors = counts(balances)
        assert len(minimize_transfers(balances)) <= max(0, creditors + debtors - 1)


def test_deterministic():
    rng = random.Random(99)
    balances = cent_balances(rng, 8)
    assert as_tuples(minimize_transfers(balances)) == as_tuples(minimize_transfers(balances))


def test_does_not_mutate_balances():
    balances = {"alice": 60.0, "bob": -30.0, "carol": -30.0}
    minimize_transfers(balances)
    assert balances == {"alice": 60.0, "bob": -30.0, "carol": -30.0}


def test_expense_summary():
    summary = calculate_expense_summary([
        make_expense(100, "alice", ["alice", "bob"], place_id="museum"),
        make_expense(40, "bob", ["alice", "bob"]),
    ])
    assert summary.total_spent == 140.0
    assert summary.expense_per_place == {"museum": 100.0}
    assert summary.expense_per_category == {}
    assert summary.split_due == pytest.approx({"alice": -30.0, "bob": 30.0})
    assert as_tuples(summary.settlements) == [("bob", "alice", 30.0)]


def test_expense_summary_serializes_camel_case():
    summary = calculate_expense_summary([make_expense(90, "alice", ["alice", "bob", "carol"])])
    payload = summary.model_dump(by_alias=True, mode="json")
    assert set(payload) == {"totalSpent", "expensePerPlace", "expensePerCategory", "splitDue", "settlements"}
    assert payload["settlements"][0] == {"from": "bob", "to": "alice", "amount": 30.0}


def test_half_cent_rounds_up():
    """An odd-cent expense split two ways settles at the upper cent."""
    sheet = aggregate_balances([make_expense(20.25, "alice", ["alice", "bob"])])
    assert as_tuples(minimize_transfers(sheet.balances)) == [("bob", "alice", 10.13)]


def test_round_half_up():
    assert round_half_up(10.125) == 10.13
    assert round_half_up(0.125) == 0.13
    assert round_half_up(33.3333) == 33.33
    assert round_half_up(29.999999999) == 30.0
