from datetime import date
from decimal import Decimal

import pytest

from errors import ExpenseNotFoundError, InvalidExpenseError
from expense_store import InMemoryExpenseStore
from expenses import Expense, add_expense, get_expense, get_expenses


def _participants(*pairs):
    return [{"user": user, "share": share} for user, share in pairs]


def test_add_expense_persists_unpaid_shares():
    store = InMemoryExpenseStore()

    expense = add_expense(
        store, "H1", "Groceries", 90, "A", _participants(("B", 0.5), ("C", 0.5)), date="2024-03-01"
    )

    stored = get_expense(store, expense.expense_id)
    assert stored.household_id == "H1"
    assert stored.amount == 90.0
    assert [p.user for p in stored.participants] == ["B", "C"]
    assert not any(p.is_paid for p in stored.participants)
    assert all(p.amount_paid == 0 for p in stored.participants)
    assert stored.is_completely_paid is False
    assert stored.created_at is not None


def test_add_expense_defaults_date_to_today():
    expense = add_expense(InMemoryExpenseStore(), "H1", "Rent", 1200, "A", _participants(("A", 1.0)))

    assert expense.date == date.today().isoformat()


def test_shares_within_tolerance_are_accepted():
    expense = add_expense(
        InMemoryExpenseStore(), "H1", "Dinner", 30, "A",
        _participants(("A", 0.333), ("B", 0.333), ("C", 0.333))
    )

    assert len(expense.participants) == 3


@pytest.mark.parametrize("participants", [
    _participants(("B", 0.5), ("C", 0.4)),
    _participants(("B", 0.7), ("C", 0.7)),
])
def test_shares_must_sum_to_one(participants):
    with pytest.raises(InvalidExpenseError, match="sum to 1"):
        add_expense(InMemoryExpenseStore(), "H1", "Groceries", 90, "A", participants)


@pytest.mark.parametrize("name, amount, payer, participants", [
    ("", 90, "A", _participants(("B", 1.0))),
    ("Groceries", 0, "A", _participants(("B", 1.0))),
    ("Groceries", 90, "", _participants(("B", 1.0))),
    ("Groceries", 90, "A", []),
])
def test_required_fields(name, amount, payer, participants):
    with pytest.raises(InvalidExpenseError, match="All fields are required"):
        add_expense(InMemoryExpenseStore(), "H1", name, amount, payer, participants)


def test_negative_amount_rejected():
    with pytest.raises(InvalidExpenseError):
        add_expense(InMemoryExpenseStore(), "H1", "Refund", -5, "A", _participants(("B", 1.0)))


def test_duplicate_participant_rejected():
    with pytest.raises(InvalidExpenseError, match="more than once"):
        add_expense(InMemoryExpenseStore(), "H1", "Groceries", 90, "A", _participants(("B", 0.5), ("B", 0.5)))


def test_share_out_of_range_rejected():
    with pytest.raises(InvalidExpenseError, match=r"\(0, 1\]"):
        add_expense(InMemoryExpenseStore(), "H1", "Groceries", 90, "A", _participants(("B", 1.5), ("C", -0.5)))


def test_bad_date_rejected():
    with pytest.raises(InvalidExpenseError, match="YYYY-MM-DD"):
        add_expense(InMemoryExpenseStore(), "H1", "Groceries", 90, "A", _participants(("B", 1.0)), date="03/01/2024")


def test_get_expenses_is_scoped_to_household():
    store = InMemoryExpenseStore()
    add_expense(store, "H1", "Groceries", 90, "A", _participants(("B", 1.0)))
    add_expense(store, "H2", "Internet", 40, "X", _participants(("Y", 1.0)))

    expenses = get_expenses(store, "H1")

    assert [e.name for e in expenses] == ["Groceries"]


def test_get_expense_not_found():
    with pytest.raises(ExpenseNotFoundError):
        get_expense(InMemoryExpenseStore(), "missing")


def test_dict_round_trip_keeps_payment_state(groceries):
    groceries.participants[0].is_paid = True
    groceries.participants[0].amount_paid = 45.0

    restored = Expense.from_dict(groceries.to_dict())

    assert restored.find_participant("B").is_paid is True
    assert restored.find_participant("B").amount_paid == 45.0
    assert restored.find_participant("Z") is None


@pytest.mark.parametrize("amount", [float("nan"), float("inf"), Decimal("NaN")])
def test_non_finite_amount_rejected(amount):
    with pytest.raises(InvalidExpenseError, match="positive"):
        add_expense(InMemoryExpenseStore(), "H1", "Groceries", amount, "A", _participants(("B", 1.0)))


def test_non_finite_share_rejected():
    with pytest.raises(InvalidExpenseError, match=r"\(0, 1\]"):
        add_expense(InMemoryExpenseStore(), "H1", "Groceries", 90, "A", _participants(("B", float("nan"))))


def test_decimal_amount_and_shares_accepted():
    expense = add_expense(
        InMemoryExpenseStore(), "H1", "Groceries", Decimal("90.00"), "A",
        _participants(("B", Decimal("0.5")), ("C", Decimal("0.5")))
    )

    assert expense.amount == 90.0
    assert [p.share for p in expense.participants] == [0.5, 0.5]


def test_blank_name_rejected():
    with pytest.raises(InvalidExpenseError, match="All fields are required"):
        add_expense(InMemoryExpenseStore(), "H1", "   ", 90, "A", _participants(("B", 1.0)))
