import pytest

from expense_store import InMemoryExpenseStore
from expenses import Expense, ParticipantShare


def make_expense(expense_id, amount, payer, shares, household_id="H1", paid=None):
    """Build an expense; ``paid`` maps user -> amount already paid."""
    paid = paid or {}
    participants = [
        ParticipantShare(
            user=user,
            share=share,
            is_paid=user in paid,
            amount_paid=paid.get(user, 0.0)
        )
        for user, share in shares
    ]
    expense = Expense(
        expense_id=expense_id,
        household_id=household_id,
        name=f"Expense {expense_id}",
        amount=amount,
        payer=payer,
        participants=participants,
        date="2024-03-01"
    )
    expense.refresh_completion()
    return expense


@pytest.fixture
def groceries():
    # amount=90 paid by A, split evenly between B and C
    return make_expense("E1", 90, "A", [("B", 0.5), ("C", 0.5)])


@pytest.fixture
def store(groceries):
    return InMemoryExpenseStore([groceries])
