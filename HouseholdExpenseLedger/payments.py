"""
Payments Module

This module records a participant paying their share of an expense.

State machine per participant share:
    UNPAID -> PAID (terminal), gated by the exact-amount check.
    No partial payments, no refunds, no re-opening.

Functions:
    record_payment: Validate and apply one participant payment.
"""

import logging
from datetime import datetime, timezone

from errors import (
    AlreadySettledError,
    AmountMismatchError,
    ExpenseNotFoundError,
    LedgerError,
    NotParticipantError,
)
from expenses import Expense, TOLERANCE, to_decimal


logger = logging.getLogger(__name__)


def record_payment(store, expense_id: str, user_id: str, amount: float) -> Expense:
    """
    Apply one participant's payment against one expense.

    Checks, in order:
        1. The expense exists                      -> ExpenseNotFoundError
        2. user_id is one of its participants      -> NotParticipantError
        3. That participant has not paid yet       -> AlreadySettledError
        4. amount == expense.amount * share (+/- 0.01) -> AmountMismatchError

    On success the share is marked paid with amount_paid = amount and
    is_completely_paid is recomputed. The checks and the write happen inside
    one store.update_expense call, so of two racing payments for the same
    share only one succeeds and the other sees AlreadySettledError.

    Args:
        store: Persistence collaborator (see expense_store.ExpenseStore).
        expense_id: The expense being paid.
        user_id: The acting user.
        amount: Amount transferred to the payer.

    Returns:
        Expense: The updated expense.

    Raises:
        ExpenseNotFoundError, NotParticipantError, AlreadySettledError,
        AmountMismatchError: Nothing is written when any of these is raised.
    """
    paid = to_decimal(amount)

    def _apply(expense):
        if expense is None:
            raise ExpenseNotFoundError(expense_id)

        participant = expense.find_participant(user_id)
        if participant is None:
            raise NotParticipantError(expense_id, user_id)

        if participant.is_paid:
            raise AlreadySettledError(expense_id, user_id)

        expected = participant.expected_amount(expense.amount)
        if not paid.is_finite() or abs(paid - expected) > TOLERANCE:
            raise AmountMismatchError(float(expected), float(paid))

        participant.is_paid = True
        participant.amount_paid = float(amount)
        expense.refresh_completion()
        expense.updated_at = datetime.now(timezone.utc).isoformat()
        return expense

    try:
        expense = store.update_expense(expense_id, _apply)
    except LedgerError as e:
        logger.warning("Payment by %s on expense %s rejected: %s", user_id, expense_id, e)
        raise

    logger.info(
        "Recorded payment of %s by %s on expense %s (completely paid: %s)",
        amount, user_id, expense_id, expense.is_completely_paid
    )
    return expense
