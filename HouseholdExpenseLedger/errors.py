"""
Errors Module

Domain errors raised by the household expense ledger.

Payment-time errors (not found, not a participant, already settled,
amount mismatch) are terminal for the single operation that raised them.
The balance and settlement calculations never raise these.
"""


class LedgerError(Exception):
    """Base class for all ledger domain errors."""


class ExpenseNotFoundError(LedgerError, LookupError):
    """The referenced expense does not exist."""

    def __init__(self, expense_id: str):
        self.expense_id = expense_id
        super().__init__("Expense not found")


class NotParticipantError(LedgerError):
    """The acting user is not a participant of the expense."""

    def __init__(self, expense_id: str, user_id: str):
        self.expense_id = expense_id
        self.user_id = user_id
        super().__init__("You are not a participant of this expense")


class AlreadySettledError(LedgerError):
    """The participant's share was already marked paid."""

    def __init__(self, expense_id: str, user_id: str):
        self.expense_id = expense_id
        self.user_id = user_id
        super().__init__("You already paid your share")


class AmountMismatchError(LedgerError):
    """The payment does not match the participant's share within tolerance."""

    def __init__(self, expected: float, received: float):
        self.expected = expected
        self.received = received
        super().__init__(f"Incorrect amount paid: expected {expected:.2f}, got {received:.2f}")


class InvalidExpenseError(LedgerError, ValueError):
    """An expense failed creation-time validation."""
