"""
Expenses Module

This module handles the expense records for the household expense ledger.

Features:
    - Create expenses split by fractional shares among household members
    - Track per-participant payment state
    - Validate shares at creation time
    - List expenses per household

Data Model:
    Expense stored at: expenses/{expense_id}
    Fields:
        - expense_id: string (uuid4 hex)
        - household_id: string
        - name: string
        - amount: float (must be > 0)
        - payer: string (user who fronted the full amount)
        - participants: list of participant shares
            - user: string
            - share: float in (0, 1], shares sum to 1 (+/- 0.01)
            - is_paid: bool
            - amount_paid: float
        - date: string (YYYY-MM-DD)
        - is_completely_paid: bool (derived, recomputed on every payment)
        - created_at / updated_at: string (ISO timestamp)

Functions:
    add_expense: Validate and persist a new expense.
    get_expenses: Get all expenses for a household.
    get_expense: Get a single expense by ID.
"""

import logging
import uuid
from datetime import date as date_cls, datetime, timezone
from decimal import Decimal
from typing import Optional

from errors import ExpenseNotFoundError, InvalidExpenseError


logger = logging.getLogger(__name__)

# Fixed epsilon used to treat rounding drift as equality
TOLERANCE = Decimal("0.01")


def _get_timestamp() -> str:
    """Get current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def to_decimal(value) -> Decimal:
    """Convert a stored float/int/str amount to Decimal without binary noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class ParticipantShare:
    """
    A participant's fractional liability for one expense plus its payment state.

    Attributes:
        user (str): Opaque user identifier.
        share (float): Fraction of the expense owed, in (0, 1].
        is_paid (bool): Whether the share has been paid. Only ever goes False -> True.
        amount_paid (float): Amount transferred to the payer, 0 until paid.
    """

    def __init__(self, user: str, share: float, is_paid: bool = False, amount_paid: float = 0.0):
        self.user = user
        self.share = share
        self.is_paid = is_paid
        self.amount_paid = amount_paid

    def expected_amount(self, expense_amount) -> Decimal:
        """Amount this participant owes on an expense of ``expense_amount``."""
        return to_decimal(expense_amount) * to_decimal(self.share)

    def to_dict(self) -> dict:
        return {
            "user": self.user,
            "share": self.share,
            "is_paid": self.is_paid,
            "amount_paid": self.amount_paid
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ParticipantShare":
        return cls(
            user=data.get("user"),
            share=data.get("share"),
            is_paid=data.get("is_paid", False),
            amount_paid=data.get("amount_paid", 0.0)
        )

    def __repr__(self) -> str:
        return f"ParticipantShare(user='{self.user}', share={self.share}, is_paid={self.is_paid})"


class Expense:
    """
    Represents a single shared cost of a household.

    Attributes:
        expense_id (str): Unique identifier, immutable.
        household_id (str): Owning household, immutable.
        name (str): Short description.
        amount (float): Total cost, positive, immutable.
        payer (str): User who fronted the full amount, immutable.
        participants (list[ParticipantShare]): Users who benefit, non-empty.
        date (str | None): Date of the expense (YYYY-MM-DD).
        is_completely_paid (bool): Cached conjunction of every share's is_paid.
    """

    def __init__(
        self,
        expense_id: str,
        household_id: str,
        name: str,
        amount: float,
        payer: str,
        participants: list[ParticipantShare],
        date: Optional[str] = None,
        is_completely_paid: bool = False,
        created_at: Optional[str] = None,
        updated_at: Optional[str] = None
    ):
        self.expense_id = expense_id
        self.household_id = household_id
        self.name = name
        self.amount = amount
        self.payer = payer
        self.participants = participants
        self.date = date
        self.is_completely_paid = is_completely_paid
        self.created_at = created_at
        self.updated_at = updated_at

    def find_participant(self, user: str) -> Optional[ParticipantShare]:
        """Return the share belonging to ``user``, or None if they are not a participant."""
        for participant in self.participants:
            if participant.user == user:
                return participant
        return None

    def refresh_completion(self) -> bool:
        """Recompute is_completely_paid from the participant shares."""
        self.is_completely_paid = all(p.is_paid for p in self.participants)
        return self.is_completely_paid

    def to_dict(self) -> dict:
        """Convert expense to dictionary for Firestore storage."""
        return {
            "expense_id": self.expense_id,
            "household_id": self.household_id,
            "name": self.name,
            "amount": self.amount,
            "payer": self.payer,
            "participants": [p.to_dict() for p in self.participants],
            "date": self.date,
            "is_completely_paid": self.is_completely_paid,
            "created_at": self.created_at,
            "updated_at": self.updated_at
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Expense":
        """Create an Expense instance from a dictionary."""
        return cls(
            expense_id=data.get("expense_id"),
            household_id=data.get("household_id"),
            name=data.get("name"),
            amount=data.get("amount"),
            payer=data.get("payer"),
            participants=[ParticipantShare.from_dict(p) for p in data.get("participants", [])],
            date=data.get("date"),
            is_completely_paid=data.get("is_completely_paid", False),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at")
        )

    def __repr__(self) -> str:
        return f"Expense(id='{self.expense_id}', payer='{self.payer}', amount={self.amount}, participants={len(self.participants)})"


def _validate_date(date_str: str, field_name: str) -> bool:
    """
    Validate date string format (YYYY-MM-DD).

    Raises:
        InvalidExpenseError: If date format is invalid.
    """
    try:
        datetime.strptime(date_str, "%Y-%m-%d")
        return True
    except (TypeError, ValueError):
        raise InvalidExpenseError(f"{field_name} must be in YYYY-MM-DD format, got: {date_str}")


def _is_finite_number(value) -> bool:
    """True for int, float or Decimal values that are neither NaN nor infinite."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return False
    return to_decimal(value).is_finite()


def validate_expense_fields(
    name: str,
    amount: float,
    payer: str,
    participants: list[dict]
) -> None:
    """
    Validate the fields of a new expense.

    Rules:
        1. name, amount, payer and a non-empty participants list are required
        2. amount must be a positive, finite number
        3. every share must be a finite number in (0, 1]
        4. a user may appear only once among the participants
        5. shares must sum to 1 within 0.01

    Args:
        name: Short description of the expense.
        amount: Total cost.
        payer: User who fronted the amount.
        participants: List of dicts with ``user`` and ``share``.

    Raises:
        InvalidExpenseError: If any rule fails.
    """
    if isinstance(name, str):
        name = name.strip()
    if not name or not amount or not payer or not participants:
        raise InvalidExpenseError("All fields are required")

    if not _is_finite_number(amount) or amount <= 0:
        raise InvalidExpenseError(f"amount must be a positive number, got: {amount}")

    seen_users = set()
    total_share = Decimal("0")
    for participant in participants:
        user = participant.get("user")
        share = participant.get("share")
        if not user:
            raise InvalidExpenseError("Every participant needs a user")
        if user in seen_users:
            raise InvalidExpenseError(f"Participant '{user}' is listed more than once")
        seen_users.add(user)

        if not _is_finite_number(share) or not 0 < share <= 1:
            raise InvalidExpenseError(f"share for '{user}' must be in (0, 1], got: {share}")
        total_share += to_decimal(share)

    if abs(total_share - 1) > TOLERANCE:
        raise InvalidExpenseError(f"Participant shares must sum to 1, got: {total_share}")


def add_expense(
    store,
    household_id: str,
    name: str,
    amount: float,
    payer: str,
    participants: list[dict],
    date: Optional[str] = None
) -> Expense:
    """
    Add a new expense to a household.

    Args:
        store: Persistence collaborator (see expense_store.ExpenseStore).
        household_id: The ID of the owning household.
        name: Short description of the expense.
        amount: Total cost (must be > 0).
        payer: User who fronted the full amount.
        participants: List of dicts with ``user`` and ``share``.
        date: Date of the expense (YYYY-MM-DD), defaults to today.

    Returns:
        Expense: The created expense object.

    Raises:
        InvalidExpenseError: If input validation fails.
        RuntimeError: If the store is not available.

    Notes:
        - The payer may also be a participant (self-share)
        - Payment state of every share starts unpaid
    """
    if not isinstance(household_id, str) or not household_id.strip():
        raise InvalidExpenseError("household_id must be a non-empty string")

    validate_expense_fields(name, amount, payer, participants)

    if date is None:
        date = date_cls.today().isoformat()
    _validate_date(date, "date")

    timestamp = _get_timestamp()
    expense = Expense(
        expense_id=uuid.uuid4().hex,
        household_id=household_id,
        name=name.strip(),
        amount=float(amount),
        payer=payer,
        participants=[
            ParticipantShare(user=p["user"], share=float(p["share"]))
            for p in participants
        ],
        date=date,
        created_at=timestamp,
        updated_at=timestamp
    )

    store.save_expense(expense)
    logger.info("Created expense %s in household %s", expense.expense_id, household_id)

    return expense


def get_expenses(store, household_id: str) -> list[Expense]:
    """
    Get all expenses for a household.

    Raises:
        InvalidExpenseError: If household_id is invalid.
        RuntimeError: If the store is not available.
    """
    if not isinstance(household_id, str) or not household_id.strip():
        raise InvalidExpenseError("household_id must be a non-empty string")

    return store.fetch_expenses(household_id)


def get_expense(store, expense_id: str) -> Expense:
    """
    Get a single expense.

    Raises:
        ExpenseNotFoundError: If no expense has this ID.
    """
    expense = store.fetch_expense(expense_id)
    if expense is None:
        raise ExpenseNotFoundError(expense_id)
    return expense
