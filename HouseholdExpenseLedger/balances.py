"""
Balances Module

This module folds a household's expenses into a net balance per user.

Features:
    - Payer credited with the full outlay
    - Participants debited with their share
    - Recorded payments move obligation from participant to payer
    - Decimal-safe accumulation, rounding only for presentation

Data Model:
    Input - expenses: list of expenses.Expense
    Output - BalanceMap: user -> Decimal net balance
        - Positive = the household owes this user money
        - Negative = this user owes the household

Functions:
    calculate_balances: Fold expenses into a BalanceMap.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from expenses import Expense, to_decimal


ZERO = Decimal("0")


def _round_decimal(value: Decimal) -> float:
    """Round a Decimal to 2 decimal places and convert to float."""
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class BalanceMap:
    """
    Net balance per user.

    A user with no entry has a balance of exactly zero; ``balance_of`` is the
    only accessor and it always applies that default.
    """

    def __init__(self, balances: dict = None):
        self._balances = {}
        for user, amount in (balances or {}).items():
            self._balances[user] = to_decimal(amount)

    def balance_of(self, user: str) -> Decimal:
        return self._balances.get(user, ZERO)

    def credit(self, user: str, amount) -> None:
        self._balances[user] = self.balance_of(user) + to_decimal(amount)

    def debit(self, user: str, amount) -> None:
        self._balances[user] = self.balance_of(user) - to_decimal(amount)

    def items(self):
        return self._balances.items()

    def total(self) -> Decimal:
        return sum(self._balances.values(), ZERO)

    def to_dict(self) -> dict:
        """Balances as floats rounded to 2 places, for presentation."""
        return {user: _round_decimal(amount) for user, amount in self._balances.items()}

    def __contains__(self, user) -> bool:
        return user in self._balances

    def __len__(self) -> int:
        return len(self._balances)

    def __repr__(self) -> str:
        return f"BalanceMap({self.to_dict()})"


def calculate_balances(expenses: Iterable[Expense]) -> BalanceMap:
    """
    Calculate the net balance of every user across a set of expenses.

    For each expense:
        1. The payer is credited with the full amount
        2. Each participant is debited with amount * share
        3. If a participant has paid, they are credited with amount_paid
           and the payer is debited by the same amount

    A payer who is also a participant goes through the same rules and nets
    out on their own share.

    Args:
        expenses: Expenses of one household, in any order.

    Returns:
        BalanceMap: Entry for every user seen as payer or participant.

    Notes:
        - Never raises; share-sum drift is tolerated as approximate arithmetic
        - Empty input gives an empty BalanceMap
    """
    balances = BalanceMap()

    for expense in expenses:
        amount = to_decimal(expense.amount)
        payer = expense.payer

        balances.credit(payer, amount)

        for participant in expense.participants:
            balances.debit(participant.user, participant.expected_amount(amount))

            amount_paid = to_decimal(participant.amount_paid or 0)
            if amount_paid > 0:
                balances.credit(participant.user, amount_paid)
                balances.debit(payer, amount_paid)

    return balances
