"""
Utilities Module

This module provides utility functions for the household expense ledger.

Features:
    - Transparency of how a user's net balance was reached
    - Currency formatting for reports

Functions:
    explain_user_balance: Per-expense breakdown of one user's balance.
    format_currency: Format amount with currency symbol.
"""

from decimal import Decimal, ROUND_HALF_UP

from expenses import to_decimal


def _round_decimal(value: Decimal) -> float:
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def explain_user_balance(user_id: str, expenses: list, balances) -> dict:
    """
    Explain how a user's net balance was calculated.

    For each expense the user paid for or participates in, reports what the
    expense added to or took from their balance, using the same rules as
    balances.calculate_balances().

    Args:
        user_id: The user to explain.
        expenses: Expenses of the household.
        balances: BalanceMap from calculate_balances().

    Returns:
        dict: Explanation containing:
            - user: string
            - contributions: list of dicts, one per relevant expense
            - net_balance: float (from balances)
    """
    contributions = []

    for expense in expenses:
        amount = to_decimal(expense.amount)
        participant = expense.find_participant(user_id)
        is_payer = expense.payer == user_id

        if participant is None and not is_payer:
            continue

        effect = Decimal("0")
        if is_payer:
            effect += amount
            for p in expense.participants:
                effect -= to_decimal(p.amount_paid or 0)

        share_amount = None
        if participant is not None:
            share_amount = participant.expected_amount(amount)
            effect -= share_amount
            effect += to_decimal(participant.amount_paid or 0)

        contributions.append({
            "expense_id": expense.expense_id,
            "name": expense.name,
            "date": expense.date,
            "total_expense_amount": _round_decimal(amount),
            "paid_by_user": is_payer,
            "share": participant.share if participant else None,
            "share_amount": _round_decimal(share_amount) if share_amount is not None else None,
            "is_paid": participant.is_paid if participant else None,
            "balance_effect": _round_decimal(effect)
        })

    return {
        "user": user_id,
        "contributions": contributions,
        "net_balance": _round_decimal(balances.balance_of(user_id))
    }


def format_currency(amount: float, symbol: str = "$") -> str:
    """
    Format a monetary amount with the appropriate currency symbol.

    Returns:
        str: Formatted string like "$1,234.56", or "-$12.00" for negatives.
    """
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"
