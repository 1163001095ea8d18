"""
Settlement Module

This module turns net balances into a short list of settle-up transactions.

Features:
    - Greedy largest-magnitude matching of debtors and creditors
    - Priority queues instead of re-sorting after every match
    - Ignores rounding drift within 0.01 of zero
    - Rounds only the emitted amounts

Data Model:
    Input - balances: BalanceMap, or dict of user -> number
        (positive = owed money, negative = owes money)

    Output - list of settlement transactions:
        - from: string (debtor who pays)
        - to: string (creditor who receives)
        - amount: float (rounded to 2 decimal places)

Functions:
    optimize_settlements: Convert balances into settlement transactions.
    apply_settlements: Execute transactions against balances.
"""

import heapq
import itertools
from decimal import Decimal, ROUND_HALF_UP

from expenses import TOLERANCE, to_decimal


def _round_decimal(value: Decimal) -> float:
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def optimize_settlements(balances) -> list[dict]:
    """
    Convert net balances into settlement transactions.

    Uses a greedy algorithm:
        1. Separate users into debtors (balance < -0.01) and creditors (balance > 0.01)
        2. Queue debtors most negative first and creditors most positive first
        3. Match the largest debtor with the largest creditor:
           - Settle min(-debt, credit)
           - Put back whichever party still has more than 0.01 left
        4. Repeat until either queue is empty

    Every match clears at least one party, so at most
    debtors + creditors - 1 transactions are produced.

    Args:
        balances: BalanceMap or dict keyed by user with net balances.

    Returns:
        list[dict]: Transactions with from, to and amount.

    Notes:
        - Working balances keep full precision; only emitted amounts are rounded
        - Does NOT modify input balances
        - Heuristic minimizer, not guaranteed globally minimal
    """
    # Heaps are min-heaps: debtors keyed by (negative) balance, creditors by -balance.
    # The counter breaks ties so user ids are only ever compared for equality.
    order = itertools.count()
    debtors = []
    creditors = []

    for user, balance in balances.items():
        net = to_decimal(balance)
        if net < -TOLERANCE:
            heapq.heappush(debtors, (net, next(order), user))
        elif net > TOLERANCE:
            heapq.heappush(creditors, (-net, next(order), user))

    settlements = []

    while debtors and creditors:
        debt, _, debtor = heapq.heappop(debtors)
        credit_neg, _, creditor = heapq.heappop(creditors)
        credit = -credit_neg

        amount = min(-debt, credit)
        settlements.append({
            "from": debtor,
            "to": creditor,
            "amount": _round_decimal(amount)
        })

        debt += amount
        credit -= amount

        if abs(debt) > TOLERANCE:
            heapq.heappush(debtors, (debt, next(order), debtor))
        if abs(credit) > TOLERANCE:
            heapq.heappush(creditors, (-credit, next(order), creditor))

    return settlements


def apply_settlements(balances, settlements: list[dict]) -> dict:
    """
    Execute settlement transactions against a copy of the balances.

    The payer's balance goes up by the amount, the receiver's goes down.

    Returns:
        dict: user -> Decimal balance after every transaction.
    """
    result = {user: to_decimal(balance) for user, balance in balances.items()}
    for transaction in settlements:
        amount = to_decimal(transaction["amount"])
        result[transaction["from"]] = result.get(transaction["from"], Decimal("0")) + amount
        result[transaction["to"]] = result.get(transaction["to"], Decimal("0")) - amount
    return result
