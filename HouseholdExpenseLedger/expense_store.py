"""
Expense Store Module

This module is the persistence boundary of the household expense ledger.

Features:
    - Fetch all expenses of a household
    - Fetch / save a single expense
    - Conditional read-modify-write of one expense, atomic per expense

Firestore Structure:
    expenses/{expense_id}
        - see expenses.Expense.to_dict()
        - household_id is queried by equality

Classes:
    ExpenseStore: Interface every store implements.
    FirestoreExpenseStore: Cloud Firestore backed store.
    InMemoryExpenseStore: Process-local store for development and tests.

Functions:
    get_store: Build the store selected by configuration.
"""

import logging
import threading
from typing import Callable, Optional

from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from config.firebase_config import get_db
from config.settings import Settings
from expenses import Expense


logger = logging.getLogger(__name__)

EXPENSES_COLLECTION = "expenses"


class ExpenseStore:
    """
    Interface of the persistence collaborator.

    ``update_expense`` runs ``apply`` on the current stored value of one
    expense (None if it does not exist) and saves what ``apply`` returns, as
    one atomic step: no other update of that expense may interleave. If
    ``apply`` raises, nothing is written and the error propagates.
    """

    def fetch_expenses(self, household_id: str) -> list[Expense]:
        raise NotImplementedError

    def fetch_expense(self, expense_id: str) -> Optional[Expense]:
        raise NotImplementedError

    def save_expense(self, expense: Expense) -> None:
        raise NotImplementedError

    def update_expense(
        self,
        expense_id: str,
        apply: Callable[[Optional[Expense]], Expense]
    ) -> Expense:
        raise NotImplementedError


class FirestoreExpenseStore(ExpenseStore):
    """Store backed by the ``expenses`` collection in Cloud Firestore."""

    def __init__(self, db=None):
        self._db = db

    @property
    def db(self):
        if self._db is None:
            self._db = get_db()
        return self._db

    def _collection(self):
        return self.db.collection(EXPENSES_COLLECTION)

    def fetch_expenses(self, household_id: str) -> list[Expense]:
        docs = self._collection() \
                   .where(filter=FieldFilter("household_id", "==", household_id)) \
                   .stream()
        return [Expense.from_dict(doc.to_dict()) for doc in docs]

    def fetch_expense(self, expense_id: str) -> Optional[Expense]:
        doc = self._collection().document(expense_id).get()
        if not doc.exists:
            return None
        return Expense.from_dict(doc.to_dict())

    def save_expense(self, expense: Expense) -> None:
        self._collection().document(expense.expense_id).set(expense.to_dict())

    def update_expense(self, expense_id, apply):
        doc_ref = self._collection().document(expense_id)
        transaction = self.db.transaction()

        # Firestore retries the function when a concurrent write to the same
        # document wins, so apply always sees the latest committed state.
        @firestore.transactional
        def _read_modify_write(transaction):
            snapshot = doc_ref.get(transaction=transaction)
            current = Expense.from_dict(snapshot.to_dict()) if snapshot.exists else None
            updated = apply(current)
            transaction.set(doc_ref, updated.to_dict())
            return updated

        return _read_modify_write(transaction)


class InMemoryExpenseStore(ExpenseStore):
    """
    Dict-backed store.

    Values are copied on the way in and out so callers only ever hold
    snapshots. Updates are serialized with a lock, which is only sound
    because the data lives in this process.
    """

    def __init__(self, expenses: list[Expense] = None):
        self._documents = {}
        self._lock = threading.Lock()
        for expense in expenses or []:
            self.save_expense(expense)

    def fetch_expenses(self, household_id):
        with self._lock:
            return [
                Expense.from_dict(data)
                for data in self._documents.values()
                if data["household_id"] == household_id
            ]

    def fetch_expense(self, expense_id):
        with self._lock:
            data = self._documents.get(expense_id)
        return Expense.from_dict(data) if data is not None else None

    def save_expense(self, expense):
        with self._lock:
            self._documents[expense.expense_id] = expense.to_dict()

    def update_expense(self, expense_id, apply):
        with self._lock:
            data = self._documents.get(expense_id)
            current = Expense.from_dict(data) if data is not None else None
            updated = apply(current)
            self._documents[expense_id] = updated.to_dict()
            return Expense.from_dict(self._documents[expense_id])


_store = None


def get_store() -> ExpenseStore:
    """
    Return the process-wide store selected by ``Settings.EXPENSE_STORE``.

    Raises:
        RuntimeError: If the configured store type is unknown.
    """
    global _store
    if _store is not None:
        return _store

    if Settings.EXPENSE_STORE == "firestore":
        _store = FirestoreExpenseStore()
    elif Settings.EXPENSE_STORE == "memory":
        _store = InMemoryExpenseStore()
    else:
        raise RuntimeError(f"Unknown EXPENSE_STORE: {Settings.EXPENSE_STORE}")

    logger.info("Using %s expense store", Settings.EXPENSE_STORE)
    return _store
