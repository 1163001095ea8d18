"""
HouseholdExpenseLedger - FastAPI Web Backend

This module serves as the HTTP entry point for the household expense ledger.
Authentication happens upstream; the acting user arrives as an opaque
X-User-Id header.

Endpoints:
    POST /expenses                              - Create an expense
    GET  /expenses/{household_id}               - List household expenses
    GET  /balance/{household_id}                - Net balance per user
    GET  /balance/{household_id}/{user_id}      - Breakdown of one user's balance
    GET  /settle-up/{household_id}              - Settle-up suggestions
    GET  /settle-up/{household_id}/report       - Settle-up report as PDF
    POST /pay/{expense_id}                      - Pay your share of an expense

Usage:
    uvicorn main:app --reload
"""

import logging
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Response
from pydantic import BaseModel, Field

from balances import calculate_balances
from config.settings import Settings
from errors import (
    AlreadySettledError,
    AmountMismatchError,
    ExpenseNotFoundError,
    InvalidExpenseError,
    NotParticipantError,
)
from expense_store import ExpenseStore, get_store
from expenses import Expense, add_expense, get_expenses
from payments import record_payment
from report import render_settlement_report
from settlement import optimize_settlements
from utils import explain_user_balance


logging.basicConfig(
    level=Settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


# =============================================================================
# Pydantic Models for Request/Response Validation
# =============================================================================

class ParticipantShareCreate(BaseModel):
    """A participant and their fraction of the expense."""
    user: str = Field(..., min_length=1, description="User ID of the participant")
    share: float = Field(..., allow_inf_nan=False, description="Fraction of the expense, in (0, 1]")


class ExpenseCreate(BaseModel):
    """Request model for creating an expense."""
    household_id: str = Field(..., min_length=1, description="Owning household")
    name: str = Field(..., min_length=1, description="Short description")
    amount: float = Field(..., gt=0, allow_inf_nan=False, description="Total cost (must be > 0)")
    payer: str = Field(..., min_length=1, description="User who fronted the amount")
    participants: list[ParticipantShareCreate] = Field(..., min_length=1)
    date: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}-\d{2}$", description="Expense date (YYYY-MM-DD)")


class ParticipantShareResponse(BaseModel):
    user: str
    share: float
    is_paid: bool
    amount_paid: float


class ExpenseResponse(BaseModel):
    """Response model for expense data."""
    expense_id: str
    household_id: str
    name: str
    amount: float
    payer: str
    participants: list[ParticipantShareResponse]
    date: Optional[str]
    is_completely_paid: bool
    created_at: Optional[str]
    updated_at: Optional[str]


class PaymentCreate(BaseModel):
    """Request model for paying a share."""
    amount: float = Field(..., allow_inf_nan=False, description="Amount transferred to the payer")


class PaymentResponse(BaseModel):
    success: bool
    expense: ExpenseResponse


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="Household Expense Ledger",
    description="Shared household expenses, balances and settle-up suggestions",
    version="1.0.0"
)


# =============================================================================
# Dependencies and Helpers
# =============================================================================

def get_expense_store() -> ExpenseStore:
    """Store used by the endpoints; overridden in tests."""
    try:
        return get_store()
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


def get_current_user(x_user_id: Optional[str] = Header(None, alias="X-User-Id")) -> str:
    """Opaque user ID set by the authentication layer in front of this service."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authorized, no user")
    return x_user_id


def _expense_to_response(e: Expense) -> ExpenseResponse:
    return ExpenseResponse(**e.to_dict())


# =============================================================================
# API Endpoints
# =============================================================================

@app.post("/expenses", response_model=ExpenseResponse, status_code=201)
async def create_expense(
    expense_data: ExpenseCreate,
    store: ExpenseStore = Depends(get_expense_store),
    user_id: str = Depends(get_current_user)
):
    """
    Create an expense.

    Request flow:
        1. Validate input using Pydantic model
        2. Call add_expense() from expenses.py (shares must sum to 1)
        3. Return created expense data
    """
    try:
        expense = add_expense(
            store,
            household_id=expense_data.household_id,
            name=expense_data.name,
            amount=expense_data.amount,
            payer=expense_data.payer,
            participants=[p.model_dump() for p in expense_data.participants],
            date=expense_data.date
        )
        return _expense_to_response(expense)

    except InvalidExpenseError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


@app.get("/expenses/{household_id}", response_model=list[ExpenseResponse])
async def list_expenses(
    household_id: str,
    store: ExpenseStore = Depends(get_expense_store),
    user_id: str = Depends(get_current_user)
):
    """Get all expenses for a household."""
    try:
        return [_expense_to_response(e) for e in get_expenses(store, household_id)]
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


@app.get("/balance/{household_id}", response_model=dict[str, float])
async def get_household_balances(
    household_id: str,
    store: ExpenseStore = Depends(get_expense_store),
    user_id: str = Depends(get_current_user)
):
    """Net balance per user (positive = owed money, negative = owes money)."""
    try:
        expenses = get_expenses(store, household_id)
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return calculate_balances(expenses).to_dict()


@app.get("/balance/{household_id}/{member_id}")
async def explain_member_balance(
    household_id: str,
    member_id: str,
    store: ExpenseStore = Depends(get_expense_store),
    user_id: str = Depends(get_current_user)
):
    """Per-expense breakdown of one member's net balance."""
    try:
        expenses = get_expenses(store, household_id)
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return explain_user_balance(member_id, expenses, calculate_balances(expenses))


@app.get("/settle-up/{household_id}")
async def get_settle_up_suggestions(
    household_id: str,
    store: ExpenseStore = Depends(get_expense_store),
    user_id: str = Depends(get_current_user)
):
    """
    Settle-up suggestions.

    Request flow:
        1. Fetch household expenses from the store
        2. Calculate balances (balances.py)
        3. Optimize settlements (settlement.py)
    """
    try:
        expenses = get_expenses(store, household_id)
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return optimize_settlements(calculate_balances(expenses))


@app.get("/settle-up/{household_id}/report")
async def get_settle_up_report(
    household_id: str,
    store: ExpenseStore = Depends(get_expense_store),
    user_id: str = Depends(get_current_user)
):
    """Settle-up report as a PDF download."""
    try:
        expenses = get_expenses(store, household_id)
        balances = calculate_balances(expenses)
        pdf = render_settlement_report(
            household_id,
            balances.to_dict(),
            optimize_settlements(balances)
        )
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={household_id}_settle_up.pdf"}
    )


@app.post("/pay/{expense_id}", response_model=PaymentResponse)
async def pay_share(
    expense_id: str,
    payment: PaymentCreate,
    store: ExpenseStore = Depends(get_expense_store),
    user_id: str = Depends(get_current_user)
):
    """
    Pay your share of an expense.

    Request flow:
        1. Call record_payment() from payments.py as the acting user
        2. Map each rejection to its status code
        3. Return the updated expense
    """
    try:
        expense = record_payment(store, expense_id, user_id, payment.amount)
        return PaymentResponse(success=True, expense=_expense_to_response(expense))

    except ExpenseNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except NotParticipantError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except (AlreadySettledError, AmountMismatchError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


# =============================================================================
# Health Check Endpoint
# =============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint to verify API is running."""
    return {"status": "healthy", "service": "Household Expense Ledger"}


# =============================================================================
# Run with: python main.py
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
