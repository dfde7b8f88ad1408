"""
TrueSplit Ledger - FastAPI Web Backend

This module serves as the main entry point for the shared-expense ledger
API using FastAPI.

Features:
    - Net balances per group member
    - Minimal settle-up transfers, split into "owes you" and "you owe"
    - Expense entry with equal or unequal splits
    - Recording confirmed settlements and retracting transactions

Endpoints:
    GET    /groups/{group_id}/balances                              - Per-member balances
    GET    /groups/{group_id}/settle-up?member_id=                  - Settle-up transfers
    GET    /groups/{group_id}/transactions                          - Transaction log
    GET    /groups/{group_id}/transactions/{transaction_id}/breakdown - Expense detail rows
    POST   /groups/{group_id}/expenses                              - Add an expense
    POST   /groups/{group_id}/settlements                           - Record a confirmed payment
    DELETE /groups/{group_id}/transactions/{transaction_id}         - Retract a transaction

Usage:
    uvicorn main:app --reload
"""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Response
from pydantic import BaseModel, Field

from balances import summarize_balances
from config.settings import settings
from firebase_store import (
    add_transaction,
    delete_transaction,
    get_members,
    get_transaction,
    get_transactions,
    record_settlement
)
from members import member_names
from settlement import SettlementTransfer, settle_up
from splitter import explain_expense
from transactions import build_expense, sort_for_display
from utils import format_currency, round_decimal


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


# =============================================================================
# Pydantic Models for Request/Response Validation
# =============================================================================

class ExpenseCreate(BaseModel):
    """Request model for adding an expense."""
    title: str = Field(..., min_length=1, description="Expense title")
    amount: float = Field(..., gt=0, description="Expense amount (must be > 0)")
    paid_by: str = Field(..., min_length=1, description="Member ID of payer")
    participants: list[str] = Field(..., min_length=1, description="Member IDs sharing the expense")
    split_type: str = Field("equal", description="equal or unequal")
    custom_amounts: Optional[dict[str, float]] = Field(None, description="Per-member amounts for unequal splits")


class SettlementCreate(BaseModel):
    """Request model for recording a confirmed payment."""
    from_id: str = Field(..., min_length=1, description="Member ID who paid")
    to_id: str = Field(..., min_length=1, description="Member ID who received")
    amount: float = Field(..., gt=0, description="Amount paid (must be > 0)")
    from_name: Optional[str] = Field(None, description="Display name of the payer")


class CreatedResponse(BaseModel):
    """Response model for newly stored transactions."""
    transaction_id: str
    message: str


class BalanceResponse(BaseModel):
    """Response model for one member's balance."""
    member_id: str
    name: str
    total_paid: float
    total_share: float
    settled_out: float
    settled_in: float
    net_balance: float
    display: str


class TransferResponse(BaseModel):
    """Response model for a recommended transfer."""
    from_id: str
    from_name: str
    to_id: str
    to_name: str
    amount: float


class SettleUpResponse(BaseModel):
    """Response model for one member's settle-up view."""
    member_id: str
    owed_to_me: list[TransferResponse]
    i_owe: list[TransferResponse]
    all_settled: bool


class TransactionResponse(BaseModel):
    """Response model for a transaction in the log."""
    transaction_id: Optional[str]
    kind: str
    title: str
    amount: float
    paid_by: Optional[str]
    received_by: Optional[str] = None


class BreakdownRow(BaseModel):
    """Response model for one row of an expense breakdown."""
    member_id: Optional[str]
    name: str
    amount: float
    is_payer: bool


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="TrueSplit Ledger",
    description="Shared-expense balances and settle-up transfers for groups",
    version="1.0.0"
)


# =============================================================================
# Helper Functions
# =============================================================================

def _transaction_to_response(t) -> TransactionResponse:
    return TransactionResponse(
        transaction_id=t.transaction_id,
        kind=t.kind,
        title=t.title,
        amount=round_decimal(t.amount) if t.amount is not None else 0.0,
        paid_by=t.paid_by,
        received_by=t.received_by if t.is_settlement else None
    )


def _transfer_to_response(t: SettlementTransfer) -> TransferResponse:
    return TransferResponse(**t.to_dict())


# =============================================================================
# API Endpoints
# =============================================================================

@app.get("/groups/{group_id}/balances", response_model=list[BalanceResponse])
async def get_group_balances(group_id: str):
    """
    Compute every member's balance from the full transaction log.

    Request flow:
        1. Fetch members and transactions from Firestore
        2. Fold them into per-member balances (balances.py)
        3. Return one entry per member, in member order
    """
    try:
        members = get_members(group_id)
        transactions = get_transactions(group_id)
        names = member_names(members)

        summary = summarize_balances(members, transactions)
        return [
            BalanceResponse(
                member_id=member_id,
                name=names.get(member_id, member_id),
                display=format_currency(data["net_balance"], settings.CURRENCY_SYMBOL),
                **data
            )
            for member_id, data in summary.items()
        ]

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Balance computation failed for group %s", group_id)
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/groups/{group_id}/settle-up", response_model=SettleUpResponse)
async def get_settle_up(group_id: str, member_id: str):
    """
    Compute the settle-up transfers relevant to one member.

    Request flow:
        1. Fetch members and transactions from Firestore
        2. Run balances -> simplification (settlement.py)
        3. Split transfers into owed_to_me / i_owe for member_id
    """
    try:
        members = get_members(group_id)
        transactions = get_transactions(group_id)

        result = settle_up(
            members,
            transactions,
            current_member_id=member_id,
            names=member_names(members),
            epsilon=settings.SETTLEMENT_EPSILON
        )

        owed_to_me = [_transfer_to_response(t) for t in result["owed_to_me"]]
        i_owe = [_transfer_to_response(t) for t in result["i_owe"]]
        return SettleUpResponse(
            member_id=member_id,
            owed_to_me=owed_to_me,
            i_owe=i_owe,
            all_settled=not owed_to_me and not i_owe
        )

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Settle-up failed for group %s", group_id)
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/groups/{group_id}/transactions", response_model=list[TransactionResponse])
async def list_transactions(group_id: str):
    """List the transaction log, newest first."""
    try:
        transactions = sort_for_display(get_transactions(group_id))
        return [_transaction_to_response(t) for t in transactions]

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get(
    "/groups/{group_id}/transactions/{transaction_id}/breakdown",
    response_model=list[BreakdownRow]
)
async def get_transaction_breakdown(group_id: str, transaction_id: str):
    """Show who paid and what each participant owes for one transaction."""
    try:
        names = member_names(get_members(group_id))
        transaction = get_transaction(group_id, transaction_id)
        return [BreakdownRow(**row) for row in explain_expense(transaction, names)]

    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/groups/{group_id}/expenses", response_model=CreatedResponse, status_code=201)
async def add_group_expense(group_id: str, expense_data: ExpenseCreate):
    """
    Add an expense to a group.

    Request flow:
        1. Validate input using Pydantic model
        2. Check payer and participants are group members
        3. Build the split with build_expense() from transactions.py
        4. Store it with add_transaction() from firebase_store.py
    """
    try:
        member_ids = {m.member_id for m in get_members(group_id)}
        for member_id in [expense_data.paid_by] + expense_data.participants:
            if member_id not in member_ids:
                raise HTTPException(
                    status_code=400,
                    detail=f"'{member_id}' is not a member of group {group_id}"
                )

        expense = build_expense(
            title=expense_data.title,
            amount=expense_data.amount,
            paid_by=expense_data.paid_by,
            participants=expense_data.participants,
            split_type=expense_data.split_type,
            custom_amounts=expense_data.custom_amounts
        )
        transaction_id = add_transaction(group_id, expense)

        return CreatedResponse(transaction_id=transaction_id, message="Expense added successfully")

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/groups/{group_id}/settlements", response_model=CreatedResponse, status_code=201)
async def add_group_settlement(group_id: str, settlement_data: SettlementCreate):
    """
    Record a payment the receiver has confirmed.

    The payment is stored as a "settle" transaction, which moves the
    payer's balance up and the receiver's balance down by the amount.
    """
    try:
        member_ids = {m.member_id for m in get_members(group_id)}
        for member_id in (settlement_data.from_id, settlement_data.to_id):
            if member_id not in member_ids:
                raise HTTPException(
                    status_code=400,
                    detail=f"'{member_id}' is not a member of group {group_id}"
                )

        transfer = SettlementTransfer(
            from_id=settlement_data.from_id,
            to_id=settlement_data.to_id,
            amount=settlement_data.amount,
            from_name=settlement_data.from_name or settlement_data.from_id
        )
        transaction_id = record_settlement(group_id, transfer)

        return CreatedResponse(transaction_id=transaction_id, message="Payment recorded successfully")

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.delete("/groups/{group_id}/transactions/{transaction_id}", status_code=204)
async def retract_transaction(group_id: str, transaction_id: str):
    """Remove a transaction; balances are recomputed on the next read."""
    try:
        delete_transaction(group_id, transaction_id)
        return Response(status_code=204)

    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


# =============================================================================
# Health Check Endpoint
# =============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint to verify API is running."""
    return {"status": "healthy", "service": "TrueSplit Ledger"}


# =============================================================================
# Run with: python main.py
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
