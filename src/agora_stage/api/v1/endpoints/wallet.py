"""Wallet endpoints: balances, transfers and history."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, status

from agora_stage.schemas.wallet import (
    TransactionEnvelope,
    TransactionHistoryResponse,
    TransferRequest,
    WalletEnvelope,
)
from agora_stage.services import wallet as wallet_service

from ..dependencies import SessionDep

router = APIRouter(prefix="/wallet", tags=["wallet"])


@router.post(
    "/transfer",
    response_model=TransactionEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def transfer(body: TransferRequest, db: SessionDep) -> dict[str, Any]:
    """Move credits from one wallet to another."""
    entry = wallet_service.transfer(
        db,
        from_user_id=body.from_user_id,
        to_user_id=body.to_user_id,
        amount=body.amount,
        description=body.description,
    )
    return {"transaction": entry}


@router.get("/{user_id}", response_model=WalletEnvelope)
def get_wallet(user_id: int, db: SessionDep) -> dict[str, Any]:
    """Return a user's wallet."""
    return {"wallet": wallet_service.get_wallet(db, user_id)}


@router.get("/{user_id}/transactions", response_model=TransactionHistoryResponse)
def list_transactions(user_id: int, db: SessionDep) -> dict[str, Any]:
    """Return transfers the user sent or received, newest first."""
    return {"transactions": wallet_service.list_transactions(db, user_id)}
