"""Wallet and transaction Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .user import UserSnapshot


class TransferRequest(BaseModel):
    """Schema for moving credits between two wallets."""

    from_user_id: int = Field(..., description="Sender user ID")
    to_user_id: int = Field(..., description="Recipient user ID")
    amount: int = Field(..., description="Whole credits to move; must be positive")
    description: str | None = Field(None, max_length=500)


class WalletResponse(BaseModel):
    """Schema for wallet information returned by the API."""

    id: int
    user_id: int
    balance: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TransactionResponse(BaseModel):
    """Schema for a single ledger entry."""

    id: int
    from_user_id: int
    to_user_id: int
    amount: int
    description: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TransactionHistoryItem(TransactionResponse):
    """Ledger entry with both parties' public profile snapshots."""

    from_user: UserSnapshot
    to_user: UserSnapshot


class WalletEnvelope(BaseModel):
    wallet: WalletResponse


class TransactionEnvelope(BaseModel):
    transaction: TransactionResponse


class TransactionHistoryResponse(BaseModel):
    transactions: list[TransactionHistoryItem]
