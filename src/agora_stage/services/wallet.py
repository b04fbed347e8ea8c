"""Wallet transfer engine and ledger reads."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, aliased

from agora_stage.core.errors import (
    FailedPreconditionError,
    InvalidArgumentError,
    NotFoundError,
)
from agora_stage.db.session import transaction
from agora_stage.models import Profile, Transaction, User, Wallet

logger = logging.getLogger(__name__)

__all__ = [
    "get_wallet",
    "list_transactions",
    "transfer",
]


def get_wallet(db: Session, user_id: int) -> Wallet:
    """Return the wallet owned by ``user_id``.

    Raises:
        NotFoundError: If the user has no wallet.
    """
    wallet = db.scalar(select(Wallet).where(Wallet.user_id == user_id))
    if wallet is None:
        raise NotFoundError("Wallet not found")
    return wallet


def _lock_wallets(db: Session, user_ids: tuple[int, int]) -> dict[int, Wallet]:
    """Lock both wallets ``FOR UPDATE`` in ascending user id order.

    A fixed global order means two transfers running in opposite directions
    between the same pair queue behind each other instead of deadlocking.
    """
    locked: dict[int, Wallet] = {}
    for user_id in sorted(user_ids):
        wallet = db.scalar(
            select(Wallet)
            .where(Wallet.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        if wallet is not None:
            locked[user_id] = wallet
    return locked


def transfer(
    db: Session,
    *,
    from_user_id: int,
    to_user_id: int,
    amount: int,
    description: str | None = None,
) -> Transaction:
    """Atomically move ``amount`` credits between two wallets.

    Args:
        db: Database session.
        from_user_id: User whose wallet is debited.
        to_user_id: User whose wallet is credited.
        amount: Whole, positive number of credits.
        description: Optional free-text note stored on the ledger entry.

    Returns:
        The persisted ledger entry.

    Raises:
        InvalidArgumentError: If ids or amount are malformed, or both ids match.
        NotFoundError: If either wallet is missing.
        FailedPreconditionError: If the sender's balance is below ``amount``.

    Notes:
        Either both balances change and a Transaction row is written, or nothing
        is persisted.
    """
    if (
        not from_user_id
        or not to_user_id
        or from_user_id < 0
        or to_user_id < 0
        or isinstance(amount, bool)
        or not isinstance(amount, int)
        or amount <= 0
    ):
        raise InvalidArgumentError("Invalid transfer data")
    if from_user_id == to_user_id:
        raise InvalidArgumentError("Cannot transfer to the same user")

    description = (description or "").strip() or None

    with transaction(db):
        wallets = _lock_wallets(db, (from_user_id, to_user_id))
        source = wallets.get(from_user_id)
        target = wallets.get(to_user_id)
        if source is None or target is None:
            raise NotFoundError("Wallet not found")

        if source.balance < amount:
            logger.info(
                "Rejected transfer of %d from user %d: balance %d",
                amount,
                from_user_id,
                source.balance,
            )
            raise FailedPreconditionError("Insufficient balance")

        source.balance -= amount
        target.balance += amount

        entry = Transaction(
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            amount=amount,
            description=description,
        )
        db.add(entry)
        db.flush()

    db.refresh(entry)
    logger.info(
        "Transferred %d credits from user %d to user %d (transaction %d)",
        amount,
        from_user_id,
        to_user_id,
        entry.id,
    )
    return entry


def _snapshot(user: User, profile: Profile) -> dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "display_name": profile.display_name,
        "avatar_url": profile.avatar_url,
    }


def list_transactions(db: Session, user_id: int) -> list[dict[str, Any]]:
    """Return every transfer the user sent or received, newest first.

    Each entry embeds public snapshots of both parties.
    """
    sender = aliased(User)
    sender_profile = aliased(Profile)
    recipient = aliased(User)
    recipient_profile = aliased(Profile)

    rows = db.execute(
        select(Transaction, sender, sender_profile, recipient, recipient_profile)
        .join(sender, sender.id == Transaction.from_user_id)
        .join(sender_profile, sender_profile.user_id == sender.id)
        .join(recipient, recipient.id == Transaction.to_user_id)
        .join(recipient_profile, recipient_profile.user_id == recipient.id)
        .where(or_(Transaction.from_user_id == user_id, Transaction.to_user_id == user_id))
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
    ).all()

    history: list[dict[str, Any]] = []
    for entry, from_user, from_profile, to_user, to_profile in rows:
        history.append(
            {
                "id": entry.id,
                "from_user_id": entry.from_user_id,
                "to_user_id": entry.to_user_id,
                "amount": entry.amount,
                "description": entry.description,
                "created_at": entry.created_at,
                "from_user": _snapshot(from_user, from_profile),
                "to_user": _snapshot(to_user, to_profile),
            }
        )
    return history
