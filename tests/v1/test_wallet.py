# tests/v1/test_wallet.py
"""Tests for wallet transfer and ledger endpoints."""

from fastapi import status
from sqlalchemy import func, select

from agora_stage.models import Transaction, Wallet


def _balance(db_session, user) -> int:
    db_session.expire_all()
    return db_session.scalar(select(Wallet.balance).where(Wallet.user_id == user.id))


def _transaction_count(db_session) -> int:
    return db_session.scalar(select(func.count()).select_from(Transaction))


def test_get_wallet(client, alice) -> None:
    response = client.get(f"/api/wallet/{alice.id}")
    assert response.status_code == status.HTTP_200_OK
    wallet = response.json()["wallet"]
    assert wallet["user_id"] == alice.id
    assert wallet["balance"] == 100


def test_get_wallet_missing(client) -> None:
    response = client.get("/api/wallet/9999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"message": "Wallet not found"}


def test_transfer_conserves_total(client, db_session, alice, bob) -> None:
    """A transfer moves credits and writes exactly one ledger entry."""
    response = client.post(
        "/api/wallet/transfer",
        json={
            "from_user_id": alice.id,
            "to_user_id": bob.id,
            "amount": 30,
            "description": "  lunch  ",
        },
    )
    assert response.status_code == status.HTTP_201_CREATED
    entry = response.json()["transaction"]
    assert entry["amount"] == 30
    assert entry["description"] == "lunch"
    assert entry["from_user_id"] == alice.id
    assert entry["to_user_id"] == bob.id

    assert _balance(db_session, alice) == 70
    assert _balance(db_session, bob) == 130
    assert _transaction_count(db_session) == 1


def test_transfer_insufficient_balance_changes_nothing(client, db_session, make_user) -> None:
    poor = make_user("poor", balance=10)
    rich = make_user("rich", balance=500)

    response = client.post(
        "/api/wallet/transfer",
        json={"from_user_id": poor.id, "to_user_id": rich.id, "amount": 11},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "Insufficient balance"
    assert _balance(db_session, poor) == 10
    assert _balance(db_session, rich) == 500
    assert _transaction_count(db_session) == 0


def test_transfer_whole_balance(client, db_session, alice, bob) -> None:
    response = client.post(
        "/api/wallet/transfer",
        json={"from_user_id": alice.id, "to_user_id": bob.id, "amount": 100},
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert _balance(db_session, alice) == 0


def test_transfer_to_self_rejected(client, alice) -> None:
    response = client.post(
        "/api/wallet/transfer",
        json={"from_user_id": alice.id, "to_user_id": alice.id, "amount": 5},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "Cannot transfer to the same user"


def test_transfer_rejects_non_positive_amount(client, db_session, alice, bob) -> None:
    for amount in (0, -5):
        response = client.post(
            "/api/wallet/transfer",
            json={"from_user_id": alice.id, "to_user_id": bob.id, "amount": amount},
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Invalid transfer data"
    assert _transaction_count(db_session) == 0


def test_transfer_rejects_fractional_amount(client, alice, bob) -> None:
    response = client.post(
        "/api/wallet/transfer",
        json={"from_user_id": alice.id, "to_user_id": bob.id, "amount": 2.5},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "amount" in response.json()["message"]


def test_transfer_to_unknown_wallet(client, db_session, alice) -> None:
    response = client.post(
        "/api/wallet/transfer",
        json={"from_user_id": alice.id, "to_user_id": 9999, "amount": 5},
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["message"] == "Wallet not found"
    assert _balance(db_session, alice) == 100


def test_transaction_history_newest_first(client, alice, bob, make_user) -> None:
    carol = make_user("carol")
    client.post(
        "/api/wallet/transfer",
        json={"from_user_id": alice.id, "to_user_id": bob.id, "amount": 5},
    )
    client.post(
        "/api/wallet/transfer",
        json={"from_user_id": bob.id, "to_user_id": alice.id, "amount": 2},
    )
    client.post(
        "/api/wallet/transfer",
        json={"from_user_id": bob.id, "to_user_id": carol.id, "amount": 1},
    )

    response = client.get(f"/api/wallet/{alice.id}/transactions")
    assert response.status_code == status.HTTP_200_OK
    history = response.json()["transactions"]
    assert [item["amount"] for item in history] == [2, 5]
    latest = history[0]
    assert latest["from_user"] == {
        "id": bob.id,
        "username": "bob",
        "display_name": "Bob",
        "avatar_url": None,
    }
    assert latest["to_user"]["username"] == "alice"


def test_transaction_history_empty(client, alice) -> None:
    response = client.get(f"/api/wallet/{alice.id}/transactions")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"transactions": []}
