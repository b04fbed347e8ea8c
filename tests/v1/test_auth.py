# mypy: ignore-errors
# tests/v1/test_auth.py
"""Tests for signup and login."""

from fastapi import status
from sqlalchemy import select

from agora_stage.models import User, Wallet

SIGNUP = {
    "email": "dana@agora.social",
    "username": "dana",
    "display_name": "Dana",
    "password": "correct horse",
}


def test_signup_creates_user_profile_and_wallet(client, db_session) -> None:
    response = client.post("/api/auth/signup", json=SIGNUP)
    assert response.status_code == status.HTTP_201_CREATED
    user = response.json()["user"]
    assert user["username"] == "dana"
    assert user["display_name"] == "Dana"
    assert user["role"] == "user"
    assert "password" not in user
    assert "password_hash" not in user

    balance = db_session.scalar(select(Wallet.balance).where(Wallet.user_id == user["id"]))
    assert balance == 100


def test_signup_does_not_store_plaintext(client, db_session) -> None:
    client.post("/api/auth/signup", json=SIGNUP)
    stored = db_session.scalar(select(User).where(User.username == "dana"))
    assert stored.password_hash != SIGNUP["password"]
    assert stored.password_hash.startswith("$argon2id$")


def test_signup_duplicate(client) -> None:
    client.post("/api/auth/signup", json=SIGNUP)
    response = client.post("/api/auth/signup", json={**SIGNUP, "email": "other@agora.social"})
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["message"] == "Email or username already exists"


def test_signup_missing_field(client) -> None:
    response = client.post("/api/auth/signup", json={**SIGNUP, "display_name": "   "})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_signup_rejects_email_without_at(client) -> None:
    response = client.post("/api/auth/signup", json={**SIGNUP, "email": "dana.agora"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_login(client) -> None:
    client.post("/api/auth/signup", json=SIGNUP)
    response = client.post(
        "/api/auth/login",
        json={"email": SIGNUP["email"], "password": SIGNUP["password"]},
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["user"]["username"] == "dana"


def test_login_wrong_password(client) -> None:
    client.post("/api/auth/signup", json=SIGNUP)
    response = client.post(
        "/api/auth/login",
        json={"email": SIGNUP["email"], "password": "wrong"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"message": "Invalid credentials"}


def test_login_unknown_email(client) -> None:
    response = client.post(
        "/api/auth/login",
        json={"email": "nobody@agora.social", "password": "x"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
