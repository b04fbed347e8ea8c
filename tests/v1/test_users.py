# mypy: ignore-errors
# tests/v1/test_users.py
"""Tests for the user directory and profile endpoints."""

from fastapi import status


def test_list_users_excluding_one(client, alice, bob) -> None:
    response = client.get("/api/users", params={"exclude_id": alice.id})
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "users": [
            {"id": bob.id, "username": "bob", "display_name": "Bob", "avatar_url": None},
        ]
    }


def test_list_users(client, alice, bob) -> None:
    users = client.get("/api/users").json()["users"]
    assert [u["username"] for u in users] == ["alice", "bob"]


def test_get_user_by_username(client, alice, make_post) -> None:
    make_post(alice)
    make_post(alice)
    response = client.get("/api/users/username/alice")
    assert response.status_code == status.HTTP_200_OK
    user = response.json()["user"]
    assert user["id"] == alice.id
    assert user["wallet_balance"] == 100
    assert user["posts_count"] == 2


def test_get_unknown_username(client) -> None:
    response = client.get("/api/users/username/ghost")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"message": "User not found"}


def test_update_own_profile(client, alice) -> None:
    response = client.put(
        f"/api/users/{alice.id}/profile",
        json={"display_name": "Alice L.", "bio": "Chess fan", "avatar_url": ""},
        headers={"x-user-id": str(alice.id)},
    )
    assert response.status_code == status.HTTP_200_OK
    user = response.json()["user"]
    assert user["display_name"] == "Alice L."
    assert user["bio"] == "Chess fan"
    assert user["avatar_url"] is None


def test_update_other_profile_forbidden(client, alice, bob) -> None:
    response = client.put(
        f"/api/users/{alice.id}/profile",
        json={"display_name": "Hacked"},
        headers={"x-user-id": str(bob.id)},
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_update_profile_requires_display_name(client, alice) -> None:
    response = client.put(
        f"/api/users/{alice.id}/profile",
        json={"bio": "no name"},
        headers={"x-user-id": str(alice.id)},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "display_name is required"
