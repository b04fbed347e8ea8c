# mypy: ignore-errors
# tests/v1/test_admin.py
"""Tests for administrative endpoints."""

from fastapi import status
from sqlalchemy import func, select

from agora_stage.models import CommunityMember, Post, PostLike, Transaction, User, Wallet


def test_set_community_status(client, admin_headers, alice, bob, make_community) -> None:
    community = make_community(alice)
    client.post(f"/api/communities/{community.id}/join", json={"user_id": bob.id})

    response = client.patch(
        f"/api/admin/communities/{community.id}/status",
        json={"status": "locked"},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()["community"]
    assert data["status"] == "locked"
    # Existing members stay.
    assert data["members_count"] == 2

    join = client.post(f"/api/communities/{community.id}/join", json={"user_id": 9999})
    assert join.status_code == status.HTTP_403_FORBIDDEN


def test_set_invalid_status(client, admin_headers, alice, make_community) -> None:
    community = make_community(alice)
    response = client.patch(
        f"/api/admin/communities/{community.id}/status",
        json={"status": "archived"},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "Invalid status. Use: active | locked | disabled"


def test_set_status_unknown_community(client, admin_headers) -> None:
    response = client.patch(
        "/api/admin/communities/9999/status",
        json={"status": "locked"},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_admin_routes_require_admin(client, alice, make_community) -> None:
    community = make_community(alice)
    response = client.patch(
        f"/api/admin/communities/{community.id}/status",
        json={"status": "locked"},
        headers={"x-user-id": str(alice.id)},
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_admin_routes_require_header(client, alice) -> None:
    response = client.delete(f"/api/admin/users/{alice.id}")
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_delete_user_removes_owned_rows(
    client, db_session, admin_headers, alice, bob, make_community, make_post
) -> None:
    community = make_community(bob)
    client.post(f"/api/communities/{community.id}/join", json={"user_id": alice.id})
    post = make_post(alice)
    client.post(f"/api/posts/{post.id}/like", json={"user_id": bob.id})
    client.post(
        "/api/wallet/transfer",
        json={"from_user_id": alice.id, "to_user_id": bob.id, "amount": 10},
    )
    alice_id = alice.id

    response = client.delete(f"/api/admin/users/{alice_id}", headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"message": "User deleted successfully"}

    db_session.expire_all()
    assert db_session.get(User, alice_id) is None
    assert db_session.scalar(select(func.count()).select_from(Transaction)) == 0
    assert db_session.scalar(
        select(func.count()).select_from(Wallet).where(Wallet.user_id == alice_id)
    ) == 0
    assert db_session.scalar(
        select(func.count()).select_from(CommunityMember).where(CommunityMember.user_id == alice_id)
    ) == 0
    assert db_session.scalar(select(func.count()).select_from(Post)) == 0


def test_cannot_delete_admin(client, admin, admin_headers) -> None:
    response = client.delete(f"/api/admin/users/{admin.id}", headers=admin_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "Cannot delete admin accounts"


def test_delete_unknown_user(client, admin_headers) -> None:
    response = client.delete("/api/admin/users/9999", headers=admin_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_delete_user_releases_their_likes(
    client, db_session, admin_headers, alice, bob, make_post
) -> None:
    post = make_post(alice)
    client.post(f"/api/posts/{post.id}/like", json={"user_id": bob.id})

    response = client.delete(f"/api/admin/users/{bob.id}", headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK

    db_session.expire_all()
    assert db_session.get(Post, post.id).likes_count == 0
    assert db_session.scalar(select(func.count()).select_from(PostLike)) == 0
