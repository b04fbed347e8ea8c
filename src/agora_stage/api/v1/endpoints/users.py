"""User directory and profile endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from agora_stage.schemas.user import (
    ProfileUpdateRequest,
    UserDetailEnvelope,
    UserEnvelope,
    UserListResponse,
)
from agora_stage.services import users as user_service

from ..dependencies import RequesterIdDep, SessionDep

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=UserListResponse)
def list_users(db: SessionDep, exclude_id: int | None = None) -> dict[str, Any]:
    """List public user snapshots, optionally leaving one user out."""
    return {"users": user_service.list_users(db, exclude_id=exclude_id)}


@router.get("/username/{username}", response_model=UserDetailEnvelope)
def get_user_by_username(username: str, db: SessionDep) -> dict[str, Any]:
    """Return a profile page view with wallet balance and post count."""
    return {"user": user_service.get_by_username(db, username)}


@router.put("/{user_id}/profile", response_model=UserEnvelope)
def update_profile(
    user_id: int,
    body: ProfileUpdateRequest,
    requester_id: RequesterIdDep,
    db: SessionDep,
) -> dict[str, Any]:
    """Update the caller's own profile."""
    user = user_service.update_profile(
        db,
        user_id=user_id,
        requester_id=requester_id,
        display_name=body.display_name,
        bio=body.bio,
        avatar_url=body.avatar_url,
    )
    return {"user": user}
