"""Community-related endpoints for the Agora API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, status

from agora_stage.schemas.community import (
    CommunityCreate,
    CommunityEnvelope,
    CommunityResponse,
    MembershipRequest,
    MessageResponse,
)
from agora_stage.services import CommunityService

from ..dependencies import SessionDep

router = APIRouter(prefix="/communities", tags=["communities"])


@router.get("", response_model=list[CommunityResponse])
def list_communities(db: SessionDep, user_id: int | None = None) -> list[dict[str, Any]]:
    """List active communities, newest first."""
    return CommunityService.list_communities(db, viewer_id=user_id)


@router.get("/{community_id}", response_model=CommunityEnvelope)
def get_community(
    community_id: int,
    db: SessionDep,
    user_id: int | None = None,
) -> dict[str, Any]:
    """Get a specific community by ID."""
    return {"community": CommunityService.get_community(db, community_id, viewer_id=user_id)}


@router.post("", response_model=CommunityResponse, status_code=status.HTTP_201_CREATED)
def create_community(body: CommunityCreate, db: SessionDep) -> dict[str, Any]:
    """Create a new community owned by its creator."""
    return CommunityService.create_community(
        db,
        creator_id=body.creator_id,
        name=body.name,
        description=body.description,
        min_credits_required=body.min_credits_required,
    )


@router.post("/{community_id}/join", response_model=MessageResponse)
def join_community(
    community_id: int,
    body: MembershipRequest,
    db: SessionDep,
) -> dict[str, str]:
    """Join a community if it is active and the user meets its minimum."""
    message = CommunityService.join_community(
        db,
        community_id=community_id,
        user_id=body.user_id,
    )
    return {"message": message}


@router.post("/{community_id}/leave", response_model=MessageResponse)
def leave_community(
    community_id: int,
    body: MembershipRequest,
    db: SessionDep,
) -> dict[str, str]:
    """Leave a community; owners cannot leave their own."""
    message = CommunityService.leave_community(
        db,
        community_id=community_id,
        user_id=body.user_id,
    )
    return {"message": message}
