"""Post, poll and event endpoints for the Agora API."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Query, status

from agora_stage.schemas.post import (
    AttendanceResponse,
    DeleteResponse,
    LikeResponse,
    PostCreate,
    PostEnvelope,
    PostListResponse,
    UserActionRequest,
    VoteRequest,
    VoteResponse,
)
from agora_stage.services import PostService

from ..dependencies import RequesterIdDep, SessionDep

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("", response_model=PostListResponse)
def list_posts(
    db: SessionDep,
    user_id: Annotated[int | None, Query(description="Viewer for liked/voted flags")] = None,
    author_id: int | None = None,
    community_id: Annotated[int | None, Query(description="Omit for public posts")] = None,
    limit: int | None = None,
) -> dict[str, Any]:
    """List posts, newest first, shaped for the viewer."""
    posts = PostService.list_posts(
        db,
        author_id=author_id,
        community_id=community_id,
        viewer_id=user_id,
        limit=limit,
    )
    return {"posts": posts}


@router.post("", response_model=PostEnvelope, status_code=status.HTTP_201_CREATED)
def create_post(body: PostCreate, db: SessionDep) -> dict[str, Any]:
    """Create a plain post, a poll or an event."""
    return {"post": PostService.create_post(db, body)}


@router.post("/{post_id}/like", response_model=LikeResponse)
def toggle_like(post_id: int, body: UserActionRequest, db: SessionDep) -> dict[str, Any]:
    """Like or unlike a post."""
    return PostService.toggle_like(db, post_id=post_id, user_id=body.user_id)


@router.post("/{post_id}/vote", response_model=VoteResponse)
def cast_vote(post_id: int, body: VoteRequest, db: SessionDep) -> dict[str, Any]:
    """Vote once in a poll."""
    return PostService.cast_vote(
        db,
        poll_id=post_id,
        user_id=body.user_id,
        option_id=body.option_id,
    )


@router.post("/{post_id}/attend", response_model=AttendanceResponse)
def toggle_attendance(post_id: int, body: UserActionRequest, db: SessionDep) -> dict[str, Any]:
    """Mark or unmark attendance for an event."""
    return PostService.toggle_attendance(db, event_id=post_id, user_id=body.user_id)


@router.delete("/{post_id}", response_model=DeleteResponse)
def delete_post(post_id: int, requester_id: RequesterIdDep, db: SessionDep) -> dict[str, Any]:
    """Delete one of the requester's own posts."""
    return PostService.delete_post(db, post_id=post_id, requester_id=requester_id)
