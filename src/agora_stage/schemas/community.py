# src/agora_stage/schemas/community.py
"""Community-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel


class CommunityCreate(BaseModel):
    """Schema for creating a new community."""

    creator_id: int
    name: str
    description: str | None = None
    min_credits_required: int | None = None


class CommunityResponse(BaseModel):
    """Schema for community information returned by the API."""

    id: int
    name: str
    description: str | None
    creator_id: int
    min_credits_required: int
    status: str
    created_at: datetime
    members_count: int
    is_member: bool


class CommunityEnvelope(BaseModel):
    community: CommunityResponse


class MembershipRequest(BaseModel):
    """Body for join/leave actions."""

    user_id: int


class CommunityStatusUpdate(BaseModel):
    """Administrative status change."""

    status: str


class MessageResponse(BaseModel):
    message: str
