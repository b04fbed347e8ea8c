"""Administrative endpoints guarded by the admin role."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter

from agora_stage.schemas.community import (
    CommunityEnvelope,
    CommunityStatusUpdate,
    MessageResponse,
)
from agora_stage.services import CommunityService
from agora_stage.services import users as user_service

from ..dependencies import AdminDep, SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.patch("/communities/{community_id}/status", response_model=CommunityEnvelope)
def set_community_status(
    community_id: int,
    body: CommunityStatusUpdate,
    admin: AdminDep,
    db: SessionDep,
) -> dict[str, Any]:
    """Lock, unlock or disable a community."""
    community = CommunityService.set_status(db, community_id=community_id, status=body.status)
    logger.info("Admin %d set community %d to %s", admin.id, community_id, body.status)
    return {"community": community}


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(user_id: int, admin: AdminDep, db: SessionDep) -> dict[str, str]:
    """Delete a non-admin user and everything they own."""
    user_service.delete_user(db, user_id)
    logger.info("Admin %d deleted user %d", admin.id, user_id)
    return {"message": "User deleted successfully"}
