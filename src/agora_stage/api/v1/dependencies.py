"""Shared API dependencies for request identity and common functionality."""

from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from agora_stage.core.errors import InvalidArgumentError
from agora_stage.db.session import get_db
from agora_stage.models import User
from agora_stage.services import users as user_service

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_requester_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> int:
    """Return the acting user id carried in the ``x-user-id`` header.

    Raises:
        InvalidArgumentError: If the header is missing or not a positive integer
    """
    if x_user_id is None or not x_user_id.strip():
        raise InvalidArgumentError("Missing x-user-id header")
    try:
        requester_id = int(x_user_id)
    except ValueError as err:
        raise InvalidArgumentError("Invalid x-user-id header") from err
    if requester_id <= 0:
        raise InvalidArgumentError("Invalid x-user-id header")
    return requester_id


RequesterIdDep = Annotated[int, Depends(get_requester_id)]


def get_admin_user(requester_id: RequesterIdDep, db: SessionDep) -> User:
    """Resolve the requester and require the admin role.

    Raises:
        ForbiddenError: If the requester is not an admin
    """
    return user_service.require_admin(db, requester_id)


AdminDep = Annotated[User, Depends(get_admin_user)]
