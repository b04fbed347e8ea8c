"""Account, profile and directory helpers."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import case, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agora_stage.core import security
from agora_stage.core.errors import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
)
from agora_stage.core.settings import settings
from agora_stage.db.session import transaction
from agora_stage.models import Post, PostLike, Profile, Transaction, User, Wallet
from agora_stage.models.user import ROLE_USER

logger = logging.getLogger(__name__)

__all__ = [
    "delete_user",
    "get_by_username",
    "list_users",
    "login",
    "require_admin",
    "signup",
    "update_profile",
]


def to_view(user: User, profile: Profile | None) -> dict[str, Any]:
    """Join an account with its profile for the API."""
    return {
        "id": user.id,
        "email": user.email,
        "username": user.username,
        "role": user.role,
        "created_at": user.created_at,
        "display_name": profile.display_name if profile else None,
        "avatar_url": profile.avatar_url if profile else None,
        "bio": profile.bio if profile else None,
    }


def signup(
    db: Session,
    *,
    email: str,
    username: str,
    display_name: str,
    password: str,
) -> dict[str, Any]:
    """Register an account with its profile and a funded wallet.

    The user, profile and wallet are written in one atomic unit; the wallet
    starts with the configured signup bonus.

    Raises:
        InvalidArgumentError: If a field is blank or the email is malformed
        ConflictError: If the email or username is already registered
    """
    email = (email or "").strip().lower()
    username = (username or "").strip()
    display_name = (display_name or "").strip()
    if not email or not username or not display_name or not password:
        raise InvalidArgumentError("Missing required fields")
    if "@" not in email:
        raise InvalidArgumentError("Invalid email")

    taken = db.scalar(
        select(User.id).where(or_(User.email == email, User.username == username))
    )
    if taken is not None:
        raise ConflictError("Email or username already exists")

    try:
        with transaction(db):
            user = User(
                email=email,
                username=username,
                password_hash=security.hash_password(password),
                role=ROLE_USER,
            )
            user.profile = Profile(display_name=display_name)
            user.wallet = Wallet(balance=settings.signup_bonus)
            db.add(user)
            db.flush()
    except IntegrityError as exc:
        raise ConflictError("Email or username already exists") from exc

    db.refresh(user)
    logger.info("Registered user %d (%s)", user.id, username)
    return to_view(user, user.profile)


def login(db: Session, *, email: str, password: str) -> dict[str, Any]:
    """Check credentials and return the account view.

    Raises:
        AuthenticationError: If the email is unknown or the password is wrong
    """
    email = (email or "").strip().lower()
    user = db.scalar(select(User).where(User.email == email))
    if user is None or not security.verify_password(user.password_hash, password or ""):
        raise AuthenticationError("Invalid credentials")
    return to_view(user, user.profile)


def list_users(db: Session, *, exclude_id: int | None = None) -> list[dict[str, Any]]:
    """Return public snapshots of every user in id order."""
    stmt = select(User.id, User.username, Profile.display_name, Profile.avatar_url).join(
        Profile, Profile.user_id == User.id
    )
    if exclude_id:
        stmt = stmt.where(User.id != exclude_id)
    rows = db.execute(stmt.order_by(User.id)).all()
    return [
        {"id": uid, "username": username, "display_name": name, "avatar_url": avatar}
        for uid, username, name, avatar in rows
    ]


def get_by_username(db: Session, username: str) -> dict[str, Any]:
    """Return a profile page view including wallet balance and post count.

    Raises:
        NotFoundError: If no user has that username
    """
    user = db.scalar(select(User).where(User.username == username))
    if user is None:
        raise NotFoundError("User not found")

    posts_count = db.scalar(
        select(func.count()).select_from(Post).where(Post.author_id == user.id)
    )
    view = to_view(user, user.profile)
    view["wallet_balance"] = user.wallet.balance if user.wallet else None
    view["posts_count"] = int(posts_count or 0)
    return view


def update_profile(
    db: Session,
    *,
    user_id: int,
    requester_id: int,
    display_name: str | None,
    bio: str | None = None,
    avatar_url: str | None = None,
) -> dict[str, Any]:
    """Replace a user's public profile fields.

    Raises:
        ForbiddenError: If the requester edits someone else's profile
        InvalidArgumentError: If the display name is blank
        NotFoundError: If the user or profile does not exist
    """
    if requester_id != user_id:
        raise ForbiddenError("Not allowed")

    display_name = (display_name or "").strip()
    if not display_name:
        raise InvalidArgumentError("display_name is required")

    user = db.get(User, user_id)
    if user is None or user.profile is None:
        raise NotFoundError("User not found")

    with transaction(db):
        profile = user.profile
        profile.display_name = display_name
        profile.bio = (bio or "").strip() or None
        profile.avatar_url = (avatar_url or "").strip() or None

    db.refresh(user)
    logger.info("User %d updated profile", user_id)
    return to_view(user, user.profile)


def require_admin(db: Session, user_id: int) -> User:
    """Return the acting user if they hold the admin role.

    Raises:
        ForbiddenError: If the user is unknown or not an admin
    """
    user = db.get(User, user_id)
    if user is None or not user.is_admin:
        raise ForbiddenError("Admin access required")
    return user


def delete_user(db: Session, user_id: int) -> int:
    """Remove a user and everything they own.

    Ledger entries reference users without cascading, so the user's
    transactions are deleted first. Like counters on posts the user liked
    are decremented in the same unit; the database cascades the rest.

    Raises:
        NotFoundError: If the user does not exist
        InvalidArgumentError: If the target is an admin
    """
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if user.is_admin:
        raise InvalidArgumentError("Cannot delete admin accounts")

    with transaction(db):
        removed = db.execute(
            delete(Transaction).where(
                or_(Transaction.from_user_id == user_id, Transaction.to_user_id == user_id)
            )
        ).rowcount
        db.execute(
            update(Post)
            .where(Post.id.in_(select(PostLike.post_id).where(PostLike.user_id == user_id)))
            .values(
                likes_count=case(
                    (Post.likes_count > 0, Post.likes_count - 1),
                    else_=0,
                )
            )
            .execution_options(synchronize_session=False)
        )
        db.delete(user)

    logger.info("Deleted user %d and %d transaction(s)", user_id, removed or 0)
    return user_id
