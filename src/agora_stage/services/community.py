"""Community gate: creation, membership and eligibility rules."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import and_, exists, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agora_stage.core.errors import (
    ConflictError,
    FailedPreconditionError,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
)
from agora_stage.db.session import transaction
from agora_stage.models import Community, CommunityMember, User, Wallet
from agora_stage.models.community import (
    COMMUNITY_STATUS_ACTIVE,
    COMMUNITY_STATUSES,
    MEMBER_ROLE_MEMBER,
    MEMBER_ROLE_OWNER,
)

logger = logging.getLogger(__name__)


class CommunityService:
    """Service handling community membership and its eligibility checks."""

    @staticmethod
    def _members_count(db: Session, community_id: int) -> int:
        return db.scalar(
            select(func.count())
            .select_from(CommunityMember)
            .where(CommunityMember.community_id == community_id)
        ) or 0

    @staticmethod
    def get_membership(db: Session, community_id: int, user_id: int) -> CommunityMember | None:
        """Return the membership row for the pair, if any."""
        return db.get(CommunityMember, (community_id, user_id))

    @staticmethod
    def is_member(db: Session, community_id: int, user_id: int) -> bool:
        """Check whether a user currently belongs to a community."""
        return CommunityService.get_membership(db, community_id, user_id) is not None

    @staticmethod
    def to_view(community: Community, *, members_count: int, is_member: bool) -> dict[str, Any]:
        """Shape a community row for the API."""
        return {
            "id": community.id,
            "name": community.name,
            "description": community.description,
            "creator_id": community.creator_id,
            "min_credits_required": community.min_credits_required,
            "status": community.status,
            "created_at": community.created_at,
            "members_count": members_count,
            "is_member": is_member,
        }

    @staticmethod
    def create_community(
        db: Session,
        *,
        creator_id: int,
        name: str,
        description: str | None = None,
        min_credits_required: int | None = None,
    ) -> dict[str, Any]:
        """Create a community and make its creator the owning member.

        Args:
            db: Database session
            creator_id: ID of the user creating the community
            name: Unique community name (trimmed)
            description: Optional description
            min_credits_required: Minimum wallet balance needed to join

        Returns:
            The community view with ``members_count`` 1 and ``is_member`` True.

        Raises:
            InvalidArgumentError: If the name is empty or the minimum is negative
            NotFoundError: If the creator does not exist
            ConflictError: If the name is already taken
        """
        name = (name or "").strip()
        description = (description or "").strip() or None
        min_credits = 0 if min_credits_required is None else min_credits_required

        if not creator_id or not name:
            raise InvalidArgumentError("creator_id and name are required")
        if min_credits < 0:
            raise InvalidArgumentError("min_credits_required must be >= 0")
        if db.get(User, creator_id) is None:
            raise NotFoundError("User not found")

        existing = db.scalar(select(Community.id).where(Community.name == name))
        if existing is not None:
            raise ConflictError("Community name already exists")

        try:
            with transaction(db):
                community = Community(
                    name=name,
                    description=description,
                    creator_id=creator_id,
                    min_credits_required=min_credits,
                    status=COMMUNITY_STATUS_ACTIVE,
                )
                db.add(community)
                db.flush()
                db.add(
                    CommunityMember(
                        community_id=community.id,
                        user_id=creator_id,
                        role=MEMBER_ROLE_OWNER,
                    )
                )
        except IntegrityError as exc:
            # Lost a race against another creation with the same name.
            raise ConflictError("Community name already exists") from exc

        db.refresh(community)
        logger.info("User %d created community %d (%s)", creator_id, community.id, name)
        return CommunityService.to_view(community, members_count=1, is_member=True)

    @staticmethod
    def join_community(db: Session, *, community_id: int, user_id: int) -> str:
        """Add a user to a community after checking status and eligibility.

        Joining is idempotent: an existing member gets the same success result
        and no second row is written.

        Raises:
            InvalidArgumentError: If either id is missing
            NotFoundError: If the community or the user's wallet is missing
            FailedPreconditionError: If the community is not active (403) or the
                user's balance is below the community minimum (400)
        """
        if not community_id or not user_id:
            raise InvalidArgumentError("community id and user_id are required")

        community = db.get(Community, community_id)
        if community is None:
            raise NotFoundError("Community not found")
        if community.status != COMMUNITY_STATUS_ACTIVE:
            raise FailedPreconditionError("Community is not active", status_code=403)

        wallet = db.scalar(select(Wallet).where(Wallet.user_id == user_id))
        if wallet is None:
            raise NotFoundError("Wallet not found")

        min_credits = community.min_credits_required or 0
        if min_credits > 0 and wallet.balance < min_credits:
            raise FailedPreconditionError(
                f"Insufficient credits. Need at least {min_credits}, "
                f"current balance {wallet.balance}."
            )

        if CommunityService.is_member(db, community_id, user_id):
            return "Joined community"

        try:
            with transaction(db):
                db.add(
                    CommunityMember(
                        community_id=community_id,
                        user_id=user_id,
                        role=MEMBER_ROLE_MEMBER,
                    )
                )
        except IntegrityError:
            # A concurrent join inserted the same pair first; membership exists.
            logger.debug("Duplicate join for community %d user %d", community_id, user_id)
            return "Joined community"

        logger.info("User %d joined community %d", user_id, community_id)
        return "Joined community"

    @staticmethod
    def leave_community(db: Session, *, community_id: int, user_id: int) -> str:
        """Remove a non-owner member from a community.

        Raises:
            InvalidArgumentError: If either id is missing
            FailedPreconditionError: If the user owns the community
        """
        if not community_id or not user_id:
            raise InvalidArgumentError("community id and user_id are required")

        membership = CommunityService.get_membership(db, community_id, user_id)
        if membership is None:
            return "Not a member"
        if membership.role == MEMBER_ROLE_OWNER:
            raise FailedPreconditionError("Owner cannot leave the community")

        with transaction(db):
            db.delete(membership)

        logger.info("User %d left community %d", user_id, community_id)
        return "Left community"

    @staticmethod
    def set_status(db: Session, *, community_id: int, status: str) -> dict[str, Any]:
        """Change a community's status without touching its members.

        Raises:
            InvalidArgumentError: If the status is not recognised
            NotFoundError: If the community does not exist
        """
        if not community_id:
            raise InvalidArgumentError("Invalid community id")
        if status not in COMMUNITY_STATUSES:
            raise InvalidArgumentError("Invalid status. Use: active | locked | disabled")

        community = db.get(Community, community_id)
        if community is None:
            raise NotFoundError("Community not found")

        with transaction(db):
            community.status = status

        db.refresh(community)
        logger.info("Community %d status set to %s", community_id, status)
        return CommunityService.to_view(
            community,
            members_count=CommunityService._members_count(db, community_id),
            is_member=False,
        )

    @staticmethod
    def list_communities(db: Session, *, viewer_id: int | None = None) -> list[dict[str, Any]]:
        """List active communities, newest first, with membership info."""
        return CommunityService._query_views(
            db,
            viewer_id=viewer_id,
            criteria=[Community.status == COMMUNITY_STATUS_ACTIVE],
        )

    @staticmethod
    def get_community(
        db: Session,
        community_id: int,
        *,
        viewer_id: int | None = None,
    ) -> dict[str, Any]:
        """Return one community of any status.

        Raises:
            NotFoundError: If the community does not exist
        """
        views = CommunityService._query_views(
            db,
            viewer_id=viewer_id,
            criteria=[Community.id == community_id],
        )
        if not views:
            raise NotFoundError("Community not found")
        return views[0]

    @staticmethod
    def _query_views(
        db: Session,
        *,
        viewer_id: int | None,
        criteria: list[Any],
    ) -> list[dict[str, Any]]:
        members_count = (
            select(func.count())
            .select_from(CommunityMember)
            .where(CommunityMember.community_id == Community.id)
            .correlate(Community)
            .scalar_subquery()
        )
        if viewer_id:
            is_member = exists().where(
                and_(
                    CommunityMember.community_id == Community.id,
                    CommunityMember.user_id == viewer_id,
                )
            )
        else:
            is_member = None

        columns: list[Any] = [Community, members_count.label("members_count")]
        if is_member is not None:
            columns.append(is_member.label("is_member"))

        rows = db.execute(
            select(*columns)
            .where(*criteria)
            .order_by(Community.created_at.desc(), Community.id.desc())
        ).all()

        return [
            CommunityService.to_view(
                row[0],
                members_count=int(row[1] or 0),
                is_member=bool(row[2]) if is_member is not None else False,
            )
            for row in rows
        ]

    @staticmethod
    def require_membership(db: Session, community_id: int | None, user_id: int) -> None:
        """Reject actions on community content by non-members.

        Public content (no community) always passes.

        Raises:
            ForbiddenError: If the user is not a member of the community
        """
        if not community_id:
            return
        if not CommunityService.is_member(db, community_id, user_id):
            raise ForbiddenError("Join the community first")
