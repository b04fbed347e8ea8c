"""SQLAlchemy models for community membership and metadata."""
from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from agora_stage.db.session import Base
from agora_stage.db.time import UTCDateTime, utcnow

COMMUNITY_STATUS_ACTIVE = "active"
COMMUNITY_STATUS_LOCKED = "locked"
COMMUNITY_STATUS_DISABLED = "disabled"
COMMUNITY_STATUSES = (
    COMMUNITY_STATUS_ACTIVE,
    COMMUNITY_STATUS_LOCKED,
    COMMUNITY_STATUS_DISABLED,
)

MEMBER_ROLE_OWNER = "owner"
MEMBER_ROLE_MEMBER = "member"


class Community(Base):
    """Named group with an optional minimum-credit eligibility gate."""

    __tablename__ = "communities"
    __table_args__ = (
        CheckConstraint("min_credits_required >= 0", name="ck_communities_min_credits"),
        CheckConstraint(
            "status IN ('active', 'locked', 'disabled')",
            name="ck_communities_status",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    creator_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    min_credits_required: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=COMMUNITY_STATUS_ACTIVE
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(timezone=True), nullable=False, default=utcnow
    )


class CommunityMember(Base):
    """Join table mapping users into communities."""

    __tablename__ = "community_members"
    __table_args__ = (
        CheckConstraint("role IN ('owner', 'member')", name="ck_community_members_role"),
    )

    community_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("communities.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    # Composite primary key keeps membership idempotent.
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=MEMBER_ROLE_MEMBER)
    joined_at: Mapped[datetime] = mapped_column(
        UTCDateTime(timezone=True), nullable=False, default=utcnow
    )
