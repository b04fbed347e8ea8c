# src/agora_stage/models/post.py
"""SQLAlchemy models for posts and likes."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agora_stage.db.session import Base
from agora_stage.db.time import UTCDateTime, utcnow

if TYPE_CHECKING:
    from .event import Event
    from .poll import Poll

POST_TYPE_POST = "post"
POST_TYPE_POLL = "poll"
POST_TYPE_EVENT = "event"
POST_TYPES = (POST_TYPE_POST, POST_TYPE_POLL, POST_TYPE_EVENT)


class Post(Base):
    """Base content unit.

    The ``type`` column is fixed at creation and decides which extension row may
    exist: a plain post carries ``content``, a poll owns one ``Poll`` row and an
    event owns one ``Event`` row. Extension tables reference ``(id, type)`` so a
    mismatched extension cannot be stored.
    """

    __tablename__ = "posts"
    __table_args__ = (
        CheckConstraint("type IN ('post', 'poll', 'event')", name="ck_posts_type"),
        CheckConstraint(
            "(type = 'post' AND content IS NOT NULL) OR (type <> 'post' AND content IS NULL)",
            name="ck_posts_content_matches_type",
        ),
        UniqueConstraint("id", "type", name="uq_posts_id_type"),
        Index("ix_posts_author_id", "author_id"),
        Index("ix_posts_community_id", "community_id"),
        Index("ix_posts_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    # NULL means a public post outside any community.
    community_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("communities.id", ondelete="CASCADE"),
        nullable=True,
    )
    type: Mapped[str] = mapped_column(String(16), nullable=False, default=POST_TYPE_POST)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Denormalized counters maintained in the same unit as the owning mutation.
    likes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    comments_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(timezone=True), nullable=False, default=utcnow
    )

    poll: Mapped[Poll] = relationship(
        "Poll",
        back_populates="post",
        cascade="all, delete-orphan",
        passive_deletes=True,
        uselist=False,
    )
    event: Mapped[Event] = relationship(
        "Event",
        back_populates="post",
        cascade="all, delete-orphan",
        passive_deletes=True,
        uselist=False,
    )


class PostLike(Base):
    """Presence of a row means the user likes the post."""

    __tablename__ = "post_likes"

    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("posts.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(timezone=True), nullable=False, default=utcnow
    )
