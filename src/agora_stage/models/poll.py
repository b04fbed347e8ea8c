# src/agora_stage/models/poll.py
"""Poll extension rows, options and one-time votes."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    ForeignKeyConstraint,
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
    from .post import Post


class Poll(Base):
    """One-to-one extension of a post whose type is ``poll``."""

    __tablename__ = "polls"
    __table_args__ = (
        CheckConstraint("post_type = 'poll'", name="ck_polls_post_type"),
        ForeignKeyConstraint(
            ["post_id", "post_type"],
            ["posts.id", "posts.type"],
            ondelete="CASCADE",
            name="fk_polls_post",
        ),
    )

    # The poll shares its identifier with the parent post.
    post_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    post_type: Mapped[str] = mapped_column(String(16), nullable=False, default="poll")
    question: Mapped[str] = mapped_column(Text, nullable=False)
    ends_at: Mapped[datetime] = mapped_column(UTCDateTime(timezone=True), nullable=False)

    post: Mapped[Post] = relationship("Post", back_populates="poll")
    options: Mapped[list[PollOption]] = relationship(
        "PollOption",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PollOption.id",
    )


class PollOption(Base):
    """Selectable answer belonging to a single poll."""

    __tablename__ = "poll_options"
    __table_args__ = (
        UniqueConstraint("id", "poll_id", name="uq_poll_options_id_poll"),
        Index("ix_poll_options_poll_id", "poll_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    poll_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("polls.post_id", ondelete="CASCADE"),
        nullable=False,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)


class PollVote(Base):
    """A user's single, final vote in a poll."""

    __tablename__ = "poll_votes"
    __table_args__ = (
        # The chosen option must belong to the poll being voted in.
        ForeignKeyConstraint(
            ["option_id", "poll_id"],
            ["poll_options.id", "poll_options.poll_id"],
            ondelete="CASCADE",
            name="fk_poll_votes_option",
        ),
        Index("ix_poll_votes_option_id", "option_id"),
    )

    # Composite primary key prevents a second vote from the same user.
    poll_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("polls.post_id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    option_id: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(timezone=True), nullable=False, default=utcnow
    )
