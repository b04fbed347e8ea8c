# src/agora_stage/models/event.py
"""Event extension rows and attendance."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    ForeignKeyConstraint,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agora_stage.db.session import Base
from agora_stage.db.time import UTCDateTime, utcnow

if TYPE_CHECKING:
    from .post import Post


class Event(Base):
    """One-to-one extension of a post whose type is ``event``."""

    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("post_type = 'event'", name="ck_events_post_type"),
        ForeignKeyConstraint(
            ["post_id", "post_type"],
            ["posts.id", "posts.type"],
            ondelete="CASCADE",
            name="fk_events_post",
        ),
    )

    post_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    post_type: Mapped[str] = mapped_column(String(16), nullable=False, default="event")
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str] = mapped_column(Text, nullable=False)
    start_date: Mapped[datetime] = mapped_column(UTCDateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(UTCDateTime(timezone=True), nullable=False)

    post: Mapped[Post] = relationship("Post", back_populates="event")


class EventAttendee(Base):
    """Presence of a row means the user plans to attend."""

    __tablename__ = "event_attendees"

    event_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("events.post_id", ondelete="CASCADE"),
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
