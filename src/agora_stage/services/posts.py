"""Post, poll and event engine.

A post's ``type`` is permanent and picks the only extension row it may own.
Creation requests are parsed into a typed draft first, so validation is done
before anything touches the database.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from agora_stage.core.errors import (
    FailedPreconditionError,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
)
from agora_stage.core.settings import settings
from agora_stage.db.session import transaction
from agora_stage.db.time import as_utc, utcnow
from agora_stage.models import (
    Community,
    Event,
    EventAttendee,
    Poll,
    PollOption,
    PollVote,
    Post,
    PostLike,
    Profile,
    User,
)
from agora_stage.models.post import POST_TYPE_EVENT, POST_TYPE_POLL, POST_TYPE_POST
from agora_stage.schemas.post import PostCreate
from agora_stage.services.community import CommunityService
from agora_stage.services.views import (
    PostViewModel,
    ViewerContext,
    attendee_counts,
    collect_viewer_context,
    poll_tallies,
    project_post,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlainDraft:
    content: str


@dataclass(frozen=True)
class PollDraft:
    question: str
    options: tuple[str, ...]
    duration: timedelta


@dataclass(frozen=True)
class EventDraft:
    title: str
    location: str
    description: str | None
    start_date: datetime
    end_date: datetime


Draft = PlainDraft | PollDraft | EventDraft


def _clean(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 string into an aware UTC datetime, or None."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    return as_utc(parsed)


def _parse_plain(payload: PostCreate) -> PlainDraft:
    content = _clean(payload.content)
    if not content:
        raise InvalidArgumentError("content is required")
    return PlainDraft(content=content)


def _parse_poll(payload: PostCreate) -> PollDraft:
    question = _clean(payload.question)
    raw_options = payload.poll_options if payload.poll_options is not None else payload.options
    options = tuple(text for text in (_clean(item) for item in raw_options or []) if text)

    if not question or len(options) < 2:
        raise InvalidArgumentError("Poll needs a question and at least 2 options")
    if len(set(options)) != len(options):
        raise InvalidArgumentError("Poll options must be distinct")

    if payload.duration_hours is None:
        hours = settings.poll_default_duration_hours
    elif payload.duration_hours <= 0:
        raise InvalidArgumentError("duration_hours must be a positive integer")
    else:
        hours = payload.duration_hours

    return PollDraft(question=question, options=options, duration=timedelta(hours=hours))


def _parse_event(payload: PostCreate) -> EventDraft:
    title = _clean(payload.title)
    location = _clean(payload.location)
    start_date = parse_datetime(payload.start_date)
    if not title or not location or start_date is None:
        raise InvalidArgumentError("Event needs title, location, and valid start_date")

    end_date = parse_datetime(payload.end_date)
    if end_date is None or end_date < start_date:
        end_date = start_date + timedelta(hours=settings.event_default_duration_hours)

    return EventDraft(
        title=title,
        location=location,
        description=_clean(payload.description) or None,
        start_date=start_date,
        end_date=end_date,
    )


_PARSERS = {
    POST_TYPE_POST: _parse_plain,
    POST_TYPE_POLL: _parse_poll,
    POST_TYPE_EVENT: _parse_event,
}


def parse_draft(payload: PostCreate) -> tuple[str, Draft]:
    """Validate a creation request and return its type and typed draft.

    Raises:
        InvalidArgumentError: If the type is unknown or the type's fields are invalid
    """
    post_type = (_clean(payload.type) or POST_TYPE_POST).lower()
    parser = _PARSERS.get(post_type)
    if parser is None:
        raise InvalidArgumentError("Invalid post type")
    return post_type, parser(payload)


def _gate_enabled() -> bool:
    return settings.enforce_community_membership_gate


def _clamp_limit(limit: int | None) -> int:
    if limit is None or limit <= 0:
        return settings.posts_default_limit
    return min(limit, settings.posts_max_limit)


class PostService:
    """Service handling post creation, interactions and listing."""

    @staticmethod
    def _get_post(db: Session, post_id: int) -> Post:
        post = db.get(Post, post_id)
        if post is None:
            raise NotFoundError("Post not found")
        return post

    @staticmethod
    def _require_user(db: Session, user_id: int) -> None:
        if db.get(User, user_id) is None:
            raise NotFoundError("User not found")

    @staticmethod
    def create_post(db: Session, payload: PostCreate) -> PostViewModel:
        """Create a post together with its poll or event extension.

        Args:
            db: Database session
            payload: Creation request; only the fields of its ``type`` are read

        Returns:
            The shaped view of the new post with zeroed aggregates.

        Raises:
            InvalidArgumentError: If the request is malformed or the author is unknown
            NotFoundError: If the target community does not exist
            ForbiddenError: If the membership gate is on and the author is not a member
        """
        post_type, draft = parse_draft(payload)

        author_id = payload.author_id
        author = db.get(User, author_id) if author_id else None
        profile = db.get(Profile, author_id) if author is not None else None
        if author is None or profile is None:
            raise InvalidArgumentError("User not found or profile missing.")

        community_id = payload.community_id
        if community_id is not None:
            if db.get(Community, community_id) is None:
                raise NotFoundError("Community not found")
            if _gate_enabled():
                CommunityService.require_membership(db, community_id, author.id)

        with transaction(db):
            post = Post(author_id=author.id, community_id=community_id, type=post_type)
            if isinstance(draft, PlainDraft):
                post.content = draft.content
            elif isinstance(draft, PollDraft):
                post.poll = Poll(
                    question=draft.question,
                    ends_at=utcnow() + draft.duration,
                    options=[PollOption(text=text) for text in draft.options],
                )
            else:
                post.event = Event(
                    title=draft.title,
                    description=draft.description,
                    location=draft.location,
                    start_date=draft.start_date,
                    end_date=draft.end_date,
                )
            db.add(post)
            db.flush()

        db.refresh(post)
        logger.info("User %d created %s %d", author.id, post_type, post.id)

        context = ViewerContext()
        if post_type == POST_TYPE_POLL:
            context.options_by_poll = poll_tallies(db, [post.id])
        return project_post(post, author, profile, context)

    @staticmethod
    def toggle_like(db: Session, *, post_id: int, user_id: int) -> dict[str, Any]:
        """Like the post if the user has not, otherwise remove the like.

        The like row and the post's counter change in the same atomic unit.

        Raises:
            NotFoundError: If the post or the user does not exist
            ForbiddenError: If the membership gate is on and the user is not a member
        """
        if not user_id:
            raise InvalidArgumentError("user_id is required")
        post = PostService._get_post(db, post_id)
        PostService._require_user(db, user_id)
        if _gate_enabled():
            CommunityService.require_membership(db, post.community_id, user_id)

        with transaction(db):
            removed = db.execute(
                delete(PostLike).where(
                    PostLike.post_id == post_id,
                    PostLike.user_id == user_id,
                )
            ).rowcount
            if removed:
                db.execute(
                    update(Post)
                    .where(Post.id == post_id)
                    .values(
                        likes_count=case(
                            (Post.likes_count > 0, Post.likes_count - 1),
                            else_=0,
                        )
                    )
                )
                liked = False
            else:
                db.add(PostLike(post_id=post_id, user_id=user_id))
                db.flush()
                db.execute(
                    update(Post)
                    .where(Post.id == post_id)
                    .values(likes_count=Post.likes_count + 1)
                )
                liked = True
            likes_count = db.scalar(select(Post.likes_count).where(Post.id == post_id))

        return {"liked_by_me": liked, "likes_count": int(likes_count or 0)}

    @staticmethod
    def cast_vote(db: Session, *, poll_id: int, user_id: int, option_id: int) -> dict[str, Any]:
        """Record a user's one and only vote in a poll.

        Returns:
            The voter's choice plus fresh per-option tallies.

        Raises:
            NotFoundError: If the poll or the user does not exist
            FailedPreconditionError: If the poll has ended or the user already voted
            InvalidArgumentError: If the option does not belong to the poll
        """
        if not user_id or not option_id:
            raise InvalidArgumentError("user_id and option_id are required")

        poll = db.get(Poll, poll_id)
        if poll is None:
            raise NotFoundError("Poll not found")
        PostService._require_user(db, user_id)
        if _gate_enabled():
            CommunityService.require_membership(db, poll.post.community_id, user_id)
        if utcnow() > poll.ends_at:
            raise FailedPreconditionError("Poll has ended")

        option = db.get(PollOption, option_id)
        if option is None or option.poll_id != poll_id:
            raise InvalidArgumentError("Invalid option")

        if db.get(PollVote, (poll_id, user_id)) is not None:
            raise FailedPreconditionError("Already voted")

        try:
            with transaction(db):
                db.add(PollVote(poll_id=poll_id, user_id=user_id, option_id=option_id))
        except IntegrityError as exc:
            raise FailedPreconditionError("Already voted") from exc

        logger.info("User %d voted in poll %d", user_id, poll_id)
        options = poll_tallies(db, [poll_id]).get(poll_id, [])
        return {
            "user_vote": option_id,
            "options": options,
            "total_votes": sum(item.votes for item in options),
        }

    @staticmethod
    def toggle_attendance(db: Session, *, event_id: int, user_id: int) -> dict[str, Any]:
        """Mark the user as attending the event, or remove the mark.

        Raises:
            NotFoundError: If the event or the user does not exist
        """
        if not user_id:
            raise InvalidArgumentError("user_id is required")

        event = db.get(Event, event_id)
        if event is None:
            raise NotFoundError("Event not found")
        PostService._require_user(db, user_id)
        if _gate_enabled():
            CommunityService.require_membership(db, event.post.community_id, user_id)

        try:
            with transaction(db):
                removed = db.execute(
                    delete(EventAttendee).where(
                        EventAttendee.event_id == event_id,
                        EventAttendee.user_id == user_id,
                    )
                ).rowcount
                if not removed:
                    db.add(EventAttendee(event_id=event_id, user_id=user_id))
        except IntegrityError:
            # A concurrent toggle won the race; report what is stored now.
            logger.debug("Attendance race for event %d user %d", event_id, user_id)

        attending = db.scalar(
            select(EventAttendee.user_id).where(
                EventAttendee.event_id == event_id,
                EventAttendee.user_id == user_id,
            )
        ) is not None
        return {
            "attendees_count": attendee_counts(db, [event_id]).get(event_id, 0),
            "is_attending": attending,
        }

    @staticmethod
    def delete_post(db: Session, *, post_id: int, requester_id: int) -> dict[str, Any]:
        """Delete a post and everything hanging off it.

        Raises:
            NotFoundError: If the post does not exist
            ForbiddenError: If the requester is not the author, or the gate is on
                and the requester is no longer a member of the post's community
        """
        post = PostService._get_post(db, post_id)
        if post.author_id != requester_id:
            raise ForbiddenError("Not allowed")
        if _gate_enabled():
            CommunityService.require_membership(db, post.community_id, requester_id)

        with transaction(db):
            db.delete(post)

        logger.info("User %d deleted post %d", requester_id, post_id)
        return {"deleted": {"id": post_id}}

    @staticmethod
    def list_posts(
        db: Session,
        *,
        author_id: int | None = None,
        community_id: int | None = None,
        viewer_id: int | None = None,
        limit: int | None = None,
    ) -> list[PostViewModel]:
        """List posts newest first, shaped for the viewer.

        Without ``community_id`` only public posts are returned.
        """
        stmt = (
            select(Post, User, Profile)
            .join(User, User.id == Post.author_id)
            .join(Profile, Profile.user_id == User.id)
            .options(selectinload(Post.poll), selectinload(Post.event))
        )
        if author_id:
            stmt = stmt.where(Post.author_id == author_id)
        if community_id:
            stmt = stmt.where(Post.community_id == community_id)
        else:
            stmt = stmt.where(Post.community_id.is_(None))

        rows = db.execute(
            stmt.order_by(Post.created_at.desc(), Post.id.desc()).limit(_clamp_limit(limit))
        ).all()

        posts = [row[0] for row in rows]
        context = collect_viewer_context(db, posts, viewer_id)
        return [project_post(post, author, profile, context) for post, author, profile in rows]


def reconcile_counters(db: Session, *, dry_run: bool = False) -> int:
    """Repair denormalized post counters that drifted from their relation rows.

    ``likes_count`` is recomputed from likes; ``comments_count`` has no
    backing rows and is reset to zero.

    Returns:
        The number of posts whose counters were (or, on a dry run, would be) fixed.
    """
    actual_likes = (
        select(func.count())
        .select_from(PostLike)
        .where(PostLike.post_id == Post.id)
        .correlate(Post)
        .scalar_subquery()
    )
    drifted = db.execute(
        select(Post.id, Post.likes_count, Post.comments_count, actual_likes.label("actual"))
        .where((Post.likes_count != actual_likes) | (Post.comments_count != 0))
        .order_by(Post.id)
    ).all()

    for post_id, likes_count, comments_count, actual in drifted:
        logger.warning(
            "Post %d counters drifted: likes %d (actual %d), comments %d",
            post_id,
            likes_count,
            actual,
            comments_count,
        )

    if drifted and not dry_run:
        with transaction(db):
            for post_id, _likes, _comments, actual in drifted:
                db.execute(
                    update(Post)
                    .where(Post.id == post_id)
                    .values(likes_count=int(actual), comments_count=0)
                )

    logger.info(
        "Counter reconciliation %s %d post(s)",
        "found" if dry_run else "fixed",
        len(drifted),
    )
    return len(drifted)
