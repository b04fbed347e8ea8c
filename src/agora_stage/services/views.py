"""Read-time projection of posts into their external, type-specific shape.

Nothing here is persisted: tallies, attendance and liked-by-me flags are
recomputed from the relation tables on every read, in one batch per listing.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from agora_stage.models import (
    EventAttendee,
    PollOption,
    PollVote,
    Post,
    PostLike,
    Profile,
    User,
)
from agora_stage.models.post import POST_TYPE_EVENT, POST_TYPE_POLL
from agora_stage.schemas.post import (
    EventPostView,
    PlainPostView,
    PollOptionView,
    PollPostView,
    PostAuthor,
)

PostViewModel = PlainPostView | PollPostView | EventPostView


@dataclass
class ViewerContext:
    """Aggregates for a batch of posts as seen by one (optional) viewer."""

    liked: set[int] = field(default_factory=set)
    options_by_poll: dict[int, list[PollOptionView]] = field(default_factory=dict)
    user_votes: dict[int, int] = field(default_factory=dict)
    attendees: dict[int, int] = field(default_factory=dict)
    attending: set[int] = field(default_factory=set)

    def total_votes(self, poll_id: int) -> int:
        return sum(option.votes for option in self.options_by_poll.get(poll_id, []))


def poll_tallies(db: Session, poll_ids: Sequence[int]) -> dict[int, list[PollOptionView]]:
    """Return options with their vote counts, in creation order, keyed by poll."""
    if not poll_ids:
        return {}
    rows = db.execute(
        select(
            PollOption.id,
            PollOption.poll_id,
            PollOption.text,
            func.count(PollVote.user_id).label("votes"),
        )
        .outerjoin(PollVote, PollVote.option_id == PollOption.id)
        .where(PollOption.poll_id.in_(poll_ids))
        .group_by(PollOption.id, PollOption.poll_id, PollOption.text)
        .order_by(PollOption.id)
    ).all()

    by_poll: dict[int, list[PollOptionView]] = defaultdict(list)
    for option_id, poll_id, text, votes in rows:
        by_poll[poll_id].append(PollOptionView(id=option_id, text=text, votes=int(votes or 0)))
    return dict(by_poll)


def attendee_counts(db: Session, event_ids: Sequence[int]) -> dict[int, int]:
    """Return the number of attendees per event."""
    if not event_ids:
        return {}
    rows = db.execute(
        select(EventAttendee.event_id, func.count())
        .where(EventAttendee.event_id.in_(event_ids))
        .group_by(EventAttendee.event_id)
    ).all()
    return {event_id: int(count) for event_id, count in rows}


def collect_viewer_context(
    db: Session,
    posts: Sequence[Post],
    viewer_id: int | None,
) -> ViewerContext:
    """Batch-load every aggregate needed to shape ``posts`` for ``viewer_id``."""
    context = ViewerContext()
    if not posts:
        return context

    post_ids = [post.id for post in posts]
    poll_ids = [post.id for post in posts if post.type == POST_TYPE_POLL]
    event_ids = [post.id for post in posts if post.type == POST_TYPE_EVENT]

    context.options_by_poll = poll_tallies(db, poll_ids)
    context.attendees = attendee_counts(db, event_ids)

    if viewer_id:
        context.liked = set(
            db.scalars(
                select(PostLike.post_id).where(
                    PostLike.user_id == viewer_id,
                    PostLike.post_id.in_(post_ids),
                )
            )
        )
        if poll_ids:
            context.user_votes = {
                poll_id: option_id
                for poll_id, option_id in db.execute(
                    select(PollVote.poll_id, PollVote.option_id).where(
                        PollVote.user_id == viewer_id,
                        PollVote.poll_id.in_(poll_ids),
                    )
                )
            }
        if event_ids:
            context.attending = set(
                db.scalars(
                    select(EventAttendee.event_id).where(
                        EventAttendee.user_id == viewer_id,
                        EventAttendee.event_id.in_(event_ids),
                    )
                )
            )
    return context


def author_snapshot(user: User, profile: Profile) -> PostAuthor:
    """Return the author's public snapshot."""
    return PostAuthor(
        id=user.id,
        username=user.username,
        display_name=profile.display_name,
        avatar_url=profile.avatar_url,
    )


def project_post(
    post: Post,
    author: User,
    profile: Profile,
    context: ViewerContext,
) -> PostViewModel:
    """Shape one post into the variant matching its type."""
    common = {
        "id": post.id,
        "content": post.content,
        "created_at": post.created_at,
        "likes_count": post.likes_count,
        "comments_count": post.comments_count,
        "community_id": post.community_id,
        "profiles": author_snapshot(author, profile),
        "liked_by_me": post.id in context.liked,
    }

    if post.type == POST_TYPE_POLL and post.poll is not None:
        return PollPostView(
            **common,
            question=post.poll.question,
            ends_at=post.poll.ends_at,
            options=context.options_by_poll.get(post.id, []),
            total_votes=context.total_votes(post.id),
            user_vote=context.user_votes.get(post.id),
        )

    if post.type == POST_TYPE_EVENT and post.event is not None:
        event = post.event
        return EventPostView(
            **common,
            title=event.title,
            description=event.description,
            start_date=event.start_date,
            end_date=event.end_date,
            location=event.location,
            attendees_count=context.attendees.get(post.id, 0),
            is_attending=post.id in context.attending,
        )

    return PlainPostView(**common)
