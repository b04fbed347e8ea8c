# src/agora_stage/models/__init__.py
"""SQLAlchemy models for the Agora application."""

from .community import Community, CommunityMember
from .event import Event, EventAttendee
from .poll import Poll, PollOption, PollVote
from .post import Post, PostLike
from .user import Profile, User
from .wallet import Transaction, Wallet

__all__ = [
    "Community", "CommunityMember",
    "Event", "EventAttendee",
    "Poll", "PollOption", "PollVote",
    "Post", "PostLike",
    "Profile", "User",
    "Transaction", "Wallet",
]
