"""Post-related Pydantic schemas.

Posts are exposed as a discriminated union on ``type``: every variant shares
the common post fields, and polls and events add their own block.
"""

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, field_validator


class PostCreate(BaseModel):
    """Schema for creating a new post of any type.

    Only the fields relevant to ``type`` are read; the others are ignored.
    """

    author_id: int | None = Field(None, description="Author user ID")
    type: str | None = Field("post", description="post, poll or event")
    community_id: int | None = Field(None, description="Community ID; omit for a public post")

    # type=post
    content: str | None = Field(None, description="Post body")

    # type=poll
    question: str | None = None
    options: list[Any] | None = None
    poll_options: list[Any] | None = Field(None, description="Alias of options")
    duration_hours: int | None = Field(None, description="Hours until the poll closes")

    # type=event
    title: str | None = None
    description: str | None = None
    location: str | None = None
    start_date: str | None = Field(None, description="ISO-8601 start datetime")
    end_date: str | None = Field(None, description="ISO-8601 end datetime")

    @field_validator("community_id", mode="before")
    @classmethod
    def _blank_community_is_public(cls, v: object) -> object:
        """Treat empty and literal "null" community values as a public post."""
        if isinstance(v, str) and v.strip().lower() in ("", "null"):
            return None
        return v

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _stringify_dates(cls, v: object) -> object:
        if v is None or isinstance(v, str):
            return v
        return str(v)


class UserActionRequest(BaseModel):
    """Body carrying the acting user for toggles."""

    user_id: int


class VoteRequest(BaseModel):
    """Schema for casting a poll vote."""

    user_id: int
    option_id: int


class PostAuthor(BaseModel):
    """Snapshot of the author's public profile."""

    id: int
    username: str
    display_name: str | None
    avatar_url: str | None


class PollOptionView(BaseModel):
    id: int
    text: str
    votes: int


class _PostViewBase(BaseModel):
    id: int
    content: str | None
    created_at: datetime
    likes_count: int
    comments_count: int
    community_id: int | None
    profiles: PostAuthor
    liked_by_me: bool


class PlainPostView(_PostViewBase):
    """A plain text post."""

    type: Literal["post"] = "post"


class PollPostView(_PostViewBase):
    """A poll with live tallies for the viewer."""

    type: Literal["poll"] = "poll"
    question: str
    ends_at: datetime
    options: list[PollOptionView]
    total_votes: int
    user_vote: int | None


class EventPostView(_PostViewBase):
    """An event with attendance for the viewer."""

    type: Literal["event"] = "event"
    title: str
    description: str | None
    start_date: datetime
    end_date: datetime
    location: str
    attendees_count: int
    is_attending: bool


PostView = Annotated[
    PlainPostView | PollPostView | EventPostView,
    Field(discriminator="type"),
]


class PostEnvelope(BaseModel):
    post: PostView


class PostListResponse(BaseModel):
    posts: list[PostView]


class LikeResponse(BaseModel):
    liked_by_me: bool
    likes_count: int


class VoteResponse(BaseModel):
    user_vote: int
    options: list[PollOptionView]
    total_votes: int


class AttendanceResponse(BaseModel):
    attendees_count: int
    is_attending: bool


class DeletedPost(BaseModel):
    id: int


class DeleteResponse(BaseModel):
    deleted: DeletedPost
