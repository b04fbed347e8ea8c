# src/agora_stage/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .community import (
    CommunityCreate,
    CommunityEnvelope,
    CommunityResponse,
    CommunityStatusUpdate,
    MembershipRequest,
    MessageResponse,
)
from .post import (
    AttendanceResponse,
    DeleteResponse,
    EventPostView,
    LikeResponse,
    PlainPostView,
    PollOptionView,
    PollPostView,
    PostCreate,
    PostEnvelope,
    PostListResponse,
    PostView,
    UserActionRequest,
    VoteRequest,
    VoteResponse,
)
from .user import (
    LoginRequest,
    ProfileUpdateRequest,
    SignupRequest,
    UserDetailEnvelope,
    UserEnvelope,
    UserListResponse,
    UserSnapshot,
)
from .wallet import (
    TransactionEnvelope,
    TransactionHistoryResponse,
    TransferRequest,
    WalletEnvelope,
)

__all__ = [
    "CommunityCreate", "CommunityEnvelope", "CommunityResponse",
    "CommunityStatusUpdate", "MembershipRequest", "MessageResponse",
    "AttendanceResponse", "DeleteResponse", "EventPostView", "LikeResponse",
    "PlainPostView", "PollOptionView", "PollPostView", "PostCreate",
    "PostEnvelope", "PostListResponse", "PostView", "UserActionRequest",
    "VoteRequest", "VoteResponse",
    "LoginRequest", "ProfileUpdateRequest", "SignupRequest",
    "UserDetailEnvelope", "UserEnvelope", "UserListResponse", "UserSnapshot",
    "TransactionEnvelope", "TransactionHistoryResponse", "TransferRequest",
    "WalletEnvelope",
]
