"""User-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SignupRequest(BaseModel):
    """Schema for account registration."""

    email: str = Field(..., min_length=3, max_length=320, description="Unique email address")
    username: str = Field(..., min_length=1, max_length=64, description="Unique handle")
    display_name: str = Field(..., min_length=1, max_length=100, description="Public name")
    password: str = Field(..., min_length=1, description="Account password")


class LoginRequest(BaseModel):
    """Schema for login submissions."""

    email: str
    password: str


class ProfileUpdateRequest(BaseModel):
    """Schema for updating user profile information."""

    display_name: str | None = Field(None, max_length=100)
    bio: str | None = None
    avatar_url: str | None = None


class UserSnapshot(BaseModel):
    """Public author/party snapshot embedded in other resources."""

    id: int
    username: str
    display_name: str | None = None
    avatar_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserResponse(BaseModel):
    """Account joined with its profile."""

    id: int
    email: str
    username: str
    role: str
    created_at: datetime
    display_name: str | None = None
    avatar_url: str | None = None
    bio: str | None = None


class UserDetailResponse(UserResponse):
    """Account view used by profile pages."""

    wallet_balance: int | None = None
    posts_count: int = 0


class UserEnvelope(BaseModel):
    """Wrapper used by endpoints returning a single user."""

    user: UserResponse


class UserDetailEnvelope(BaseModel):
    """Wrapper used by the profile page lookup."""

    user: UserDetailResponse


class UserListResponse(BaseModel):
    """Wrapper used by the user directory."""

    users: list[UserSnapshot]
