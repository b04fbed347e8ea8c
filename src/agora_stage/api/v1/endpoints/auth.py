"""Authentication endpoints for the Agora API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, status

from agora_stage.schemas.user import LoginRequest, SignupRequest, UserEnvelope
from agora_stage.services import users as user_service

from ..dependencies import SessionDep

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
def signup(body: SignupRequest, db: SessionDep) -> dict[str, Any]:
    """Register a new account with its profile and signup bonus."""
    user = user_service.signup(
        db,
        email=body.email,
        username=body.username,
        display_name=body.display_name,
        password=body.password,
    )
    return {"user": user}


@router.post("/login", response_model=UserEnvelope)
def login(body: LoginRequest, db: SessionDep) -> dict[str, Any]:
    """Check credentials and return the account."""
    return {"user": user_service.login(db, email=body.email, password=body.password)}
