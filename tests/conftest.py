# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Generator, Iterator
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from agora_stage.core.settings import settings
from agora_stage.db.session import Base
from agora_stage.db.session import get_db as app_get_session
from agora_stage.main import app as fastapi_app
from agora_stage.models import Community, CommunityMember, Post, Profile, User, Wallet
from agora_stage.models.community import COMMUNITY_STATUS_ACTIVE, MEMBER_ROLE_OWNER
from agora_stage.models.user import ROLE_ADMIN, ROLE_USER

TEST_DB_URL = "sqlite://"

# Factory users skip argon2 hashing; auth tests go through signup instead.
UNUSABLE_PASSWORD_HASH = "!"

_USER_COUNTER = count(1)
_COMMUNITY_COUNTER = count(1)


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def membership_gate(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Turn on the community membership gate for the duration of a test."""
    monkeypatch.setattr(settings, "enforce_community_membership_gate", True)
    yield


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory creating users with a profile and a wallet."""

    def _make_user(
        username: str | None = None,
        *,
        balance: int = 100,
        role: str = ROLE_USER,
        display_name: str | None = None,
    ) -> User:
        n = next(_USER_COUNTER)
        username = username or f"user{n}"
        user = User(
            email=f"{username}@agora.social",
            username=username,
            password_hash=UNUSABLE_PASSWORD_HASH,
            role=role,
        )
        user.profile = Profile(display_name=display_name or username.title())
        user.wallet = Wallet(balance=balance)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def make_community(db_session: Session) -> Callable[..., Community]:
    """Return a factory creating communities owned by ``owner``."""

    def _make_community(
        owner: User,
        name: str | None = None,
        *,
        min_credits_required: int = 0,
        status: str = COMMUNITY_STATUS_ACTIVE,
    ) -> Community:
        community = Community(
            name=name or f"Community {next(_COMMUNITY_COUNTER)}",
            creator_id=owner.id,
            min_credits_required=min_credits_required,
            status=status,
        )
        db_session.add(community)
        db_session.flush()
        db_session.add(
            CommunityMember(community_id=community.id, user_id=owner.id, role=MEMBER_ROLE_OWNER)
        )
        db_session.commit()
        db_session.refresh(community)
        return community

    return _make_community


@pytest.fixture()
def make_post(db_session: Session) -> Callable[..., Post]:
    """Return a factory creating plain posts."""

    def _make_post(
        author: User,
        content: str = "Hello agora",
        *,
        community: Community | None = None,
    ) -> Post:
        post = Post(
            author_id=author.id,
            community_id=community.id if community else None,
            type="post",
            content=content,
        )
        db_session.add(post)
        db_session.commit()
        db_session.refresh(post)
        return post

    return _make_post


@pytest.fixture()
def alice(make_user: Callable[..., User]) -> User:
    return make_user("alice")


@pytest.fixture()
def bob(make_user: Callable[..., User]) -> User:
    return make_user("bob")


@pytest.fixture()
def admin(make_user: Callable[..., User]) -> User:
    return make_user("root", role=ROLE_ADMIN)


@pytest.fixture()
def admin_headers(admin: User) -> dict[str, str]:
    return {"x-user-id": str(admin.id)}


@pytest.fixture()
def make_poll(client: TestClient) -> Callable[..., dict[str, Any]]:
    """Return a factory creating polls through the API."""

    def _make_poll(author: User, **overrides: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "author_id": author.id,
            "type": "poll",
            "question": "Best day?",
            "options": ["A", "B"],
            "duration_hours": 1,
        }
        payload.update(overrides)
        response = client.post("/api/posts", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["post"]

    return _make_poll


@pytest.fixture()
def make_event(client: TestClient) -> Callable[..., dict[str, Any]]:
    """Return a factory creating events through the API."""

    def _make_event(author: User, **overrides: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "author_id": author.id,
            "type": "event",
            "title": "Meetup",
            "location": "Library",
            "start_date": "2030-05-01T18:00:00+00:00",
        }
        payload.update(overrides)
        response = client.post("/api/posts", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["post"]

    return _make_event
