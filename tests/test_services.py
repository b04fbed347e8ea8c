# tests/test_services.py
"""Service-level tests that bypass the HTTP layer."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import event, func, select, update

from agora_stage.core.errors import (
    FailedPreconditionError,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
)
from agora_stage.core.security import hash_password, verify_password
from agora_stage.db.session import transaction
from agora_stage.models import Post, PostLike, Transaction, Wallet
from agora_stage.schemas.post import PostCreate
from agora_stage.services import CommunityService, PostService, reconcile_counters
from agora_stage.services import wallet as wallet_service
from agora_stage.services.posts import EventDraft, PlainDraft, PollDraft, parse_draft


class TestDraftParsing:
    def test_plain(self) -> None:
        post_type, draft = parse_draft(PostCreate(content=" hi "))
        assert post_type == "post"
        assert draft == PlainDraft(content="hi")

    def test_poll(self) -> None:
        post_type, draft = parse_draft(
            PostCreate(type="Poll", question="Q", options=["a", "b"], duration_hours=3)
        )
        assert post_type == "poll"
        assert isinstance(draft, PollDraft)
        assert draft.options == ("a", "b")
        assert draft.duration == timedelta(hours=3)

    def test_event_naive_start_is_utc(self) -> None:
        _, draft = parse_draft(
            PostCreate(type="event", title="T", location="L", start_date="2030-01-01T10:00:00")
        )
        assert isinstance(draft, EventDraft)
        assert draft.start_date == datetime(2030, 1, 1, 10, tzinfo=UTC)
        assert draft.end_date == datetime(2030, 1, 1, 12, tzinfo=UTC)
        assert draft.description is None

    def test_unknown_type(self) -> None:
        with pytest.raises(InvalidArgumentError, match="Invalid post type"):
            parse_draft(PostCreate(type="story", content="x"))


class TestTransfer:
    def test_rollback_leaves_no_partial_state(self, db_session, make_user) -> None:
        sender = make_user(balance=50)
        with pytest.raises(NotFoundError):
            wallet_service.transfer(db_session, from_user_id=sender.id, to_user_id=424242, amount=5)

        db_session.expire_all()
        assert db_session.scalar(select(Wallet.balance).where(Wallet.user_id == sender.id)) == 50
        assert db_session.scalar(select(func.count()).select_from(Transaction)) == 0

    def test_rejects_boolean_amount(self, db_session, alice, bob) -> None:
        with pytest.raises(InvalidArgumentError):
            wallet_service.transfer(
                db_session, from_user_id=alice.id, to_user_id=bob.id, amount=True
            )

    def test_pair_total_conserved_over_many_transfers(self, db_session, alice, bob) -> None:
        for amount, (src, dst) in zip([10, 25, 3, 40], [(alice, bob), (bob, alice)] * 2):
            wallet_service.transfer(
                db_session, from_user_id=src.id, to_user_id=dst.id, amount=amount
            )
        db_session.expire_all()
        total = db_session.scalar(
            select(func.sum(Wallet.balance)).where(Wallet.user_id.in_([alice.id, bob.id]))
        )
        assert total == 200
        assert db_session.scalar(select(func.count()).select_from(Transaction)) == 4

    def test_insufficient_balance(self, db_session, make_user, bob) -> None:
        poor = make_user(balance=1)
        with pytest.raises(FailedPreconditionError, match="Insufficient balance"):
            wallet_service.transfer(db_session, from_user_id=poor.id, to_user_id=bob.id, amount=2)

    def test_locks_wallets_in_ascending_user_order(self, engine, db_session, alice, bob) -> None:
        locked: list[int] = []

        def record(conn, cursor, statement, parameters, context, executemany) -> None:
            if "FROM wallets" in statement and "wallets.user_id = " in statement:
                locked.append(parameters[0])

        event.listen(engine, "before_cursor_execute", record)
        try:
            wallet_service.transfer(
                db_session, from_user_id=bob.id, to_user_id=alice.id, amount=5
            )
        finally:
            event.remove(engine, "before_cursor_execute", record)

        assert bob.id > alice.id
        assert locked == [alice.id, bob.id]


def test_transaction_context_rolls_back(db_session, alice) -> None:
    with pytest.raises(RuntimeError):
        with transaction(db_session):
            db_session.execute(
                update(Wallet).where(Wallet.user_id == alice.id).values(balance=0)
            )
            raise RuntimeError("boom")

    db_session.expire_all()
    assert db_session.scalar(select(Wallet.balance).where(Wallet.user_id == alice.id)) == 100


def test_require_membership(db_session, alice, bob, make_community) -> None:
    community = make_community(alice)
    CommunityService.require_membership(db_session, None, bob.id)
    CommunityService.require_membership(db_session, community.id, alice.id)
    with pytest.raises(ForbiddenError, match="Join the community first"):
        CommunityService.require_membership(db_session, community.id, bob.id)


def test_membership_survives_status_change(db_session, alice, bob, make_community) -> None:
    community = make_community(alice)
    CommunityService.join_community(db_session, community_id=community.id, user_id=bob.id)
    CommunityService.set_status(db_session, community_id=community.id, status="disabled")
    assert CommunityService.is_member(db_session, community.id, bob.id)


def test_like_counter_never_negative(db_session, alice, bob, make_post) -> None:
    post = make_post(alice)
    PostService.toggle_like(db_session, post_id=post.id, user_id=bob.id)
    # Simulate drift: counter already zero while the like row still exists.
    db_session.execute(update(Post).where(Post.id == post.id).values(likes_count=0))
    db_session.commit()

    result = PostService.toggle_like(db_session, post_id=post.id, user_id=bob.id)
    assert result == {"liked_by_me": False, "likes_count": 0}


class TestReconcileCounters:
    def test_fixes_drifted_counters(self, db_session, alice, bob, make_post) -> None:
        healthy = make_post(alice, "ok")
        drifted = make_post(alice, "drifted")
        PostService.toggle_like(db_session, post_id=healthy.id, user_id=bob.id)
        db_session.add(PostLike(post_id=drifted.id, user_id=bob.id))
        db_session.execute(
            update(Post).where(Post.id == drifted.id).values(likes_count=7, comments_count=2)
        )
        db_session.commit()

        assert reconcile_counters(db_session, dry_run=True) == 1
        db_session.expire_all()
        assert db_session.get(Post, drifted.id).likes_count == 7

        assert reconcile_counters(db_session) == 1
        db_session.expire_all()
        fixed = db_session.get(Post, drifted.id)
        assert (fixed.likes_count, fixed.comments_count) == (1, 0)
        assert db_session.get(Post, healthy.id).likes_count == 1

        assert reconcile_counters(db_session) == 0

    def test_clean_database(self, db_session) -> None:
        assert reconcile_counters(db_session) == 0


def test_password_hash_round_trip() -> None:
    stored = hash_password("s3cret")
    assert stored != "s3cret"
    assert verify_password(stored, "s3cret")
    assert not verify_password(stored, "S3cret")
    assert not verify_password("not-a-hash", "s3cret")
