# tests/test_services/test_engagement.py
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError

from memberhub.db.models import Comment, ContentLike, PollVote
from memberhub.schemas.content import CommentCreate
from memberhub.services.engagement import (
    add_comment,
    apply_poll_vote,
    cast_poll_vote,
    ensure_can_engage,
    toggle_like,
)
from tests.fixtures.fakes import FakeDB, FakeResult, make_content, make_user

NOW = datetime(2026, 6, 1, tzinfo=timezone.utc)


def _poll(**kw):
    params = dict(type="poll", tier="basic", is_locked=False, video_id=None, poll_options={"red": 1, "blue": 0})
    params.update(kw)
    return make_content(**params)


# ── polls (pure) ─────────────────────────────────────────────
def test_vote_increments_only_the_chosen_option():
    poll = _poll()
    counts = apply_poll_vote(poll, "blue", now=NOW)
    assert counts == {"red": 1, "blue": 1}
    assert poll.poll_options == {"red": 1, "blue": 0}


def test_vote_on_non_poll_is_400():
    with pytest.raises(HTTPException) as ei:
        apply_poll_vote(make_content(type="video"), "red", now=NOW)
    assert ei.value.status_code == 400


def test_unknown_option_is_400():
    with pytest.raises(HTTPException) as ei:
        apply_poll_vote(_poll(), "green", now=NOW)
    assert ei.value.detail == "Invalid poll option"


def test_ended_poll_is_400():
    poll = _poll(poll_ends_at=NOW - timedelta(seconds=1))
    with pytest.raises(HTTPException) as ei:
        apply_poll_vote(poll, "red", now=NOW)
    assert ei.value.detail == "Poll has ended"

    open_poll = _poll(poll_ends_at=NOW + timedelta(days=1))
    assert apply_poll_vote(open_poll, "red", now=NOW)["red"] == 2


def test_single_choice_second_vote_is_409():
    with pytest.raises(HTTPException) as ei:
        apply_poll_vote(_poll(), "blue", previous_options=["red"], now=NOW)
    assert ei.value.status_code == 409


def test_multiple_choice_allows_new_options_but_not_repeats():
    poll = _poll(poll_multiple_choice=True)
    assert apply_poll_vote(poll, "blue", previous_options=["red"], now=NOW) == {"red": 1, "blue": 1}

    with pytest.raises(HTTPException) as ei:
        apply_poll_vote(poll, "red", previous_options=["red"], now=NOW)
    assert ei.value.status_code == 409


# ── tier check ───────────────────────────────────────────────
def test_engagement_requires_tier_access():
    locked = make_content(tier="premium", is_locked=True)
    with pytest.raises(HTTPException) as ei:
        ensure_can_engage(locked, make_user(tier="basic"))
    assert ei.value.status_code == 403

    ensure_can_engage(locked, make_user(tier="allAccess"))
    ensure_can_engage(make_content(tier="premium", is_locked=False), make_user(tier="free"))


# ── DB-backed paths ──────────────────────────────────────────
@pytest.mark.anyio
async def test_toggle_like_adds_then_removes():
    content = make_content(tier="basic", likes_count=4)
    user = make_user(tier="basic")

    db = FakeDB().queue(FakeResult([]))
    liked, count = await toggle_like(db, content, user)
    assert (liked, count) == (True, 5)
    assert isinstance(db.added[0], ContentLike)

    existing = ContentLike(content_id=content.id, user_id=user.id)
    db = FakeDB().queue(FakeResult([existing]))
    liked, count = await toggle_like(db, content, user)
    assert (liked, count) == (False, 4)
    assert db.deleted == [existing]


@pytest.mark.anyio
async def test_toggle_like_conflict_is_409():
    db = FakeDB().queue(FakeResult([]))
    db.fail_commit_with = IntegrityError("insert", {}, Exception("duplicate"))

    with pytest.raises(HTTPException) as ei:
        await toggle_like(db, make_content(tier="basic"), make_user(tier="basic"))
    assert ei.value.status_code == 409
    assert db.rollbacks == 1


@pytest.mark.anyio
async def test_cast_poll_vote_records_vote_and_counts():
    poll = _poll()
    db = FakeDB().queue(FakeResult([]))

    counts = await cast_poll_vote(db, poll, make_user(tier="basic"), "red")

    assert counts == {"red": 2, "blue": 0}
    assert poll.poll_options == counts
    vote = db.added[0]
    assert isinstance(vote, PollVote) and vote.option == "red"
    assert db.commits == 1


@pytest.mark.anyio
async def test_add_comment_bumps_count():
    content = make_content(tier="basic", comments_count=2)
    db = FakeDB(rows={content.id: content})
    user = make_user(tier="premium", username="fan")

    out = await add_comment(db, user, CommentCreate(content_id=str(content.id), text="  love it  "))

    assert out.text == "love it"
    assert out.username == "fan"
    assert out.parent_id is None
    assert content.comments_count == 3
    assert isinstance(db.added[0], Comment)


@pytest.mark.anyio
async def test_reply_to_comment_on_other_content_is_400():
    content = make_content(tier="basic")
    other = make_content(tier="basic")
    parent = Comment(id=uuid.uuid4(), content_id=other.id, user_id=None, text="hi")
    db = FakeDB(rows={content.id: content, parent.id: parent})

    with pytest.raises(HTTPException) as ei:
        await add_comment(
            db,
            make_user(tier="basic"),
            CommentCreate(content_id=str(content.id), text="reply", parent_comment_id=str(parent.id)),
        )
    assert ei.value.status_code == 400


# ── concurrent writers ───────────────────────────────────────
class _LockedAfterOtherWriterDB(FakeDB):
    """Applies `committed` to the row when the lock is taken, as if another
    request had committed while this one waited."""

    def __init__(self, committed, *results):
        super().__init__(results)
        self.committed = committed

    async def refresh(self, obj, **options):
        await super().refresh(obj, **options)
        if options.get("with_for_update"):
            for field, value in self.committed.items():
                setattr(obj, field, value)


@pytest.mark.anyio
async def test_like_counts_from_the_locked_row():
    content = make_content(tier="basic", likes_count=4)
    db = _LockedAfterOtherWriterDB({"likes_count": 7}, FakeResult([]))

    liked, count = await toggle_like(db, content, make_user(tier="basic"))

    assert db.refresh_options[0] == {"with_for_update": True}
    assert (liked, count) == (True, 8)


@pytest.mark.anyio
async def test_poll_counts_from_the_locked_row():
    poll = _poll()
    db = _LockedAfterOtherWriterDB({"poll_options": {"red": 5, "blue": 3}}, FakeResult([]))

    counts = await cast_poll_vote(db, poll, make_user(tier="basic"), "blue")

    assert counts == {"red": 5, "blue": 4}


@pytest.mark.anyio
async def test_single_choice_vote_rechecked_after_lock():
    # The same user's vote for "red" committed while this request waited.
    poll = _poll()
    db = _LockedAfterOtherWriterDB({"poll_options": {"red": 2, "blue": 0}}, FakeResult(["red"]))

    with pytest.raises(HTTPException) as ei:
        await cast_poll_vote(db, poll, make_user(tier="basic"), "blue")

    assert ei.value.status_code == 409
    assert db.added == []
    assert db.commits == 0


@pytest.mark.anyio
async def test_comment_locks_content_before_counting():
    content = make_content(tier="basic", comments_count=2)
    db = _LockedAfterOtherWriterDB({"comments_count": 9})
    db.rows[content.id] = content

    await add_comment(db, make_user(tier="basic"), CommentCreate(content_id=str(content.id), text="hi"))

    assert content.comments_count == 10
