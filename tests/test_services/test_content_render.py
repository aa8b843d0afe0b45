# tests/test_services/test_content_render.py
import pytest

from memberhub.schemas.content import ContentCreate
from memberhub.services import content_service as svc
from memberhub.services.signing import SignedURL
from tests.fixtures.fakes import FakeDB, FakeResult, make_content, make_user


def fake_signer(resource_id, path_suffix):
    return SignedURL(
        url=f"https://cdn.test/{resource_id}/{path_suffix}?token=t&expires=42",
        token="t",
        expires=42,
        resource_id=resource_id,
        path_suffix=path_suffix,
    )


def test_required_tier_for_unlocked_is_free():
    assert svc.required_tier_for(make_content(tier="allAccess", is_locked=False)) == "free"
    assert svc.required_tier_for(make_content(tier="premium", is_locked=True)) == "premium"


def test_member_with_access_gets_playback():
    content = make_content(tier="premium", media_url="https://img.test/a.jpg")
    out = svc.render_content(content, make_user(tier="premium"), signer=fake_signer, liked=True)

    assert out.is_locked is False
    assert out.required_tier is None
    assert out.playback_url == "https://cdn.test/vid-123/play.mp4?token=t&expires=42"
    assert out.thumbnail_url == "https://cdn.test/vid-123/thumbnail.jpg?token=t&expires=42"
    assert out.url_expires == 42
    assert out.video_id == "vid-123"
    assert out.media_url == "https://img.test/a.jpg"
    assert out.liked_by_me is True


def test_lower_tier_sees_locked_teaser():
    content = make_content(tier="premium", media_url="https://img.test/a.jpg")
    out = svc.render_content(content, make_user(tier="basic"), signer=fake_signer)

    assert out.is_locked is True
    assert out.required_tier == "premium"
    assert out.playback_url is None
    assert out.video_id is None
    assert out.media_url is None
    assert out.thumbnail_url.startswith("https://cdn.test/vid-123/thumbnail.jpg")
    assert out.title == content.title


def test_locked_thumbnail_can_be_gated():
    out = svc.render_content(make_content(tier="premium"), None, signer=fake_signer, gate_thumbnail=True)
    assert out.is_locked is True
    assert out.thumbnail_url is None


def test_anonymous_viewer_sees_unlocked_item():
    content = make_content(tier="premium", is_locked=False)
    out = svc.render_content(content, None, signer=fake_signer)
    assert out.is_locked is False
    assert out.playback_url is not None


def test_poll_counts_are_visible_even_when_locked():
    poll = make_content(type="poll", video_id=None, tier="premium", poll_options={"a": 3})
    out = svc.render_content(poll, None, signer=fake_signer)
    assert out.is_locked is True
    assert out.poll_options == {"a": 3}
    assert out.thumbnail_url is None


@pytest.mark.anyio
async def test_render_many_marks_liked_items():
    a = make_content(tier="free", is_locked=False, video_id=None)
    b = make_content(tier="free", is_locked=False, video_id=None)
    viewer = make_user()
    db = FakeDB().queue(FakeResult([b.id]))

    items = await svc.render_many(db, [a, b], viewer)

    assert [i.liked_by_me for i in items] == [False, True]


@pytest.mark.anyio
async def test_render_many_skips_like_lookup_for_anonymous():
    db = FakeDB()
    items = await svc.render_many(db, [make_content(tier="free", is_locked=False, video_id=None)], None)
    assert items[0].liked_by_me is False
    assert db.executed == []


@pytest.mark.anyio
async def test_get_content_unknown_or_malformed_id_is_404():
    from memberhub.core.exceptions import NotFoundException

    with pytest.raises(NotFoundException):
        await svc.get_content(FakeDB(), "not-a-uuid")
    with pytest.raises(NotFoundException):
        await svc.get_content(FakeDB(), "00000000-0000-0000-0000-000000000001")


@pytest.mark.anyio
async def test_create_poll_initializes_zero_counts_and_feed_entry():
    admin = make_user(role="admin")
    db = FakeDB()
    payload = ContentCreate(title="Next episode?", type="poll", poll_options=["A", "B"], add_to_feed=True)

    content = await svc.create_content(db, payload, admin)

    assert content.poll_options == {"A": 0, "B": 0}
    assert content.tier == "basic"
    assert len(db.added) == 2
    assert db.added[1].content_id == content.id


@pytest.mark.anyio
async def test_video_without_video_id_is_rejected():
    from fastapi import HTTPException

    with pytest.raises(HTTPException) as ei:
        await svc.create_content(FakeDB(), ContentCreate(title="x", type="video"), make_user(role="admin"))
    assert ei.value.status_code == 400


class RecordingBunny:
    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail

    async def update_video_title(self, video_id, title):
        self.calls.append(("rename", video_id, title))

    async def delete_video(self, video_id):
        from memberhub.core.exceptions import BunnyAPIError

        self.calls.append(("delete", video_id))
        if self.fail:
            raise BunnyAPIError("down", upstream_status=500)


@pytest.mark.anyio
async def test_update_renames_bunny_video_when_title_changes():
    from memberhub.schemas.content import ContentUpdate

    content = make_content(title="Old")
    bunny = RecordingBunny()
    await svc.update_content(FakeDB(), content, ContentUpdate(title="New", tier="allAccess"), bunny)

    assert content.title == "New"
    assert content.tier == "allAccess"
    assert bunny.calls == [("rename", "vid-123", "New")]


@pytest.mark.anyio
async def test_delete_proceeds_when_bunny_fails():
    content = make_content()
    db = FakeDB()
    bunny = RecordingBunny(fail=True)

    await svc.delete_content(db, content, bunny)

    assert bunny.calls == [("delete", "vid-123")]
    assert db.deleted == [content]
    assert db.commits == 1
