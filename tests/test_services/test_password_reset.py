# tests/test_services/test_password_reset.py

import time
from urllib.parse import parse_qs, urlsplit

import pytest
from fastapi import HTTPException

import memberhub.services.auth.password_reset_service as svc
from memberhub.core.config import settings
from memberhub.core.redis_client import redis_wrapper
from memberhub.core.security import verify_password
from tests.fixtures.fakes import BrokenRedis, FakeDB, FakeResult, make_user

pytestmark = pytest.mark.anyio


@pytest.fixture()
def sent(monkeypatch):
    links = []
    monkeypatch.setattr(svc, "send_password_reset_link", lambda email, link: links.append((email, link)))
    return links


def _token(link: str) -> str:
    return parse_qs(urlsplit(link).query)["token"][0]


async def test_unknown_email_gets_neutral_answer(redis_client, sent):
    out = await svc.request_password_reset("nobody@example.com", FakeDB().queue(FakeResult([])))

    assert "If an account exists" in out.message
    assert sent == []
    assert redis_client.store == {}


async def test_inactive_account_gets_neutral_answer(redis_client, sent):
    user = make_user(is_active=False)
    out = await svc.request_password_reset(user.email, FakeDB().queue(FakeResult([user])))

    assert "If an account exists" in out.message
    assert sent == []


async def test_request_stores_only_a_digest_for_one_hour(redis_client, sent):
    user = make_user(email="fan@example.com")
    await svc.request_password_reset(" Fan@Example.com ", FakeDB().queue(FakeResult([user])))

    ((email, link),) = sent
    assert email == "fan@example.com"
    assert link.startswith(settings.PASSWORD_RESET_URL + "?token=")

    token = _token(link)
    token_keys = [k for k in redis_client.store if k.startswith(svc.TOKEN_KEY_PREFIX)]
    assert len(token_keys) == 1
    assert token not in token_keys[0]
    assert redis_client.store[token_keys[0]] == str(user.id)
    assert 3590 <= await redis_client.ttl(token_keys[0]) <= 3600


async def test_new_request_replaces_previous_token(redis_client, sent):
    user = make_user()
    await svc.request_password_reset(user.email, FakeDB().queue(FakeResult([user])))
    await svc.request_password_reset(user.email, FakeDB().queue(FakeResult([user])))

    first, second = _token(sent[0][1]), _token(sent[1][1])
    assert first != second
    assert len([k for k in redis_client.store if k.startswith(svc.TOKEN_KEY_PREFIX)]) == 1

    with pytest.raises(HTTPException) as ei:
        await svc.reset_password(first, "brand-new-pass", FakeDB(rows={user.id: user}))
    assert ei.value.status_code == 400


async def test_reset_sets_password_and_token_is_single_use(redis_client, sent):
    user = make_user()
    await svc.request_password_reset(user.email, FakeDB().queue(FakeResult([user])))
    token = _token(sent[0][1])
    db = FakeDB(rows={user.id: user})

    out = await svc.reset_password(token, "brand-new-pass", db)

    assert out.message == "Password reset successful"
    assert verify_password("brand-new-pass", user.hashed_password)
    assert db.commits == 1
    assert redis_client.store == {}

    with pytest.raises(HTTPException) as ei:
        await svc.reset_password(token, "another-pass-1", db)
    assert ei.value.status_code == 400
    assert ei.value.detail == "Invalid or expired token"


async def test_expired_token_is_rejected(redis_client, sent):
    user = make_user()
    await svc.request_password_reset(user.email, FakeDB().queue(FakeResult([user])))
    for key in list(redis_client.expirations):
        redis_client.expirations[key] = time.time() - 1

    with pytest.raises(HTTPException) as ei:
        await svc.reset_password(_token(sent[0][1]), "brand-new-pass", FakeDB(rows={user.id: user}))
    assert ei.value.status_code == 400
    assert user.hashed_password == "not-a-real-hash"


async def test_redis_down_is_503(sent):
    previous = redis_wrapper._client
    redis_wrapper._client = BrokenRedis()
    try:
        with pytest.raises(HTTPException) as ei:
            await svc.request_password_reset("fan@example.com", FakeDB().queue(FakeResult([make_user()])))
    finally:
        redis_wrapper._client = previous
    assert ei.value.status_code == 503
