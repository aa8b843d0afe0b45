# tests/test_services/test_account_service.py
import pytest
from fastapi import HTTPException

from memberhub.core.security import get_password_hash, verify_password
from memberhub.services.auth import account_service as svc
from tests.fixtures.fakes import FakeDB, FakeResult, make_user

pytestmark = pytest.mark.anyio


@pytest.mark.parametrize("label", ["basic", "premium", "allAccess"])
async def test_update_tier_accepts_purchasable_tiers(label):
    user = make_user(tier="basic")
    db = FakeDB()

    await svc.update_tier(db, user, label)

    assert user.tier == label
    assert db.commits == 1


@pytest.mark.parametrize("label", ["free", "gold", "", "Premium"])
async def test_update_tier_rejects_other_labels(label):
    user = make_user(tier="premium")
    with pytest.raises(HTTPException) as ei:
        await svc.update_tier(FakeDB(), user, label)
    assert ei.value.status_code == 400
    assert user.tier == "premium"


async def test_update_account_sets_username_and_rehashes_password():
    user = make_user(username="old")
    db = FakeDB().queue(FakeResult([]))

    await svc.update_account(db, user, "newname", "a-better-password")

    assert user.username == "newname"
    assert verify_password("a-better-password", user.hashed_password)


async def test_update_account_username_taken_is_409():
    user = make_user(username="old")
    db = FakeDB().queue(FakeResult([("someone-else",)]))

    with pytest.raises(HTTPException) as ei:
        await svc.update_account(db, user, "taken")
    assert ei.value.status_code == 409
    assert user.username == "old"
    assert db.commits == 0


async def test_change_password_checks_old_password():
    user = make_user(hashed_password=get_password_hash("original-pass"))

    with pytest.raises(HTTPException) as ei:
        await svc.change_password(FakeDB(), user, "wrong-pass", "replacement-pass")
    assert ei.value.status_code == 401

    db = FakeDB()
    await svc.change_password(db, user, "original-pass", "replacement-pass")
    assert verify_password("replacement-pass", user.hashed_password)
    assert db.commits == 1


def test_user_out_lists_purchases():
    user = make_user(tier="premium")
    user.purchased_product_ids = ["p1", "p2"]
    out = svc.user_out(user)
    assert out.tier == "premium"
    assert out.purchases == ["p1", "p2"]
    assert out.id == str(user.id)
