"""
Test doubles
============

FakeRedis   : the small slice of redis.asyncio used by the revocation lane
FakeResult  : what `AsyncSession.execute()` returns, pre-baked
FakeDB      : AsyncSession stand-in that records writes and replays results
make_user / make_content / make_product : transient ORM rows with ids set
"""

from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from memberhub.db.models import Content, Product, User


# ─────────────────────────────────────────────────────────────
# Redis
# ─────────────────────────────────────────────────────────────
class FakeRedis:
    def __init__(self) -> None:
        self.store: Dict[str, Any] = {}
        self.expirations: Dict[str, float] = {}

    def _alive(self, key: str) -> bool:
        exp = self.expirations.get(key)
        if exp is not None and exp <= time.time():
            self.store.pop(key, None)
            self.expirations.pop(key, None)
        return key in self.store

    async def get(self, key: str):
        return self.store.get(key) if self._alive(key) else None

    async def set(self, key: str, value: Any, ex: Optional[int] = None):
        self.store[key] = value
        if ex:
            self.expirations[key] = time.time() + ex
        return True

    async def setex(self, key: str, ttl: int, value: Any):
        return await self.set(key, value, ex=ttl)

    async def ttl(self, key: str) -> int:
        if not self._alive(key):
            return -2
        exp = self.expirations.get(key)
        return -1 if exp is None else int(exp - time.time())

    async def getdel(self, key: str):
        value = await self.get(key)
        self.store.pop(key, None)
        self.expirations.pop(key, None)
        return value

    async def delete(self, *keys: str) -> int:
        return sum(1 for k in keys if self.store.pop(k, None) is not None)

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        return None


class BrokenRedis(FakeRedis):
    async def get(self, key: str):
        raise ConnectionError("redis down")


# ─────────────────────────────────────────────────────────────
# Database
# ─────────────────────────────────────────────────────────────
class _Scalars:
    def __init__(self, rows: List[Any]) -> None:
        self._rows = rows

    def all(self) -> List[Any]:
        return list(self._rows)

    def first(self):
        return self._rows[0] if self._rows else None


class FakeResult:
    def __init__(self, rows: Optional[Iterable[Any]] = None, *, scalar: Any = None) -> None:
        self._rows = list(rows or [])
        self._scalar = scalar

    def scalars(self) -> _Scalars:
        return _Scalars(self._rows)

    def scalar_one_or_none(self):
        return self._rows[0] if self._rows else None

    def scalar_one(self):
        if self._scalar is not None:
            return self._scalar
        return self._rows[0]

    def first(self):
        return self._rows[0] if self._rows else None

    def all(self) -> List[Any]:
        return list(self._rows)


class FakeDB:
    """Records add/delete/commit and replays queued `execute()` results in order."""

    def __init__(self, results: Optional[Iterable[FakeResult]] = None, *, rows: Optional[Dict[Any, Any]] = None):
        self.results: List[FakeResult] = list(results or [])
        self.rows: Dict[Any, Any] = dict(rows or {})
        self.added: List[Any] = []
        self.deleted: List[Any] = []
        self.commits = 0
        self.rollbacks = 0
        self.executed: List[Any] = []
        self.refresh_options: List[Dict[str, Any]] = []
        self.fail_commit_with: Optional[Exception] = None

    def queue(self, *results: FakeResult) -> "FakeDB":
        self.results.extend(results)
        return self

    async def execute(self, stmt, *args, **kwargs) -> FakeResult:
        self.executed.append(stmt)
        return self.results.pop(0) if self.results else FakeResult()

    async def get(self, model, pk):
        return self.rows.get(pk)

    def add(self, obj: Any) -> None:
        self.added.append(obj)

    async def delete(self, obj: Any) -> None:
        self.deleted.append(obj)

    async def flush(self) -> None:
        for obj in self.added:
            if getattr(obj, "id", None) is None and hasattr(obj, "id"):
                obj.id = uuid.uuid4()

    async def commit(self) -> None:
        if self.fail_commit_with is not None:
            exc, self.fail_commit_with = self.fail_commit_with, None
            raise exc
        await self.flush()
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1

    async def refresh(self, obj: Any, **options) -> None:
        self.refresh_options.append(options)
        if hasattr(obj, "created_at") and getattr(obj, "created_at", None) is None:
            obj.created_at = datetime.now(timezone.utc)


# ─────────────────────────────────────────────────────────────
# Row builders
# ─────────────────────────────────────────────────────────────
def make_user(
    *,
    tier: str = "basic",
    role: str = "member",
    email: str = "member@example.com",
    username: Optional[str] = "member",
    hashed_password: str = "not-a-real-hash",
    is_active: bool = True,
) -> User:
    return User(
        id=uuid.uuid4(),
        email=email,
        username=username,
        full_name="Test Member",
        hashed_password=hashed_password,
        role=role,
        tier=tier,
        is_active=is_active,
        purchased_product_ids=[],
    )


def make_content(
    *,
    title: str = "Behind the scenes",
    type: str = "video",
    tier: str = "premium",
    is_locked: bool = True,
    video_id: Optional[str] = "vid-123",
    media_url: Optional[str] = None,
    poll_options: Optional[Dict[str, int]] = None,
    poll_multiple_choice: bool = False,
    poll_ends_at: Optional[datetime] = None,
    likes_count: int = 0,
    comments_count: int = 0,
) -> Content:
    return Content(
        id=uuid.uuid4(),
        title=title,
        description="desc",
        type=type,
        category="studio",
        tags=["bts"],
        tier=tier,
        is_locked=is_locked,
        video_id=video_id,
        media_url=media_url,
        poll_options=poll_options,
        poll_multiple_choice=poll_multiple_choice,
        poll_ends_at=poll_ends_at,
        likes_count=likes_count,
        comments_count=comments_count,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


def make_product(
    *,
    name: str = "Signed poster",
    price: str = "20.00",
    in_stock: bool = True,
    free_shipping: bool = False,
    discount_tier: Optional[str] = None,
    discount_percentage: Optional[int] = None,
) -> Product:
    return Product(
        id=uuid.uuid4(),
        name=name,
        description="A poster",
        category="merch",
        price=Decimal(price),
        in_stock=in_stock,
        free_shipping=free_shipping,
        rating=4.5,
        reviews_count=10,
        discount_tier=discount_tier,
        discount_percentage=discount_percentage,
    )
