# tests/conftest.py
"""
Global test bootstrap
- Required settings and Bunny test credentials set BEFORE memberhub imports
- SlowAPI rate limiting bypassed by default (opt back in with `ratelimit_on`)
- A fake Redis mounted into `memberhub.core.redis_client.redis_wrapper`
- anyio pinned to asyncio for `@pytest.mark.anyio` tests
"""

from __future__ import annotations

import os
import random

import pytest

# ──────────────────────────────────────────────────────────────────────────────
# 🌱 Environment (must precede any memberhub import)
# ──────────────────────────────────────────────────────────────────────────────
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-not-for-production")
os.environ.setdefault("POSTGRES_PASSWORD", "test")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("ENABLE_HTTPS_REDIRECT", "false")

os.environ.setdefault("RATELIMIT_STORAGE_URI", "memory://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("RATE_LIMIT_TEST_BYPASS", "1")
os.environ.setdefault("RATE_LIMIT_NAMESPACE", f"pytest-{random.getrandbits(32)}")

os.environ.setdefault("BUNNY_API_KEY", "test-bunny-api-key")
os.environ.setdefault("BUNNY_LIBRARY_ID", "12345")
os.environ.setdefault("BUNNY_CDN_URL", "vz-test.b-cdn.net")
os.environ.setdefault("BUNNY_SECURITY_KEY", "test-security-key")
os.environ.setdefault("ADMIN_EMAILS", "owner@example.com")

# ──────────────────────────────────────────────────────────────────────────────
# 🧪 Fake Redis for the revocation lane
# ──────────────────────────────────────────────────────────────────────────────
from memberhub.core.redis_client import redis_wrapper  # noqa: E402
from tests.fixtures.fakes import FakeRedis  # noqa: E402

redis_wrapper._client = FakeRedis()


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def redis_client():
    """Fresh fake Redis per test."""
    client = FakeRedis()
    previous = redis_wrapper._client
    redis_wrapper._client = client
    yield client
    redis_wrapper._client = previous


@pytest.fixture()
def ratelimit_on(monkeypatch):
    """Enforce rate limits in a single test."""
    monkeypatch.setenv("RATE_LIMIT_TEST_BYPASS", "0")
    yield
