from __future__ import annotations

"""
Signing utilities for time-limited media URLs (Bunny.net token authentication).

URL shape::

    {base_url}/{resource_id}/{path_suffix}?token={token}&expires={expires}

Token::

    HMAC-SHA256(key=secret, msg=secret + resource_id + "/" + path_suffix + str(expires)).hexdigest()

The concatenation order is what the CDN edge recomputes, so it is fixed.
URLs are bearer URLs: anyone holding one may use it until `expires`.

- Missing secret or base URL raises `ConfigurationError`; no unsigned URL is
  ever produced.
- Expiry is whole epoch seconds and a URL is valid while `expires > now`.
"""

import hashlib
import hmac
import time
from typing import Optional
from urllib.parse import parse_qs, urlsplit

from pydantic import BaseModel

from memberhub.core.config import settings
from memberhub.core.exceptions import ConfigurationError

PLAYBACK_SUFFIX = "play.mp4"
THUMBNAIL_SUFFIX = "thumbnail.jpg"

_FORBIDDEN_CHARS = set("?#\\ \t\r\n")


class SignedURL(BaseModel):
    """A signed media URL.

    - url: fully-qualified URL including `token` and `expires`.
    - token: lowercase hex HMAC-SHA256.
    - expires: epoch seconds after which the URL is rejected.
    """

    url: str
    token: str
    expires: int
    resource_id: str
    path_suffix: str


# ──────────────────────────────────────────────────────────────
# 🔧 Helpers
# ──────────────────────────────────────────────────────────────
def _resolve_secret(secret_key: Optional[str]) -> str:
    secret = settings.bunny_security_key if secret_key is None else secret_key
    if not secret:
        raise ConfigurationError("Media signing key is not configured", setting="BUNNY_SECURITY_KEY")
    return secret


def _resolve_base_url(base_url: Optional[str]) -> str:
    base = settings.bunny_cdn_base_url if base_url is None else base_url
    base = (base or "").strip().rstrip("/")
    if not base:
        raise ConfigurationError("Media CDN base URL is not configured", setting="BUNNY_CDN_URL")
    return base


def check_resource_id(resource_id: str) -> None:
    """Raise `ValueError` unless `resource_id` is one safe URL path segment."""
    if not resource_id or not isinstance(resource_id, str):
        raise ValueError("resource_id must be a non-empty string")
    if "/" in resource_id or resource_id in {".", ".."} or _FORBIDDEN_CHARS & set(resource_id):
        raise ValueError(f"Invalid resource_id: {resource_id!r}")


def _check_path_suffix(path_suffix: str) -> None:
    if not path_suffix or not isinstance(path_suffix, str):
        raise ValueError("path_suffix must be a non-empty string")
    if _FORBIDDEN_CHARS & set(path_suffix):
        raise ValueError(f"Invalid path_suffix: {path_suffix!r}")
    for segment in path_suffix.split("/"):
        if segment in {"", ".", ".."}:
            raise ValueError(f"Invalid path_suffix: {path_suffix!r}")


# ──────────────────────────────────────────────────────────────
# ✍️ Sign / verify
# ──────────────────────────────────────────────────────────────
def compute_token(secret_key: str, resource_id: str, path_suffix: str, expires: int) -> str:
    """Deterministic token for (secret, resource, suffix, expires)."""
    message = f"{secret_key}{resource_id}/{path_suffix}{int(expires)}"
    return hmac.new(secret_key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def generate_signed_url(
    *,
    resource_id: str,
    path_suffix: str,
    ttl_seconds: int,
    secret_key: Optional[str] = None,
    base_url: Optional[str] = None,
    now: Optional[float] = None,
) -> SignedURL:
    """Sign `{base_url}/{resource_id}/{path_suffix}` for `ttl_seconds`.

    `secret_key` and `base_url` default to `BUNNY_SECURITY_KEY` and
    `BUNNY_CDN_URL`; an explicit empty string counts as missing.
    """
    secret = _resolve_secret(secret_key)
    base = _resolve_base_url(base_url)
    check_resource_id(resource_id)
    _check_path_suffix(path_suffix)
    if isinstance(ttl_seconds, bool) or int(ttl_seconds) <= 0:
        raise ValueError("ttl_seconds must be a positive integer")

    issued_at = int(time.time() if now is None else now)
    expires = issued_at + int(ttl_seconds)
    token = compute_token(secret, resource_id, path_suffix, expires)
    url = f"{base}/{resource_id}/{path_suffix}?token={token}&expires={expires}"
    return SignedURL(url=url, token=token, expires=expires, resource_id=resource_id, path_suffix=path_suffix)


def verify_signed_url(
    url: str,
    *,
    secret_key: Optional[str] = None,
    base_url: Optional[str] = None,
    now: Optional[float] = None,
) -> bool:
    """Recompute and check the token of a signed URL; False when tampered or expired.

    Without `base_url` the first path segment is taken as the resource id.
    """
    secret = _resolve_secret(secret_key)

    if base_url:
        prefix = base_url.rstrip("/") + "/"
        if not url.startswith(prefix):
            return False
        path = urlsplit(url[len(prefix):]).path
    else:
        path = urlsplit(url).path.lstrip("/")

    resource_id, sep, path_suffix = path.partition("/")
    if not sep or not resource_id or not path_suffix:
        return False

    query = parse_qs(urlsplit(url).query)
    tokens, expires_values = query.get("token"), query.get("expires")
    if not tokens or not expires_values:
        return False
    try:
        expires = int(expires_values[0])
    except ValueError:
        return False

    current = int(time.time() if now is None else now)
    if expires <= current:
        return False

    expected = compute_token(secret, resource_id, path_suffix, expires)
    return hmac.compare_digest(expected.encode("utf-8"), tokens[0].lower().encode("utf-8"))


# ──────────────────────────────────────────────────────────────
# 🎞️ Bunny Stream conveniences
# ──────────────────────────────────────────────────────────────
def playback_url(video_id: str, *, ttl_seconds: Optional[int] = None, now: Optional[float] = None) -> SignedURL:
    return generate_signed_url(
        resource_id=video_id,
        path_suffix=PLAYBACK_SUFFIX,
        ttl_seconds=settings.MEDIA_URL_TTL_SECONDS if ttl_seconds is None else ttl_seconds,
        now=now,
    )


def thumbnail_url(video_id: str, *, ttl_seconds: Optional[int] = None, now: Optional[float] = None) -> SignedURL:
    return generate_signed_url(
        resource_id=video_id,
        path_suffix=THUMBNAIL_SUFFIX,
        ttl_seconds=settings.MEDIA_URL_TTL_SECONDS if ttl_seconds is None else ttl_seconds,
        now=now,
    )


__all__ = [
    "SignedURL",
    "PLAYBACK_SUFFIX",
    "THUMBNAIL_SUFFIX",
    "check_resource_id",
    "compute_token",
    "generate_signed_url",
    "verify_signed_url",
    "playback_url",
    "thumbnail_url",
]
