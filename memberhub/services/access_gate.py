from __future__ import annotations

"""
Access gate: decide what a viewer gets for one content item.

`evaluate_access` combines the tier ranking with the media signer:

- granted → signed playback URL + signed thumbnail URL
- denied  → the required tier label for display, plus the thumbnail unless
  thumbnails are gated too

The decision is computed on every call and never cached; the signed URLs'
own expiry is the only lifetime involved. Signing failures
(`ConfigurationError`) propagate so a view never carries half a set of URLs.
"""

from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict

from memberhub.core.config import settings
from memberhub.schemas.enums import MembershipTier
from memberhub.services.signing import PLAYBACK_SUFFIX, THUMBNAIL_SUFFIX, SignedURL, generate_signed_url
from memberhub.services.tiers import has_access

Signer = Callable[[str, str], SignedURL]


class Granted(BaseModel):
    model_config = ConfigDict(frozen=True)

    playback_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    expires: Optional[int] = None

    @property
    def granted(self) -> bool:
        return True


class Denied(BaseModel):
    model_config = ConfigDict(frozen=True)

    required_tier: str
    thumbnail_url: Optional[str] = None

    @property
    def granted(self) -> bool:
        return False


AccessDecision = Union[Granted, Denied]


def default_signer(resource_id: str, path_suffix: str) -> SignedURL:
    """Sign against the configured CDN with `MEDIA_URL_TTL_SECONDS`."""
    return generate_signed_url(
        resource_id=resource_id,
        path_suffix=path_suffix,
        ttl_seconds=settings.MEDIA_URL_TTL_SECONDS,
    )


def _label(tier: Any) -> str:
    if isinstance(tier, MembershipTier):
        return tier.value
    return str(tier) if tier else MembershipTier.FREE.value


def evaluate_access(
    user_tier: Any,
    required_tier: Any,
    media_ref: Optional[str],
    *,
    gate_thumbnail: bool = False,
    signer: Optional[Signer] = None,
) -> AccessDecision:
    sign = signer or default_signer

    if has_access(user_tier, required_tier):
        if not media_ref:
            return Granted()
        playback = sign(media_ref, PLAYBACK_SUFFIX)
        thumb = sign(media_ref, THUMBNAIL_SUFFIX)
        return Granted(playback_url=playback.url, thumbnail_url=thumb.url, expires=playback.expires)

    thumb_url = None
    if media_ref and not gate_thumbnail:
        thumb_url = sign(media_ref, THUMBNAIL_SUFFIX).url
    return Denied(required_tier=_label(required_tier), thumbnail_url=thumb_url)


__all__ = ["Granted", "Denied", "AccessDecision", "Signer", "default_signer", "evaluate_access"]
