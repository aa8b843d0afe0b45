from __future__ import annotations

"""
Membership tier ranking.

Tiers are totally ordered by a fixed rank table shared by users and content:

    free=0  basic=1  premium=2  allAccess=3

Anything not in the table (None, empty, unknown, wrong type) ranks 0. Ranking
never raises, so a bad tier value on a row can hide content but never break
rendering.
"""

from typing import Any, Dict, Optional

from memberhub.schemas.enums import MembershipTier

TIER_RANKS: Dict[str, int] = {
    MembershipTier.FREE.value: 0,
    MembershipTier.BASIC.value: 1,
    MembershipTier.PREMIUM.value: 2,
    MembershipTier.ALL_ACCESS.value: 3,
}

# Tiers a member can subscribe to (free is the anonymous/unset level).
PURCHASABLE_TIERS = (MembershipTier.BASIC, MembershipTier.PREMIUM, MembershipTier.ALL_ACCESS)


def tier_rank(label: Any) -> int:
    """Rank of a tier label; unknown labels are 0."""
    if isinstance(label, MembershipTier):
        return TIER_RANKS[label.value]
    if not isinstance(label, str):
        return 0
    return TIER_RANKS.get(label, 0)


def has_access(user_tier: Any, required_tier: Any) -> bool:
    return tier_rank(user_tier) >= tier_rank(required_tier)


def normalize_tier(label: Any) -> Optional[MembershipTier]:
    """Map a label to `MembershipTier`, or None when it is not a known tier."""
    if isinstance(label, MembershipTier):
        return label
    if not isinstance(label, str):
        return None
    try:
        return MembershipTier(label)
    except ValueError:
        return None


__all__ = ["TIER_RANKS", "PURCHASABLE_TIERS", "tier_rank", "has_access", "normalize_tier"]
