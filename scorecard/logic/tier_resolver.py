"""Tier resolution helpers.

Maps a percentage onto a qualitative tier by ordered range lookup. Tier ranges
are inclusive on both ends and are not assumed to be disjoint: the first tier
in sort_order whose range contains the percentage wins.
"""

from __future__ import annotations

from typing import Iterable, Optional

from scorecard.models.catalog import ScoreTier


def order_tiers(tiers: Iterable[ScoreTier]) -> list[ScoreTier]:
    """Return tiers in stored sort_order; equal sort_order keeps input order."""
    return sorted(tiers, key=lambda t: t.sort_order)


def resolve_tier(percentage: int, tiers: Iterable[ScoreTier]) -> Optional[ScoreTier]:
    """Return the first tier whose [min_pct, max_pct] contains ``percentage``.

    Returns None when no tier covers the percentage; callers render that as
    "no tier" rather than treating it as an error.
    """
    for tier in order_tiers(tiers):
        if tier.contains(percentage):
            return tier
    return None


__all__ = ["order_tiers", "resolve_tier"]
