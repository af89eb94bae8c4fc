"""
Rebuild planning: group packages into emerge command lines by build time.

Fast packages are merged with high parallelism, medium ones with a
couple of jobs, and slow ones one at a time.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .pipeline import AuditRecord


FAST_LIMIT = 60
SLOW_LIMIT = 15 * 60


class DurationTier(Enum):
    """Build duration bucket."""
    FAST = "fast"       # [0, 60)
    MEDIUM = "medium"   # [60, 900)
    SLOW = "slow"       # [900, inf)


TIER_COMMANDS = {
    DurationTier.FAST: "emerge -av1j16 -l20 --keep-going",
    DurationTier.MEDIUM: "emerge -av1j2 -l20 --keep-going",
    DurationTier.SLOW: "emerge -av1 --keep-going",
}


def classify_tier(seconds: int) -> DurationTier:
    """
    Map a build duration to its tier.

    Raises:
        ValueError: If seconds is negative
    """
    if seconds < 0:
        raise ValueError(f"Duration cannot be negative: {seconds}")
    if seconds < FAST_LIMIT:
        return DurationTier.FAST
    if seconds < SLOW_LIMIT:
        return DurationTier.MEDIUM
    return DurationTier.SLOW


def partition_tiers(records: Sequence[AuditRecord]) -> dict[DurationTier, list[str]]:
    """
    Split package identifiers into tiers, keeping input order within each tier.

    Every tier is present in the result, possibly empty.
    """
    tiers: dict[DurationTier, list[str]] = {tier: [] for tier in DurationTier}
    for record in records:
        tiers[classify_tier(record.duration)].append(record.package)
    return tiers


def render_rebuild_commands(records: Sequence[AuditRecord]) -> list[str]:
    """
    Render the three emerge command lines, fast tier first.

    Empty tiers still produce their line.
    """
    tiers = partition_tiers(records)
    return [
        f"{TIER_COMMANDS[tier]} {' '.join(tiers[tier])}"
        for tier in DurationTier
    ]
