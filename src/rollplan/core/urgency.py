"""Urgency tiers and the four-tier bucket map.

Tiers are layered severity levels, not scores: ``L0`` (normal) < ``L1`` <
``L2`` < ``L3`` (red line). A bucket map always carries all four tiers so that
consumers can index it without branching.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import total_ordering


@total_ordering
class UrgencyTier(Enum):
    L0 = "L0"
    L1 = "L1"
    L2 = "L2"
    L3 = "L3"

    @property
    def rank(self) -> int:
        return int(self.value[1])

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, UrgencyTier):
            return NotImplemented
        return self.rank < other.rank

    @classmethod
    def parse(cls, value) -> UrgencyTier:
        """Map a raw level to a tier; missing or unrecognized values are ``L0``."""
        if isinstance(value, UrgencyTier):
            return value
        s = str(value or "").strip().upper()
        try:
            return cls(s)
        except ValueError:
            return cls.L0


# Most severe first, the order segments are presented in
TIERS_BY_SEVERITY: tuple[UrgencyTier, ...] = (
    UrgencyTier.L3,
    UrgencyTier.L2,
    UrgencyTier.L1,
    UrgencyTier.L0,
)


@dataclass
class UrgencyBucket:
    tonnage: float = 0.0
    count: int = 0


UrgencyBucketMap = dict[UrgencyTier, UrgencyBucket]


def empty_bucket_map() -> UrgencyBucketMap:
    return {tier: UrgencyBucket() for tier in UrgencyTier}


def add_to_bucket(buckets: UrgencyBucketMap, tier: UrgencyTier, weight: float) -> None:
    bucket = buckets[UrgencyTier.parse(tier)]
    bucket.tonnage += weight
    bucket.count += 1


def bucket_total(buckets: UrgencyBucketMap) -> float:
    return sum(buckets[tier].tonnage for tier in UrgencyTier)
