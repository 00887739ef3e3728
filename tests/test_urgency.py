"""Tests for urgency tiers and bucket maps."""
import pytest

from rollplan.core.urgency import (
    TIERS_BY_SEVERITY,
    UrgencyTier,
    add_to_bucket,
    bucket_total,
    empty_bucket_map,
)


def test_tier_order():
    assert UrgencyTier.L0 < UrgencyTier.L1 < UrgencyTier.L2 < UrgencyTier.L3
    assert max([UrgencyTier.L1, UrgencyTier.L3, UrgencyTier.L0]) is UrgencyTier.L3
    assert sorted(UrgencyTier, reverse=True) == list(TIERS_BY_SEVERITY)
    assert UrgencyTier.L2 >= UrgencyTier.L2


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("L3", UrgencyTier.L3),
        (" l2 ", UrgencyTier.L2),
        (UrgencyTier.L1, UrgencyTier.L1),
        ("L7", UrgencyTier.L0),
        ("", UrgencyTier.L0),
        (None, UrgencyTier.L0),
    ],
)
def test_parse(raw, expected):
    assert UrgencyTier.parse(raw) is expected


def test_bucket_map_accumulates():
    buckets = empty_bucket_map()
    assert len(buckets) == 4
    add_to_bucket(buckets, UrgencyTier.L2, 12.5)
    add_to_bucket(buckets, UrgencyTier.L2, 7.5)
    add_to_bucket(buckets, "unknown", 1.0)
    assert buckets[UrgencyTier.L2].tonnage == 20.0
    assert buckets[UrgencyTier.L2].count == 2
    assert buckets[UrgencyTier.L0].count == 1
    assert bucket_total(buckets) == 21.0
    # fresh maps do not share buckets
    assert empty_bucket_map()[UrgencyTier.L2].count == 0
