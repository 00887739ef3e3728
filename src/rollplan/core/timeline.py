from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from rollplan.core.models import (
    CapacityPoolRow,
    CapacityTimelineEntry,
    PlanAssignmentRow,
    RollStatus,
    TimelineSegment,
)
from rollplan.core.urgency import (
    TIERS_BY_SEVERITY,
    UrgencyBucketMap,
    add_to_bucket,
    bucket_total,
    empty_bucket_map,
)
from rollplan.data.coerce import coerce_iso_date, positive_or, to_finite_float

logger = logging.getLogger(__name__)

DEFAULT_ROLL_CHANGE_THRESHOLD = 2500.0
DEFAULT_ROLL_WARNING_THRESHOLD = 1500.0

DateRange = tuple[str | date, str | date]
GroupKey = tuple[str, str]  # (machine_code, plan_date)


def normalize_date_range(date_range: DateRange) -> tuple[str, str]:
    """Return ``(start, end)`` as ISO strings.

    Raises ValueError on an unparsable bound or when start is after end.
    """
    start_raw, end_raw = date_range
    start = coerce_iso_date(start_raw)
    end = coerce_iso_date(end_raw)
    if start is None or end is None:
        raise ValueError(f"invalid date_range: {date_range!r}")
    if start > end:
        raise ValueError(f"date_range start {start} is after end {end}")
    return start, end


def build_bucket_map(plan_rows: Iterable[PlanAssignmentRow]) -> UrgencyBucketMap:
    """Accumulate usable plan rows into a complete four-tier bucket map."""
    buckets = empty_bucket_map()
    for row in plan_rows:
        weight = _usable_weight(row)
        if weight is not None:
            add_to_bucket(buckets, row.urgency_tier, weight)
    return buckets


def resolve_actual_capacity(segment_total: float, used_capacity: float | None) -> float:
    """Plan-derived tonnage wins; the pool snapshot is only a fallback."""
    if segment_total > 0:
        return segment_total
    return positive_or(used_capacity, 0.0)


def resolve_target_capacity(target_capacity: float | None, actual_capacity: float) -> float:
    return positive_or(target_capacity, max(actual_capacity, 1.0))


def resolve_limit_capacity(limit_capacity: float | None, target_capacity: float) -> float:
    return positive_or(limit_capacity, target_capacity)


def _usable_weight(row: PlanAssignmentRow) -> float | None:
    weight = to_finite_float(row.weight)
    if weight is None or weight <= 0:
        return None
    return weight


def _segments(buckets: UrgencyBucketMap) -> tuple[TimelineSegment, ...]:
    return tuple(
        TimelineSegment(
            urgency_tier=tier,
            tonnage=buckets[tier].tonnage,
            material_count=buckets[tier].count,
        )
        for tier in TIERS_BY_SEVERITY
    )


def aggregate_timeline(
    plan_rows: Iterable[PlanAssignmentRow],
    pool_rows: Iterable[CapacityPoolRow],
    *,
    machines: Iterable[str] | None,
    date_range: DateRange,
    roll_change_threshold: float = DEFAULT_ROLL_CHANGE_THRESHOLD,
) -> list[CapacityTimelineEntry]:
    """Join plan assignments and capacity pools into per-machine/day entries.

    Args:
        plan_rows: Plan assignment rows; unusable weights are skipped.
        pool_rows: Capacity pool snapshots. Each surviving pool row yields one
            entry, even when no plan row matches it.
        machines: Machine codes to keep. ``None`` keeps every machine.
        date_range: Inclusive ``(start, end)`` plan dates. Row dates may be
            ISO strings, ``date`` objects or timestamps.
        roll_change_threshold: Static roll-change tonnage copied onto entries.

    Returns:
        Entries sorted by ``(date, machine_code)``.
    """
    start, end = normalize_date_range(date_range)
    machine_set = None if machines is None else {str(m).strip() for m in machines}

    def in_scope(machine_code: str, day: str | None) -> bool:
        if not machine_code or not day:
            return False
        if machine_set is not None and machine_code not in machine_set:
            return False
        return start <= day <= end

    buckets_by_key: dict[GroupKey, UrgencyBucketMap] = {}
    material_ids_by_key: dict[GroupKey, set[str]] = {}
    skipped = 0

    for row in plan_rows:
        day = coerce_iso_date(row.plan_date)
        if not in_scope(row.machine_code, day):
            continue
        weight = _usable_weight(row)
        if weight is None:
            skipped += 1
            continue

        key = (row.machine_code, day)
        if key not in buckets_by_key:
            buckets_by_key[key] = empty_bucket_map()
            material_ids_by_key[key] = set()
        add_to_bucket(buckets_by_key[key], row.urgency_tier, weight)
        if row.material_id:
            material_ids_by_key[key].add(row.material_id)

    entries: list[CapacityTimelineEntry] = []
    for pool in pool_rows:
        day = coerce_iso_date(pool.plan_date)
        if not in_scope(pool.machine_code, day):
            continue
        key = (pool.machine_code, day)
        buckets = buckets_by_key.get(key) or empty_bucket_map()

        actual = resolve_actual_capacity(bucket_total(buckets), pool.used_capacity)
        target = resolve_target_capacity(pool.target_capacity, actual)
        limit = resolve_limit_capacity(pool.limit_capacity, target)
        progress = to_finite_float(pool.accumulated_tonnage)

        entries.append(
            CapacityTimelineEntry(
                date=day,
                machine_code=pool.machine_code,
                target_capacity=target,
                limit_capacity=limit,
                actual_capacity=actual,
                segments=_segments(buckets),
                roll_campaign_progress=progress if progress is not None else 0.0,
                roll_change_threshold=roll_change_threshold,
                material_ids=frozenset(material_ids_by_key.get(key, ())),
            )
        )

    entries.sort(key=lambda e: (e.date, e.machine_code))
    logger.debug(
        "%d timeline entries for %s..%s (%d plan groups, %d plan rows skipped for weight)",
        len(entries),
        start,
        end,
        len(buckets_by_key),
        skipped,
    )
    return entries


def utilization_pct(entry: CapacityTimelineEntry) -> float:
    target = to_finite_float(entry.target_capacity)
    actual = to_finite_float(entry.actual_capacity)
    if target is None or target <= 0 or actual is None or actual <= 0:
        return 0.0
    return actual / target * 100


def is_over_limit(entry: CapacityTimelineEntry) -> bool:
    return entry.actual_capacity > entry.limit_capacity


def roll_status(
    entry: CapacityTimelineEntry,
    *,
    warning_threshold: float = DEFAULT_ROLL_WARNING_THRESHOLD,
) -> RollStatus:
    progress = entry.roll_campaign_progress
    if progress >= entry.roll_change_threshold:
        return RollStatus.CRITICAL
    if progress >= warning_threshold:
        return RollStatus.WARNING
    return RollStatus.HEALTHY


def segment_shares(entry: CapacityTimelineEntry) -> list[tuple[TimelineSegment, float]]:
    """Each segment with its percent of actual capacity (stacked bar widths)."""
    total = entry.actual_capacity if entry.actual_capacity > 0 else 0.0
    return [(seg, seg.tonnage / total * 100 if total > 0 else 0.0) for seg in entry.segments]
