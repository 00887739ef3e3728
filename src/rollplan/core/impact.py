from __future__ import annotations

from collections.abc import Sequence

from rollplan.core.models import (
    CandidateMaterial,
    CapacityTimelineEntry,
    ImpactPrediction,
    MaterialDetail,
    MaterialStatus,
    Risk,
)
from rollplan.core.urgency import UrgencyTier
from rollplan.data.coerce import to_finite_float

DEFAULT_IMPROVEMENT_FLOOR_PCT = -5.0
DEFAULT_HIGH_UTILIZATION_PCT = 90.0


def material_weight(material: CandidateMaterial) -> float:
    """Weight in tonnes; missing or non-finite counts as zero."""
    w = to_finite_float(material.weight)
    return w if w is not None else 0.0


def material_status(material: CandidateMaterial) -> MaterialStatus:
    """Display status: immature > scheduled > ready > locked > other."""
    if material.is_mature is False:
        return MaterialStatus.IMMATURE
    state = str(material.sched_state or "").upper()
    if "SCHEDULED" in state:
        return MaterialStatus.SCHEDULED
    if "READY" in state:
        return MaterialStatus.READY
    if "LOCKED" in state:
        return MaterialStatus.LOCKED
    return MaterialStatus.OTHER


def _detail(material: CandidateMaterial) -> MaterialDetail:
    return MaterialDetail(
        material_id=material.material_id,
        weight=material_weight(material),
        urgency_tier=UrgencyTier.parse(material.urgency_tier),
        status=material_status(material),
    )


def _removable_weight(material: CandidateMaterial) -> float:
    # a negative weight cannot add tonnage back onto the day
    return max(material_weight(material), 0.0)


def _utilization(capacity: float, target: float) -> float:
    if target <= 0:
        return 0.0
    return capacity / target * 100


def predict_removal(
    entry: CapacityTimelineEntry,
    materials: Sequence[CandidateMaterial],
    *,
    improvement_floor_pct: float = DEFAULT_IMPROVEMENT_FLOOR_PCT,
) -> ImpactPrediction:
    """Predict the day's capacity if ``materials`` were moved off it.

    Simplified model: only tonnage moves; urgency segments are not
    redistributed.
    """
    actual = entry.actual_capacity
    target = entry.target_capacity
    limit = entry.limit_capacity

    affected = sum(_removable_weight(m) for m in materials)
    predicted = max(0.0, actual - affected)
    delta = predicted - actual

    before_pct = _utilization(actual, target)
    after_pct = _utilization(predicted, target)
    change_pct = after_pct - before_pct

    target_before, target_after = actual > target, predicted > target
    limit_before, limit_after = actual > limit, predicted > limit

    improves = (
        (target_before and not target_after)
        or (limit_before and not limit_after)
        or change_pct < improvement_floor_pct
    )

    if limit_after:
        risk = Risk.HIGH
    elif target_after or affected == 0:
        # an empty selection is flagged rather than reported as safe
        risk = Risk.MEDIUM
    else:
        risk = Risk.LOW

    if affected == 0:
        message = "No material weight selected"
    elif improves and not target_after:
        message = f"Removal brings capacity down to {predicted:.2f}t (target {target:.2f}t)"
    elif improves:
        message = f"Utilization drops {abs(change_pct):.1f} pts to {after_pct:.1f}%"
    elif limit_after:
        message = f"Still over limit capacity after removal ({predicted:.2f}/{limit:.2f}t)"
    elif target_after:
        message = f"Still over target capacity after removal ({predicted:.2f}/{target:.2f}t)"
    else:
        message = f"Capacity changes by {delta:.2f}t"

    return ImpactPrediction(
        original_capacity=actual,
        affected_weight=affected,
        predicted_capacity=predicted,
        capacity_delta=delta,
        utilization_change_pct=change_pct,
        exceeds_target_before=target_before,
        exceeds_target_after=target_after,
        exceeds_limit_before=limit_before,
        exceeds_limit_after=limit_after,
        improves=improves,
        risk=risk,
        message=message,
        material_details=tuple(_detail(m) for m in materials),
    )


def predict_addition(
    entry: CapacityTimelineEntry,
    material: CandidateMaterial,
    *,
    high_utilization_pct: float = DEFAULT_HIGH_UTILIZATION_PCT,
) -> ImpactPrediction:
    """Predict the day's capacity if ``material`` were moved onto it."""
    actual = entry.actual_capacity
    target = entry.target_capacity
    limit = entry.limit_capacity

    weight = material_weight(material)
    predicted = actual + weight

    before_pct = _utilization(actual, target)
    after_pct = _utilization(predicted, target)

    target_before, target_after = actual > target, predicted > target
    limit_before, limit_after = actual > limit, predicted > limit

    worsens = (not target_before and target_after) or (not limit_before and limit_after)

    if limit_after:
        risk = Risk.HIGH
    elif target_after:
        risk = Risk.MEDIUM
    else:
        risk = Risk.LOW

    if limit_after:
        message = f"Adding exceeds limit capacity ({predicted:.2f}/{limit:.2f}t)"
    elif target_after:
        message = f"Adding exceeds target capacity ({predicted:.2f}/{target:.2f}t)"
    elif after_pct > high_utilization_pct:
        message = f"High utilization after adding ({after_pct:.1f}%), proceed with care"
    else:
        message = "Safe to add, capacity stays within target"

    return ImpactPrediction(
        original_capacity=actual,
        affected_weight=weight,
        predicted_capacity=predicted,
        capacity_delta=weight,
        utilization_change_pct=after_pct - before_pct,
        exceeds_target_before=target_before,
        exceeds_target_after=target_after,
        exceeds_limit_before=limit_before,
        exceeds_limit_after=limit_after,
        improves=not worsens,
        risk=risk,
        message=message,
        material_details=(_detail(material),),
    )
