import pytest

from rollplan.core.impact import material_status, predict_addition, predict_removal
from rollplan.core.models import (
    CandidateMaterial,
    CapacityTimelineEntry,
    MaterialStatus,
    Risk,
)
from rollplan.core.urgency import UrgencyTier


def timeline(actual=95.0, target=100.0, limit=120.0):
    return CapacityTimelineEntry(
        date="2024-01-10",
        machine_code="H032",
        target_capacity=target,
        limit_capacity=limit,
        actual_capacity=actual,
        segments=(),
        roll_campaign_progress=0.0,
        roll_change_threshold=2500.0,
    )


def mat(material_id="M1", weight=10.0, **kw):
    return CandidateMaterial(material_id=material_id, weight=weight, **kw)


def test_removal_example():
    p = predict_removal(timeline(), [mat("M1", 12.0), mat("M2", 8.0)])
    assert p.predicted_capacity == pytest.approx(75)
    assert p.capacity_delta == pytest.approx(-20)
    assert p.utilization_change_pct == pytest.approx(-20)
    assert p.exceeds_target_after is False
    assert p.risk is Risk.LOW
    assert p.improves is True
    assert p.message == "Removal brings capacity down to 75.00t (target 100.00t)"


def test_addition_example():
    p = predict_addition(timeline(), mat("M9", 30.0))
    assert p.predicted_capacity == pytest.approx(125)
    assert p.capacity_delta == pytest.approx(30)
    assert p.exceeds_limit_after is True
    assert p.risk is Risk.HIGH
    assert p.improves is False
    assert p.message == "Adding exceeds limit capacity (125.00/120.00t)"
    assert [d.material_id for d in p.material_details] == ["M9"]


def test_empty_selection_is_medium_risk_noop():
    p = predict_removal(timeline(), [])
    assert p.affected_weight == 0
    assert p.predicted_capacity == p.original_capacity == 95
    assert p.risk is Risk.MEDIUM
    assert p.improves is False
    assert p.message == "No material weight selected"
    assert p.material_details == ()


def test_missing_weights_count_as_zero():
    p = predict_removal(timeline(), [mat(weight=None), mat(weight=float("nan"))])
    assert p.affected_weight == 0
    assert p.risk is Risk.MEDIUM
    assert [d.weight for d in p.material_details] == [0.0, 0.0]


def test_removal_never_goes_below_zero():
    p = predict_removal(timeline(actual=10), [mat(weight=25)])
    assert p.predicted_capacity == 0
    assert p.capacity_delta == pytest.approx(-10)


def test_removal_monotonic_in_weight():
    entry = timeline(actual=150)
    predicted = [predict_removal(entry, [mat(weight=w)]).predicted_capacity for w in (0, 5, 50, 149, 150, 400)]
    assert predicted == sorted(predicted, reverse=True)


def test_addition_strictly_increasing_in_weight():
    entry = timeline()
    predicted = [predict_addition(entry, mat(weight=w)).predicted_capacity for w in (1, 2, 10, 100)]
    assert all(a < b for a, b in zip(predicted, predicted[1:]))


def test_removal_still_over_limit():
    p = predict_removal(timeline(actual=200), [mat(weight=2)])
    assert p.exceeds_limit_before and p.exceeds_limit_after
    assert p.improves is False
    assert p.risk is Risk.HIGH
    assert p.message == "Still over limit capacity after removal (198.00/120.00t)"


def test_removal_still_over_target():
    p = predict_removal(timeline(actual=110), [mat(weight=2)])
    assert p.risk is Risk.MEDIUM
    assert p.improves is False
    assert p.message == "Still over target capacity after removal (108.00/100.00t)"


def test_removal_resolves_limit_but_not_target():
    p = predict_removal(timeline(actual=125), [mat(weight=10)])
    assert p.exceeds_limit_before and not p.exceeds_limit_after
    assert p.exceeds_target_after
    assert p.improves is True
    assert p.risk is Risk.MEDIUM
    assert p.message == "Utilization drops 10.0 pts to 115.0%"


def test_small_removal_below_floor_is_neutral():
    p = predict_removal(timeline(actual=50), [mat(weight=3)])
    assert p.improves is False
    assert p.risk is Risk.LOW
    assert p.message == "Capacity changes by -3.00t"

    # a looser floor turns the same change into an improvement
    p = predict_removal(timeline(actual=50), [mat(weight=3)], improvement_floor_pct=-2.0)
    assert p.improves is True


def test_addition_messages():
    p = predict_addition(timeline(actual=95), mat(weight=10))
    assert p.risk is Risk.MEDIUM
    assert p.improves is False
    assert p.message == "Adding exceeds target capacity (105.00/100.00t)"

    p = predict_addition(timeline(actual=80), mat(weight=15))
    assert p.risk is Risk.LOW
    assert p.improves is True
    assert p.message == "High utilization after adding (95.0%), proceed with care"

    p = predict_addition(timeline(actual=10), mat(weight=15))
    assert p.message == "Safe to add, capacity stays within target"

    # already over target: adding more does not count as a new breach
    p = predict_addition(timeline(actual=105), mat(weight=5))
    assert p.improves is True
    assert p.risk is Risk.MEDIUM


def test_material_status_precedence():
    assert material_status(mat(is_mature=False, sched_state="SCHEDULED")) is MaterialStatus.IMMATURE
    assert material_status(mat(is_mature=True, sched_state="scheduled_caution")) is MaterialStatus.SCHEDULED
    assert material_status(mat(sched_state="READY_TO_OPERATE")) is MaterialStatus.READY
    assert material_status(mat(sched_state="LOCKED_FROZEN")) is MaterialStatus.LOCKED
    assert material_status(mat(sched_state="BLOCKED")) is MaterialStatus.OTHER
    assert material_status(mat()) is MaterialStatus.OTHER


def test_material_details_keep_input_order():
    materials = [
        mat("Z", 1, urgency_tier=UrgencyTier.L3, sched_state="READY"),
        mat("A", 2, urgency_tier=UrgencyTier.L1, sched_state="LOCKED"),
    ]
    p = predict_removal(timeline(), materials)
    assert [(d.material_id, d.weight, d.urgency_tier, d.status) for d in p.material_details] == [
        ("Z", 1, UrgencyTier.L3, MaterialStatus.READY),
        ("A", 2, UrgencyTier.L1, MaterialStatus.LOCKED),
    ]


def test_prediction_does_not_touch_timeline():
    entry = timeline()
    predict_removal(entry, [mat(weight=20)])
    predict_addition(entry, mat(weight=20))
    assert entry == timeline()


def test_removal_ignores_negative_weights():
    p = predict_removal(timeline(), [mat(weight=-10.0)])
    assert p.capacity_delta == 0
    assert p.predicted_capacity == 95
    assert p.exceeds_target_after is False
    assert p.message == "No material weight selected"

    p = predict_removal(timeline(), [mat("M1", 10.0), mat("M2", -10.0)])
    assert p.affected_weight == 10
    assert p.predicted_capacity == pytest.approx(85)
    assert p.capacity_delta <= 0
    assert p.message != "No material weight selected"


def test_zero_target_entry_does_not_raise():
    entry = timeline(actual=0, target=0, limit=0)
    p = predict_removal(entry, [])
    assert p.utilization_change_pct == 0
    assert p.risk is Risk.MEDIUM

    p = predict_addition(entry, mat(weight=5))
    assert p.utilization_change_pct == 0
    assert p.exceeds_limit_after is True
    assert p.risk is Risk.HIGH
