from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from rollplan.core.urgency import UrgencyTier


@dataclass(frozen=True)
class PlanAssignmentRow:
    machine_code: str
    plan_date: str  # ISO YYYY-MM-DD
    weight: float
    material_id: str = ""
    urgency_tier: UrgencyTier = UrgencyTier.L0


@dataclass(frozen=True)
class CapacityPoolRow:
    machine_code: str
    plan_date: str
    # None when the backend did not send a usable number
    used_capacity: float | None = None
    target_capacity: float | None = None
    limit_capacity: float | None = None
    accumulated_tonnage: float | None = None


@dataclass(frozen=True)
class TimelineSegment:
    urgency_tier: UrgencyTier
    tonnage: float
    material_count: int


@dataclass(frozen=True)
class CapacityTimelineEntry:
    date: str
    machine_code: str
    target_capacity: float
    limit_capacity: float
    actual_capacity: float
    segments: tuple[TimelineSegment, ...]  # L3 -> L0
    roll_campaign_progress: float
    roll_change_threshold: float
    material_ids: frozenset[str] = frozenset()


class RollStatus(Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class MaterialFailureRow:
    material_id: str
    contract_no: str
    urgency_tier: UrgencyTier
    due_date: str
    days_to_due: int
    is_scheduled: bool
    unscheduled_weight: float = 0.0
    fail_type: str = "Other"
    machine_code: str = ""
    weight: float = 0.0

    @property
    def is_overdue(self) -> bool:
        return self.days_to_due < 0


@dataclass(frozen=True)
class ContractAggregate:
    contract_no: str
    material_count: int
    unscheduled_count: int
    overdue_count: int
    earliest_due_date: str
    max_urgency_tier: UrgencyTier
    representative_material_id: str
    materials: tuple[MaterialFailureRow, ...] = ()

    @property
    def representative(self) -> MaterialFailureRow | None:
        for row in self.materials:
            if row.material_id == self.representative_material_id:
                return row
        return self.materials[0] if self.materials else None


@dataclass(frozen=True)
class TypeCount:
    type_name: str
    count: int
    weight: float


@dataclass(frozen=True)
class FailureSummary:
    """Header figures for the failure board."""
    total_failed_materials: int
    total_failed_contracts: int
    overdue_materials: int
    unscheduled_materials: int
    total_unscheduled_weight: float
    by_urgency: tuple[TypeCount, ...] = ()
    by_fail_type: tuple[TypeCount, ...] = ()


@dataclass(frozen=True)
class CandidateMaterial:
    """A material picked interactively for a what-if preview."""
    material_id: str
    weight: float | None = None
    urgency_tier: UrgencyTier = UrgencyTier.L0
    is_mature: bool | None = None
    sched_state: str = ""


class Risk(Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class MaterialStatus(Enum):
    IMMATURE = "immature"
    SCHEDULED = "scheduled"
    READY = "ready"
    LOCKED = "locked"
    OTHER = "other"


@dataclass(frozen=True)
class MaterialDetail:
    material_id: str
    weight: float
    urgency_tier: UrgencyTier
    status: MaterialStatus


@dataclass(frozen=True)
class ImpactPrediction:
    original_capacity: float
    affected_weight: float
    predicted_capacity: float
    capacity_delta: float  # negative = capacity released
    utilization_change_pct: float  # percentage points
    exceeds_target_before: bool
    exceeds_target_after: bool
    exceeds_limit_before: bool
    exceeds_limit_after: bool
    improves: bool
    risk: Risk
    message: str
    material_details: tuple[MaterialDetail, ...] = field(default_factory=tuple)
