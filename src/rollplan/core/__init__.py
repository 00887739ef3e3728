"""Core analytics package.

Pure aggregation over already-fetched scheduling rows: capacity timelines,
contract failure roll-ups and what-if capacity impact. Nothing in here does
I/O or keeps state between calls.
"""

from rollplan.core.contracts import aggregate_contracts, sort_contract_aggregates
from rollplan.core.impact import predict_addition, predict_removal
from rollplan.core.models import (
    CandidateMaterial,
    CapacityPoolRow,
    CapacityTimelineEntry,
    ContractAggregate,
    ImpactPrediction,
    MaterialFailureRow,
    PlanAssignmentRow,
    Risk,
)
from rollplan.core.timeline import aggregate_timeline
from rollplan.core.urgency import UrgencyBucket, UrgencyTier

__all__ = [
    "CandidateMaterial",
    "CapacityPoolRow",
    "CapacityTimelineEntry",
    "ContractAggregate",
    "ImpactPrediction",
    "MaterialFailureRow",
    "PlanAssignmentRow",
    "Risk",
    "UrgencyBucket",
    "UrgencyTier",
    "aggregate_contracts",
    "aggregate_timeline",
    "predict_addition",
    "predict_removal",
    "sort_contract_aggregates",
]
