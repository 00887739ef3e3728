from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from rollplan.core.contracts import (
    aggregate_contracts,
    filter_failures,
    merge_backend_aggregates,
    sort_contract_aggregates,
    summarize_failures,
)
from rollplan.core.impact import predict_addition, predict_removal
from rollplan.core.models import (
    CapacityTimelineEntry,
    ContractAggregate,
    FailureSummary,
    ImpactPrediction,
    RollStatus,
)
from rollplan.core.timeline import DateRange, aggregate_timeline, roll_status
from rollplan.core.urgency import UrgencyTier
from rollplan.data.rows import (
    candidate_from_record,
    candidates_from_records,
    contract_aggregates_from_records,
    failure_rows_from_records,
    plan_rows_from_records,
    pool_rows_from_records,
)
from rollplan.logging_conf import configure_logging
from rollplan.settings import Settings, default_settings


def build_capacity_timeline(
    plan_records,
    pool_records,
    *,
    machines: Iterable[str] | None,
    date_range: DateRange,
    settings: Settings | None = None,
) -> list[CapacityTimelineEntry]:
    """Capacity timeline straight from raw plan-item and capacity-pool records."""
    settings = settings or default_settings()
    return aggregate_timeline(
        plan_rows_from_records(plan_records),
        pool_rows_from_records(pool_records),
        machines=machines,
        date_range=date_range,
        roll_change_threshold=settings.roll_change_threshold,
    )


def roll_status_for(entry: CapacityTimelineEntry, *, settings: Settings | None = None) -> RollStatus:
    """Roll campaign badge for an entry, using the configured warning tonnage."""
    settings = settings or default_settings()
    return roll_status(entry, warning_threshold=settings.roll_warning_threshold)


def _has_filter(urgency, fail_type) -> bool:
    def active(v) -> bool:
        return v is not None and str(getattr(v, "value", v)).upper() != "ALL"

    return active(urgency) or active(fail_type)


def build_contract_groups(
    failure_records,
    *,
    urgency: UrgencyTier | str | None = None,
    fail_type: str | None = None,
    backend_aggregates=None,
) -> list[ContractAggregate]:
    """Contract rows for the failure board, most urgent first.

    Backend-computed aggregates are only trusted for the unfiltered view; once
    a filter is active the groups are rebuilt from the filtered rows.
    """
    rows = filter_failures(failure_rows_from_records(failure_records), urgency=urgency, fail_type=fail_type)
    headers = contract_aggregates_from_records(backend_aggregates)
    if headers and not _has_filter(urgency, fail_type):
        return sort_contract_aggregates(merge_backend_aggregates(headers, rows))
    return sort_contract_aggregates(aggregate_contracts(rows))


def build_failure_summary(
    failure_records,
    *,
    urgency: UrgencyTier | str | None = None,
    fail_type: str | None = None,
) -> FailureSummary:
    rows = filter_failures(failure_rows_from_records(failure_records), urgency=urgency, fail_type=fail_type)
    return summarize_failures(rows)


def preview_removal(
    entry: CapacityTimelineEntry,
    material_records,
    *,
    settings: Settings | None = None,
) -> ImpactPrediction:
    settings = settings or default_settings()
    return predict_removal(
        entry,
        candidates_from_records(material_records),
        improvement_floor_pct=settings.improvement_floor_pct,
    )


def preview_addition(
    entry: CapacityTimelineEntry,
    material_record: Mapping[str, Any],
    *,
    settings: Settings | None = None,
) -> ImpactPrediction:
    settings = settings or default_settings()
    return predict_addition(
        entry,
        candidate_from_record(material_record),
        high_utilization_pct=settings.high_utilization_pct,
    )


def init_logging(settings: Settings | None = None, *, stream=None) -> None:
    """Configure logging for the host from ``settings.log_level``."""
    settings = settings or default_settings()
    configure_logging(settings.log_level, stream=stream)
