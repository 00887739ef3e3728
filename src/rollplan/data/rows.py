"""Typed rows from raw backend records.

Records arrive as dicts (IPC payloads, camelCase or snake_case keys) or as
pandas DataFrames read from exports. Keys are normalized with
``normalize_col_name`` and looked up through a small alias table, so
``weight_t``, ``weightT`` and ``weight`` all land in ``PlanAssignmentRow.weight``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import pandas as pd

from rollplan.core.models import (
    CandidateMaterial,
    CapacityPoolRow,
    ContractAggregate,
    MaterialFailureRow,
    PlanAssignmentRow,
)
from rollplan.core.urgency import UrgencyTier
from rollplan.data.coerce import (
    clean_key,
    coerce_iso_date,
    normalize_col_name,
    to_bool,
    to_finite_float,
    to_int,
)

logger = logging.getLogger(__name__)

Record = dict[str, Any]

# field -> accepted (normalized) source keys, first match wins
ALIASES: dict[str, tuple[str, ...]] = {
    "machine_code": ("machine_code", "machine"),
    "plan_date": ("plan_date", "date"),
    "material_id": ("material_id",),
    "urgency_tier": ("urgency_tier", "urgent_level", "urgency_level"),
    "weight": ("weight_t", "weight"),
    "used_capacity": ("used_capacity_t", "used_capacity"),
    "target_capacity": ("target_capacity_t", "target_capacity"),
    "limit_capacity": ("limit_capacity_t", "limit_capacity"),
    "accumulated_tonnage": ("accumulated_tonnage_t", "accumulated_tonnage"),
    "contract_no": ("contract_no",),
    "due_date": ("due_date",),
    "days_to_due": ("days_to_due",),
    "is_scheduled": ("is_scheduled",),
    "unscheduled_weight": ("unscheduled_weight_t", "unscheduled_weight"),
    "fail_type": ("fail_type",),
    "is_mature": ("is_mature",),
    "sched_state": ("sched_state",),
    "material_count": ("material_count",),
    "unscheduled_count": ("unscheduled_count",),
    "overdue_count": ("overdue_count",),
    "earliest_due_date": ("earliest_due_date",),
    "max_urgency_tier": ("max_urgency_tier", "max_urgency_level"),
    "representative_material_id": ("representative_material_id",),
}


def records_from(source) -> list[Record]:
    """Normalize a DataFrame or an iterable of mappings into plain dicts.

    Column/key names are normalized; DataFrame ``NaN``/``NaT`` become ``None``.
    """
    if source is None:
        return []
    if isinstance(source, pd.DataFrame):
        df = source.copy()
        df.columns = [normalize_col_name(c) for c in df.columns]
        df = df.astype(object).where(pd.notna(df), None)
        return df.to_dict(orient="records")

    records: list[Record] = []
    for item in source:
        if isinstance(item, Mapping):
            records.append({normalize_col_name(k): v for k, v in item.items()})
        else:
            logger.debug("Skipping non-mapping record of type %s", type(item).__name__)
    return records


def _get(record: Record, name: str, default=None):
    for key in ALIASES.get(name, (name,)):
        if key in record and record[key] is not None:
            return record[key]
    return default


def plan_rows_from_records(source) -> list[PlanAssignmentRow]:
    """Rows without machine code or with an unparsable plan date are dropped.

    Weight is kept as sent (``nan`` when unusable); the aggregator decides
    what counts as noise.
    """
    rows: list[PlanAssignmentRow] = []
    dropped = 0
    for rec in records_from(source):
        machine = clean_key(_get(rec, "machine_code"))
        plan_date = coerce_iso_date(_get(rec, "plan_date"))
        if not machine or not plan_date:
            dropped += 1
            continue
        weight = to_finite_float(_get(rec, "weight"))
        rows.append(
            PlanAssignmentRow(
                machine_code=machine,
                plan_date=plan_date,
                weight=weight if weight is not None else float("nan"),
                material_id=clean_key(_get(rec, "material_id")),
                urgency_tier=UrgencyTier.parse(_get(rec, "urgency_tier")),
            )
        )
    if dropped:
        logger.debug("Dropped %d plan records without machine/date", dropped)
    return rows


def pool_rows_from_records(source) -> list[CapacityPoolRow]:
    rows: list[CapacityPoolRow] = []
    dropped = 0
    for rec in records_from(source):
        machine = clean_key(_get(rec, "machine_code"))
        plan_date = coerce_iso_date(_get(rec, "plan_date"))
        if not machine or not plan_date:
            dropped += 1
            continue
        rows.append(
            CapacityPoolRow(
                machine_code=machine,
                plan_date=plan_date,
                used_capacity=to_finite_float(_get(rec, "used_capacity")),
                target_capacity=to_finite_float(_get(rec, "target_capacity")),
                limit_capacity=to_finite_float(_get(rec, "limit_capacity")),
                accumulated_tonnage=to_finite_float(_get(rec, "accumulated_tonnage")),
            )
        )
    if dropped:
        logger.debug("Dropped %d capacity pool records without machine/date", dropped)
    return rows


def failure_rows_from_records(source) -> list[MaterialFailureRow]:
    """Every record becomes a row; empty contract numbers are left to the aggregator."""
    rows: list[MaterialFailureRow] = []
    for rec in records_from(source):
        unscheduled_weight = to_finite_float(_get(rec, "unscheduled_weight"))
        weight = to_finite_float(_get(rec, "weight"))
        rows.append(
            MaterialFailureRow(
                material_id=clean_key(_get(rec, "material_id")),
                contract_no=clean_key(_get(rec, "contract_no")),
                urgency_tier=UrgencyTier.parse(_get(rec, "urgency_tier")),
                due_date=coerce_iso_date(_get(rec, "due_date")) or "",
                days_to_due=to_int(_get(rec, "days_to_due"), default=0),
                is_scheduled=bool(to_bool(_get(rec, "is_scheduled"))),
                unscheduled_weight=unscheduled_weight if unscheduled_weight is not None else 0.0,
                fail_type=clean_key(_get(rec, "fail_type")) or "Other",
                machine_code=clean_key(_get(rec, "machine_code")),
                weight=weight if weight is not None else 0.0,
            )
        )
    return rows


def contract_aggregates_from_records(source) -> list[ContractAggregate]:
    """Backend-computed contract headers (no material rows attached)."""
    aggs: list[ContractAggregate] = []
    for rec in records_from(source):
        contract_no = clean_key(_get(rec, "contract_no"))
        if not contract_no:
            continue
        aggs.append(
            ContractAggregate(
                contract_no=contract_no,
                material_count=to_int(_get(rec, "material_count")),
                unscheduled_count=to_int(_get(rec, "unscheduled_count")),
                overdue_count=to_int(_get(rec, "overdue_count")),
                earliest_due_date=coerce_iso_date(_get(rec, "earliest_due_date")) or "",
                max_urgency_tier=UrgencyTier.parse(_get(rec, "max_urgency_tier")),
                representative_material_id=clean_key(_get(rec, "representative_material_id")),
            )
        )
    return aggs


def candidate_from_record(rec: Mapping[str, Any]) -> CandidateMaterial:
    rec = {normalize_col_name(k): v for k, v in rec.items()}
    return CandidateMaterial(
        material_id=clean_key(_get(rec, "material_id")),
        weight=to_finite_float(_get(rec, "weight")),
        urgency_tier=UrgencyTier.parse(_get(rec, "urgency_tier")),
        is_mature=to_bool(_get(rec, "is_mature")),
        sched_state=clean_key(_get(rec, "sched_state")),
    )


def candidates_from_records(source: Iterable[Mapping[str, Any]] | pd.DataFrame | None) -> list[CandidateMaterial]:
    return [candidate_from_record(rec) for rec in records_from(source)]
