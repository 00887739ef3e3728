"""Per-contract roll-up of material failure rows.

The representative material of a contract is chosen by a total order, so the
same rows give the same representative whatever order they arrive in:

1. unscheduled before scheduled
2. higher urgency tier first
3. earlier due date first
4. smaller material id first
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from rollplan.core.models import ContractAggregate, FailureSummary, MaterialFailureRow, TypeCount
from rollplan.core.urgency import TIERS_BY_SEVERITY, UrgencyTier
from rollplan.data.coerce import clean_key, to_finite_float

logger = logging.getLogger(__name__)

# Rows without a due date sort after every real date
_NO_DUE_DATE = "9999-12-31"


def representative_key(row: MaterialFailureRow) -> tuple[int, int, str, str]:
    """Sort key of a row as a representative candidate; smaller wins."""
    return (
        1 if row.is_scheduled else 0,
        -UrgencyTier.parse(row.urgency_tier).rank,
        row.due_date or _NO_DUE_DATE,
        row.material_id,
    )


@dataclass
class _ContractFold:
    contract_no: str
    material_count: int = 0
    unscheduled_count: int = 0
    overdue_count: int = 0
    earliest_due_date: str = ""
    max_urgency_tier: UrgencyTier = UrgencyTier.L0
    representative: MaterialFailureRow | None = None
    materials: list[MaterialFailureRow] = field(default_factory=list)

    def add(self, row: MaterialFailureRow) -> None:
        self.material_count += 1
        if not row.is_scheduled:
            self.unscheduled_count += 1
        if row.days_to_due < 0:
            self.overdue_count += 1
        # ISO dates: lexicographic == chronological
        if row.due_date and (not self.earliest_due_date or row.due_date < self.earliest_due_date):
            self.earliest_due_date = row.due_date
        tier = UrgencyTier.parse(row.urgency_tier)
        if tier > self.max_urgency_tier:
            self.max_urgency_tier = tier
        if self.representative is None or representative_key(row) < representative_key(self.representative):
            self.representative = row
        self.materials.append(row)

    def freeze(self) -> ContractAggregate:
        return ContractAggregate(
            contract_no=self.contract_no,
            material_count=self.material_count,
            unscheduled_count=self.unscheduled_count,
            overdue_count=self.overdue_count,
            earliest_due_date=self.earliest_due_date,
            max_urgency_tier=self.max_urgency_tier,
            representative_material_id=self.representative.material_id if self.representative else "",
            materials=tuple(self.materials),
        )


def aggregate_contracts(failure_rows: Iterable[MaterialFailureRow]) -> list[ContractAggregate]:
    """Fold failure rows into one aggregate per non-empty contract number.

    Aggregates come back in first-seen order; use ``sort_contract_aggregates``
    for display. Each aggregate keeps its rows in arrival order.
    """
    folds: dict[str, _ContractFold] = {}
    skipped = 0
    for row in failure_rows:
        contract_no = clean_key(row.contract_no)
        if not contract_no:
            skipped += 1
            continue
        fold = folds.get(contract_no)
        if fold is None:
            fold = folds[contract_no] = _ContractFold(contract_no=contract_no)
        fold.add(row)

    aggregates = [fold.freeze() for fold in folds.values()]
    logger.debug("%d contract aggregates (%d rows without contract skipped)", len(aggregates), skipped)
    return aggregates


def contract_sort_key(agg: ContractAggregate) -> tuple[int, int, str, str]:
    return (-agg.unscheduled_count, -agg.overdue_count, agg.earliest_due_date, agg.contract_no)


def sort_contract_aggregates(aggregates: Iterable[ContractAggregate]) -> list[ContractAggregate]:
    """Most operationally urgent contracts first; no ties left unresolved."""
    return sorted(aggregates, key=contract_sort_key)


def filter_failures(
    rows: Iterable[MaterialFailureRow],
    *,
    urgency: UrgencyTier | str | None = None,
    fail_type: str | None = None,
) -> list[MaterialFailureRow]:
    """Apply the board's urgency/fail-type filters. ``None`` or ``"ALL"`` = no filter."""
    result = list(rows)
    if urgency is not None and str(getattr(urgency, "value", urgency)).upper() != "ALL":
        tier = UrgencyTier.parse(urgency)
        result = [r for r in result if UrgencyTier.parse(r.urgency_tier) is tier]
    if fail_type is not None and fail_type.upper() != "ALL":
        result = [r for r in result if r.fail_type == fail_type]
    return result


def _unscheduled_weight(row: MaterialFailureRow) -> float:
    w = to_finite_float(row.unscheduled_weight)
    return w if w is not None and w > 0 else 0.0


def summarize_failures(rows: Iterable[MaterialFailureRow]) -> FailureSummary:
    rows = list(rows)

    by_tier: dict[UrgencyTier, list[float]] = {tier: [0, 0.0] for tier in UrgencyTier}
    by_type: dict[str, list[float]] = {}
    contracts: set[str] = set()
    overdue = unscheduled = 0
    total_weight = 0.0

    for row in rows:
        weight = _unscheduled_weight(row)
        contract_no = clean_key(row.contract_no)
        if contract_no:
            contracts.add(contract_no)
        if row.days_to_due < 0:
            overdue += 1
        if not row.is_scheduled:
            unscheduled += 1
        total_weight += weight

        tier_acc = by_tier[UrgencyTier.parse(row.urgency_tier)]
        tier_acc[0] += 1
        tier_acc[1] += weight
        type_acc = by_type.setdefault(row.fail_type or "Other", [0, 0.0])
        type_acc[0] += 1
        type_acc[1] += weight

    return FailureSummary(
        total_failed_materials=len(rows),
        total_failed_contracts=len(contracts),
        overdue_materials=overdue,
        unscheduled_materials=unscheduled,
        total_unscheduled_weight=total_weight,
        by_urgency=tuple(
            TypeCount(type_name=tier.value, count=int(by_tier[tier][0]), weight=by_tier[tier][1])
            for tier in TIERS_BY_SEVERITY
        ),
        by_fail_type=tuple(
            TypeCount(type_name=name, count=int(acc[0]), weight=acc[1])
            for name, acc in sorted(by_type.items(), key=lambda kv: (-kv[1][0], kv[0]))
        ),
    )


def merge_backend_aggregates(
    aggregates: Iterable[ContractAggregate],
    rows: Iterable[MaterialFailureRow],
) -> list[ContractAggregate]:
    """Attach material rows to backend-computed contract headers.

    The backend's counts and representative id are kept as sent; only the
    ``materials`` detail list is filled from ``rows`` (arrival order).
    """
    rows_by_contract: dict[str, list[MaterialFailureRow]] = {}
    for row in rows:
        contract_no = clean_key(row.contract_no)
        if contract_no:
            rows_by_contract.setdefault(contract_no, []).append(row)

    return [
        replace(agg, materials=tuple(rows_by_contract.get(agg.contract_no, ())))
        for agg in aggregates
    ]
