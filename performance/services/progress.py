# performance/services/progress.py
"""
Progress aggregator: read-side rollups over assignment state.

Display names come from `LookupCache`, a read-through cache on the Django
cache framework with a TTL and event invalidation (see
`performance.signals.cache`).
"""
from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Optional

from django.conf import settings
from django.core.cache import cache
from django.db.models import Count

from hr.services import display_name, get_department_by_id
from performance.models import AppraisalAssignment, AppraisalCycle, AssignmentStatus
from .common import get_or_404

logger = logging.getLogger(__name__)

COMPLETED_STATUSES = (AssignmentStatus.PUBLISHED, AssignmentStatus.ACKNOWLEDGED)


class LookupCache:
    """Employee / department display names, cached per id."""

    prefix = "perf:lookup"

    def __init__(self, backend=None, ttl: Optional[int] = None):
        self.backend = backend or cache
        self.ttl = ttl if ttl is not None else int(getattr(settings, "APPRAISAL_LOOKUP_CACHE_TTL", 300))

    def _key(self, kind: str, pk) -> str:
        return f"{self.prefix}:{kind}:{pk}"

    def _get(self, kind: str, pk, loader: Callable[[int], Optional[str]]) -> Optional[str]:
        if not pk:
            return None
        key = self._key(kind, pk)
        value = self.backend.get(key)
        if value is None:
            value = loader(pk)
            if value is not None:
                self.backend.set(key, value, self.ttl)
        return value

    def employee_name(self, employee_id) -> Optional[str]:
        return self._get("employee", employee_id, display_name)

    def department_name(self, department_id) -> Optional[str]:
        def load(pk):
            info = get_department_by_id(pk)
            return info.name if info else None
        return self._get("department", department_id, load)

    def invalidate_employee(self, employee_id) -> None:
        self.backend.delete(self._key("employee", employee_id))

    def invalidate_department(self, department_id) -> None:
        self.backend.delete(self._key("department", department_id))


lookup_cache = LookupCache()


def _rate(done: int, total: int) -> float:
    if not total:
        return 0.0
    pct = Decimal(done * 100) / Decimal(total)
    return float(pct.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _counts(rows) -> dict:
    by_status = {s: 0 for s in AssignmentStatus.values}
    for status, n in rows:
        by_status[status] = n
    total = sum(by_status.values())
    completed = sum(by_status[s] for s in COMPLETED_STATUSES)
    return {
        "total": total,
        "byStatus": by_status,
        "completed": completed,
        "completionRate": _rate(completed, total),
    }


def cycle_progress(cycle_id: int) -> dict:
    cycle = get_or_404(AppraisalCycle, cycle_id, "cycle")
    rows = (
        AppraisalAssignment.objects.filter(cycle=cycle)
        .values_list("status")
        .annotate(n=Count("pk"))
        .order_by()
    )
    data = _counts(rows)
    data.update({"cycleId": cycle.pk, "cycleName": cycle.name, "cycleStatus": cycle.status})
    return data


def department_breakdown(cycle_id: int, *, lookups: Optional[LookupCache] = None) -> list[dict]:
    lookups = lookups or lookup_cache
    cycle = get_or_404(AppraisalCycle, cycle_id, "cycle")
    grouped: dict = {}
    rows = (
        AppraisalAssignment.objects.filter(cycle=cycle)
        .values_list("department_id", "status")
        .annotate(n=Count("pk"))
        .order_by()
    )
    for department_id, status, n in rows:
        grouped.setdefault(department_id, []).append((status, n))

    out = []
    for department_id, status_rows in grouped.items():
        item = _counts(status_rows)
        item["departmentId"] = department_id
        item["departmentName"] = lookups.department_name(department_id) if department_id else None
        out.append(item)
    out.sort(key=lambda d: (d["departmentName"] is None, d["departmentName"] or ""))
    return out
