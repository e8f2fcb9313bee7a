# performance/services/reports.py
"""
Report datasets for the export endpoint.

Functions return plain row dicts; `rows_to_csv` renders them for the
`format=csv` download. Rendering anything richer is left to the caller.
"""
from __future__ import annotations

import csv
import io
from typing import Iterable, Optional

from django.db.models import Prefetch

from performance.models import AppraisalAssignment, AppraisalDispute, AppraisalRecord
from .progress import lookup_cache


def _num(value) -> Optional[float]:
    return float(value) if value is not None else None


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def _assignments(cycle_id=None, department_id=None, employee_id=None, status=None):
    qs = AppraisalAssignment.objects.select_related("cycle", "template")
    if cycle_id:
        qs = qs.filter(cycle_id=cycle_id)
    if department_id:
        qs = qs.filter(department_id=department_id)
    if employee_id:
        qs = qs.filter(employee_id=employee_id)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("cycle_id", "department_id", "employee_id")


def _record(assignment) -> Optional[AppraisalRecord]:
    return assignment.latest_appraisal


def appraisal_summaries(
    cycle_id: Optional[int] = None,
    department_id: Optional[int] = None,
    employee_id: Optional[int] = None,
    status: Optional[str] = None,
) -> list[dict]:
    rows = []
    for a in _assignments(cycle_id, department_id, employee_id, status).select_related("appraisal"):
        record = _record(a)
        published = record is not None and record.is_published
        rows.append({
            "cycle": a.cycle.name,
            "employeeId": a.employee_id,
            "employee": lookup_cache.employee_name(a.employee_id),
            "department": lookup_cache.department_name(a.department_id),
            "manager": lookup_cache.employee_name(a.manager_id),
            "template": a.template.name,
            "status": a.status,
            "dueDate": _iso(a.due_date),
            "submittedAt": _iso(a.submitted_at),
            # scores only leave the system once published
            "totalScore": _num(record.total_score) if published else None,
            "ratingLabel": record.overall_rating_label if published else "",
            "publishedAt": _iso(record.hr_published_at) if record else None,
            "acknowledgedAt": _iso(record.employee_acknowledged_at) if record else None,
        })
    return rows


def outcome_report(
    cycle_id: Optional[int] = None,
    department_id: Optional[int] = None,
    include_high_performers: bool = True,
    include_pips: bool = True,
    include_disputes: bool = True,
) -> list[dict]:
    """Published appraisals with their follow-up outcomes."""
    qs = (
        _assignments(cycle_id, department_id)
        .filter(appraisal__hr_published_at__isnull=False)
        .select_related("appraisal", "appraisal__high_performer_flag", "appraisal__improvement_plan")
        .prefetch_related(
            Prefetch("appraisal__disputes", queryset=AppraisalDispute.objects.order_by("-submitted_at"))
        )
    )
    rows = []
    for a in qs:
        record = a.appraisal
        row = {
            "cycle": a.cycle.name,
            "employeeId": a.employee_id,
            "employee": lookup_cache.employee_name(a.employee_id),
            "department": lookup_cache.department_name(a.department_id),
            "status": a.status,
            "totalScore": _num(record.total_score),
            "ratingLabel": record.overall_rating_label,
        }
        if include_high_performers:
            flag = getattr(record, "high_performer_flag", None)
            row["highPerformer"] = bool(flag and flag.is_high_performer)
            row["promotionRecommendation"] = flag.promotion_recommendation if flag else ""
        if include_pips:
            plan = getattr(record, "improvement_plan", None)
            row["pipStatus"] = plan.status if plan else ""
        if include_disputes:
            disputes = list(record.disputes.all())
            row["disputeStatus"] = disputes[0].status if disputes else ""
            row["disputeCount"] = len(disputes)
        rows.append(row)
    return rows


def rows_to_csv(rows: Iterable[dict]) -> bytes:
    rows = list(rows)
    if not rows:
        return b""
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=list(rows[0].keys()), extrasaction="ignore")
    writer.writeheader()
    for row in rows:
        writer.writerow({k: "" if v is None else v for k, v in row.items()})
    return buf.getvalue().encode("utf-8")
