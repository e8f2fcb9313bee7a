# performance/services/improvement.py
"""
Improvement plans (PIP) and high-performer flags.

Both hang off one evaluation record. PIP status moves are caller-driven
(DRAFT → ACTIVE → COMPLETED, CANCELLED from DRAFT or ACTIVE); flags are a
plain upsert/delete.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction

from notifications.models import NotificationType
from notifications.services import notify_on_commit
from performance.access import Actor, require_manager_or
from performance.exceptions import (
    ConflictError,
    InvalidStateError,
    InvalidTransitionError,
    ValidationError,
)
from performance.models import (
    PIP_TRANSITIONS,
    AppraisalRecord,
    HighPerformerFlag,
    PerformanceImprovementPlan,
    PipStatus,
)
from .common import as_date, get_or_404, lock_or_404, require_text

logger = logging.getLogger(__name__)

_PIP_TEXT_FIELDS = ("title", "description", "reason", "expected_outcomes", "progress_notes", "final_outcome")
_PIP_LIST_FIELDS = ("improvement_areas", "action_items")
# still editable after the plan is closed
_PIP_NOTE_FIELDS = {"progress_notes", "final_outcome"}


def _evaluated_record(evaluation_id: int) -> AppraisalRecord:
    record = lock_or_404(AppraisalRecord, evaluation_id, "evaluation")
    if record.manager_submitted_at is None:
        raise InvalidStateError(
            "The evaluation has no manager assessment yet.", current=record.status
        )
    return record


def _as_list(value, field_name: str) -> list:
    if value is None:
        return []
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ValidationError(f"{field_name} must be a list.", details={"field": field_name})
    return list(value)


def _check_dates(plan: PerformanceImprovementPlan) -> None:
    if plan.start_date is None or plan.target_completion_date is None:
        raise ValidationError("Start and target completion dates are required.")
    if plan.target_completion_date <= plan.start_date:
        raise ValidationError(
            "Target completion date must be after the start date.",
            details={"field": "target_completion_date"},
        )
    if plan.actual_completion_date and plan.status != PipStatus.COMPLETED:
        raise ValidationError(
            "Actual completion date can only be set on a completed plan.",
            details={"field": "actual_completion_date"},
        )


def _notify_activated(plan: PerformanceImprovementPlan) -> None:
    notify_on_commit(
        plan.employee_id,
        NotificationType.PIP_ACTIVATED,
        f"A performance improvement plan '{plan.title}' is now active.",
        target=plan,
    )


# ======================================================================
# PIP
# ======================================================================

@transaction.atomic
def create_pip(
    actor: Actor,
    *,
    evaluation_id: int,
    title: str,
    reason: str,
    start_date,
    target_completion_date,
    description: str = "",
    improvement_areas=(),
    action_items=(),
    expected_outcomes: str = "",
    status: str = PipStatus.DRAFT,
) -> PerformanceImprovementPlan:
    record = _evaluated_record(evaluation_id)
    require_manager_or(actor, record.assignment, "can_manage_pips_org_wide")
    if status not in (PipStatus.DRAFT, PipStatus.ACTIVE):
        raise ValidationError("A new plan starts as DRAFT or ACTIVE.", details={"field": "status"})
    if PerformanceImprovementPlan.objects.filter(appraisal=record).exists():
        raise ConflictError("This evaluation already has an improvement plan.", details={"evaluation_id": record.pk})

    plan = PerformanceImprovementPlan(
        appraisal=record,
        employee_id=record.employee_id,
        created_by_manager_id=actor.employee_id,
        title=require_text(title, "title"),
        reason=require_text(reason, "reason"),
        description=description or "",
        improvement_areas=_as_list(improvement_areas, "improvement_areas"),
        action_items=_as_list(action_items, "action_items"),
        expected_outcomes=expected_outcomes or "",
        start_date=as_date(start_date, "start_date"),
        target_completion_date=as_date(target_completion_date, "target_completion_date"),
        status=status,
    )
    _check_dates(plan)
    plan.save()

    if plan.status == PipStatus.ACTIVE:
        _notify_activated(plan)
    logger.info("PIP %s created for employee %s (%s)", plan.pk, plan.employee_id, plan.status)
    return plan


@transaction.atomic
def update_pip(actor: Actor, pip_id: int, **changes) -> PerformanceImprovementPlan:
    plan = lock_or_404(PerformanceImprovementPlan, pip_id, "improvement plan")
    require_manager_or(actor, plan.appraisal.assignment, "can_manage_pips_org_wide")

    closed = plan.status in (PipStatus.COMPLETED, PipStatus.CANCELLED)
    if closed and set(changes) - _PIP_NOTE_FIELDS:
        raise InvalidStateError(
            f"Plan {plan.pk} is {plan.status}; only notes can change.",
            current=plan.status,
        )

    previous = plan.status
    new_status = changes.get("status", plan.status)
    if new_status != plan.status and not plan.can_transition_to(new_status):
        raise InvalidTransitionError(
            f"Plan {plan.pk} cannot move from {plan.status} to {new_status}.",
            current=plan.status,
            expected=sorted(s for s, targets in PIP_TRANSITIONS.items() if new_status in targets),
        )
    plan.status = new_status

    for attr in _PIP_TEXT_FIELDS:
        if attr in changes:
            value = changes[attr]
            setattr(plan, attr, require_text(value, attr) if attr in ("title", "reason") else (value or ""))
    for attr in _PIP_LIST_FIELDS:
        if attr in changes:
            setattr(plan, attr, _as_list(changes[attr], attr))
    for attr in ("start_date", "target_completion_date", "actual_completion_date"):
        if attr in changes:
            setattr(plan, attr, as_date(changes[attr], attr))

    _check_dates(plan)
    plan.save()

    if previous != PipStatus.ACTIVE and plan.status == PipStatus.ACTIVE:
        _notify_activated(plan)
    if previous != plan.status:
        logger.info("PIP %s: %s → %s", plan.pk, previous, plan.status)
    return plan


@transaction.atomic
def delete_pip(actor: Actor, pip_id: int) -> None:
    plan = lock_or_404(PerformanceImprovementPlan, pip_id, "improvement plan")
    require_manager_or(actor, plan.appraisal.assignment, "can_manage_pips_org_wide")
    plan.delete()
    logger.info("PIP %s deleted", pip_id)


def _pip_qs():
    return PerformanceImprovementPlan.objects.select_related("appraisal", "employee", "created_by_manager")


def list_pips(status: Optional[str] = None):
    qs = _pip_qs()
    if status:
        qs = qs.filter(status=status)
    return qs


def list_pips_for_employee(employee_id: int):
    return _pip_qs().filter(employee_id=employee_id)


def list_pips_for_manager(manager_id: int):
    return _pip_qs().filter(created_by_manager_id=manager_id)


def get_pip(pip_id: int) -> PerformanceImprovementPlan:
    return get_or_404(_pip_qs(), pip_id, "improvement plan")


def get_pip_for_appraisal(evaluation_id: int) -> Optional[PerformanceImprovementPlan]:
    return _pip_qs().filter(appraisal_id=evaluation_id).first()


# ======================================================================
# High performers
# ======================================================================

@transaction.atomic
def flag_high_performer(
    actor: Actor,
    *,
    evaluation_id: int,
    is_high_performer: bool = True,
    notes: str = "",
    promotion_recommendation: str = "",
) -> HighPerformerFlag:
    record = _evaluated_record(evaluation_id)
    require_manager_or(actor, record.assignment, "can_flag_high_performers")
    flag, created = HighPerformerFlag.objects.update_or_create(
        appraisal=record,
        defaults={
            "employee_id": record.employee_id,
            "is_high_performer": bool(is_high_performer),
            "notes": notes or "",
            "promotion_recommendation": promotion_recommendation or "",
            "flagged_by_id": actor.employee_id,
        },
    )
    logger.info("High-performer flag %s on evaluation %s", "set" if created else "updated", record.pk)
    return flag


@transaction.atomic
def unflag_high_performer(actor: Actor, evaluation_id: int) -> bool:
    record = lock_or_404(AppraisalRecord, evaluation_id, "evaluation")
    require_manager_or(actor, record.assignment, "can_flag_high_performers")
    deleted, _ = HighPerformerFlag.objects.filter(appraisal=record).delete()
    if deleted:
        logger.info("High-performer flag removed from evaluation %s", record.pk)
    return bool(deleted)


def get_flag(evaluation_id: int) -> Optional[HighPerformerFlag]:
    return HighPerformerFlag.objects.filter(appraisal_id=evaluation_id).first()


def list_high_performers(*, cycle_id: Optional[int] = None):
    qs = HighPerformerFlag.objects.select_related("appraisal", "employee").filter(is_high_performer=True)
    if cycle_id:
        qs = qs.filter(appraisal__cycle_id=cycle_id)
    return qs


def list_high_performers_for_manager(manager_id: int):
    return list_high_performers().filter(appraisal__assignment__manager_id=manager_id)
