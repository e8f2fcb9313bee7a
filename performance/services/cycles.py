# performance/services/cycles.py
"""
Cycle manager: the appraisal calendar.

    PLANNED --activate--> ACTIVE --publish--> CLOSED --archive--> ARCHIVED

Activation fans out assignments and flips the cycle to ACTIVE only once
every assignment exists. Publishing is the one gate that makes evaluation
content visible to employees.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from django.db import DatabaseError, transaction
from django.utils import timezone

from hr.models import Department, Employee, Job
from hr.services import resolve_population
from notifications.models import NotificationType
from notifications.services import notify_on_commit
from performance.access import Actor
from performance.exceptions import (
    AppraisalError,
    EmptyTargetError,
    InvalidStateError,
    ValidationError,
)
from performance.models import (
    AppraisalAssignment,
    AppraisalCycle,
    AppraisalRecord,
    AppraisalRecordStatus,
    AppraisalTemplate,
    AssignmentStatus,
    CycleStatus,
    CycleTemplateAssignment,
    TemplateType,
)
from .assignments import AssignmentSummary, create_assignments, notify_assigned, transition
from .common import as_date, full_clean, get_or_404, lock_or_404, require_text, save_versioned

logger = logging.getLogger(__name__)


# ======================================================================
# Summaries
# ======================================================================

@dataclass
class ActivationSummary(AssignmentSummary):
    status: str = CycleStatus.PLANNED

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["status"] = str(self.status)
        return data


@dataclass
class PublishSummary:
    cycle_id: int
    status: str = CycleStatus.ACTIVE
    published: list[int] = field(default_factory=list)
    failures: list[dict] = field(default_factory=list)
    notified_employee_ids: list[int] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict:
        return {
            "cycleId": self.cycle_id,
            "status": str(self.status),
            "published": list(self.published),
            "publishedCount": len(self.published),
            "failures": list(self.failures),
            "notified": list(self.notified_employee_ids),
        }


# ======================================================================
# Input helpers
# ======================================================================

def _ids(values, field_name: str, model) -> list[int]:
    try:
        ids = list(dict.fromkeys(int(v) for v in (values or ())))
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a list of ids.", details={"field": field_name})
    if ids:
        found = set(model.objects.filter(pk__in=ids).values_list("pk", flat=True))
        unknown = [i for i in ids if i not in found]
        if unknown:
            raise ValidationError(
                f"Unknown {field_name}: {unknown}.", details={"field": field_name, "ids": unknown}
            )
    return ids


def _normalise_bindings(template_assignments: Iterable[Mapping[str, Any]]) -> list[dict]:
    bindings = []
    for idx, item in enumerate(template_assignments or ()):
        template_id = item.get("template_id")
        template = AppraisalTemplate.objects.filter(pk=template_id).first() if template_id else None
        if template is None:
            raise ValidationError(
                f"Template {template_id} does not exist.",
                details={"field": f"template_assignments[{idx}].template_id"},
            )
        if not template.active:
            raise ValidationError(
                f"Template '{template.name}' is inactive.",
                details={"field": f"template_assignments[{idx}].template_id"},
            )
        bindings.append({
            "template": template,
            "departments": _ids(item.get("department_ids"), "department_ids", Department),
            "positions": _ids(item.get("position_ids"), "position_ids", Job),
            "employees": _ids(item.get("employee_ids"), "employee_ids", Employee),
            "excluded_employees": _ids(item.get("exclude_employee_ids"), "exclude_employee_ids", Employee),
        })
    return bindings


def _replace_bindings(cycle: AppraisalCycle, bindings: list[dict]) -> None:
    cycle.template_assignments.all().delete()
    for b in bindings:
        row = CycleTemplateAssignment.objects.create(cycle=cycle, template=b["template"])
        row.departments.set(b["departments"])
        row.positions.set(b["positions"])
        row.employees.set(b["employees"])
        row.excluded_employees.set(b["excluded_employees"])


def _require_status(cycle: AppraisalCycle, *expected: str, action: str) -> None:
    if cycle.status not in expected:
        raise InvalidStateError(
            f"Cannot {action} cycle {cycle.pk} while it is {cycle.status}.",
            current=cycle.status,
            expected=list(expected),
        )


# ======================================================================
# Commands
# ======================================================================

@transaction.atomic
def create_cycle(
    actor: Actor,
    *,
    name: str,
    start_date,
    end_date,
    cycle_type: str = TemplateType.ANNUAL,
    manager_due_date=None,
    employee_acknowledgement_due_date=None,
    description: str = "",
    template_assignments: Iterable[Mapping[str, Any]] = (),
) -> AppraisalCycle:
    actor.require("can_manage_cycles")
    if cycle_type not in TemplateType.values:
        raise ValidationError(f"Unknown cycle type '{cycle_type}'.", details={"field": "cycle_type"})

    cycle = AppraisalCycle(
        name=require_text(name, "name"),
        description=description or "",
        cycle_type=cycle_type,
        start_date=as_date(start_date, "start_date"),
        end_date=as_date(end_date, "end_date"),
        manager_due_date=as_date(manager_due_date, "manager_due_date"),
        employee_acknowledgement_due_date=as_date(
            employee_acknowledgement_due_date, "employee_acknowledgement_due_date"
        ),
        status=CycleStatus.PLANNED,
        created_by_id=actor.user_id,
        updated_by_id=actor.user_id,
    )
    bindings = _normalise_bindings(template_assignments)
    full_clean(cycle)
    cycle.save()
    _replace_bindings(cycle, bindings)

    logger.info("Cycle %s '%s' created (%s → %s)", cycle.pk, cycle.name, cycle.start_date, cycle.end_date)
    return cycle


_PLANNED_ONLY_FIELDS = (
    "start_date",
    "end_date",
    "manager_due_date",
    "employee_acknowledgement_due_date",
    "cycle_type",
    "template_assignments",
)


@transaction.atomic
def update_cycle(actor: Actor, cycle_id: int, **changes) -> AppraisalCycle:
    """
    Dates, type and targets are editable while PLANNED; name and
    description while PLANNED or ACTIVE.
    """
    actor.require("can_manage_cycles")
    cycle = lock_or_404(AppraisalCycle, cycle_id, "cycle")
    _require_status(cycle, CycleStatus.PLANNED, CycleStatus.ACTIVE, action="edit")

    locked = [f for f in _PLANNED_ONLY_FIELDS if f in changes]
    if locked and cycle.status != CycleStatus.PLANNED:
        raise InvalidStateError(
            f"{', '.join(locked)} can only change while the cycle is PLANNED.",
            current=cycle.status,
            expected=[CycleStatus.PLANNED],
        )

    if "name" in changes:
        cycle.name = require_text(changes["name"], "name")
    if "description" in changes:
        cycle.description = changes["description"] or ""
    if "cycle_type" in changes:
        if changes["cycle_type"] not in TemplateType.values:
            raise ValidationError(f"Unknown cycle type '{changes['cycle_type']}'.")
        cycle.cycle_type = changes["cycle_type"]
    for attr in ("start_date", "end_date", "manager_due_date", "employee_acknowledgement_due_date"):
        if attr in changes:
            setattr(cycle, attr, as_date(changes[attr], attr))

    bindings = None
    if "template_assignments" in changes:
        bindings = _normalise_bindings(changes["template_assignments"])

    cycle.updated_by_id = actor.user_id
    full_clean(cycle)
    cycle.save()
    if bindings is not None:
        _replace_bindings(cycle, bindings)

    logger.info("Cycle %s updated (%s)", cycle.pk, ", ".join(sorted(changes)) or "no fields")
    return cycle


@transaction.atomic
def activate_cycle(actor: Actor, cycle_id: int) -> ActivationSummary:
    """
    PLANNED → ACTIVE. Resolves each template binding's population and creates
    the missing assignments. An employee matched by several bindings gets one
    assignment, from the first binding that matches.
    """
    actor.require("can_manage_cycles")
    cycle = lock_or_404(AppraisalCycle, cycle_id, "cycle")
    _require_status(cycle, CycleStatus.PLANNED, action="activate")

    bindings = list(
        cycle.template_assignments.select_related("template").prefetch_related(
            "departments", "positions", "employees", "excluded_employees"
        )
    )
    for b in bindings:
        if not b.template.active:
            raise ValidationError(
                f"Template '{b.template.name}' was deactivated; rebind the cycle before activating.",
                details={"template_id": b.template_id},
            )

    plan = []
    seen = set()
    for b in bindings:
        population = resolve_population(
            department_ids=[d.pk for d in b.departments.all()],
            position_ids=[p.pk for p in b.positions.all()],
            employee_ids=[e.pk for e in b.employees.all()],
            exclude_employee_ids=[e.pk for e in b.excluded_employees.all()],
        )
        fresh = [p for p in population if p.id not in seen]
        seen.update(p.id for p in fresh)
        plan.append((b.template, fresh))

    if not seen:
        raise EmptyTargetError(
            f"Cycle {cycle.pk} targets no active employees.", details={"cycle_id": cycle.pk}
        )

    summary = ActivationSummary(cycle_id=cycle.pk, status=cycle.status)
    already = set(cycle.assignments.values_list("employee_id", flat=True))
    for template, profiles in plan:
        create_assignments(cycle, template, profiles, summary=summary, already_assigned=already)

    if summary.failures:
        # stays PLANNED; a retry skips the rows that were created
        logger.warning(
            "Cycle %s activation incomplete: %d failures, %d created",
            cycle.pk, len(summary.failures), len(summary.created),
        )
        return summary

    cycle.status = CycleStatus.ACTIVE
    cycle.activated_at = timezone.now()
    cycle.updated_by_id = actor.user_id
    cycle.save(update_fields=["status", "activated_at", "updated_by", "updated_at"])
    summary.status = cycle.status

    notify_assigned(cycle, summary.created)
    logger.info(
        "Cycle %s activated: %d assignments created, %d skipped",
        cycle.pk, len(summary.created), len(summary.skipped),
    )
    return summary


def _publish_one(assignment: AppraisalAssignment, actor: Actor, now) -> None:
    record = AppraisalRecord.objects.select_for_update().filter(assignment=assignment).first()
    if record is None or record.manager_submitted_at is None:
        raise InvalidStateError(
            f"Assignment {assignment.pk} has no manager evaluation to publish.",
            current=record.status if record else None,
            expected=[AppraisalRecordStatus.MANAGER_SUBMITTED],
        )
    save_versioned(
        record,
        status=AppraisalRecordStatus.HR_PUBLISHED,
        hr_published_at=now,
        published_by_id=actor.employee_id,
    )
    transition(assignment, AssignmentStatus.PUBLISHED, published_at=now)


@transaction.atomic
def publish_cycle(actor: Actor, cycle_id: int) -> PublishSummary:
    """
    Publish every assignment that is SUBMITTED right now.

    The snapshot is locked up front; assignments submitted after this point
    wait for the next publish. Each item publishes in its own savepoint; the
    cycle closes only when no item failed.
    """
    actor.require("can_publish")
    cycle = lock_or_404(AppraisalCycle, cycle_id, "cycle")
    _require_status(cycle, CycleStatus.ACTIVE, action="publish")

    snapshot = list(
        AppraisalAssignment.objects.select_for_update()
        .filter(cycle=cycle, status=AssignmentStatus.SUBMITTED)
        .order_by("pk")
    )
    now = timezone.now()
    summary = PublishSummary(cycle_id=cycle.pk, status=cycle.status)

    for assignment in snapshot:
        try:
            with transaction.atomic():
                _publish_one(assignment, actor, now)
        except (AppraisalError, DatabaseError) as exc:
            logger.warning("Publish of assignment %s failed: %s", assignment.pk, exc)
            summary.failures.append({
                "assignmentId": assignment.pk,
                "employeeId": assignment.employee_id,
                "error": getattr(exc, "code", exc.__class__.__name__),
                "message": str(exc),
            })
            continue
        summary.published.append(assignment.pk)
        if assignment.employee_id not in summary.notified_employee_ids:
            summary.notified_employee_ids.append(assignment.employee_id)

    for employee_id in summary.notified_employee_ids:
        notify_on_commit(
            employee_id,
            NotificationType.APPRAISAL_PUBLISHED,
            f"Your appraisal for '{cycle.name}' has been published.",
            target=cycle,
        )

    cycle.published_at = now
    fields = ["published_at", "updated_by", "updated_at"]
    if not summary.failures:
        cycle.status = CycleStatus.CLOSED
        cycle.closed_at = now
        fields += ["status", "closed_at"]
    cycle.updated_by_id = actor.user_id
    cycle.save(update_fields=fields)
    summary.status = cycle.status

    logger.info(
        "Cycle %s publish: %d published, %d failed, status=%s",
        cycle.pk, len(summary.published), len(summary.failures), cycle.status,
    )
    return summary


@transaction.atomic
def publish_assignment(actor: Actor, assignment_id: int) -> AppraisalAssignment:
    """
    Publish one SUBMITTED assignment outside the cycle-wide run.

    Covers evaluations submitted after the cycle was closed; the cycle status
    is left as it is.
    """
    actor.require("can_publish")
    assignment = lock_or_404(AppraisalAssignment, assignment_id, "assignment")
    cycle = lock_or_404(AppraisalCycle, assignment.cycle_id, "cycle")
    _require_status(cycle, CycleStatus.ACTIVE, CycleStatus.CLOSED, action="publish assignments of")
    if assignment.status != AssignmentStatus.SUBMITTED:
        raise InvalidStateError(
            f"Assignment {assignment.pk} is {assignment.status}.",
            current=assignment.status,
            expected=[AssignmentStatus.SUBMITTED],
        )

    _publish_one(assignment, actor, timezone.now())
    notify_on_commit(
        assignment.employee_id,
        NotificationType.APPRAISAL_PUBLISHED,
        f"Your appraisal for '{cycle.name}' has been published.",
        target=cycle,
    )
    logger.info("Assignment %s published individually (cycle %s, %s)", assignment.pk, cycle.pk, cycle.status)
    return assignment


@transaction.atomic
def archive_cycle(actor: Actor, cycle_id: int) -> AppraisalCycle:
    actor.require("can_manage_cycles")
    cycle = lock_or_404(AppraisalCycle, cycle_id, "cycle")
    _require_status(cycle, CycleStatus.CLOSED, action="archive")
    cycle.status = CycleStatus.ARCHIVED
    cycle.archived_at = timezone.now()
    cycle.updated_by_id = actor.user_id
    cycle.save(update_fields=["status", "archived_at", "updated_by", "updated_at"])
    logger.info("Cycle %s archived", cycle.pk)
    return cycle


@transaction.atomic
def delete_cycle(actor: Actor, cycle_id: int) -> None:
    actor.require("can_manage_cycles")
    cycle = lock_or_404(AppraisalCycle, cycle_id, "cycle")
    _require_status(cycle, CycleStatus.PLANNED, action="delete")
    # rows left by an interrupted activation; nobody could have worked on them
    cycle.assignments.all().delete()
    cycle.delete()
    logger.info("Cycle %s deleted", cycle_id)


# ======================================================================
# Queries
# ======================================================================

def list_cycles(status: Optional[str] = None):
    qs = AppraisalCycle.objects.prefetch_related("template_assignments__template")
    if status:
        qs = qs.filter(status=status)
    return qs


def get_cycle(cycle_id: int) -> AppraisalCycle:
    return get_or_404(
        AppraisalCycle.objects.prefetch_related(
            "template_assignments__template",
            "template_assignments__departments",
            "template_assignments__positions",
            "template_assignments__employees",
            "template_assignments__excluded_employees",
        ),
        cycle_id,
        "cycle",
    )
