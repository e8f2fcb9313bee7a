# performance/services/assignments.py
"""
Assignment tracker: the per-employee unit of appraisal work.

    NOT_STARTED → IN_PROGRESS → SUBMITTED → PUBLISHED → ACKNOWLEDGED

Every move goes through `transition()`, which checks the transition table
and writes with a version compare-and-swap.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from django.db import DatabaseError, transaction
from django.utils import timezone

from hr.services import EmployeeProfile, get_employee_profiles, resolve_population
from notifications.models import NotificationType
from notifications.services import notify_on_commit
from performance.access import Actor
from performance.exceptions import (
    ConflictError,
    EmptyTargetError,
    InvalidStateError,
    InvalidTransitionError,
    PermissionDeniedError,
    ValidationError,
)
from performance.models import (
    ASSIGNMENT_TRANSITIONS,
    REMOVABLE_STATUSES,
    AppraisalAssignment,
    AppraisalCycle,
    AppraisalRecord,
    AppraisalTemplate,
    AssignmentStatus,
    CycleStatus,
)
from .common import get_or_404, lock_or_404, save_versioned

logger = logging.getLogger(__name__)

_UNSET = object()


@dataclass
class AssignmentSummary:
    """Result of a bulk assignment run (cycle activation or manual HR action)."""
    cycle_id: int
    created: list[int] = field(default_factory=list)
    skipped: list[dict] = field(default_factory=list)
    failures: list[dict] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict:
        return {
            "cycleId": self.cycle_id,
            "created": list(self.created),
            "createdCount": len(self.created),
            "skipped": list(self.skipped),
            "failures": list(self.failures),
        }


# ======================================================================
# State machine
# ======================================================================

def transition(assignment: AppraisalAssignment, to_status: str, **fields) -> AppraisalAssignment:
    if not assignment.can_transition_to(to_status):
        sources = sorted(s for s, targets in ASSIGNMENT_TRANSITIONS.items() if to_status in targets)
        raise InvalidTransitionError(
            f"Assignment {assignment.pk} cannot move from {assignment.status} to {to_status}.",
            current=assignment.status,
            expected=sources,
        )
    previous = assignment.status
    save_versioned(assignment, status=to_status, **fields)
    if previous != to_status:
        logger.info("Assignment %s: %s → %s", assignment.pk, previous, to_status)
    return assignment


def ensure_cycle_accepts_work(cycle: AppraisalCycle) -> None:
    """Nothing happens on an assignment until its cycle has finished fanning out."""
    if cycle.status == CycleStatus.PLANNED:
        raise InvalidStateError(
            f"Cycle {cycle.pk} is not active yet.",
            current=cycle.status,
            expected=[CycleStatus.ACTIVE, CycleStatus.CLOSED],
        )


def ensure_record(assignment: AppraisalAssignment) -> AppraisalRecord:
    record, created = AppraisalRecord.objects.get_or_create(
        assignment=assignment,
        defaults={
            "cycle_id": assignment.cycle_id,
            "template_id": assignment.template_id,
            "employee_id": assignment.employee_id,
            "manager_id": assignment.manager_id,
        },
    )
    if created:
        logger.debug("Draft appraisal %s opened for assignment %s", record.pk, assignment.pk)
    return record


# ======================================================================
# Creation (shared with cycle activation)
# ======================================================================

def create_assignments(
    cycle: AppraisalCycle,
    template: AppraisalTemplate,
    profiles: Iterable[EmployeeProfile],
    *,
    summary: AssignmentSummary,
    manager_id=None,
    due_date=None,
    already_assigned: Optional[set] = None,
) -> AssignmentSummary:
    """
    One NOT_STARTED assignment per profile, skipping employees the cycle already
    covers. Each row is written in its own savepoint so a bad row is reported
    instead of aborting the batch.
    """
    if already_assigned is None:
        already_assigned = set(cycle.assignments.values_list("employee_id", flat=True))
    due = due_date or cycle.manager_due_date or cycle.end_date

    for profile in profiles:
        if profile.id in already_assigned:
            summary.skipped.append({"employeeId": profile.id, "reason": "already_assigned"})
            continue
        if not profile.active:
            summary.skipped.append({"employeeId": profile.id, "reason": "inactive"})
            continue
        try:
            with transaction.atomic():
                assignment = AppraisalAssignment.objects.create(
                    cycle=cycle,
                    template=template,
                    employee_id=profile.id,
                    manager_id=manager_id or profile.manager_id,
                    department_id=profile.primary_department_id,
                    position_id=profile.primary_position_id,
                    due_date=due,
                )
        except DatabaseError as exc:
            logger.warning("Could not assign employee %s to cycle %s: %s", profile.id, cycle.pk, exc)
            summary.failures.append({"employeeId": profile.id, "error": str(exc)})
            continue
        already_assigned.add(profile.id)
        summary.created.append(assignment.pk)

    return summary


def notify_assigned(cycle: AppraisalCycle, assignment_ids: Iterable[int]) -> None:
    for employee_id in AppraisalAssignment.objects.filter(pk__in=list(assignment_ids)).values_list(
        "employee_id", flat=True
    ):
        notify_on_commit(
            employee_id,
            NotificationType.APPRAISAL_ASSIGNED,
            f"You have been assigned an appraisal in cycle '{cycle.name}'.",
            target=cycle,
        )


def _assignable_cycle(cycle_id: int) -> AppraisalCycle:
    cycle = lock_or_404(AppraisalCycle, cycle_id, "cycle")
    if cycle.status not in (CycleStatus.PLANNED, CycleStatus.ACTIVE):
        raise InvalidStateError(
            f"Cycle {cycle.pk} no longer accepts assignments.",
            current=cycle.status,
            expected=[CycleStatus.PLANNED, CycleStatus.ACTIVE],
        )
    return cycle


def _usable_template(template_id: int) -> AppraisalTemplate:
    template = AppraisalTemplate.objects.filter(pk=template_id).first()
    if template is None:
        raise ValidationError(f"Template {template_id} does not exist.", details={"field": "template_id"})
    if not template.active:
        raise ValidationError(f"Template '{template.name}' is inactive.", details={"field": "template_id"})
    return template


# ======================================================================
# Commands
# ======================================================================

@transaction.atomic
def assign_employees(
    actor: Actor,
    *,
    cycle_id: int,
    template_id: int,
    employee_ids: Iterable[int],
    manager_id: Optional[int] = None,
    due_date=None,
) -> AssignmentSummary:
    actor.require("can_assign")
    cycle = _assignable_cycle(cycle_id)
    template = _usable_template(template_id)

    ids = list(dict.fromkeys(int(i) for i in employee_ids))
    if not ids:
        raise EmptyTargetError("No employees given.")
    profiles = get_employee_profiles(ids)

    summary = AssignmentSummary(cycle_id=cycle.pk)
    for missing in (i for i in ids if i not in profiles):
        summary.failures.append({"employeeId": missing, "error": "employee_not_found"})
    create_assignments(
        cycle,
        template,
        [profiles[i] for i in ids if i in profiles],
        summary=summary,
        manager_id=manager_id,
        due_date=due_date,
    )
    if cycle.status == CycleStatus.ACTIVE:
        notify_assigned(cycle, summary.created)
    logger.info(
        "Manual assignment on cycle %s: %d created, %d skipped, %d failed",
        cycle.pk, len(summary.created), len(summary.skipped), len(summary.failures),
    )
    return summary


@transaction.atomic
def bulk_assign(
    actor: Actor,
    *,
    cycle_id: int,
    template_id: int,
    department_ids: Iterable[int] = (),
    position_ids: Iterable[int] = (),
    employee_ids: Iterable[int] = (),
    exclude_employee_ids: Iterable[int] = (),
    manager_id: Optional[int] = None,
    due_date=None,
) -> AssignmentSummary:
    actor.require("can_assign")
    cycle = _assignable_cycle(cycle_id)
    template = _usable_template(template_id)

    population = resolve_population(
        department_ids=department_ids,
        position_ids=position_ids,
        employee_ids=employee_ids,
        exclude_employee_ids=exclude_employee_ids,
    )
    if not population:
        raise EmptyTargetError("The selection resolves to no active employees.")

    summary = create_assignments(
        cycle, template, population, summary=AssignmentSummary(cycle_id=cycle.pk),
        manager_id=manager_id, due_date=due_date,
    )
    if cycle.status == CycleStatus.ACTIVE:
        notify_assigned(cycle, summary.created)
    logger.info("Bulk assignment on cycle %s: %d created", cycle.pk, len(summary.created))
    return summary


@transaction.atomic
def start_self_assessment(actor: Actor, assignment_id: int) -> AppraisalAssignment:
    assignment = lock_or_404(AppraisalAssignment, assignment_id, "assignment")
    if not actor.is_employee(assignment.employee_id):
        raise PermissionDeniedError("Only the appraised employee can start the self-assessment.")
    ensure_cycle_accepts_work(assignment.cycle)

    if assignment.status == AssignmentStatus.IN_PROGRESS:
        ensure_record(assignment)
        return assignment

    transition(assignment, AssignmentStatus.IN_PROGRESS, started_at=timezone.now())
    ensure_record(assignment)
    return assignment


@transaction.atomic
def update_assignment(
    actor: Actor,
    assignment_id: int,
    *,
    manager_id=_UNSET,
    due_date=_UNSET,
    template_id=_UNSET,
) -> AppraisalAssignment:
    actor.require("can_assign")
    assignment = lock_or_404(AppraisalAssignment, assignment_id, "assignment")
    if assignment.status in (AssignmentStatus.PUBLISHED, AssignmentStatus.ACKNOWLEDGED):
        raise InvalidStateError(
            f"Assignment {assignment.pk} is already published.",
            current=assignment.status,
        )

    changes = {}
    if template_id is not _UNSET and template_id != assignment.template_id:
        if assignment.status != AssignmentStatus.NOT_STARTED:
            raise InvalidStateError(
                "The template can only change before work starts.",
                current=assignment.status,
                expected=[AssignmentStatus.NOT_STARTED],
            )
        changes["template"] = _usable_template(template_id)
    if manager_id is not _UNSET and manager_id != assignment.manager_id:
        if manager_id is not None and manager_id == assignment.employee_id:
            raise ValidationError("An employee cannot be their own appraisal manager.")
        changes["manager_id"] = manager_id
    if due_date is not _UNSET:
        changes["due_date"] = due_date

    if not changes:
        return assignment

    save_versioned(assignment, **changes)
    if "manager_id" in changes:
        AppraisalRecord.objects.filter(assignment=assignment).update(manager_id=manager_id)
        # the version CAS is an UPDATE, so post_save never fires
        from performance.signals.ownership import grant_assignment_people_acl
        grant_assignment_people_acl(AppraisalAssignment, assignment, created=False)
    logger.info("Assignment %s updated (%s)", assignment.pk, ", ".join(sorted(changes)))
    return assignment


@transaction.atomic
def remove_assignment(actor: Actor, assignment_id: int) -> None:
    actor.require("can_assign")
    assignment = lock_or_404(AppraisalAssignment, assignment_id, "assignment")
    if assignment.status not in REMOVABLE_STATUSES:
        raise ConflictError(
            f"Assignment {assignment.pk} is {assignment.status} and can no longer be removed.",
            details={"current": assignment.status},
        )
    assignment.delete()
    logger.info("Assignment %s removed", assignment_id)


# ======================================================================
# Queries
# ======================================================================

def _base_qs():
    return AppraisalAssignment.objects.select_related(
        "cycle", "template", "employee", "manager", "department", "position"
    )


def list_for_employee(employee_id: int, *, cycle_id: Optional[int] = None):
    qs = _base_qs().filter(employee_id=employee_id)
    if cycle_id:
        qs = qs.filter(cycle_id=cycle_id)
    return qs.order_by("-cycle__start_date")


def list_for_manager(manager_id: int, *, cycle_id: Optional[int] = None, status: Optional[str] = None):
    qs = _base_qs().filter(manager_id=manager_id)
    if cycle_id:
        qs = qs.filter(cycle_id=cycle_id)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("-cycle__start_date", "employee__first_name")


def list_for_cycle(cycle_id: int, *, status: Optional[str] = None, department_id: Optional[int] = None):
    qs = _base_qs().filter(cycle_id=cycle_id)
    if status:
        qs = qs.filter(status=status)
    if department_id:
        qs = qs.filter(department_id=department_id)
    return qs.order_by("employee__first_name", "employee__last_name")


def get_assignment(assignment_id: int) -> AppraisalAssignment:
    return get_or_404(_base_qs(), assignment_id, "assignment")


def get_for_cycle_and_employee(cycle_id: int, employee_id: int) -> Optional[AppraisalAssignment]:
    return _base_qs().filter(cycle_id=cycle_id, employee_id=employee_id).first()
