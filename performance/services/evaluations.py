# performance/services/evaluations.py
"""
Evaluation recorder: self-assessment, manager evaluation, acknowledgment.

The assignment and its AppraisalRecord move together; both rows are
locked and written through their version counters.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Iterable, Optional

from django.db import transaction
from django.utils import timezone

from notifications.models import NotificationType
from notifications.services import notify_on_commit
from performance.access import Actor, require_manager_or
from performance.exceptions import (
    ConflictError,
    InvalidStateError,
    InvalidTransitionError,
    NotPublishedError,
    PermissionDeniedError,
    ValidationError,
)
from performance.models import (
    AppraisalAssignment,
    AppraisalRating,
    AppraisalRecord,
    AppraisalRecordStatus,
    AssignmentStatus,
)
from .assignments import ensure_cycle_accepts_work, ensure_record, transition
from .common import get_or_404, lock_or_404, save_versioned
from .scoring import label_for, score_sections, to_decimal
from .stages import Evaluation, stage_of

logger = logging.getLogger(__name__)

# manager may evaluate from any of these; PUBLISHED/ACKNOWLEDGED are re-edits
MANAGER_EDITABLE = (
    AssignmentStatus.NOT_STARTED,
    AssignmentStatus.IN_PROGRESS,
    AssignmentStatus.SUBMITTED,
    AssignmentStatus.PUBLISHED,
    AssignmentStatus.ACKNOWLEDGED,
)


def _sections(sections) -> list[dict]:
    if sections is None:
        return []
    if isinstance(sections, Mapping) or not isinstance(sections, Iterable) or isinstance(sections, str):
        raise ValidationError("sections must be a list of objects.", details={"field": "sections"})
    out = []
    for s in sections:
        if not isinstance(s, Mapping):
            raise ValidationError("sections must be a list of objects.", details={"field": "sections"})
        out.append(dict(s))
    return out


def _check_version(obj, expected_version: Optional[int]) -> None:
    if expected_version is not None and int(expected_version) != obj.version:
        raise ConflictError(
            f"{obj._meta.verbose_name.capitalize()} {obj.pk} changed since it was read.",
            details={"expected": int(expected_version), "current": obj.version},
        )


def _lock_record(assignment: AppraisalAssignment) -> AppraisalRecord:
    record = ensure_record(assignment)
    return AppraisalRecord.objects.select_for_update().get(pk=record.pk)


# ======================================================================
# Self-assessment
# ======================================================================

@transaction.atomic
def submit_self_assessment(
    actor: Actor,
    assignment_id: int,
    sections,
    overall_comments: str = "",
    *,
    expected_version: Optional[int] = None,
) -> AppraisalRecord:
    """
    IN_PROGRESS → SUBMITTED. While SUBMITTED and before the manager has
    evaluated, re-submitting overwrites the content (idempotent).
    """
    assignment = lock_or_404(AppraisalAssignment, assignment_id, "assignment")
    if not actor.is_employee(assignment.employee_id):
        raise PermissionDeniedError("Only the appraised employee can submit a self-assessment.")
    ensure_cycle_accepts_work(assignment.cycle)

    if assignment.status == AssignmentStatus.NOT_STARTED:
        raise InvalidTransitionError(
            "Start the self-assessment before submitting it.",
            current=assignment.status,
            expected=[AssignmentStatus.IN_PROGRESS, AssignmentStatus.SUBMITTED],
        )
    if assignment.status not in (AssignmentStatus.IN_PROGRESS, AssignmentStatus.SUBMITTED):
        raise InvalidTransitionError(
            f"Self-assessment is closed for assignment {assignment.pk}.",
            current=assignment.status,
            expected=[AssignmentStatus.IN_PROGRESS, AssignmentStatus.SUBMITTED],
        )

    record = _lock_record(assignment)
    if record.manager_submitted_at is not None:
        raise InvalidStateError(
            "The manager has already evaluated this appraisal.",
            current=record.status,
            expected=[AppraisalRecordStatus.DRAFT, AppraisalRecordStatus.SELF_SUBMITTED],
        )
    _check_version(record, expected_version)

    now = timezone.now()
    first_submit = record.self_submitted_at is None
    save_versioned(
        record,
        self_assessment={"sections": _sections(sections), "overall_comments": overall_comments or ""},
        self_submitted_at=now,
        status=AppraisalRecordStatus.SELF_SUBMITTED,
    )
    transition(assignment, AssignmentStatus.SUBMITTED, submitted_at=assignment.submitted_at or now)

    if first_submit and assignment.manager_id:
        notify_on_commit(
            assignment.manager_id,
            NotificationType.APPRAISAL_SUBMITTED,
            f"{assignment.employee} submitted a self-assessment for '{assignment.cycle.name}'.",
            target=assignment,
        )
    logger.info("Self-assessment %s for assignment %s", "submitted" if first_submit else "re-submitted", assignment.pk)
    return record


# ======================================================================
# Manager evaluation
# ======================================================================

def _write_ratings(record: AppraisalRecord, card) -> None:
    record.ratings.all().delete()
    AppraisalRating.objects.bulk_create([
        AppraisalRating(
            appraisal=record,
            key=item.key,
            title=item.title,
            rating_value=item.rating_value,
            rating_label=item.rating_label,
            weight=item.weight,
            weighted_score=item.weighted_score,
            comments=item.comments,
            is_missing=item.is_missing,
        )
        for item in card.items
    ])


def _update_rating_comments(record: AppraisalRecord, sections: list[dict]) -> list[str]:
    changed = []
    for s in sections:
        key = str(s.get("key") or "")
        if "comments" not in s or not key:
            continue
        if record.ratings.filter(key=key).exclude(comments=s["comments"] or "").update(comments=s["comments"] or ""):
            changed.append(key)
    return changed


@transaction.atomic
def submit_manager_evaluation(
    actor: Actor,
    assignment_id: int,
    sections,
    final_rating=None,
    *,
    overall_rating_label: Optional[str] = None,
    manager_summary: Optional[str] = None,
    strengths: Optional[str] = None,
    improvement_areas: Optional[str] = None,
    development_recommendations: Optional[str] = None,
    expected_version: Optional[int] = None,
) -> AppraisalRecord:
    """
    Record the manager's ratings and narrative.

    Before publish the weighted score is (re)computed. Once published, or once
    a dispute adjusted it, the score stays frozen: only narrative fields and
    rating comments change, the assignment holds its status and an audit note
    is appended.
    """
    assignment = lock_or_404(AppraisalAssignment, assignment_id, "assignment")
    require_manager_or(actor, assignment, "can_publish")
    if actor.is_employee(assignment.employee_id) and not actor.can("can_publish"):
        raise PermissionDeniedError("Employees cannot evaluate themselves.")
    ensure_cycle_accepts_work(assignment.cycle)
    if assignment.status not in MANAGER_EDITABLE:
        raise InvalidTransitionError(current=assignment.status, expected=list(MANAGER_EDITABLE))

    record = _lock_record(assignment)
    _check_version(record, expected_version)
    sections = _sections(sections)
    now = timezone.now()

    narrative = {
        name: value or ""
        for name, value in (
            ("manager_summary", manager_summary),
            ("strengths", strengths),
            ("improvement_areas", improvement_areas),
            ("development_recommendations", development_recommendations),
        )
        if value is not None
    }

    if record.score_frozen:
        changed_comments = _update_rating_comments(record, sections)
        record.append_audit(
            "manager_reedit",
            "Manager edited a published evaluation; score left unchanged."
            + (f" Comments changed on: {', '.join(changed_comments)}." if changed_comments else ""),
            by=actor.employee_id,
        )
        save_versioned(record, manager_submitted_at=now, audit_notes=record.audit_notes, **narrative)
        if assignment.status == AssignmentStatus.PUBLISHED:
            transition(assignment, AssignmentStatus.PUBLISHED)
        else:
            save_versioned(assignment)
        logger.info("Assignment %s: manager re-edit after publish (score frozen)", assignment.pk)
        return record

    template = assignment.template
    card = score_sections(template, sections)
    final = to_decimal(final_rating, field_name="final_rating")
    if final is not None and (final < template.scale_min or final > template.scale_max):
        raise ValidationError(
            f"Final rating must be between {template.scale_min} and {template.scale_max}.",
            details={"field": "final_rating"},
        )
    label = overall_rating_label or label_for(template, final if final is not None else card.total_score)

    _write_ratings(record, card)
    save_versioned(
        record,
        status=AppraisalRecordStatus.MANAGER_SUBMITTED,
        total_score=card.total_score,
        final_rating=final if final is not None else card.total_score,
        overall_rating_label=label,
        manager_submitted_at=now,
        manager_id=assignment.manager_id or actor.employee_id,
        **narrative,
    )

    if assignment.status in (AssignmentStatus.NOT_STARTED, AssignmentStatus.IN_PROGRESS):
        transition(assignment, AssignmentStatus.SUBMITTED, submitted_at=now)
    else:
        transition(assignment, AssignmentStatus.SUBMITTED)

    if card.missing_keys:
        logger.debug("Assignment %s evaluated with unrated criteria: %s", assignment.pk, card.missing_keys)
    logger.info("Assignment %s: manager evaluation recorded, total=%s", assignment.pk, card.total_score)
    return record


# ======================================================================
# Acknowledgment / view
# ======================================================================

@transaction.atomic
def acknowledge_evaluation(actor: Actor, evaluation_id: int, comment: Optional[str] = None) -> AppraisalRecord:
    record = lock_or_404(AppraisalRecord, evaluation_id, "evaluation")
    assignment = lock_or_404(AppraisalAssignment, record.assignment_id, "assignment")
    if not actor.is_employee(record.employee_id):
        raise PermissionDeniedError("Only the appraised employee can acknowledge the evaluation.")

    if assignment.status != AssignmentStatus.PUBLISHED:
        message = (
            "The evaluation was already acknowledged."
            if assignment.status == AssignmentStatus.ACKNOWLEDGED
            else "The evaluation has not been published yet."
        )
        raise NotPublishedError(message, current=assignment.status, expected=[AssignmentStatus.PUBLISHED])

    now = timezone.now()
    save_versioned(
        record,
        status=AppraisalRecordStatus.ACKNOWLEDGED,
        employee_acknowledged_at=now,
        employee_acknowledgement_comment=comment or "",
        employee_viewed_at=record.employee_viewed_at or now,
    )
    transition(assignment, AssignmentStatus.ACKNOWLEDGED, acknowledged_at=now)

    if assignment.manager_id:
        notify_on_commit(
            assignment.manager_id,
            NotificationType.APPRAISAL_ACKNOWLEDGED,
            f"{assignment.employee} acknowledged their appraisal.",
            target=record,
        )
    logger.info("Evaluation %s acknowledged", record.pk)
    return record


def mark_viewed(actor: Actor, evaluation_id: int) -> AppraisalRecord:
    """First view of a published evaluation by its employee; no-op otherwise."""
    record = get_or_404(AppraisalRecord, evaluation_id, "evaluation")
    if actor.is_employee(record.employee_id) and record.is_published and record.employee_viewed_at is None:
        now = timezone.now()
        if AppraisalRecord.objects.filter(pk=record.pk, employee_viewed_at__isnull=True).update(employee_viewed_at=now):
            record.employee_viewed_at = now
    return record


# ======================================================================
# Queries
# ======================================================================

def _record_qs():
    return AppraisalRecord.objects.select_related(
        "assignment", "cycle", "template", "employee", "manager"
    ).prefetch_related("ratings")


def get_evaluation(evaluation_id: int) -> AppraisalRecord:
    return get_or_404(_record_qs(), evaluation_id, "evaluation")


def get_stage(evaluation_id: int) -> Evaluation:
    return stage_of(get_evaluation(evaluation_id))


def get_for_cycle_and_employee(cycle_id: int, employee_id: int) -> Optional[AppraisalRecord]:
    return _record_qs().filter(cycle_id=cycle_id, employee_id=employee_id).first()


def employee_history(employee_id: int, *, published_only: bool = True):
    """An employee's appraisal records across cycles, newest cycle first."""
    qs = _record_qs().filter(employee_id=employee_id)
    if published_only:
        qs = qs.filter(hr_published_at__isnull=False)
    return qs.order_by("-cycle__start_date", "-pk")
