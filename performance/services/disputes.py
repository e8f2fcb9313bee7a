# performance/services/disputes.py
"""
Dispute resolver.

One pending (OPEN/UNDER_REVIEW) dispute per evaluation. Resolution is
terminal: ADJUSTED (optionally overwriting the frozen score) or REJECTED.
Concurrent resolvers are serialised by a row lock and a version CAS; the
loser gets ConflictError.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from django.db import IntegrityError, transaction
from django.utils import timezone

from hr.models import Employee
from notifications.models import NotificationType
from notifications.services import notify_on_commit
from performance.access import Actor, Role
from performance.exceptions import (
    ConflictError,
    DuplicateDisputeError,
    InvalidStateError,
    PermissionDeniedError,
    ValidationError,
)
from performance.models import (
    EVALUATED_STATUSES,
    PENDING_DISPUTE_STATUSES,
    AppraisalDispute,
    AppraisalRecord,
    DisputeStatus,
)
from .common import get_or_404, lock_or_404, require_text, save_versioned
from .scoring import label_for, quantize, to_decimal

logger = logging.getLogger(__name__)

# "RESOLVED" is the caller's word for an accepted dispute; it is stored as ADJUSTED
RESOLUTION_CHOICES = ("RESOLVED", DisputeStatus.ADJUSTED, DisputeStatus.REJECTED)


def _hr_manager_ids() -> list[int]:
    return list(
        Employee.objects.filter(
            active=True, user__groups__name__in=[Role.HR_MANAGER, Role.HR_ADMIN]
        ).values_list("pk", flat=True).distinct()
    )


def _check_in_scale(template, value, field_name: str):
    if value is None:
        return None
    if value < template.scale_min or value > template.scale_max:
        raise ValidationError(
            f"{field_name} must be between {template.scale_min} and {template.scale_max}.",
            details={"field": field_name},
        )
    return value


# ======================================================================
# Commands
# ======================================================================

@transaction.atomic
def create_dispute(
    actor: Actor,
    *,
    employee_id: int,
    evaluation_id: int,
    reason: str,
    proposed_rating=None,
    details: str = "",
    disputed_criteria: Iterable[str] = (),
) -> AppraisalDispute:
    record = lock_or_404(AppraisalRecord, evaluation_id, "evaluation")
    if record.employee_id != int(employee_id):
        raise ValidationError(
            "The evaluation does not belong to this employee.",
            details={"employee_id": employee_id, "evaluation_id": evaluation_id},
        )

    if actor.is_employee(record.employee_id):
        on_behalf_by = None
    elif actor.can("can_raise_dispute_for_others"):
        on_behalf_by = actor.employee_id
    else:
        raise PermissionDeniedError("You may only dispute your own evaluation.")

    assignment = record.assignment
    if assignment.status not in EVALUATED_STATUSES or record.manager_submitted_at is None:
        raise InvalidStateError(
            "Only an evaluated appraisal can be disputed.",
            current=assignment.status,
            expected=sorted(EVALUATED_STATUSES),
        )

    if record.disputes.filter(status__in=PENDING_DISPUTE_STATUSES).exists():
        raise DuplicateDisputeError(
            "This evaluation already has a dispute under way.", details={"evaluation_id": record.pk}
        )

    criteria = [str(c) for c in (disputed_criteria or ())]
    known = set(record.template.criteria.values_list("key", flat=True))
    unknown = [c for c in criteria if c not in known]
    if unknown:
        raise ValidationError(f"Unknown criteria: {unknown}.", details={"field": "disputed_criteria"})

    proposed = _check_in_scale(
        record.template, to_decimal(proposed_rating, field_name="proposed_rating"), "proposed_rating"
    )

    try:
        with transaction.atomic():
            dispute = AppraisalDispute.objects.create(
                appraisal=record,
                assignment=assignment,
                cycle_id=record.cycle_id,
                raised_by_id=record.employee_id,
                raised_on_behalf_by_id=on_behalf_by,
                reason=require_text(reason, "reason"),
                details=details or "",
                disputed_criteria=criteria,
                proposed_rating=proposed,
            )
    except IntegrityError as exc:
        # lost the race against another filer; the partial unique index caught it
        raise DuplicateDisputeError(
            "This evaluation already has a dispute under way.", details={"evaluation_id": record.pk}
        ) from exc

    for hr_id in _hr_manager_ids():
        notify_on_commit(
            hr_id,
            NotificationType.DISPUTE_RAISED,
            f"{record.employee} disputed their appraisal in '{record.cycle.name}'.",
            target=dispute,
        )
    logger.info("Dispute %s opened on evaluation %s", dispute.pk, record.pk)
    return dispute


@transaction.atomic
def start_review(actor: Actor, dispute_id: int, reviewer_id: Optional[int] = None) -> AppraisalDispute:
    actor.require("can_resolve_dispute")
    dispute = lock_or_404(AppraisalDispute, dispute_id, "dispute")
    reviewer_id = reviewer_id or actor.employee_id

    if dispute.status == DisputeStatus.UNDER_REVIEW and dispute.assigned_reviewer_id == reviewer_id:
        return dispute
    if dispute.status not in PENDING_DISPUTE_STATUSES:
        raise InvalidStateError(
            f"Dispute {dispute.pk} is already {dispute.status}.",
            current=dispute.status,
            expected=[DisputeStatus.OPEN],
        )

    save_versioned(
        dispute,
        status=DisputeStatus.UNDER_REVIEW,
        assigned_reviewer_id=reviewer_id,
        review_started_at=dispute.review_started_at or timezone.now(),
    )
    logger.info("Dispute %s under review by %s", dispute.pk, reviewer_id)
    return dispute


@transaction.atomic
def resolve_dispute(
    actor: Actor,
    dispute_id: int,
    *,
    status: str,
    resolution_notes: str,
    reviewer_id: Optional[int] = None,
    adjusted_rating=None,
    expected_version: Optional[int] = None,
) -> AppraisalDispute:
    actor.require("can_resolve_dispute")
    if status not in RESOLUTION_CHOICES:
        raise ValidationError(
            f"Resolution status must be one of {', '.join(RESOLUTION_CHOICES)}.", details={"field": "status"}
        )

    dispute = lock_or_404(AppraisalDispute, dispute_id, "dispute")
    if dispute.is_terminal:
        raise ConflictError(
            f"Dispute {dispute.pk} was already resolved ({dispute.status}).",
            details={"current": dispute.status, "resolved_at": dispute.resolved_at.isoformat() if dispute.resolved_at else None},
        )
    if expected_version is not None and int(expected_version) != dispute.version:
        raise ConflictError(
            f"Dispute {dispute.pk} changed since it was read.",
            details={"expected": int(expected_version), "current": dispute.version},
        )
    notes = require_text(resolution_notes, "resolution_notes")

    accepted = status != DisputeStatus.REJECTED
    adjusted = quantize(to_decimal(adjusted_rating, field_name="adjusted_rating"))
    if adjusted is not None and not accepted:
        raise ValidationError("A rejected dispute cannot carry an adjusted rating.", details={"field": "adjusted_rating"})

    now = timezone.now()
    resolver_id = reviewer_id or actor.employee_id

    if adjusted is not None:
        record = lock_or_404(AppraisalRecord, dispute.appraisal_id, "evaluation")
        _check_in_scale(record.template, adjusted, "adjusted_rating")
        previous = record.total_score
        record.append_audit(
            "dispute_adjustment",
            f"Dispute {dispute.pk}: total score {previous} → {adjusted}.",
            by=resolver_id,
        )
        save_versioned(
            record,
            total_score=adjusted,
            final_rating=adjusted,
            overall_rating_label=label_for(record.template, adjusted) or record.overall_rating_label,
            audit_notes=record.audit_notes,
        )
        logger.info("Evaluation %s score adjusted %s → %s by dispute %s", record.pk, previous, adjusted, dispute.pk)

    save_versioned(
        dispute,
        status=DisputeStatus.ADJUSTED if accepted else DisputeStatus.REJECTED,
        resolved_by_id=resolver_id,
        resolution_summary=notes,
        adjusted_rating=adjusted,
        resolved_at=now,
    )

    notify_on_commit(
        dispute.raised_by_id,
        NotificationType.DISPUTE_RESOLVED,
        f"Your appraisal dispute was {'accepted' if accepted else 'rejected'}.",
        target=dispute,
    )
    logger.info("Dispute %s resolved: %s", dispute.pk, dispute.status)
    return dispute


# ======================================================================
# Queries
# ======================================================================

def _dispute_qs():
    return AppraisalDispute.objects.select_related(
        "appraisal", "assignment", "cycle", "raised_by", "assigned_reviewer", "resolved_by"
    )


def list_disputes(status: Optional[str] = None, *, cycle_id: Optional[int] = None):
    qs = _dispute_qs()
    if status:
        qs = qs.filter(status=status)
    if cycle_id:
        qs = qs.filter(cycle_id=cycle_id)
    return qs


def list_for_employee(employee_id: int):
    return _dispute_qs().filter(raised_by_id=employee_id)


def get_dispute(dispute_id: int) -> AppraisalDispute:
    return get_or_404(_dispute_qs(), dispute_id, "dispute")
