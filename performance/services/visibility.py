# performance/services/visibility.py
"""
Visibility rule engine.

Fail-closed: a field is shown to a role only if an active, currently
effective rule for that field names the role. No rule means no access.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from hr.services import display_name
from performance.access import Actor, Role, can_view_assignment
from performance.exceptions import PermissionDeniedError, ValidationError
from performance.models import VisibilityFieldType, VisibilityRule
from .common import as_datetime, get_or_404, lock_or_404, require_text
from .stages import Acknowledged, ManagerSubmitted, Published, SelfSubmitted, stage_of

logger = logging.getLogger(__name__)

# fields the appraised employee never sees before publish, whatever the rules say
SCORE_FIELDS = frozenset({
    VisibilityFieldType.RATINGS,
    VisibilityFieldType.OVERALL_SCORE,
    VisibilityFieldType.FINAL_RATING,
})


def _effective_rules(at_time=None):
    at_time = at_time or timezone.now()
    return VisibilityRule.objects.filter(active=True).filter(
        Q(effective_from__isnull=True) | Q(effective_from__lte=at_time),
        Q(effective_to__isnull=True) | Q(effective_to__gte=at_time),
    )


def is_field_visible(field_type: str, role: str, at_time=None) -> bool:
    # JSON "contains" lookups are not portable; the rule table is small
    for allowed in _effective_rules(at_time).filter(field_type=field_type).values_list("allowed_roles", flat=True):
        if role in (allowed or ()):
            return True
    return False


def visible_fields(roles: Iterable[str], at_time=None) -> frozenset[str]:
    roles = set(roles)
    granted = set()
    for field_type, allowed in _effective_rules(at_time).values_list("field_type", "allowed_roles"):
        if roles.intersection(allowed or ()):
            granted.add(field_type)
    return frozenset(granted)


# ======================================================================
# Read model
# ======================================================================

def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def _num(value) -> Optional[float]:
    return float(value) if value is not None else None


def serialize_appraisal(record, actor: Actor, at_time=None) -> dict[str, Any]:
    """
    The evaluation as `actor` may see it.

    Gated content is included only when one of the actor's roles passes the
    visibility rules; the subject employee additionally never sees scores
    before publish.
    """
    assignment = record.assignment
    if not can_view_assignment(actor, assignment):
        raise PermissionDeniedError("You cannot view this evaluation.", details={"evaluation": record.pk})

    roles = set(actor.roles)
    is_subject = actor.is_employee(record.employee_id)
    if is_subject:
        roles.add(Role.DEPARTMENT_EMPLOYEE)
    allowed = visible_fields(roles, at_time)

    stage = stage_of(record)
    published = isinstance(stage, Published)

    def shown(field_type) -> bool:
        if is_subject and not published and field_type in SCORE_FIELDS:
            return False
        if is_subject and not published and not actor.can("can_view_all_appraisals"):
            # nothing of the manager's assessment leaks before publish
            return field_type == VisibilityFieldType.SELF_ASSESSMENT and field_type in allowed
        return field_type in allowed

    data: dict[str, Any] = {
        "id": record.pk,
        "assignmentId": record.assignment_id,
        "cycleId": record.cycle_id,
        "employeeId": record.employee_id,
        "employeeName": display_name(record.employee_id),
        "managerId": record.manager_id,
        "managerName": display_name(record.manager_id),
        "stage": stage.kind,
        "version": record.version,
    }

    if isinstance(stage, SelfSubmitted) or isinstance(stage, ManagerSubmitted):
        data["selfSubmittedAt"] = _iso(stage.self_submitted_at)
    if shown(VisibilityFieldType.SELF_ASSESSMENT):
        data["selfAssessment"] = stage.self_assessment

    if isinstance(stage, ManagerSubmitted):
        data["managerSubmittedAt"] = _iso(stage.manager_submitted_at)
        if shown(VisibilityFieldType.RATINGS):
            with_comments = shown(VisibilityFieldType.COMMENTS)
            data["ratings"] = [
                {
                    "key": r.key,
                    "title": r.title,
                    "ratingValue": _num(r.rating_value),
                    "ratingLabel": r.rating_label,
                    "weight": _num(r.weight),
                    "weightedScore": _num(r.weighted_score),
                    "isMissing": r.is_missing,
                    **({"comments": r.comments} if with_comments else {}),
                }
                for r in stage.ratings
            ]
        if shown(VisibilityFieldType.OVERALL_SCORE):
            data["totalScore"] = _num(stage.total_score)
            data["overallRatingLabel"] = stage.overall_rating_label
        if shown(VisibilityFieldType.FINAL_RATING):
            data["finalRating"] = _num(stage.final_rating)
        if shown(VisibilityFieldType.MANAGER_SUMMARY):
            data["managerSummary"] = stage.manager_summary
        if shown(VisibilityFieldType.STRENGTHS):
            data["strengths"] = stage.strengths
        if shown(VisibilityFieldType.IMPROVEMENT_AREAS):
            data["improvementAreas"] = stage.improvement_areas
            data["developmentRecommendations"] = stage.development_recommendations

    if published:
        data["hrPublishedAt"] = _iso(stage.hr_published_at)
        data["employeeViewedAt"] = _iso(stage.employee_viewed_at)
    if isinstance(stage, Acknowledged):
        data["employeeAcknowledgedAt"] = _iso(stage.employee_acknowledged_at)
        data["employeeAcknowledgementComment"] = stage.employee_acknowledgement_comment
    return data


# ======================================================================
# Rule CRUD
# ======================================================================

def _roles(value) -> list[str]:
    if isinstance(value, str) or not isinstance(value, (list, tuple, set, frozenset)):
        raise ValidationError("allowed_roles must be a list.", details={"field": "allowed_roles"})
    roles = list(dict.fromkeys(str(r) for r in value))
    unknown = [r for r in roles if r not in Role.ALL]
    if unknown:
        raise ValidationError(f"Unknown roles: {unknown}.", details={"field": "allowed_roles"})
    return roles


def _apply(rule: VisibilityRule, data: dict) -> None:
    if "name" in data:
        rule.name = require_text(data["name"], "name")
    if "description" in data:
        rule.description = data["description"] or ""
    if "field_type" in data:
        if data["field_type"] not in VisibilityFieldType.values:
            raise ValidationError(f"Unknown field type '{data['field_type']}'.", details={"field": "field_type"})
        rule.field_type = data["field_type"]
    if "allowed_roles" in data:
        rule.allowed_roles = _roles(data["allowed_roles"])
    if "is_active" in data:
        rule.active = bool(data["is_active"])
    if "effective_from" in data:
        rule.effective_from = as_datetime(data["effective_from"], "effective_from")
    if "effective_to" in data:
        rule.effective_to = as_datetime(data["effective_to"], "effective_to")
    if rule.effective_from and rule.effective_to and rule.effective_to < rule.effective_from:
        raise ValidationError("effective_to cannot precede effective_from.", details={"field": "effective_to"})


@transaction.atomic
def create_rule(
    actor: Actor,
    *,
    name: str,
    field_type: str,
    allowed_roles,
    description: str = "",
    is_active: bool = True,
    effective_from=None,
    effective_to=None,
) -> VisibilityRule:
    actor.require("can_manage_visibility")
    rule = VisibilityRule()
    _apply(rule, {
        "name": name,
        "field_type": field_type,
        "allowed_roles": allowed_roles,
        "description": description,
        "is_active": is_active,
        "effective_from": effective_from,
        "effective_to": effective_to,
    })
    rule.save()
    logger.info("Visibility rule %s created: %s → %s", rule.pk, rule.field_type, rule.allowed_roles)
    return rule


@transaction.atomic
def update_rule(actor: Actor, rule_id: int, **changes) -> VisibilityRule:
    actor.require("can_manage_visibility")
    rule = lock_or_404(VisibilityRule, rule_id, "visibility rule")
    _apply(rule, changes)
    rule.save()
    logger.info("Visibility rule %s updated", rule.pk)
    return rule


@transaction.atomic
def delete_rule(actor: Actor, rule_id: int) -> None:
    actor.require("can_manage_visibility")
    rule = lock_or_404(VisibilityRule, rule_id, "visibility rule")
    rule.delete()
    logger.info("Visibility rule %s deleted", rule_id)


def list_rules(field_type: Optional[str] = None):
    qs = VisibilityRule.objects.all()
    if field_type:
        qs = qs.filter(field_type=field_type)
    return qs


def list_active_rules(at_time=None):
    return _effective_rules(at_time)


def get_rule(rule_id: int) -> VisibilityRule:
    return get_or_404(VisibilityRule, rule_id, "visibility rule")
