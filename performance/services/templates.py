# performance/services/templates.py
"""
Template registry: rating scales + weighted criteria.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from django.db import transaction

from performance.access import Actor
from performance.exceptions import ConflictError, InvalidStateError, ValidationError
from performance.models import (
    AppraisalCriterion,
    AppraisalTemplate,
    CycleStatus,
    RatingScaleType,
    TemplateType,
)
from .common import full_clean, get_or_404, lock_or_404, require_text
from .scoring import check_weights, to_decimal

logger = logging.getLogger(__name__)

_SCALE_DEFAULTS = {
    RatingScaleType.THREE_POINT: (Decimal("1"), Decimal("3")),
    RatingScaleType.FIVE_POINT: (Decimal("1"), Decimal("5")),
    RatingScaleType.TEN_POINT: (Decimal("1"), Decimal("10")),
}


# ======================================================================
# Normalisation
# ======================================================================

def _scale_fields(rating_scale: Optional[Mapping[str, Any]]) -> dict:
    rating_scale = dict(rating_scale or {})
    scale_type = rating_scale.get("type") or RatingScaleType.FIVE_POINT
    if scale_type not in RatingScaleType.values:
        raise ValidationError(f"Unknown rating scale type '{scale_type}'.", details={"field": "rating_scale.type"})
    lo, hi = _SCALE_DEFAULTS[scale_type]
    scale_min = to_decimal(rating_scale.get("min"), field_name="rating_scale.min")
    scale_max = to_decimal(rating_scale.get("max"), field_name="rating_scale.max")
    scale_step = to_decimal(rating_scale.get("step"), field_name="rating_scale.step")
    scale_min = lo if scale_min is None else scale_min
    scale_max = hi if scale_max is None else scale_max
    if scale_min >= scale_max:
        raise ValidationError("Rating scale min must be lower than max.", details={"field": "rating_scale"})
    if scale_step is not None and scale_step <= 0:
        raise ValidationError("Rating scale step must be positive.", details={"field": "rating_scale.step"})
    labels = rating_scale.get("labels") or []
    if not isinstance(labels, (list, tuple)):
        raise ValidationError("Rating scale labels must be a list.", details={"field": "rating_scale.labels"})
    return {
        "scale_type": scale_type,
        "scale_min": scale_min,
        "scale_max": scale_max,
        "scale_step": scale_step,
        "scale_labels": list(labels),
    }


def _criteria_rows(criteria: Iterable[Mapping[str, Any]]) -> list[dict]:
    rows, seen = [], set()
    for idx, item in enumerate(criteria or ()):
        key = require_text(item.get("key"), "criterion key")
        if key in seen:
            raise ValidationError(f"Duplicate criterion key '{key}'.", details={"key": key})
        seen.add(key)
        weight = to_decimal(item.get("weight"), field_name=f"{key}.weight") or Decimal("0")
        max_score = item.get("max_score", item.get("maxScore"))
        rows.append({
            "key": key,
            "title": (item.get("title") or key).strip(),
            "details": item.get("details") or item.get("description") or "",
            "weight": weight,
            "max_score": to_decimal(max_score, field_name=f"{key}.max_score"),
            "required": bool(item.get("required", False)),
            "sequence": int(item.get("sequence") or (idx + 1) * 10),
        })
    check_weights(r["weight"] for r in rows)
    return rows


def _check_name(name: str, exclude_pk=None) -> str:
    name = require_text(name, "name")
    qs = AppraisalTemplate.objects.filter(name__iexact=name)
    if exclude_pk:
        qs = qs.exclude(pk=exclude_pk)
    if qs.exists():
        raise ValidationError(f"A template named '{name}' already exists.", details={"field": "name"})
    return name


def _in_active_cycle(template: AppraisalTemplate) -> bool:
    return (
        template.cycle_bindings.filter(cycle__status=CycleStatus.ACTIVE).exists()
        or template.assignments.filter(cycle__status=CycleStatus.ACTIVE).exists()
    )


# ======================================================================
# Commands
# ======================================================================

@transaction.atomic
def create_template(
    actor: Actor,
    *,
    name: str,
    template_type: str = TemplateType.ANNUAL,
    rating_scale: Optional[Mapping[str, Any]] = None,
    criteria: Iterable[Mapping[str, Any]] = (),
    description: str = "",
    instructions: str = "",
    is_active: bool = True,
) -> AppraisalTemplate:
    actor.require("can_manage_templates")
    if template_type not in TemplateType.values:
        raise ValidationError(f"Unknown template type '{template_type}'.", details={"field": "template_type"})

    template = AppraisalTemplate(
        name=_check_name(name),
        template_type=template_type,
        description=description or "",
        instructions=instructions or "",
        active=is_active,
        created_by_id=actor.user_id,
        updated_by_id=actor.user_id,
        **_scale_fields(rating_scale),
    )
    rows = _criteria_rows(criteria)
    full_clean(template)
    template.save()
    AppraisalCriterion.objects.bulk_create([AppraisalCriterion(template=template, **r) for r in rows])

    logger.info("Template %s '%s' created with %d criteria", template.pk, template.name, len(rows))
    return template


@transaction.atomic
def update_template(actor: Actor, template_id: int, **changes) -> AppraisalTemplate:
    """
    Partial update. `criteria` (when given) replaces the whole criteria set;
    criteria and scale are frozen while an ACTIVE cycle uses the template.
    """
    actor.require("can_manage_templates")
    template = lock_or_404(AppraisalTemplate, template_id, "template")

    structural = "criteria" in changes or "rating_scale" in changes
    if structural and _in_active_cycle(template):
        raise InvalidStateError(
            "Criteria and rating scale cannot change while an active cycle uses this template.",
            current=CycleStatus.ACTIVE,
        )

    if "name" in changes:
        template.name = _check_name(changes["name"], exclude_pk=template.pk)
    if "template_type" in changes:
        if changes["template_type"] not in TemplateType.values:
            raise ValidationError(f"Unknown template type '{changes['template_type']}'.")
        template.template_type = changes["template_type"]
    for attr in ("description", "instructions"):
        if attr in changes:
            setattr(template, attr, changes[attr] or "")
    if "is_active" in changes:
        template.active = bool(changes["is_active"])
    if "rating_scale" in changes:
        for attr, value in _scale_fields(changes["rating_scale"]).items():
            setattr(template, attr, value)

    template.updated_by_id = actor.user_id
    full_clean(template)
    template.save()

    if "criteria" in changes:
        rows = _criteria_rows(changes["criteria"])
        template.criteria.all().delete()
        AppraisalCriterion.objects.bulk_create([AppraisalCriterion(template=template, **r) for r in rows])

    logger.info("Template %s updated (%s)", template.pk, ", ".join(sorted(changes)) or "no fields")
    return template


@transaction.atomic
def deactivate_template(actor: Actor, template_id: int) -> AppraisalTemplate:
    actor.require("can_manage_templates")
    template = lock_or_404(AppraisalTemplate, template_id, "template")
    if template.active:
        template.active = False
        template.updated_by_id = actor.user_id
        template.save(update_fields=["active", "updated_by", "updated_at"])
        logger.info("Template %s deactivated", template.pk)
    return template


@transaction.atomic
def delete_template(actor: Actor, template_id: int) -> None:
    actor.require("can_manage_templates")
    template = lock_or_404(AppraisalTemplate, template_id, "template")
    if template.is_referenced():
        raise ConflictError(
            "Template is referenced by a cycle or assignment; deactivate it instead.",
            details={"id": template.pk},
        )
    template.delete()
    logger.info("Template %s deleted", template_id)


# ======================================================================
# Queries
# ======================================================================

def list_templates(is_active: Optional[bool] = None):
    qs = AppraisalTemplate.objects.prefetch_related("criteria")
    if is_active is not None:
        qs = qs.filter(active=is_active)
    return qs.order_by("name")


def get_template(template_id: int) -> AppraisalTemplate:
    return get_or_404(AppraisalTemplate.objects.prefetch_related("criteria"), template_id, "template")
