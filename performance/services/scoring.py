# performance/services/scoring.py
"""
Scoring helpers used by the evaluation recorder. Kept small & testable.

total_score = Σ rating_value × weight / 100 over the template's criteria.
A criterion without a rating contributes zero and is flagged `is_missing`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Mapping, Optional

from django.conf import settings

from performance.exceptions import ValidationError

HUNDRED = Decimal("100")
TWO_PLACES = Decimal("0.01")


def to_decimal(value: Any, *, field_name: str = "value") -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"'{value}' is not a number.", details={"field": field_name})
    if not number.is_finite():
        raise ValidationError(f"'{value}' is not a finite number.", details={"field": field_name})
    return number


def quantize(value: Optional[Decimal]) -> Optional[Decimal]:
    if value is None:
        return None
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def weight_tolerance() -> Decimal:
    return Decimal(str(getattr(settings, "APPRAISAL_WEIGHT_TOLERANCE", "0.01")))


def check_weights(weights: Iterable[Decimal]) -> None:
    """If any weight is nonzero, the weights must add up to 100 (± tolerance)."""
    weights = [w or Decimal("0") for w in weights]
    if any(w < 0 or w > HUNDRED for w in weights):
        raise ValidationError("Criterion weights must be between 0 and 100.")
    if not any(weights):
        return
    total = sum(weights, Decimal("0"))
    if abs(total - HUNDRED) > weight_tolerance():
        raise ValidationError(
            f"Criterion weights must sum to 100 (got {total}).",
            details={"total_weight": str(total)},
        )


@dataclass(frozen=True)
class ScoredCriterion:
    key: str
    title: str
    weight: Decimal
    rating_value: Optional[Decimal]
    weighted_score: Decimal
    comments: str = ""
    rating_label: str = ""

    @property
    def is_missing(self) -> bool:
        return self.rating_value is None


@dataclass(frozen=True)
class ScoreCard:
    items: tuple[ScoredCriterion, ...] = field(default_factory=tuple)
    total_score: Optional[Decimal] = None

    @property
    def missing_keys(self) -> list[str]:
        return [i.key for i in self.items if i.is_missing]


def _section_key(section: Mapping[str, Any]) -> str:
    return str(section.get("key") or section.get("criterion") or "").strip()


def _section_value(section: Mapping[str, Any]):
    for name in ("rating_value", "ratingValue", "rating", "value"):
        if name in section:
            return section[name]
    return None


def label_for(template, value: Optional[Decimal]) -> str:
    """
    Map a score onto the template's scale labels.
    Labels are either plain strings (one per step from `scale_min`) or
    {"value": n, "label": "..."} dicts; the highest label not above `value` wins.
    """
    labels = list(template.scale_labels or [])
    if value is None or not labels:
        return ""
    pairs = []
    for idx, item in enumerate(labels):
        if isinstance(item, Mapping):
            pairs.append((to_decimal(item.get("value"), field_name="scale_labels"), str(item.get("label", ""))))
        else:
            pairs.append((template.scale_min + idx, str(item)))
    chosen = ""
    for threshold, label in sorted(pairs, key=lambda p: p[0]):
        if value >= threshold:
            chosen = label
    return chosen


def score_sections(template, sections: Iterable[Mapping[str, Any]]) -> ScoreCard:
    """
    Build the score card for `sections` against the template's criteria.
    The result does not depend on the order of `sections`.
    """
    criteria = list(template.criteria.all())
    by_key = {c.key: c for c in criteria}

    given: dict[str, Mapping[str, Any]] = {}
    for section in sections or ():
        key = _section_key(section)
        if not key:
            raise ValidationError("Every rated section needs a criterion key.")
        if key not in by_key:
            raise ValidationError(f"Unknown criterion '{key}'.", details={"key": key})
        if key in given:
            raise ValidationError(f"Criterion '{key}' rated twice.", details={"key": key})
        given[key] = section

    items = []
    for c in criteria:
        section = given.get(c.key) or {}
        value = to_decimal(_section_value(section), field_name=c.key)
        if value is not None:
            upper = c.max_score if c.max_score is not None else template.scale_max
            if value < template.scale_min or value > upper:
                raise ValidationError(
                    f"Rating for '{c.key}' must be between {template.scale_min} and {upper}.",
                    details={"key": c.key, "value": str(value)},
                )
        weighted = (value * c.weight / HUNDRED) if value is not None else Decimal("0")
        items.append(
            ScoredCriterion(
                key=c.key,
                title=c.title,
                weight=c.weight,
                rating_value=value,
                weighted_score=weighted,
                comments=str(section.get("comments") or ""),
                rating_label=label_for(template, value),
            )
        )

    if any(c.weight for c in criteria):
        total = sum((i.weighted_score for i in items), Decimal("0"))
    else:
        # unweighted template: plain mean of the given ratings
        rated = [i.rating_value for i in items if i.rating_value is not None]
        total = (sum(rated, Decimal("0")) / len(rated)) if rated else None

    return ScoreCard(items=tuple(items), total_score=quantize(total))
