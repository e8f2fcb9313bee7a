# performance/services/stages.py
"""
Evaluation content as a closed set of stages.

    Draft | SelfSubmitted | ManagerSubmitted | Published | Acknowledged

Each stage carries only what is meaningful at that point, so readers
match on the type instead of probing optional fields.
"""
from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from decimal import Decimal
from typing import ClassVar, Optional, Union


@dataclass(frozen=True)
class RatingLine:
    key: str
    title: str
    rating_value: Optional[Decimal]
    rating_label: str
    weight: Decimal
    weighted_score: Decimal
    comments: str
    is_missing: bool


@dataclass(frozen=True)
class Draft:
    kind: ClassVar[str] = "DRAFT"
    record_id: int
    assignment_id: int
    self_assessment: dict = field(default_factory=dict)


@dataclass(frozen=True)
class SelfSubmitted(Draft):
    kind: ClassVar[str] = "SELF_SUBMITTED"
    self_submitted_at: Optional[datetime.datetime] = None


@dataclass(frozen=True)
class ManagerSubmitted(Draft):
    kind: ClassVar[str] = "MANAGER_SUBMITTED"
    self_submitted_at: Optional[datetime.datetime] = None
    ratings: tuple[RatingLine, ...] = ()
    total_score: Optional[Decimal] = None
    overall_rating_label: str = ""
    final_rating: Optional[Decimal] = None
    manager_summary: str = ""
    strengths: str = ""
    improvement_areas: str = ""
    development_recommendations: str = ""
    manager_submitted_at: Optional[datetime.datetime] = None


@dataclass(frozen=True)
class Published(ManagerSubmitted):
    kind: ClassVar[str] = "HR_PUBLISHED"
    hr_published_at: Optional[datetime.datetime] = None
    employee_viewed_at: Optional[datetime.datetime] = None


@dataclass(frozen=True)
class Acknowledged(Published):
    kind: ClassVar[str] = "ACKNOWLEDGED"
    employee_acknowledged_at: Optional[datetime.datetime] = None
    employee_acknowledgement_comment: str = ""


Evaluation = Union[Draft, SelfSubmitted, ManagerSubmitted, Published, Acknowledged]


def _ratings(record) -> tuple[RatingLine, ...]:
    return tuple(
        RatingLine(
            key=r.key,
            title=r.title,
            rating_value=r.rating_value,
            rating_label=r.rating_label,
            weight=r.weight,
            weighted_score=r.weighted_score,
            comments=r.comments,
            is_missing=r.is_missing,
        )
        for r in record.ratings.all()
    )


def stage_of(record) -> Evaluation:
    """Project an AppraisalRecord onto its stage."""
    base = {
        "record_id": record.pk,
        "assignment_id": record.assignment_id,
        "self_assessment": dict(record.self_assessment or {}),
    }
    if record.manager_submitted_at is None:
        if record.self_submitted_at is None:
            return Draft(**base)
        return SelfSubmitted(self_submitted_at=record.self_submitted_at, **base)

    evaluated = dict(
        base,
        self_submitted_at=record.self_submitted_at,
        ratings=_ratings(record),
        total_score=record.total_score,
        overall_rating_label=record.overall_rating_label,
        final_rating=record.final_rating,
        manager_summary=record.manager_summary,
        strengths=record.strengths,
        improvement_areas=record.improvement_areas,
        development_recommendations=record.development_recommendations,
        manager_submitted_at=record.manager_submitted_at,
    )
    if record.hr_published_at is None:
        return ManagerSubmitted(**evaluated)

    published = dict(evaluated, hr_published_at=record.hr_published_at, employee_viewed_at=record.employee_viewed_at)
    if record.employee_acknowledged_at is None:
        return Published(**published)
    return Acknowledged(
        employee_acknowledged_at=record.employee_acknowledged_at,
        employee_acknowledgement_comment=record.employee_acknowledgement_comment,
        **published,
    )
