# performance/models/visibility.py
from django.db import models
from django.db.models import F, Q

from base.models.mixins import ActivableMixin, TimeStampedMixin


class VisibilityFieldType(models.TextChoices):
    MANAGER_SUMMARY = "MANAGER_SUMMARY", "Manager summary"
    STRENGTHS = "STRENGTHS", "Strengths"
    IMPROVEMENT_AREAS = "IMPROVEMENT_AREAS", "Improvement areas"
    RATINGS = "RATINGS", "Ratings"
    COMMENTS = "COMMENTS", "Comments"
    SELF_ASSESSMENT = "SELF_ASSESSMENT", "Self-assessment"
    OVERALL_SCORE = "OVERALL_SCORE", "Overall score"
    FINAL_RATING = "FINAL_RATING", "Final rating"


class VisibilityRule(ActivableMixin, TimeStampedMixin):
    """
    Grants the roles in `allowed_roles` sight of one evaluation field.
    Several active rules may target the same field; any match grants.
    """
    name = models.CharField(max_length=128)
    description = models.TextField(blank=True)
    field_type = models.CharField(max_length=24, choices=VisibilityFieldType.choices, db_index=True)
    allowed_roles = models.JSONField(default=list, blank=True)
    effective_from = models.DateTimeField(null=True, blank=True)
    effective_to = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "perf_visibility_rule"
        ordering = ["field_type", "name"]
        constraints = [
            models.CheckConstraint(
                condition=Q(effective_from__isnull=True)
                | Q(effective_to__isnull=True)
                | Q(effective_to__gte=F("effective_from")),
                name="visibility_rule_window_ordered",
            ),
        ]

    def is_effective_at(self, when) -> bool:
        if self.effective_from and when < self.effective_from:
            return False
        if self.effective_to and when > self.effective_to:
            return False
        return True

    def __str__(self):
        return f"{self.name} ({self.field_type})"
