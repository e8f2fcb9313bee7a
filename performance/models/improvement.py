# performance/models/improvement.py
from django.db import models
from django.db.models import F, Q

from base.models.mixins import TimeStampedMixin


class PipStatus(models.TextChoices):
    DRAFT = "DRAFT", "Draft"
    ACTIVE = "ACTIVE", "Active"
    COMPLETED = "COMPLETED", "Completed"
    CANCELLED = "CANCELLED", "Cancelled"


PIP_TRANSITIONS = {
    PipStatus.DRAFT: {PipStatus.ACTIVE, PipStatus.CANCELLED},
    PipStatus.ACTIVE: {PipStatus.COMPLETED, PipStatus.CANCELLED},
    PipStatus.COMPLETED: set(),
    PipStatus.CANCELLED: set(),
}


class PerformanceImprovementPlan(TimeStampedMixin):
    appraisal = models.OneToOneField(
        "performance.AppraisalRecord", on_delete=models.CASCADE, related_name="improvement_plan"
    )
    employee = models.ForeignKey("hr.Employee", on_delete=models.PROTECT, related_name="improvement_plans")
    created_by_manager = models.ForeignKey(
        "hr.Employee", null=True, blank=True, on_delete=models.SET_NULL, related_name="authored_improvement_plans"
    )

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    reason = models.TextField()
    improvement_areas = models.JSONField(default=list, blank=True)
    action_items = models.JSONField(default=list, blank=True)
    expected_outcomes = models.TextField(blank=True)

    start_date = models.DateField()
    target_completion_date = models.DateField()
    actual_completion_date = models.DateField(null=True, blank=True)

    status = models.CharField(max_length=16, choices=PipStatus.choices, default=PipStatus.DRAFT, db_index=True)
    progress_notes = models.TextField(blank=True)
    final_outcome = models.TextField(blank=True)

    class Meta:
        db_table = "perf_improvement_plan"
        ordering = ["-start_date", "employee"]
        constraints = [
            models.CheckConstraint(
                condition=Q(target_completion_date__gt=F("start_date")),
                name="pip_target_after_start",
            ),
            models.CheckConstraint(
                condition=Q(actual_completion_date__isnull=True) | Q(status="COMPLETED"),
                name="pip_actual_completion_only_when_completed",
            ),
        ]

    def can_transition_to(self, status) -> bool:
        return status == self.status or status in PIP_TRANSITIONS.get(self.status, set())

    def __str__(self):
        return f"PIP<{self.pk}> {self.title} [{self.status}]"


class HighPerformerFlag(models.Model):
    """Plain toggle record keyed by appraisal; no lifecycle of its own."""
    appraisal = models.OneToOneField(
        "performance.AppraisalRecord", on_delete=models.CASCADE, related_name="high_performer_flag"
    )
    employee = models.ForeignKey("hr.Employee", on_delete=models.CASCADE, related_name="high_performer_flags")
    is_high_performer = models.BooleanField(default=True)
    notes = models.TextField(blank=True)
    promotion_recommendation = models.TextField(blank=True)
    flagged_at = models.DateTimeField(auto_now=True)
    flagged_by = models.ForeignKey(
        "hr.Employee", null=True, blank=True, on_delete=models.SET_NULL, related_name="+"
    )

    class Meta:
        db_table = "perf_high_performer_flag"
        ordering = ["-flagged_at"]

    def __str__(self):
        return f"{self.employee} ★" if self.is_high_performer else f"{self.employee}"
