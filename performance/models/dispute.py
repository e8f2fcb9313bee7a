# performance/models/dispute.py
from django.db import models
from django.db.models import Q
from django.utils import timezone

from base.models.mixins import TimeStampedMixin, VersionedMixin


class DisputeStatus(models.TextChoices):
    OPEN = "OPEN", "Open"
    UNDER_REVIEW = "UNDER_REVIEW", "Under review"
    ADJUSTED = "ADJUSTED", "Adjusted"
    REJECTED = "REJECTED", "Rejected"


PENDING_DISPUTE_STATUSES = (DisputeStatus.OPEN, DisputeStatus.UNDER_REVIEW)
TERMINAL_DISPUTE_STATUSES = (DisputeStatus.ADJUSTED, DisputeStatus.REJECTED)


class AppraisalDispute(TimeStampedMixin, VersionedMixin):
    appraisal = models.ForeignKey("performance.AppraisalRecord", on_delete=models.CASCADE, related_name="disputes")
    assignment = models.ForeignKey(
        "performance.AppraisalAssignment", on_delete=models.CASCADE, related_name="disputes"
    )
    cycle = models.ForeignKey("performance.AppraisalCycle", on_delete=models.PROTECT, related_name="disputes")

    raised_by = models.ForeignKey("hr.Employee", on_delete=models.PROTECT, related_name="raised_disputes")
    # HR staff filing for the employee
    raised_on_behalf_by = models.ForeignKey(
        "hr.Employee", null=True, blank=True, on_delete=models.SET_NULL, related_name="disputes_filed_for_others"
    )

    reason = models.TextField()
    details = models.TextField(blank=True)
    disputed_criteria = models.JSONField(default=list, blank=True)
    proposed_rating = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)

    status = models.CharField(
        max_length=16, choices=DisputeStatus.choices, default=DisputeStatus.OPEN, db_index=True
    )
    submitted_at = models.DateTimeField(default=timezone.now)

    assigned_reviewer = models.ForeignKey(
        "hr.Employee", null=True, blank=True, on_delete=models.SET_NULL, related_name="disputes_to_review"
    )
    review_started_at = models.DateTimeField(null=True, blank=True)
    resolved_by = models.ForeignKey(
        "hr.Employee", null=True, blank=True, on_delete=models.SET_NULL, related_name="resolved_disputes"
    )
    resolution_summary = models.TextField(blank=True)
    adjusted_rating = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "perf_appraisal_dispute"
        ordering = ["-submitted_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["appraisal"],
                condition=Q(status__in=["OPEN", "UNDER_REVIEW"]),
                name="uniq_pending_dispute_per_appraisal",
            ),
        ]
        permissions = [
            ("resolve_appraisaldispute", "Can resolve appraisal dispute"),
        ]

    @property
    def is_pending(self) -> bool:
        return self.status in PENDING_DISPUTE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_DISPUTE_STATUSES

    def __str__(self):
        return f"Dispute<{self.pk}> {self.raised_by} [{self.status}]"
