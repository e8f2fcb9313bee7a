# performance/models/appraisal.py
from decimal import Decimal

from django.db import models
from django.utils import timezone

from base.models.mixins import TimeStampedMixin, VersionedMixin
from .dispute import DisputeStatus


class AppraisalRecordStatus(models.TextChoices):
    DRAFT = "DRAFT", "Draft"
    SELF_SUBMITTED = "SELF_SUBMITTED", "Self-assessment submitted"
    MANAGER_SUBMITTED = "MANAGER_SUBMITTED", "Manager evaluation submitted"
    HR_PUBLISHED = "HR_PUBLISHED", "Published"
    ACKNOWLEDGED = "ACKNOWLEDGED", "Acknowledged"


class AppraisalRecord(TimeStampedMixin, VersionedMixin):
    """
    Evaluation content of one assignment.

    `total_score` is computed when the manager submits and is frozen after
    publish; only a dispute resolution may overwrite it (see `audit_notes`).
    """
    assignment = models.OneToOneField(
        "performance.AppraisalAssignment", on_delete=models.CASCADE, related_name="appraisal"
    )
    # denormalised for history queries across cycles
    cycle = models.ForeignKey("performance.AppraisalCycle", on_delete=models.PROTECT, related_name="appraisals")
    template = models.ForeignKey("performance.AppraisalTemplate", on_delete=models.PROTECT, related_name="appraisals")
    employee = models.ForeignKey("hr.Employee", on_delete=models.PROTECT, related_name="appraisal_records")
    manager = models.ForeignKey(
        "hr.Employee", null=True, blank=True, on_delete=models.SET_NULL, related_name="authored_appraisals"
    )

    status = models.CharField(
        max_length=20, choices=AppraisalRecordStatus.choices, default=AppraisalRecordStatus.DRAFT, db_index=True
    )

    # Self-assessment
    self_assessment = models.JSONField(default=dict, blank=True)
    self_submitted_at = models.DateTimeField(null=True, blank=True)

    # Manager evaluation
    total_score = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    overall_rating_label = models.CharField(max_length=64, blank=True)
    final_rating = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    manager_summary = models.TextField(blank=True)
    strengths = models.TextField(blank=True)
    improvement_areas = models.TextField(blank=True)
    development_recommendations = models.TextField(blank=True)
    manager_submitted_at = models.DateTimeField(null=True, blank=True)

    # Publish / acknowledge
    hr_published_at = models.DateTimeField(null=True, blank=True, db_index=True)
    published_by = models.ForeignKey(
        "hr.Employee", null=True, blank=True, on_delete=models.SET_NULL, related_name="published_appraisals"
    )
    employee_viewed_at = models.DateTimeField(null=True, blank=True)
    employee_acknowledged_at = models.DateTimeField(null=True, blank=True)
    employee_acknowledgement_comment = models.TextField(blank=True)

    # append-only: [{"at": iso, "by": employee_id, "kind": "...", "note": "..."}]
    audit_notes = models.JSONField(default=list, blank=True)

    class Meta:
        db_table = "perf_appraisal_record"
        ordering = ["-cycle__start_date", "employee"]
        indexes = [
            models.Index(fields=["employee", "cycle"]),
            models.Index(fields=["manager", "status"]),
        ]
        permissions = [
            ("publish_appraisalrecord", "Can publish appraisal record"),
            ("view_confidential_appraisal", "Can view unpublished appraisal content"),
        ]

    @property
    def is_published(self) -> bool:
        return self.hr_published_at is not None

    @property
    def score_frozen(self) -> bool:
        """Published, or overridden by an adjusted dispute."""
        return self.is_published or self.disputes.filter(status=DisputeStatus.ADJUSTED).exists()

    def append_audit(self, kind: str, note: str, by=None) -> list:
        notes = list(self.audit_notes or [])
        notes.append({"at": timezone.now().isoformat(), "by": by, "kind": kind, "note": note})
        self.audit_notes = notes
        return notes

    def __str__(self):
        return f"Appraisal<{self.pk}> {self.employee} ({self.status})"


class AppraisalRating(models.Model):
    """One rated criterion of an appraisal (materialised at manager submission)."""
    appraisal = models.ForeignKey(AppraisalRecord, on_delete=models.CASCADE, related_name="ratings")
    key = models.CharField(max_length=64)
    title = models.CharField(max_length=255, blank=True)
    rating_value = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    rating_label = models.CharField(max_length=64, blank=True)
    weight = models.DecimalField(max_digits=6, decimal_places=2, default=Decimal("0"))
    weighted_score = models.DecimalField(max_digits=8, decimal_places=4, default=Decimal("0"))
    comments = models.TextField(blank=True)
    # criterion had no rating → contributes zero
    is_missing = models.BooleanField(default=False)

    class Meta:
        db_table = "perf_appraisal_rating"
        ordering = ["appraisal", "id"]
        constraints = [
            models.UniqueConstraint(fields=["appraisal", "key"], name="uniq_rating_key_per_appraisal"),
        ]

    def __str__(self):
        return f"{self.key}={self.rating_value}"
