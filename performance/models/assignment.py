# performance/models/assignment.py
from django.db import models
from django.utils import timezone

from base.models.mixins import TimeStampedMixin, VersionedMixin


class AssignmentStatus(models.TextChoices):
    NOT_STARTED = "NOT_STARTED", "Not started"
    IN_PROGRESS = "IN_PROGRESS", "In progress"
    SUBMITTED = "SUBMITTED", "Submitted"
    PUBLISHED = "PUBLISHED", "Published"
    ACKNOWLEDGED = "ACKNOWLEDGED", "Acknowledged"


# Allowed (from → to) moves. Self-loops are the idempotent/edit steps:
#   SUBMITTED → SUBMITTED  (self re-submit, manager evaluation attaches)
#   PUBLISHED → PUBLISHED  (manager re-edit after publish)
ASSIGNMENT_TRANSITIONS = {
    AssignmentStatus.NOT_STARTED: {AssignmentStatus.IN_PROGRESS, AssignmentStatus.SUBMITTED},
    AssignmentStatus.IN_PROGRESS: {AssignmentStatus.SUBMITTED},
    AssignmentStatus.SUBMITTED: {AssignmentStatus.SUBMITTED, AssignmentStatus.PUBLISHED},
    AssignmentStatus.PUBLISHED: {AssignmentStatus.PUBLISHED, AssignmentStatus.ACKNOWLEDGED},
    AssignmentStatus.ACKNOWLEDGED: set(),
}

REMOVABLE_STATUSES = frozenset({AssignmentStatus.NOT_STARTED, AssignmentStatus.IN_PROGRESS})
EVALUATED_STATUSES = frozenset({AssignmentStatus.SUBMITTED, AssignmentStatus.PUBLISHED, AssignmentStatus.ACKNOWLEDGED})


class AppraisalAssignment(TimeStampedMixin, VersionedMixin):
    """
    Per-employee unit of appraisal work within a cycle.
    Exactly one per (cycle, employee).
    """
    cycle = models.ForeignKey("performance.AppraisalCycle", on_delete=models.PROTECT, related_name="assignments")
    template = models.ForeignKey("performance.AppraisalTemplate", on_delete=models.PROTECT, related_name="assignments")

    employee = models.ForeignKey("hr.Employee", on_delete=models.PROTECT, related_name="appraisal_assignments")
    manager = models.ForeignKey(
        "hr.Employee", null=True, blank=True, on_delete=models.SET_NULL, related_name="managed_appraisal_assignments"
    )
    department = models.ForeignKey(
        "hr.Department", null=True, blank=True, on_delete=models.SET_NULL, related_name="appraisal_assignments"
    )
    position = models.ForeignKey(
        "hr.Job", null=True, blank=True, on_delete=models.SET_NULL, related_name="appraisal_assignments"
    )

    status = models.CharField(
        max_length=16, choices=AssignmentStatus.choices, default=AssignmentStatus.NOT_STARTED, db_index=True
    )
    assigned_at = models.DateTimeField(default=timezone.now)
    due_date = models.DateField(null=True, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    submitted_at = models.DateTimeField(null=True, blank=True)
    published_at = models.DateTimeField(null=True, blank=True)
    acknowledged_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "perf_appraisal_assignment"
        ordering = ["cycle", "employee"]
        indexes = [
            models.Index(fields=["cycle", "status"]),
            models.Index(fields=["manager", "status"]),
            models.Index(fields=["department", "status"]),
        ]
        constraints = [
            models.UniqueConstraint(fields=["cycle", "employee"], name="uniq_assignment_cycle_employee"),
        ]
        permissions = [
            ("evaluate_appraisalassignment", "Can submit manager evaluation"),
            ("self_assess_appraisalassignment", "Can submit self-assessment"),
        ]

    @property
    def latest_appraisal(self):
        try:
            return self.appraisal
        except models.ObjectDoesNotExist:
            return None

    def can_transition_to(self, status) -> bool:
        return status in ASSIGNMENT_TRANSITIONS.get(self.status, set())

    def __str__(self):
        return f"{self.employee} @ {self.cycle.name} [{self.status}]"
