# performance/models/cycle.py
from django.core.exceptions import ValidationError
from django.db import models

from base.models.mixins import TimeStampedMixin, UserStampedMixin
from .template import TemplateType


class CycleStatus(models.TextChoices):
    PLANNED = "PLANNED", "Planned"
    ACTIVE = "ACTIVE", "Active"
    CLOSED = "CLOSED", "Closed"
    ARCHIVED = "ARCHIVED", "Archived"


# one-directional; every step is irreversible
CYCLE_TRANSITIONS = {
    CycleStatus.PLANNED: {CycleStatus.ACTIVE},
    CycleStatus.ACTIVE: {CycleStatus.CLOSED},
    CycleStatus.CLOSED: {CycleStatus.ARCHIVED},
    CycleStatus.ARCHIVED: set(),
}


class AppraisalCycle(TimeStampedMixin, UserStampedMixin):
    """
    Time-boxed appraisal period binding templates to a target population.
    PLANNED → ACTIVE → CLOSED → ARCHIVED.
    """
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    cycle_type = models.CharField(max_length=16, choices=TemplateType.choices, default=TemplateType.ANNUAL)

    start_date = models.DateField()
    end_date = models.DateField()
    manager_due_date = models.DateField(null=True, blank=True)
    employee_acknowledgement_due_date = models.DateField(null=True, blank=True)

    status = models.CharField(max_length=12, choices=CycleStatus.choices, default=CycleStatus.PLANNED, db_index=True)

    activated_at = models.DateTimeField(null=True, blank=True)
    published_at = models.DateTimeField(null=True, blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)
    archived_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "perf_appraisal_cycle"
        ordering = ["-start_date", "-id"]
        constraints = [
            models.CheckConstraint(condition=models.Q(end_date__gt=models.F("start_date")), name="chk_cycle_dates"),
        ]
        permissions = [
            ("activate_appraisalcycle", "Can activate appraisal cycle"),
            ("publish_appraisalcycle", "Can publish appraisal cycle"),
        ]

    def clean(self):
        super().clean()
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValidationError({"end_date": "End date must be after start date."})
        if self.manager_due_date and self.start_date and self.manager_due_date < self.start_date:
            raise ValidationError({"manager_due_date": "Manager due date cannot precede the start date."})
        if (
            self.employee_acknowledgement_due_date
            and self.start_date
            and self.employee_acknowledgement_due_date < self.start_date
        ):
            raise ValidationError(
                {"employee_acknowledgement_due_date": "Acknowledgement due date cannot precede the start date."}
            )

    def can_transition_to(self, status) -> bool:
        return status in CYCLE_TRANSITIONS.get(self.status, set())

    def __str__(self):
        return f"{self.name} [{self.start_date} → {self.end_date}]"


class CycleTemplateAssignment(models.Model):
    """
    Binds a template to a population: departments ∪ positions ∪ employees, minus exclusions.
    """
    cycle = models.ForeignKey(AppraisalCycle, on_delete=models.CASCADE, related_name="template_assignments")
    template = models.ForeignKey(
        "performance.AppraisalTemplate", on_delete=models.PROTECT, related_name="cycle_bindings"
    )
    departments = models.ManyToManyField("hr.Department", blank=True, related_name="+")
    positions = models.ManyToManyField("hr.Job", blank=True, related_name="+")
    employees = models.ManyToManyField("hr.Employee", blank=True, related_name="+")
    excluded_employees = models.ManyToManyField("hr.Employee", blank=True, related_name="+")

    class Meta:
        db_table = "perf_cycle_template_assignment"
        ordering = ["cycle", "id"]

    def __str__(self):
        return f"{self.cycle.name} ← {self.template.name}"
