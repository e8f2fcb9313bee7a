# hr/models/employee.py
from django.core.exceptions import ValidationError
from django.db import models

from base.models.mixins import TimeStampedMixin, ActivableMixin


class Employee(ActivableMixin, TimeStampedMixin, models.Model):
    """Odoo-like hr.employee, trimmed to what appraisal workflows read."""

    first_name = models.CharField(max_length=128)
    last_name = models.CharField(max_length=128, blank=True)

    user = models.OneToOneField(
        "base.User",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="employee",
    )

    department = models.ForeignKey(
        "hr.Department",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="members",
    )

    job = models.ForeignKey(
        "hr.Job",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="employee_set",
    )

    manager = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="managed_employees",
    )

    work_email = models.EmailField(blank=True)

    class Meta:
        db_table = "hr_employee"
        indexes = [
            models.Index(fields=["department", "active"]),
            models.Index(fields=["job", "active"]),
            models.Index(fields=["last_name", "first_name"]),
        ]
        ordering = ("last_name", "first_name")

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def clean(self):
        super().clean()
        if self.manager_id and self.pk and self.manager_id == self.pk:
            raise ValidationError({"manager": "An employee cannot manage themselves."})
        if self.job_id and self.department_id and self.job.department_id not in (None, self.department_id):
            raise ValidationError({"job": "Position must belong to the employee's department."})

    def __str__(self):
        return self.name
