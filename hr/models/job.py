# hr/models/job.py
from django.db import models

from base.models.mixins import TimeStampedMixin, ActivableMixin


class Job(ActivableMixin, TimeStampedMixin, models.Model):
    """Position inside a department (hr.job)."""
    name = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True)

    department = models.ForeignKey(
        "hr.Department", null=True, blank=True, on_delete=models.PROTECT, related_name="jobs"
    )

    class Meta:
        db_table = "hr_job"
        indexes = [
            models.Index(fields=["department", "active"]),
        ]
        constraints = [
            models.UniqueConstraint(fields=["name", "department"], name="uniq_job_name_department"),
        ]
        ordering = ("name",)

    def __str__(self):
        return self.name
