# hr/models/department.py
from django.db import models
from django.core.exceptions import ValidationError

from base.models.mixins import TimeStampedMixin, ActivableMixin


class Department(ActivableMixin, TimeStampedMixin, models.Model):
    """
    Odoo-like hr.department (read-only from the appraisal engine's point of view).
    """
    name = models.CharField(max_length=255, unique=True)

    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,  # منع كسر الهرم
        related_name="children",
    )

    manager = models.ForeignKey(
        "hr.Employee",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="managed_departments",
    )

    note = models.TextField(blank=True)

    class Meta:
        db_table = "hr_department"
        indexes = [
            models.Index(fields=["active"]),
            models.Index(fields=["parent"]),
        ]
        ordering = ("name",)

    @property
    def member_count(self) -> int:
        """عدّ الموظفين النشِطين داخل القسم."""
        return self.members.filter(active=True).count()

    def clean(self):
        super().clean()
        # منع الدوران (Cyclic) في الهرم
        node = self.parent
        while node:
            if node.pk == self.pk:
                raise ValidationError({"parent": "Cyclic department hierarchy is not allowed."})
            node = node.parent

    def __str__(self):
        return self.name
