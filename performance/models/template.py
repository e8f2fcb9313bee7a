# performance/models/template.py
from decimal import Decimal

from django.db import models

from base.models.mixins import TimeStampedMixin, UserStampedMixin, ActivableMixin


class TemplateType(models.TextChoices):
    ANNUAL = "ANNUAL", "Annual"
    SEMI_ANNUAL = "SEMI_ANNUAL", "Semi-annual"
    PROBATIONARY = "PROBATIONARY", "Probationary"
    PROJECT = "PROJECT", "Project"
    AD_HOC = "AD_HOC", "Ad hoc"


class RatingScaleType(models.TextChoices):
    THREE_POINT = "THREE_POINT", "3-point"
    FIVE_POINT = "FIVE_POINT", "5-point"
    TEN_POINT = "TEN_POINT", "10-point"


class AppraisalTemplate(TimeStampedMixin, UserStampedMixin, ActivableMixin):
    """
    Reusable appraisal form: a rating scale + weighted criteria.
    Never hard-deleted once a cycle or assignment points at it; `active=False` instead.
    """
    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True)
    template_type = models.CharField(max_length=16, choices=TemplateType.choices, default=TemplateType.ANNUAL)
    instructions = models.TextField(blank=True)

    # Rating scale (embedded)
    scale_type = models.CharField(max_length=16, choices=RatingScaleType.choices, default=RatingScaleType.FIVE_POINT)
    scale_min = models.DecimalField(max_digits=6, decimal_places=2, default=Decimal("1"))
    scale_max = models.DecimalField(max_digits=6, decimal_places=2, default=Decimal("5"))
    scale_step = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    scale_labels = models.JSONField(default=list, blank=True)

    class Meta:
        db_table = "perf_appraisal_template"
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(condition=models.Q(scale_min__lt=models.F("scale_max")), name="chk_tpl_scale_range"),
        ]
        permissions = [
            ("use_appraisal_template", "Can use appraisal template"),
        ]

    @property
    def rating_scale(self) -> dict:
        return {
            "type": self.scale_type,
            "min": float(self.scale_min),
            "max": float(self.scale_max),
            "step": float(self.scale_step) if self.scale_step is not None else None,
            "labels": list(self.scale_labels or []),
        }

    @property
    def total_weight(self) -> Decimal:
        return sum((c.weight or Decimal("0") for c in self.criteria.all()), Decimal("0"))

    def is_referenced(self) -> bool:
        return self.cycle_bindings.exists() or self.assignments.exists()

    def __str__(self):
        return self.name


class AppraisalCriterion(models.Model):
    """A weighted criterion row inside a template."""
    template = models.ForeignKey(AppraisalTemplate, on_delete=models.CASCADE, related_name="criteria")
    key = models.CharField(max_length=64)
    title = models.CharField(max_length=255)
    details = models.TextField(blank=True)
    weight = models.DecimalField(max_digits=6, decimal_places=2, default=Decimal("0"))
    max_score = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    required = models.BooleanField(default=False)
    sequence = models.PositiveIntegerField(default=10)

    class Meta:
        db_table = "perf_appraisal_criterion"
        ordering = ["template", "sequence", "id"]
        constraints = [
            models.UniqueConstraint(fields=["template", "key"], name="uniq_criterion_key_per_template"),
            models.CheckConstraint(
                condition=models.Q(weight__gte=0, weight__lte=100), name="chk_criterion_weight_0_100"
            ),
        ]

    def __str__(self):
        return f"{self.template.name}: {self.title} ({self.weight}%)"
