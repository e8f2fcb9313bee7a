# notifications/models.py

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType

EMPLOYEE_MODEL = "hr.Employee"


class NotificationType(models.TextChoices):
    CYCLE_ACTIVATED = "CYCLE_ACTIVATED", _("Appraisal cycle activated")
    APPRAISAL_ASSIGNED = "APPRAISAL_ASSIGNED", _("Appraisal assigned")
    APPRAISAL_SUBMITTED = "APPRAISAL_SUBMITTED", _("Appraisal submitted")
    APPRAISAL_PUBLISHED = "APPRAISAL_PUBLISHED", _("Appraisal published")
    APPRAISAL_ACKNOWLEDGED = "APPRAISAL_ACKNOWLEDGED", _("Appraisal acknowledged")
    DISPUTE_RAISED = "DISPUTE_RAISED", _("Dispute raised")
    DISPUTE_RESOLVED = "DISPUTE_RESOLVED", _("Dispute resolved")
    PIP_ACTIVATED = "PIP_ACTIVATED", _("Improvement plan activated")
    MEETING_SCHEDULED = "MEETING_SCHEDULED", _("One-on-one scheduled")
    GENERAL = "GENERAL", _("General")


class Notification(models.Model):
    """
    إشعار داخلي لموظف، مرتبط اختياريًا بأي سجل عبر GenericForeignKey.
    تُقرأ عبر الاستطلاع الدوري من الواجهة (inbox).
    """
    recipient = models.ForeignKey(EMPLOYEE_MODEL, on_delete=models.CASCADE, related_name="notifications")
    notification_type = models.CharField(
        max_length=32, choices=NotificationType.choices, default=NotificationType.GENERAL, db_index=True
    )
    message = models.TextField(_("Message"))

    # الهدف العام (أي موديل)
    content_type = models.ForeignKey(
        ContentType, null=True, blank=True, on_delete=models.CASCADE, related_name="notifications"
    )
    object_id = models.PositiveIntegerField(null=True, blank=True)
    target = GenericForeignKey("content_type", "object_id")

    read_at = models.DateTimeField(null=True, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = "notification"
        ordering = ("-created_at", "-id")
        indexes = [
            models.Index(fields=["recipient", "read_at"], name="notif_recipient_read_idx"),
            models.Index(fields=["content_type", "object_id"], name="notif_ct_oid_idx"),
        ]
        constraints = [
            models.CheckConstraint(name="notif_message_not_empty", condition=~models.Q(message="")),
        ]

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    def mark_read(self):
        if self.read_at is None:
            self.read_at = timezone.now()
            self.save(update_fields=["read_at"])

    def __str__(self):
        return f"Notification<{self.pk}> {self.notification_type} → {self.recipient_id}"
