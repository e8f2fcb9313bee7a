# base/models/mixins.py
from django.db import models


# ---------- أساسية (وقت/تفعيل) ----------
class TimeStampedMixin(models.Model):
    """ختم إنشـاء/تعديل مع فهارس."""
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True, db_index=True)

    class Meta:
        abstract = True


class ActivableMixin(models.Model):
    """حقل active مع فهرسة."""
    active = models.BooleanField(default=True, db_index=True)

    class Meta:
        abstract = True


# ---------- تتبّع المستخدم (create_uid/write_uid على طريقة Odoo) ----------
class UserStampedMixin(models.Model):
    """حقول created_by / updated_by مرتبطة بمستخدم base.User."""
    created_by = models.ForeignKey(
        "base.User",
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name="%(class)s_created",
    )
    updated_by = models.ForeignKey(
        "base.User",
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name="%(class)s_updated",
    )

    class Meta:
        abstract = True


class VersionedMixin(models.Model):
    """
    Optimistic-concurrency counter.

    Writers read `version`, then update with `compare_and_bump()`; a zero
    row count means somebody else wrote first.
    """
    version = models.PositiveIntegerField(default=0)

    class Meta:
        abstract = True

    def compare_and_bump(self, **fields) -> bool:
        seen = self.version
        updated = type(self).objects.filter(pk=self.pk, version=seen).update(
            version=models.F("version") + 1, **fields
        )
        if updated:
            self.version = seen + 1
            for name, value in fields.items():
                setattr(self, name, value)
        return bool(updated)
