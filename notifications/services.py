# notifications/services.py
"""
Notification sink.

`notify()` is fire-and-forget: delivery problems are logged and never
propagate to the workflow that triggered them.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from django.contrib.contenttypes.models import ContentType
from django.db import transaction
from django.utils import timezone

from .models import Notification, NotificationType

logger = logging.getLogger(__name__)


def _ct_and_id(target):
    if target is None or target.pk is None:
        return None, None
    return ContentType.objects.get_for_model(target.__class__), target.pk


def notify(recipient_id: int, notification_type: str, message: str, target=None) -> Optional[Notification]:
    try:
        ct, oid = _ct_and_id(target)
        # savepoint: فشل الإدراج لا يُفسد معاملة المستدعي
        with transaction.atomic():
            note = Notification.objects.create(
                recipient_id=recipient_id,
                notification_type=notification_type or NotificationType.GENERAL,
                message=message,
                content_type=ct,
                object_id=oid,
            )
    except Exception:
        logger.exception(
            "Notification delivery failed (recipient=%s, type=%s)", recipient_id, notification_type
        )
        return None
    logger.debug("Notified employee %s (%s)", recipient_id, notification_type)
    return note


def notify_on_commit(recipient_id: int, notification_type: str, message: str, target=None) -> None:
    """Defer `notify` until the surrounding transaction commits."""
    transaction.on_commit(lambda: notify(recipient_id, notification_type, message, target=target))


def notify_many(recipient_ids: Iterable[int], notification_type: str, message: str, target=None) -> int:
    sent = 0
    for rid in dict.fromkeys(recipient_ids):
        if notify(rid, notification_type, message, target=target) is not None:
            sent += 1
    return sent


def list_unread(recipient_id: int, limit: int = 50):
    return Notification.objects.filter(recipient_id=recipient_id, read_at__isnull=True)[:limit]


def unread_count(recipient_id: int) -> int:
    return Notification.objects.filter(recipient_id=recipient_id, read_at__isnull=True).count()


def list_for_recipient(recipient_id: int, limit: int = 50):
    return Notification.objects.filter(recipient_id=recipient_id)[:limit]


def mark_read(recipient_id: int, notification_ids: Iterable[int] = ()) -> int:
    qs = Notification.objects.filter(recipient_id=recipient_id, read_at__isnull=True)
    ids = list(notification_ids)
    if ids:
        qs = qs.filter(pk__in=ids)
    return qs.update(read_at=timezone.now())
