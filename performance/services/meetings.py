# performance/services/meetings.py
"""One-on-one meetings between a manager and a direct report."""
from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction
from django.utils import timezone

from hr.services import get_employee_profile
from notifications.models import NotificationType
from notifications.services import notify_on_commit
from performance.access import Actor
from performance.exceptions import InvalidStateError, PermissionDeniedError, ValidationError
from performance.models import MeetingStatus, OneOnOneMeeting
from .common import as_datetime, get_or_404, lock_or_404

logger = logging.getLogger(__name__)


def _require_host(actor: Actor, manager_id: Optional[int]) -> None:
    if actor.is_employee(manager_id) or actor.can("can_manage_pips_org_wide"):
        return
    raise PermissionDeniedError("Only the employee's manager can manage this meeting.")


def _require_open(meeting: OneOnOneMeeting) -> None:
    if meeting.is_closed:
        raise InvalidStateError(
            f"Meeting {meeting.pk} is {meeting.status}.",
            current=meeting.status,
            expected=[MeetingStatus.SCHEDULED, MeetingStatus.RESCHEDULED],
        )


@transaction.atomic
def schedule_meeting(
    actor: Actor,
    *,
    employee_id: int,
    scheduled_at,
    agenda: str = "",
    manager_id: Optional[int] = None,
) -> OneOnOneMeeting:
    profile = get_employee_profile(employee_id)
    if profile is None or not profile.active:
        raise ValidationError(f"Employee {employee_id} not found.", details={"field": "employee_id"})
    manager_id = manager_id or profile.manager_id or actor.employee_id
    if not actor.can("can_manage_pips_org_wide"):
        if profile.manager_id != actor.employee_id:
            raise PermissionDeniedError("You can only schedule meetings with your direct reports.")
        manager_id = actor.employee_id
    if manager_id is None:
        raise ValidationError("The meeting needs a manager.", details={"field": "manager_id"})
    if manager_id == profile.id:
        raise ValidationError("A meeting needs two different people.")

    when = as_datetime(scheduled_at, "scheduled_at")
    if when is None:
        raise ValidationError("scheduled_at is required.", details={"field": "scheduled_at"})

    meeting = OneOnOneMeeting.objects.create(
        manager_id=manager_id, employee_id=profile.id, scheduled_at=when, agenda=agenda or ""
    )
    notify_on_commit(
        profile.id,
        NotificationType.MEETING_SCHEDULED,
        f"One-on-one scheduled for {when:%Y-%m-%d %H:%M}.",
        target=meeting,
    )
    logger.info("1:1 %s scheduled (%s ↔ %s)", meeting.pk, manager_id, profile.id)
    return meeting


@transaction.atomic
def update_meeting(actor: Actor, meeting_id: int, **changes) -> OneOnOneMeeting:
    meeting = lock_or_404(OneOnOneMeeting, meeting_id, "meeting")
    _require_host(actor, meeting.manager_id)
    _require_open(meeting)

    fields = ["updated_at"]
    if "scheduled_at" in changes:
        when = as_datetime(changes["scheduled_at"], "scheduled_at")
        if when is None:
            raise ValidationError("scheduled_at is required.", details={"field": "scheduled_at"})
        if when != meeting.scheduled_at:
            meeting.scheduled_at = when
            meeting.status = MeetingStatus.RESCHEDULED
            fields += ["scheduled_at", "status"]
    for attr in ("agenda", "meeting_notes"):
        if attr in changes:
            setattr(meeting, attr, changes[attr] or "")
            fields.append(attr)
    meeting.save(update_fields=fields)
    return meeting


@transaction.atomic
def complete_meeting(actor: Actor, meeting_id: int, meeting_notes: Optional[str] = None) -> OneOnOneMeeting:
    meeting = lock_or_404(OneOnOneMeeting, meeting_id, "meeting")
    _require_host(actor, meeting.manager_id)
    _require_open(meeting)
    meeting.status = MeetingStatus.COMPLETED
    meeting.completed_at = timezone.now()
    if meeting_notes is not None:
        meeting.meeting_notes = meeting_notes
    meeting.save(update_fields=["status", "completed_at", "meeting_notes", "updated_at"])
    logger.info("1:1 %s completed", meeting.pk)
    return meeting


@transaction.atomic
def cancel_meeting(actor: Actor, meeting_id: int) -> OneOnOneMeeting:
    meeting = lock_or_404(OneOnOneMeeting, meeting_id, "meeting")
    _require_host(actor, meeting.manager_id)
    _require_open(meeting)
    meeting.status = MeetingStatus.CANCELLED
    meeting.cancelled_at = timezone.now()
    meeting.save(update_fields=["status", "cancelled_at", "updated_at"])
    logger.info("1:1 %s cancelled", meeting.pk)
    return meeting


@transaction.atomic
def delete_meeting(actor: Actor, meeting_id: int) -> None:
    meeting = lock_or_404(OneOnOneMeeting, meeting_id, "meeting")
    _require_host(actor, meeting.manager_id)
    meeting.delete()


def list_for_manager(manager_id: int, status: Optional[str] = None):
    qs = OneOnOneMeeting.objects.select_related("employee").filter(manager_id=manager_id)
    return qs.filter(status=status) if status else qs


def list_for_employee(employee_id: int, status: Optional[str] = None):
    qs = OneOnOneMeeting.objects.select_related("manager").filter(employee_id=employee_id)
    return qs.filter(status=status) if status else qs


def get_meeting(meeting_id: int) -> OneOnOneMeeting:
    return get_or_404(OneOnOneMeeting, meeting_id, "meeting")
