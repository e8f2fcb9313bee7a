# performance/models/meeting.py
from django.db import models

from base.models.mixins import TimeStampedMixin


class MeetingStatus(models.TextChoices):
    SCHEDULED = "SCHEDULED", "Scheduled"
    RESCHEDULED = "RESCHEDULED", "Rescheduled"
    COMPLETED = "COMPLETED", "Completed"
    CANCELLED = "CANCELLED", "Cancelled"


CLOSED_MEETING_STATUSES = (MeetingStatus.COMPLETED, MeetingStatus.CANCELLED)


class OneOnOneMeeting(TimeStampedMixin):
    manager = models.ForeignKey("hr.Employee", on_delete=models.CASCADE, related_name="hosted_one_on_ones")
    employee = models.ForeignKey("hr.Employee", on_delete=models.CASCADE, related_name="one_on_ones")
    scheduled_at = models.DateTimeField(db_index=True)
    agenda = models.TextField(blank=True)
    meeting_notes = models.TextField(blank=True)
    status = models.CharField(
        max_length=16, choices=MeetingStatus.choices, default=MeetingStatus.SCHEDULED, db_index=True
    )
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "perf_one_on_one_meeting"
        ordering = ["-scheduled_at"]

    @property
    def is_closed(self) -> bool:
        return self.status in CLOSED_MEETING_STATUSES

    def __str__(self):
        return f"1:1 {self.manager} ↔ {self.employee} @ {self.scheduled_at:%Y-%m-%d %H:%M}"
