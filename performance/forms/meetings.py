# -*- coding: utf-8 -*-
from django import forms

from .base import PayloadForm


class MeetingForm(PayloadForm):
    employee_id = forms.IntegerField()
    manager_id = forms.IntegerField(required=False)
    scheduled_at = forms.DateTimeField()
    agenda = forms.CharField(required=False)


class MeetingUpdateForm(PayloadForm):
    scheduled_at = forms.DateTimeField(required=False)
    agenda = forms.CharField(required=False)
    meeting_notes = forms.CharField(required=False)
