# -*- coding: utf-8 -*-
from django import forms

from performance.models import PipStatus
from .base import ListField, PayloadForm

PIP_ALIASES = {"appraisalRecordId": "evaluation_id", "appraisalId": "evaluation_id"}


class PipForm(PayloadForm):
    aliases = PIP_ALIASES
    evaluation_id = forms.IntegerField()
    title = forms.CharField(max_length=255)
    reason = forms.CharField()
    description = forms.CharField(required=False)
    improvement_areas = ListField()
    action_items = ListField()
    expected_outcomes = forms.CharField(required=False)
    start_date = forms.DateField()
    target_completion_date = forms.DateField()
    status = forms.ChoiceField(choices=PipStatus.choices, required=False)


class PipUpdateForm(PayloadForm):
    title = forms.CharField(max_length=255, required=False)
    reason = forms.CharField(required=False)
    description = forms.CharField(required=False)
    improvement_areas = ListField()
    action_items = ListField()
    expected_outcomes = forms.CharField(required=False)
    start_date = forms.DateField(required=False)
    target_completion_date = forms.DateField(required=False)
    actual_completion_date = forms.DateField(required=False)
    status = forms.ChoiceField(choices=PipStatus.choices, required=False)
    progress_notes = forms.CharField(required=False)
    final_outcome = forms.CharField(required=False)


class HighPerformerForm(PayloadForm):
    aliases = PIP_ALIASES
    evaluation_id = forms.IntegerField()
    is_high_performer = forms.NullBooleanField(required=False)
    notes = forms.CharField(required=False)
    promotion_recommendation = forms.CharField(required=False)
