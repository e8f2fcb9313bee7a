# -*- coding: utf-8 -*-
from django import forms

from performance.services.disputes import RESOLUTION_CHOICES
from .base import ListField, PayloadForm


class DisputeForm(PayloadForm):
    aliases = {"appraisalId": "evaluation_id", "raisedByEmployeeId": "employee_id"}
    employee_id = forms.IntegerField()
    evaluation_id = forms.IntegerField()
    reason = forms.CharField()
    details = forms.CharField(required=False)
    proposed_rating = forms.DecimalField(required=False, max_digits=6, decimal_places=2)
    disputed_criteria = ListField()


class StartReviewForm(PayloadForm):
    reviewer_id = forms.IntegerField(required=False)


class ResolveDisputeForm(PayloadForm):
    aliases = {"resolutionSummary": "resolution_notes"}
    status = forms.ChoiceField(choices=[(c, c) for c in RESOLUTION_CHOICES])
    resolution_notes = forms.CharField()
    reviewer_id = forms.IntegerField(required=False)
    adjusted_rating = forms.DecimalField(required=False, max_digits=6, decimal_places=2)
    expected_version = forms.IntegerField(required=False, min_value=0)
