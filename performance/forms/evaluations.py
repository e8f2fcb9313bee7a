# -*- coding: utf-8 -*-
from django import forms

from .base import ListField, PayloadForm


class SelfAssessmentForm(PayloadForm):
    sections = ListField()
    overall_comments = forms.CharField(required=False)
    expected_version = forms.IntegerField(required=False, min_value=0)


class ManagerEvaluationForm(PayloadForm):
    sections = ListField()
    final_rating = forms.DecimalField(required=False, max_digits=6, decimal_places=2)
    overall_rating_label = forms.CharField(required=False, max_length=64)
    manager_summary = forms.CharField(required=False)
    strengths = forms.CharField(required=False)
    improvement_areas = forms.CharField(required=False)
    development_recommendations = forms.CharField(required=False)
    expected_version = forms.IntegerField(required=False, min_value=0)


class AcknowledgeForm(PayloadForm):
    comment = forms.CharField(required=False)
