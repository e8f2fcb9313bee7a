# -*- coding: utf-8 -*-
from django import forms

from performance.models import VisibilityFieldType
from .base import ListField, PayloadForm


class VisibilityRuleForm(PayloadForm):
    name = forms.CharField(max_length=128)
    description = forms.CharField(required=False)
    field_type = forms.ChoiceField(choices=VisibilityFieldType.choices)
    allowed_roles = ListField()
    is_active = forms.NullBooleanField(required=False)
    effective_from = forms.DateTimeField(required=False)
    effective_to = forms.DateTimeField(required=False)

    def clean(self):
        cleaned = super().clean()
        start, end = cleaned.get("effective_from"), cleaned.get("effective_to")
        if start and end and end < start:
            self.add_error("effective_to", "effective_to cannot precede effective_from.")
        return cleaned
