# -*- coding: utf-8 -*-
from django import forms

from performance.models import TemplateType
from .base import DictField, ListField, PayloadForm, snake_keys


class TemplateForm(PayloadForm):
    name = forms.CharField(max_length=255)
    template_type = forms.ChoiceField(choices=TemplateType.choices, required=False)
    description = forms.CharField(required=False)
    instructions = forms.CharField(required=False)
    rating_scale = DictField()
    criteria = ListField()
    is_active = forms.NullBooleanField(required=False)

    def clean_criteria(self):
        return [snake_keys(c) if isinstance(c, dict) else c for c in self.cleaned_data["criteria"]]
