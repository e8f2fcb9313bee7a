# -*- coding: utf-8 -*-
from django import forms

from performance.models import TemplateType
from .base import IdListField, ListField, PayloadForm, snake_keys

# keys as the client historically sent them
BINDING_ALIASES = {
    "templateId": "template_id",
    "targetDepartmentIds": "department_ids",
    "targetPositionIds": "position_ids",
    "targetEmployeeIds": "employee_ids",
    "excludeEmployeeIds": "exclude_employee_ids",
    "departmentIds": "department_ids",
    "positionIds": "position_ids",
    "employeeIds": "employee_ids",
}


class CycleForm(PayloadForm):
    name = forms.CharField(max_length=255)
    description = forms.CharField(required=False)
    cycle_type = forms.ChoiceField(choices=TemplateType.choices, required=False)
    start_date = forms.DateField()
    end_date = forms.DateField()
    manager_due_date = forms.DateField(required=False)
    employee_acknowledgement_due_date = forms.DateField(required=False)
    template_assignments = ListField()

    def clean_template_assignments(self):
        out = []
        for item in self.cleaned_data["template_assignments"]:
            if not isinstance(item, dict):
                raise forms.ValidationError("Each template assignment must be an object.")
            out.append(snake_keys(item, BINDING_ALIASES))
        return out

    def clean(self):
        cleaned = super().clean()
        start, end = cleaned.get("start_date"), cleaned.get("end_date")
        if start and end and end <= start:
            self.add_error("end_date", "End date must be after start date.")
        return cleaned


class AssignEmployeesForm(PayloadForm):
    cycle_id = forms.IntegerField()
    template_id = forms.IntegerField()
    employee_ids = IdListField(required=True)
    manager_id = forms.IntegerField(required=False)
    due_date = forms.DateField(required=False)


class BulkAssignForm(PayloadForm):
    aliases = BINDING_ALIASES
    cycle_id = forms.IntegerField()
    template_id = forms.IntegerField()
    department_ids = IdListField()
    position_ids = IdListField()
    employee_ids = IdListField()
    exclude_employee_ids = IdListField()
    manager_id = forms.IntegerField(required=False)
    due_date = forms.DateField(required=False)


class AssignmentUpdateForm(PayloadForm):
    manager_id = forms.IntegerField(required=False)
    due_date = forms.DateField(required=False)
    template_id = forms.IntegerField(required=False)
