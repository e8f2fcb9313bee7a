# -*- coding: utf-8 -*-
from performance.exceptions import PermissionDeniedError
from performance.forms import AcknowledgeForm
from performance.services import evaluations as svc
from performance.services.visibility import serialize_appraisal
from .mixins import ApiView


class EvaluationDetailView(ApiView):
    """Read model filtered by visibility rules; the employee's first look is recorded."""

    def get(self, request, pk):
        svc.mark_viewed(self.actor, pk)
        return self.ok(serialize_appraisal(svc.get_evaluation(pk), self.actor))


class AcknowledgeView(ApiView):

    def post(self, request, pk):
        data = self.form_payload(AcknowledgeForm)
        svc.acknowledge_evaluation(self.actor, pk, comment=data.get("comment"))
        return self.ok(serialize_appraisal(svc.get_evaluation(pk), self.actor))


class EmployeeHistoryView(ApiView):

    def get(self, request, employee_id):
        if not (self.actor.is_employee(employee_id) or self.actor.can("can_view_all_appraisals")):
            raise PermissionDeniedError("You cannot view this employee's history.")
        records = svc.employee_history(employee_id)
        return self.ok({"results": [serialize_appraisal(r, self.actor) for r in records]})
