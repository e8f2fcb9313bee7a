# -*- coding: utf-8 -*-
from performance.forms import (
    AssignEmployeesForm,
    AssignmentUpdateForm,
    BulkAssignForm,
    ManagerEvaluationForm,
    SelfAssessmentForm,
)
from performance.services import assignments as svc
from performance.services import cycles
from performance.services import evaluations
from performance.services.visibility import serialize_appraisal
from .mixins import ApiView, ObjectPermissionRequiredMixin
from .serializers import assignment_to_dict


class AssignmentListView(ApiView):
    """
    GET: my assignments (?scope=employee, default) or my team's (?scope=manager).
    POST: manual HR assignment of explicit employees.
    """

    def get(self, request):
        me = self.actor.employee_id
        if me is None:
            return self.ok({"results": []})
        cycle_id = self.query_int("cycleId")
        if request.GET.get("scope") == "manager":
            items = svc.list_for_manager(me, cycle_id=cycle_id, status=request.GET.get("status") or None)
        else:
            items = svc.list_for_employee(me, cycle_id=cycle_id)
        return self.ok({"results": [assignment_to_dict(a) for a in items]})

    def post(self, request):
        summary = svc.assign_employees(self.actor, **self.form_payload(AssignEmployeesForm))
        return self.ok(summary.to_dict(), status=201 if summary.ok else 207)


class AssignmentBulkView(ApiView):

    def post(self, request):
        summary = svc.bulk_assign(self.actor, **self.form_payload(BulkAssignForm))
        return self.ok(summary.to_dict(), status=201 if summary.ok else 207)


class AssignmentDetailView(ObjectPermissionRequiredMixin, ApiView):
    object_permission_map = {"GET": ["performance.view_appraisalassignment"]}

    def get(self, request, pk):
        assignment = svc.get_assignment(pk)
        self.check_object_permissions(assignment)
        return self.ok(assignment_to_dict(assignment))

    def patch(self, request, pk):
        assignment = svc.update_assignment(self.actor, pk, **self.form_payload(AssignmentUpdateForm, partial=True))
        return self.ok(assignment_to_dict(assignment))

    def delete(self, request, pk):
        svc.remove_assignment(self.actor, pk)
        return self.no_content()


class StartSelfAssessmentView(ApiView):

    def post(self, request, pk):
        return self.ok(assignment_to_dict(svc.start_self_assessment(self.actor, pk)))


class PublishAssignmentView(ApiView):
    """نشر تقييم متأخر بعد إغلاق الدورة"""

    def post(self, request, pk):
        return self.ok(assignment_to_dict(cycles.publish_assignment(self.actor, pk)))


class SelfAssessmentView(ApiView):

    def post(self, request, pk):
        data = self.form_payload(SelfAssessmentForm)
        record = evaluations.submit_self_assessment(
            self.actor,
            pk,
            data.get("sections", []),
            data.get("overall_comments", ""),
            expected_version=data.get("expected_version"),
        )
        return self.ok(serialize_appraisal(evaluations.get_evaluation(record.pk), self.actor))


class ManagerEvaluationView(ApiView):

    def post(self, request, pk):
        data = self.form_payload(ManagerEvaluationForm)
        sections = data.pop("sections", [])
        final_rating = data.pop("final_rating", None)
        record = evaluations.submit_manager_evaluation(self.actor, pk, sections, final_rating, **data)
        return self.ok(serialize_appraisal(evaluations.get_evaluation(record.pk), self.actor))
