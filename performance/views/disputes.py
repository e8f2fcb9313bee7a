# -*- coding: utf-8 -*-
from performance.forms import DisputeForm, ResolveDisputeForm, StartReviewForm
from performance.services import disputes as svc
from .mixins import ApiView, ObjectPermissionRequiredMixin
from .serializers import dispute_to_dict


class DisputeListView(ApiView):
    """HR reviewers see everything (?status=), everyone else their own disputes."""

    def get(self, request):
        if self.actor.can("can_resolve_dispute"):
            items = svc.list_disputes(request.GET.get("status") or None, cycle_id=self.query_int("cycleId"))
        elif self.actor.employee_id:
            items = svc.list_for_employee(self.actor.employee_id)
        else:
            items = []
        return self.ok({"results": [dispute_to_dict(d) for d in items]})

    def post(self, request):
        dispute = svc.create_dispute(self.actor, **self.form_payload(DisputeForm))
        return self.ok(dispute_to_dict(dispute), status=201)


class DisputeDetailView(ObjectPermissionRequiredMixin, ApiView):
    required_perms = ["performance.view_appraisaldispute"]
    bypass_capability = "can_resolve_dispute"

    def get(self, request, pk):
        dispute = svc.get_dispute(pk)
        self.check_object_permissions(dispute)
        return self.ok(dispute_to_dict(dispute))


class DisputeReviewView(ApiView):

    def post(self, request, pk):
        data = self.form_payload(StartReviewForm)
        return self.ok(dispute_to_dict(svc.start_review(self.actor, pk, data.get("reviewer_id"))))


class DisputeResolveView(ApiView):

    def post(self, request, pk):
        return self.ok(dispute_to_dict(svc.resolve_dispute(self.actor, pk, **self.form_payload(ResolveDisputeForm))))
