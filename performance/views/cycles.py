# -*- coding: utf-8 -*-
from performance.forms import CycleForm
from performance.services import assignments as assignment_svc
from performance.services import cycles as svc
from performance.services import progress
from .mixins import ApiView
from .serializers import assignment_to_dict, cycle_to_dict


class CycleListView(ApiView):

    def get(self, request):
        items = svc.list_cycles(status=request.GET.get("status") or None)
        return self.ok({"results": [cycle_to_dict(c, with_targets=False) for c in items]})

    def post(self, request):
        cycle = svc.create_cycle(self.actor, **self.form_payload(CycleForm))
        return self.ok(cycle_to_dict(svc.get_cycle(cycle.pk)), status=201)


class CycleDetailView(ApiView):

    def get(self, request, pk):
        return self.ok(cycle_to_dict(svc.get_cycle(pk)))

    def patch(self, request, pk):
        svc.update_cycle(self.actor, pk, **self.form_payload(CycleForm, partial=True))
        return self.ok(cycle_to_dict(svc.get_cycle(pk)))

    def delete(self, request, pk):
        svc.delete_cycle(self.actor, pk)
        return self.no_content()


class CycleActivateView(ApiView):
    """الملخص يحوي ما أُنشئ/تُخطّي/فشل لكل موظف"""

    def post(self, request, pk):
        summary = svc.activate_cycle(self.actor, pk)
        return self.ok(summary.to_dict(), status=200 if summary.ok else 207)


class CyclePublishView(ApiView):

    def post(self, request, pk):
        summary = svc.publish_cycle(self.actor, pk)
        return self.ok(summary.to_dict(), status=200 if summary.ok else 207)


class CycleArchiveView(ApiView):

    def post(self, request, pk):
        return self.ok(cycle_to_dict(svc.archive_cycle(self.actor, pk), with_targets=False))


class CycleProgressView(ApiView):

    def get(self, request, pk):
        self.actor.require("can_view_all_appraisals")
        return self.ok(progress.cycle_progress(pk))


class CycleDepartmentBreakdownView(ApiView):

    def get(self, request, pk):
        self.actor.require("can_view_all_appraisals")
        return self.ok({"results": progress.department_breakdown(pk)})


class CycleAssignmentListView(ApiView):

    def get(self, request, pk):
        self.actor.require("can_view_all_appraisals")
        items = assignment_svc.list_for_cycle(
            pk, status=request.GET.get("status") or None, department_id=self.query_int("departmentId")
        )
        return self.ok({"results": [assignment_to_dict(a) for a in items]})
