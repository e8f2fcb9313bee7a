# -*- coding: utf-8 -*-
from performance.exceptions import PermissionDeniedError
from performance.forms import HighPerformerForm, PipForm, PipUpdateForm
from performance.services import improvement as svc
from .mixins import ApiView
from .serializers import flag_to_dict, pip_to_dict


def _can_view_pip(actor, plan) -> bool:
    return (
        actor.is_employee(plan.employee_id)
        or actor.is_employee(plan.created_by_manager_id)
        or actor.can("can_manage_pips_org_wide")
    )


class PipListView(ApiView):
    """?scope=mine (default) | team | all, or ?evaluationId= for the plan of one appraisal"""

    def get(self, request):
        evaluation_id = self.query_int("evaluationId")
        if evaluation_id is not None:
            plan = svc.get_pip_for_appraisal(evaluation_id)
            if plan is not None and not _can_view_pip(self.actor, plan):
                raise PermissionDeniedError("You cannot view this improvement plan.")
            return self.ok({"results": [pip_to_dict(plan)] if plan else []})

        scope = request.GET.get("scope") or "mine"
        me = self.actor.employee_id
        if scope == "all":
            self.actor.require("can_manage_pips_org_wide")
            items = svc.list_pips(request.GET.get("status") or None)
        elif scope == "team":
            items = svc.list_pips_for_manager(me) if me else []
        else:
            items = svc.list_pips_for_employee(me) if me else []
        return self.ok({"results": [pip_to_dict(p) for p in items]})

    def post(self, request):
        return self.ok(pip_to_dict(svc.create_pip(self.actor, **self.form_payload(PipForm))), status=201)


class PipDetailView(ApiView):

    def get(self, request, pk):
        plan = svc.get_pip(pk)
        if not _can_view_pip(self.actor, plan):
            raise PermissionDeniedError("You cannot view this improvement plan.")
        return self.ok(pip_to_dict(plan))

    def patch(self, request, pk):
        plan = svc.update_pip(self.actor, pk, **self.form_payload(PipUpdateForm, partial=True))
        return self.ok(pip_to_dict(plan))

    def delete(self, request, pk):
        svc.delete_pip(self.actor, pk)
        return self.no_content()


class HighPerformerListView(ApiView):

    def get(self, request):
        if self.actor.can("can_view_all_appraisals"):
            items = svc.list_high_performers(cycle_id=self.query_int("cycleId"))
        elif self.actor.employee_id:
            items = svc.list_high_performers_for_manager(self.actor.employee_id)
        else:
            items = []
        return self.ok({"results": [flag_to_dict(f) for f in items]})

    def post(self, request):
        data = self.form_payload(HighPerformerForm)
        if data.get("is_high_performer") is None:
            data.pop("is_high_performer", None)
        return self.ok(flag_to_dict(svc.flag_high_performer(self.actor, **data)), status=201)


class HighPerformerDetailView(ApiView):

    def delete(self, request, evaluation_id):
        svc.unflag_high_performer(self.actor, evaluation_id)
        return self.no_content()
