# -*- coding: utf-8 -*-
from performance.forms import VisibilityRuleForm
from performance.services import visibility as svc
from .mixins import ApiView
from .serializers import rule_to_dict


class VisibilityRuleListView(ApiView):

    def get(self, request):
        self.actor.require("can_manage_visibility")
        if request.GET.get("active") in ("1", "true"):
            items = svc.list_active_rules()
        else:
            items = svc.list_rules(request.GET.get("fieldType") or None)
        return self.ok({"results": [rule_to_dict(r) for r in items]})

    def post(self, request):
        data = self.form_payload(VisibilityRuleForm)
        if data.get("is_active") is None:
            data.pop("is_active", None)
        return self.ok(rule_to_dict(svc.create_rule(self.actor, **data)), status=201)


class VisibilityRuleDetailView(ApiView):

    def patch(self, request, pk):
        data = self.form_payload(VisibilityRuleForm, partial=True)
        return self.ok(rule_to_dict(svc.update_rule(self.actor, pk, **data)))

    def delete(self, request, pk):
        svc.delete_rule(self.actor, pk)
        return self.no_content()
