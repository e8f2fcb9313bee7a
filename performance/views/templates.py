# -*- coding: utf-8 -*-
from performance.forms import TemplateForm
from performance.services import templates as svc
from .mixins import ApiView
from .serializers import template_to_dict


def _flag(value):
    if value in (None, ""):
        return None
    return value.lower() in ("1", "true", "yes")


class TemplateListView(ApiView):
    """GET: قائمة القوالب (فلترة isActive) / POST: إنشاء قالب"""

    def get(self, request):
        items = svc.list_templates(is_active=_flag(request.GET.get("isActive")))
        return self.ok({"results": [template_to_dict(t) for t in items]})

    def post(self, request):
        template = svc.create_template(self.actor, **self.form_payload(TemplateForm))
        return self.ok(template_to_dict(svc.get_template(template.pk)), status=201)


class TemplateDetailView(ApiView):

    def get(self, request, pk):
        return self.ok(template_to_dict(svc.get_template(pk)))

    def patch(self, request, pk):
        svc.update_template(self.actor, pk, **self.form_payload(TemplateForm, partial=True))
        return self.ok(template_to_dict(svc.get_template(pk)))

    def delete(self, request, pk):
        svc.delete_template(self.actor, pk)
        return self.no_content()


class TemplateDeactivateView(ApiView):

    def post(self, request, pk):
        svc.deactivate_template(self.actor, pk)
        return self.ok(template_to_dict(svc.get_template(pk)))
