# notifications/views.py
import json

from django.contrib.auth.mixins import LoginRequiredMixin
from django.http import JsonResponse
from django.views import View

from hr.services import get_employee_for_user
from . import services


def _as_dict(n):
    return {
        "id": n.pk,
        "type": n.notification_type,
        "message": n.message,
        "createdAt": n.created_at.isoformat(),
        "readAt": n.read_at.isoformat() if n.read_at else None,
    }


class InboxView(LoginRequiredMixin, View):
    """Polled by the client (every ~30s) for the bell counter."""
    raise_exception = True

    def get(self, request):
        me = get_employee_for_user(request.user)
        if not me:
            return JsonResponse({"results": [], "unread": 0})
        unread_only = request.GET.get("unread") in ("1", "true")
        qs = services.list_unread(me.id) if unread_only else services.list_for_recipient(me.id)
        items = [_as_dict(n) for n in qs]
        return JsonResponse({"results": items, "unread": services.unread_count(me.id)})


class MarkReadView(LoginRequiredMixin, View):
    raise_exception = True

    def post(self, request):
        me = get_employee_for_user(request.user)
        if not me:
            return JsonResponse({"updated": 0})
        try:
            payload = json.loads(request.body or b"{}")
        except ValueError:
            payload = {}
        updated = services.mark_read(me.id, payload.get("ids") or ())
        return JsonResponse({"updated": updated})
