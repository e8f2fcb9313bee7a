# -*- coding: utf-8 -*-
from performance.forms import MeetingForm, MeetingUpdateForm
from performance.services import meetings as svc
from .mixins import ApiView
from .serializers import meeting_to_dict


class MeetingListView(ApiView):
    """?scope=employee (default) | manager"""

    def get(self, request):
        me = self.actor.employee_id
        if me is None:
            return self.ok({"results": []})
        status = request.GET.get("status") or None
        if request.GET.get("scope") == "manager":
            items = svc.list_for_manager(me, status)
        else:
            items = svc.list_for_employee(me, status)
        return self.ok({"results": [meeting_to_dict(m) for m in items]})

    def post(self, request):
        return self.ok(meeting_to_dict(svc.schedule_meeting(self.actor, **self.form_payload(MeetingForm))), status=201)


class MeetingDetailView(ApiView):

    def patch(self, request, pk):
        data = self.form_payload(MeetingUpdateForm, partial=True)
        return self.ok(meeting_to_dict(svc.update_meeting(self.actor, pk, **data)))

    def delete(self, request, pk):
        svc.delete_meeting(self.actor, pk)
        return self.no_content()


class MeetingCompleteView(ApiView):

    def post(self, request, pk):
        notes = self.body().get("meetingNotes", self.body().get("meeting_notes"))
        return self.ok(meeting_to_dict(svc.complete_meeting(self.actor, pk, notes)))


class MeetingCancelView(ApiView):

    def post(self, request, pk):
        return self.ok(meeting_to_dict(svc.cancel_meeting(self.actor, pk)))
