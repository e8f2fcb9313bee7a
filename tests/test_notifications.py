import pytest

from notifications import services as svc
from notifications.models import Notification, NotificationType


@pytest.mark.django_db
class TestNotificationSink:

    def test_notify_and_read(self, org):
        amal = org["staff"][0]
        svc.notify(amal.pk, NotificationType.GENERAL, "Hello", target=org["engineering"])
        svc.notify(amal.pk, NotificationType.GENERAL, "Again")
        assert svc.unread_count(amal.pk) == 2

        first = Notification.objects.filter(recipient=amal).last()
        assert first.target == org["engineering"]
        assert svc.mark_read(amal.pk, [first.pk]) == 1
        assert svc.unread_count(amal.pk) == 1
        assert svc.mark_read(amal.pk) == 1

    def test_failures_are_swallowed(self, org):
        # an empty message violates the check constraint
        assert svc.notify(org["staff"][0].pk, NotificationType.GENERAL, "") is None
        assert Notification.objects.count() == 0

    def test_notify_many_deduplicates(self, org):
        amal, basel = org["staff"][0], org["staff"][1]
        assert svc.notify_many([amal.pk, basel.pk, amal.pk], NotificationType.GENERAL, "Hi") == 2

    def test_on_commit(self, org, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            svc.notify_on_commit(org["staff"][0].pk, NotificationType.GENERAL, "Later")
        assert svc.unread_count(org["staff"][0].pk) == 1
