from decimal import Decimal

import pytest

from notifications.models import Notification, NotificationType
from performance.exceptions import (
    ConflictError,
    DuplicateDisputeError,
    InvalidStateError,
    PermissionDeniedError,
    ValidationError,
)
from performance.models import DisputeStatus
from performance.services import disputes as svc
from performance.services import evaluations as evaluation_svc


@pytest.fixture
def dispute(published, staff_actors, org):
    return svc.create_dispute(
        staff_actors[0],
        employee_id=org["staff"][0].pk,
        evaluation_id=published.pk,
        reason="Delivery was rated too low",
        proposed_rating="4.0",
        disputed_criteria=["delivery"],
    )


@pytest.mark.django_db
class TestRaise:

    def test_opens_dispute(self, dispute, org):
        assert dispute.status == DisputeStatus.OPEN
        assert dispute.proposed_rating == Decimal("4.0")
        assert dispute.raised_by_id == org["staff"][0].pk
        assert dispute.raised_on_behalf_by_id is None

    def test_second_pending_dispute_is_rejected(self, dispute, staff_actors, org):
        with pytest.raises(DuplicateDisputeError):
            svc.create_dispute(
                staff_actors[0], employee_id=org["staff"][0].pk, evaluation_id=dispute.appraisal_id, reason="Again"
            )

    def test_hr_may_raise_on_behalf(self, published, hr_actor, org):
        dispute = svc.create_dispute(
            hr_actor, employee_id=org["staff"][0].pk, evaluation_id=published.pk, reason="Raised at the employee's request"
        )
        assert dispute.raised_on_behalf_by_id == org["hr"].pk

    def test_colleague_cannot_raise(self, published, staff_actors, org):
        with pytest.raises(PermissionDeniedError):
            svc.create_dispute(staff_actors[1], employee_id=org["staff"][0].pk, evaluation_id=published.pk, reason="x")

    def test_needs_manager_evaluation(self, first_assignment, staff_actors, org):
        from performance.services import assignments as assignment_svc

        me = staff_actors[0]
        assignment_svc.start_self_assessment(me, first_assignment.pk)
        record = evaluation_svc.submit_self_assessment(me, first_assignment.pk, [], "")
        with pytest.raises(InvalidStateError):
            svc.create_dispute(me, employee_id=org["staff"][0].pk, evaluation_id=record.pk, reason="Too early")

    def test_unknown_criteria_and_out_of_scale_rejected(self, published, staff_actors, org):
        me = staff_actors[0]
        with pytest.raises(ValidationError):
            svc.create_dispute(me, employee_id=org["staff"][0].pk, evaluation_id=published.pk, reason="x",
                               disputed_criteria=["charisma"])
        with pytest.raises(ValidationError):
            svc.create_dispute(me, employee_id=org["staff"][0].pk, evaluation_id=published.pk, reason="x",
                               proposed_rating=9)

    def test_hr_managers_are_notified(self, published, staff_actors, org, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            svc.create_dispute(
                staff_actors[0], employee_id=org["staff"][0].pk, evaluation_id=published.pk, reason="Please review"
            )
        assert Notification.objects.filter(
            recipient=org["hr"], notification_type=NotificationType.DISPUTE_RAISED
        ).count() == 1


@pytest.mark.django_db
class TestResolve:

    def test_adjustment_overwrites_score(self, dispute, hr_actor, published):
        svc.start_review(hr_actor, dispute.pk)
        resolved = svc.resolve_dispute(
            hr_actor, dispute.pk, status="RESOLVED", resolution_notes="Agreed", adjusted_rating="4.2"
        )
        published.refresh_from_db()
        assert resolved.status == DisputeStatus.ADJUSTED
        assert resolved.adjusted_rating == Decimal("4.20")
        assert published.total_score == Decimal("4.20")
        assert published.final_rating == Decimal("4.20")
        assert published.audit_notes[-1]["kind"] == "dispute_adjustment"

    def test_second_resolution_conflicts_and_first_sticks(self, dispute, hr_actor, published):
        svc.resolve_dispute(hr_actor, dispute.pk, status="RESOLVED", resolution_notes="ok", adjusted_rating="4.2")
        with pytest.raises(ConflictError):
            svc.resolve_dispute(
                hr_actor, dispute.pk, status=DisputeStatus.REJECTED, resolution_notes="changed my mind"
            )
        dispute.refresh_from_db()
        published.refresh_from_db()
        assert dispute.status == DisputeStatus.ADJUSTED
        assert published.total_score == Decimal("4.20")

    def test_adjusted_score_survives_manager_re_edit(self, dispute, hr_actor, head_actor, published):
        svc.resolve_dispute(hr_actor, dispute.pk, status=DisputeStatus.ADJUSTED, resolution_notes="ok",
                            adjusted_rating="4.2")
        evaluation_svc.submit_manager_evaluation(
            head_actor, published.assignment_id, [{"key": "delivery", "rating_value": 1}]
        )
        published.refresh_from_db()
        assert published.total_score == Decimal("4.20")

    def test_reject_keeps_score(self, dispute, hr_actor, published):
        resolved = svc.resolve_dispute(hr_actor, dispute.pk, status=DisputeStatus.REJECTED, resolution_notes="No")
        published.refresh_from_db()
        assert resolved.status == DisputeStatus.REJECTED
        assert published.total_score == Decimal("4.40")

    def test_rejection_cannot_carry_adjustment(self, dispute, hr_actor):
        with pytest.raises(ValidationError):
            svc.resolve_dispute(hr_actor, dispute.pk, status=DisputeStatus.REJECTED, resolution_notes="No",
                                adjusted_rating="3")

    def test_non_finite_adjustment_rejected(self, dispute, hr_actor):
        with pytest.raises(ValidationError):
            svc.resolve_dispute(hr_actor, dispute.pk, status=DisputeStatus.ADJUSTED, resolution_notes="ok",
                                adjusted_rating="NaN")
        dispute.refresh_from_db()
        assert dispute.status == DisputeStatus.OPEN

    def test_new_dispute_allowed_after_resolution(self, dispute, hr_actor, staff_actors, org):
        svc.resolve_dispute(hr_actor, dispute.pk, status=DisputeStatus.REJECTED, resolution_notes="No")
        again = svc.create_dispute(
            staff_actors[0], employee_id=org["staff"][0].pk, evaluation_id=dispute.appraisal_id, reason="New facts"
        )
        assert again.status == DisputeStatus.OPEN

    def test_department_head_cannot_resolve(self, dispute, head_actor):
        with pytest.raises(PermissionDeniedError):
            svc.resolve_dispute(head_actor, dispute.pk, status=DisputeStatus.REJECTED, resolution_notes="No")

    def test_lists(self, dispute, org):
        assert list(svc.list_disputes(DisputeStatus.OPEN)) == [dispute]
        assert list(svc.list_for_employee(org["staff"][0].pk)) == [dispute]
