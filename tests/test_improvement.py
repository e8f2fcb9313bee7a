import datetime

import pytest

from notifications.models import Notification, NotificationType
from performance.exceptions import (
    ConflictError,
    InvalidStateError,
    InvalidTransitionError,
    PermissionDeniedError,
    ValidationError,
)
from performance.models import PipStatus
from performance.services import improvement as svc

START = datetime.date(2025, 4, 1)
TARGET = datetime.date(2025, 6, 30)


@pytest.fixture
def pip(evaluated, head_actor):
    return svc.create_pip(
        head_actor,
        evaluation_id=evaluated.pk,
        title="Delivery focus",
        reason="Missed two milestones",
        start_date=START,
        target_completion_date=TARGET,
        action_items=[{"item": "Weekly planning"}],
    )


@pytest.mark.django_db
class TestImprovementPlans:

    def test_created_as_draft(self, pip, org):
        assert pip.status == PipStatus.DRAFT
        assert pip.employee_id == org["staff"][0].pk
        assert pip.created_by_manager_id == org["head"].pk

    def test_needs_manager_evaluation(self, first_assignment, head_actor):
        from performance.services import assignments as assignment_svc
        from tests.conftest import actor_of

        me = actor_of(first_assignment.employee, "DEPARTMENT_EMPLOYEE")
        assignment_svc.start_self_assessment(me, first_assignment.pk)
        record = first_assignment.latest_appraisal
        with pytest.raises(InvalidStateError):
            svc.create_pip(head_actor, evaluation_id=record.pk, title="t", reason="r",
                           start_date=START, target_completion_date=TARGET)

    def test_one_plan_per_evaluation(self, pip, head_actor):
        with pytest.raises(ConflictError):
            svc.create_pip(head_actor, evaluation_id=pip.appraisal_id, title="Again", reason="r",
                           start_date=START, target_completion_date=TARGET)

    def test_target_after_start(self, evaluated, head_actor):
        with pytest.raises(ValidationError):
            svc.create_pip(head_actor, evaluation_id=evaluated.pk, title="t", reason="r",
                           start_date=TARGET, target_completion_date=START)

    def test_status_moves(self, pip, head_actor, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            svc.update_pip(head_actor, pip.pk, status=PipStatus.ACTIVE)
        assert Notification.objects.filter(
            recipient_id=pip.employee_id, notification_type=NotificationType.PIP_ACTIVATED
        ).exists()

        done = svc.update_pip(
            head_actor, pip.pk, status=PipStatus.COMPLETED, actual_completion_date=datetime.date(2025, 6, 15)
        )
        assert done.status == PipStatus.COMPLETED
        with pytest.raises(InvalidStateError):
            svc.update_pip(head_actor, pip.pk, title="Renamed")
        notes = svc.update_pip(head_actor, pip.pk, final_outcome="Met all targets")
        assert notes.final_outcome == "Met all targets"

    def test_draft_cannot_jump_to_completed(self, pip, head_actor):
        with pytest.raises(InvalidTransitionError):
            svc.update_pip(head_actor, pip.pk, status=PipStatus.COMPLETED)

    def test_colleague_cannot_manage(self, pip, staff_actors):
        with pytest.raises(PermissionDeniedError):
            svc.update_pip(staff_actors[1], pip.pk, title="x")

    def test_lists(self, pip, org):
        assert list(svc.list_pips_for_employee(org["staff"][0].pk)) == [pip]
        assert list(svc.list_pips_for_manager(org["head"].pk)) == [pip]
        assert svc.get_pip_for_appraisal(pip.appraisal_id) == pip


@pytest.mark.django_db
class TestHighPerformers:

    def test_flag_is_an_upsert(self, evaluated, head_actor):
        first = svc.flag_high_performer(head_actor, evaluation_id=evaluated.pk, notes="Top delivery")
        second = svc.flag_high_performer(
            head_actor, evaluation_id=evaluated.pk, promotion_recommendation="Senior developer"
        )
        assert first.pk == second.pk
        assert second.promotion_recommendation == "Senior developer"
        assert list(svc.list_high_performers(cycle_id=evaluated.cycle_id)) == [second]

    def test_unflag(self, evaluated, head_actor):
        svc.flag_high_performer(head_actor, evaluation_id=evaluated.pk)
        assert svc.unflag_high_performer(head_actor, evaluated.pk) is True
        assert svc.get_flag(evaluated.pk) is None
        assert svc.unflag_high_performer(head_actor, evaluated.pk) is False

    def test_employee_cannot_flag(self, evaluated, staff_actors):
        with pytest.raises(PermissionDeniedError):
            svc.flag_high_performer(staff_actors[1], evaluation_id=evaluated.pk)
