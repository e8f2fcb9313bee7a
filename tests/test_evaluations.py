from decimal import Decimal

import pytest

from performance.exceptions import (
    ConflictError,
    InvalidStateError,
    InvalidTransitionError,
    NotPublishedError,
    PermissionDeniedError,
)
from performance.models import AppraisalRecordStatus, AssignmentStatus
from performance.services import assignments as assignment_svc
from performance.services import evaluations as svc
from performance.services.stages import Acknowledged, Draft, ManagerSubmitted, Published, SelfSubmitted
from tests.conftest import GOOD_SECTIONS


@pytest.mark.django_db
class TestSelfAssessment:

    def test_submit_requires_start(self, first_assignment, staff_actors):
        with pytest.raises(InvalidTransitionError):
            svc.submit_self_assessment(staff_actors[0], first_assignment.pk, [], "")

    def test_submit_then_resubmit(self, first_assignment, staff_actors):
        me = staff_actors[0]
        assignment_svc.start_self_assessment(me, first_assignment.pk)
        record = svc.submit_self_assessment(me, first_assignment.pk, [{"key": "quality", "note": "v1"}], "first")
        first_time = record.self_submitted_at
        record = svc.submit_self_assessment(me, first_assignment.pk, [{"key": "quality", "note": "v2"}], "second")

        first_assignment.refresh_from_db()
        assert first_assignment.status == AssignmentStatus.SUBMITTED
        assert record.status == AppraisalRecordStatus.SELF_SUBMITTED
        assert record.self_assessment["overall_comments"] == "second"
        assert record.self_submitted_at >= first_time
        assert isinstance(svc.get_stage(record.pk), SelfSubmitted)

    def test_someone_else_cannot_submit(self, first_assignment, staff_actors):
        assignment_svc.start_self_assessment(staff_actors[0], first_assignment.pk)
        with pytest.raises(PermissionDeniedError):
            svc.submit_self_assessment(staff_actors[1], first_assignment.pk, [], "")

    def test_stale_version_conflicts(self, first_assignment, staff_actors):
        me = staff_actors[0]
        assignment_svc.start_self_assessment(me, first_assignment.pk)
        record = svc.submit_self_assessment(me, first_assignment.pk, [], "v1", expected_version=0)
        with pytest.raises(ConflictError):
            svc.submit_self_assessment(me, first_assignment.pk, [], "v2", expected_version=record.version - 1)

    def test_closed_after_manager_evaluation(self, evaluated, staff_actors):
        with pytest.raises(InvalidStateError):
            svc.submit_self_assessment(staff_actors[0], evaluated.assignment_id, [], "late")


@pytest.mark.django_db
class TestManagerEvaluation:

    def test_scores_and_submits(self, evaluated):
        evaluated.refresh_from_db()
        assert evaluated.total_score == Decimal("4.40")
        assert evaluated.final_rating == Decimal("4.40")
        assert evaluated.overall_rating_label == "Very good"
        assert evaluated.status == AppraisalRecordStatus.MANAGER_SUBMITTED
        assert evaluated.ratings.count() == 2
        stage = svc.get_stage(evaluated.pk)
        assert isinstance(stage, ManagerSubmitted) and not isinstance(stage, Published)
        assert stage.manager_summary == "Strong quarter"

    def test_only_the_manager_or_hr(self, first_assignment, staff_actors):
        with pytest.raises(PermissionDeniedError):
            svc.submit_manager_evaluation(staff_actors[1], first_assignment.pk, GOOD_SECTIONS)

    def test_manager_can_evaluate_before_self_assessment(self, first_assignment, head_actor):
        record = svc.submit_manager_evaluation(head_actor, first_assignment.pk, GOOD_SECTIONS)
        first_assignment.refresh_from_db()
        assert first_assignment.status == AssignmentStatus.SUBMITTED
        assert record.self_submitted_at is None

    def test_score_frozen_only_once_published(self, evaluated, hr_actor, active_cycle):
        from performance.services import cycles as cycle_svc

        assert evaluated.score_frozen is False
        cycle_svc.publish_cycle(hr_actor, active_cycle.pk)
        evaluated.refresh_from_db()
        assert evaluated.score_frozen is True

    def test_re_edit_after_publish_keeps_score(self, published, head_actor):
        svc.submit_manager_evaluation(
            head_actor,
            published.assignment_id,
            [{"key": "quality", "rating_value": 1, "comments": "Rewritten"}],
            manager_summary="Revised summary",
        )
        published.refresh_from_db()
        published.assignment.refresh_from_db()
        assert published.total_score == Decimal("4.40")
        assert published.manager_summary == "Revised summary"
        assert published.ratings.get(key="quality").comments == "Rewritten"
        assert published.ratings.get(key="quality").rating_value == Decimal("4")
        assert published.assignment.status == AssignmentStatus.PUBLISHED
        assert published.audit_notes[-1]["kind"] == "manager_reedit"


@pytest.mark.django_db
class TestAcknowledge:

    def test_unpublished_cannot_be_acknowledged(self, evaluated, staff_actors):
        with pytest.raises(NotPublishedError):
            svc.acknowledge_evaluation(staff_actors[0], evaluated.pk)
        evaluated.refresh_from_db()
        assert evaluated.employee_acknowledged_at is None
        assert evaluated.assignment.status == AssignmentStatus.SUBMITTED

    def test_acknowledge_published(self, published, staff_actors):
        record = svc.acknowledge_evaluation(staff_actors[0], published.pk, comment="Thanks")
        published.assignment.refresh_from_db()
        assert published.assignment.status == AssignmentStatus.ACKNOWLEDGED
        assert record.employee_acknowledgement_comment == "Thanks"
        assert isinstance(svc.get_stage(published.pk), Acknowledged)
        with pytest.raises(NotPublishedError):
            svc.acknowledge_evaluation(staff_actors[0], published.pk)

    def test_only_the_subject_acknowledges(self, published, head_actor):
        with pytest.raises(PermissionDeniedError):
            svc.acknowledge_evaluation(head_actor, published.pk)

    def test_first_view_is_recorded(self, published, staff_actors, head_actor):
        svc.mark_viewed(head_actor, published.pk)
        published.refresh_from_db()
        assert published.employee_viewed_at is None
        svc.mark_viewed(staff_actors[0], published.pk)
        published.refresh_from_db()
        assert published.employee_viewed_at is not None


@pytest.mark.django_db
class TestHistory:

    def test_history_lists_published_only(self, published, org):
        assert list(svc.employee_history(org["staff"][0].pk)) == [published]
        assert list(svc.employee_history(org["staff"][1].pk)) == []

    def test_draft_stage(self, first_assignment, staff_actors):
        assignment_svc.start_self_assessment(staff_actors[0], first_assignment.pk)
        record = svc.get_for_cycle_and_employee(first_assignment.cycle_id, first_assignment.employee_id)
        assert type(svc.get_stage(record.pk)) is Draft
