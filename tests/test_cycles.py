import datetime

import pytest
from django.db import DatabaseError

from notifications.models import Notification, NotificationType
from performance.exceptions import EmptyTargetError, InvalidStateError, PermissionDeniedError, ValidationError
from performance.models import AppraisalAssignment, AssignmentStatus, CycleStatus
from performance.services import cycles as svc
from performance.services import evaluations as evaluation_svc
from tests.conftest import GOOD_SECTIONS


@pytest.mark.django_db
class TestCycleLifecycle:

    def test_create_starts_planned_with_bindings(self, cycle, template, org):
        assert cycle.status == CycleStatus.PLANNED
        binding = cycle.template_assignments.get()
        assert binding.template_id == template.pk
        assert list(binding.departments.values_list("pk", flat=True)) == [org["engineering"].pk]

    def test_end_must_follow_start(self, hr_actor):
        with pytest.raises(ValidationError):
            svc.create_cycle(
                hr_actor, name="Backwards", start_date=datetime.date(2025, 3, 1), end_date=datetime.date(2025, 1, 1)
            )

    def test_only_cycle_managers_create(self, head_actor):
        with pytest.raises(PermissionDeniedError):
            svc.create_cycle(
                head_actor, name="Nope", start_date=datetime.date(2025, 1, 1), end_date=datetime.date(2025, 2, 1)
            )

    def test_activation_creates_one_assignment_per_active_employee(self, hr_actor, cycle, org):
        summary = svc.activate_cycle(hr_actor, cycle.pk)
        cycle.refresh_from_db()

        assert summary.ok
        assert cycle.status == CycleStatus.ACTIVE
        assert cycle.activated_at is not None
        assignments = AppraisalAssignment.objects.filter(cycle=cycle)
        assert assignments.count() == 3
        assert set(assignments.values_list("status", flat=True)) == {AssignmentStatus.NOT_STARTED}
        assert set(assignments.values_list("employee_id", flat=True)) == {e.pk for e in org["staff"]}
        assert set(assignments.values_list("manager_id", flat=True)) == {org["head"].pk}

    def test_second_activation_is_rejected_without_duplicates(self, hr_actor, active_cycle):
        with pytest.raises(InvalidStateError):
            svc.activate_cycle(hr_actor, active_cycle.pk)
        assert AppraisalAssignment.objects.filter(cycle=active_cycle).count() == 3

    def test_overlapping_bindings_assign_once(self, hr_actor, template, org):
        other = svc.create_cycle(
            hr_actor,
            name="Overlap",
            start_date=datetime.date(2025, 4, 1),
            end_date=datetime.date(2025, 6, 30),
            template_assignments=[
                {"template_id": template.pk, "department_ids": [org["engineering"].pk]},
                {"template_id": template.pk, "position_ids": [org["developer"].pk]},
            ],
        )
        summary = svc.activate_cycle(hr_actor, other.pk)
        assert len(summary.created) == 3

    def test_exclusions_are_honoured(self, hr_actor, template, org):
        skipped = org["staff"][1]
        other = svc.create_cycle(
            hr_actor,
            name="Minus one",
            start_date=datetime.date(2025, 4, 1),
            end_date=datetime.date(2025, 6, 30),
            template_assignments=[{
                "template_id": template.pk,
                "department_ids": [org["engineering"].pk],
                "exclude_employee_ids": [skipped.pk],
            }],
        )
        svc.activate_cycle(hr_actor, other.pk)
        assert not AppraisalAssignment.objects.filter(cycle=other, employee=skipped).exists()

    def test_empty_target_keeps_cycle_planned(self, hr_actor, template, org):
        empty = svc.create_cycle(
            hr_actor,
            name="Nobody",
            start_date=datetime.date(2025, 4, 1),
            end_date=datetime.date(2025, 6, 30),
            template_assignments=[{"template_id": template.pk, "department_ids": [org["hr_dept"].pk]}],
        )
        org["hr"].department = None
        org["hr"].save()
        with pytest.raises(EmptyTargetError):
            svc.activate_cycle(hr_actor, empty.pk)
        empty.refresh_from_db()
        assert empty.status == CycleStatus.PLANNED

    def test_partial_failure_keeps_cycle_planned_until_retry(self, hr_actor, cycle, org, monkeypatch):
        unlucky = org["staff"][1].pk
        real_create = AppraisalAssignment.objects.create

        def flaky_create(**kwargs):
            if kwargs.get("employee_id") == unlucky:
                raise DatabaseError("disk full")
            return real_create(**kwargs)

        monkeypatch.setattr(AppraisalAssignment.objects, "create", flaky_create)
        summary = svc.activate_cycle(hr_actor, cycle.pk)

        cycle.refresh_from_db()
        assert not summary.ok
        assert [f["employeeId"] for f in summary.failures] == [unlucky]
        assert len(summary.created) == 2
        assert cycle.status == CycleStatus.PLANNED

        monkeypatch.undo()
        retry = svc.activate_cycle(hr_actor, cycle.pk)

        cycle.refresh_from_db()
        assert retry.ok
        assert len(retry.created) == 1
        assert len(retry.skipped) == 2
        assert cycle.status == CycleStatus.ACTIVE
        assert AppraisalAssignment.objects.filter(cycle=cycle).count() == 3
        assert AppraisalAssignment.objects.filter(cycle=cycle, employee_id=unlucky).count() == 1

    def test_dates_locked_once_active(self, hr_actor, active_cycle):
        with pytest.raises(InvalidStateError):
            svc.update_cycle(hr_actor, active_cycle.pk, end_date=datetime.date(2025, 4, 30))
        svc.update_cycle(hr_actor, active_cycle.pk, name="Q1 2025 (renamed)")
        active_cycle.refresh_from_db()
        assert active_cycle.name == "Q1 2025 (renamed)"

    def test_only_planned_cycles_can_be_deleted(self, hr_actor, active_cycle):
        with pytest.raises(InvalidStateError):
            svc.delete_cycle(hr_actor, active_cycle.pk)


@pytest.mark.django_db
class TestPublish:

    def test_publish_moves_submitted_to_published(self, hr_actor, evaluated, active_cycle, org, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            summary = svc.publish_cycle(hr_actor, active_cycle.pk)

        evaluated.refresh_from_db()
        evaluated.assignment.refresh_from_db()
        active_cycle.refresh_from_db()
        assert summary.published == [evaluated.assignment_id]
        assert evaluated.assignment.status == AssignmentStatus.PUBLISHED
        assert evaluated.hr_published_at is not None
        assert active_cycle.status == CycleStatus.CLOSED
        employee = org["staff"][0]
        assert Notification.objects.filter(
            recipient=employee, notification_type=NotificationType.APPRAISAL_PUBLISHED
        ).count() == 1

    def test_submitted_without_manager_evaluation_is_a_failure(
        self, hr_actor, active_cycle, first_assignment, staff_actors
    ):
        from performance.services import assignments as assignment_svc

        assignment_svc.start_self_assessment(staff_actors[0], first_assignment.pk)
        evaluation_svc.submit_self_assessment(staff_actors[0], first_assignment.pk, [], "")
        summary = svc.publish_cycle(hr_actor, active_cycle.pk)

        active_cycle.refresh_from_db()
        first_assignment.refresh_from_db()
        assert not summary.ok
        assert summary.failures[0]["assignmentId"] == first_assignment.pk
        assert first_assignment.status == AssignmentStatus.SUBMITTED
        assert active_cycle.status == CycleStatus.ACTIVE

    def test_publish_requires_capability(self, head_actor, active_cycle):
        with pytest.raises(PermissionDeniedError):
            svc.publish_cycle(head_actor, active_cycle.pk)

    def test_archive_after_close(self, hr_actor, published, active_cycle):
        archived = svc.archive_cycle(hr_actor, active_cycle.pk)
        assert archived.status == CycleStatus.ARCHIVED
        with pytest.raises(InvalidStateError):
            svc.publish_cycle(hr_actor, active_cycle.pk)

    def test_manager_eval_alone_is_publishable(self, hr_actor, active_cycle, org, head_actor):
        from performance.services import assignments as assignment_svc

        second = assignment_svc.get_for_cycle_and_employee(active_cycle.pk, org["staff"][1].pk)
        evaluation_svc.submit_manager_evaluation(head_actor, second.pk, GOOD_SECTIONS)
        summary = svc.publish_cycle(hr_actor, active_cycle.pk)
        assert summary.published == [second.pk]

    def test_late_submission_published_individually(
        self, hr_actor, head_actor, published, active_cycle, org, django_capture_on_commit_callbacks
    ):
        from performance.services import assignments as assignment_svc

        active_cycle.refresh_from_db()
        assert active_cycle.status == CycleStatus.CLOSED
        late = assignment_svc.get_for_cycle_and_employee(active_cycle.pk, org["staff"][1].pk)
        evaluation_svc.submit_manager_evaluation(head_actor, late.pk, GOOD_SECTIONS)

        with pytest.raises(InvalidStateError):
            svc.publish_cycle(hr_actor, active_cycle.pk)
        with pytest.raises(PermissionDeniedError):
            svc.publish_assignment(head_actor, late.pk)

        with django_capture_on_commit_callbacks(execute=True):
            svc.publish_assignment(hr_actor, late.pk)

        late.refresh_from_db()
        active_cycle.refresh_from_db()
        assert late.status == AssignmentStatus.PUBLISHED
        assert late.appraisal.hr_published_at is not None
        assert active_cycle.status == CycleStatus.CLOSED
        assert Notification.objects.filter(
            recipient=org["staff"][1], notification_type=NotificationType.APPRAISAL_PUBLISHED
        ).count() == 1

    def test_individual_publish_needs_a_submitted_assignment(self, hr_actor, first_assignment):
        with pytest.raises(InvalidStateError):
            svc.publish_assignment(hr_actor, first_assignment.pk)
