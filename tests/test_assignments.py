import pytest
from guardian.shortcuts import get_perms

from performance.exceptions import (
    ConflictError,
    EmptyTargetError,
    InvalidStateError,
    PermissionDeniedError,
)
from performance.models import AppraisalAssignment, AssignmentStatus
from performance.services import assignments as svc
from tests.conftest import actor_of


@pytest.mark.django_db
class TestManualAssignment:

    def test_assign_skips_already_assigned(self, hr_actor, active_cycle, template, org, make_employee):
        newcomer = make_employee("Nour", department=org["engineering"], manager=org["head"])
        summary = svc.assign_employees(
            hr_actor,
            cycle_id=active_cycle.pk,
            template_id=template.pk,
            employee_ids=[newcomer.pk, org["staff"][0].pk],
        )
        assert len(summary.created) == 1
        assert summary.skipped == [{"employeeId": org["staff"][0].pk, "reason": "already_assigned"}]
        assert AppraisalAssignment.objects.filter(cycle=active_cycle).count() == 4

    def test_unknown_employee_is_reported(self, hr_actor, active_cycle, template):
        summary = svc.assign_employees(
            hr_actor, cycle_id=active_cycle.pk, template_id=template.pk, employee_ids=[999999]
        )
        assert not summary.ok
        assert summary.failures[0]["employeeId"] == 999999

    def test_bulk_assign_needs_a_population(self, hr_actor, active_cycle, template):
        with pytest.raises(EmptyTargetError):
            svc.bulk_assign(hr_actor, cycle_id=active_cycle.pk, template_id=template.pk)

    def test_bulk_assign_by_position(self, hr_actor, cycle, template, org):
        summary = svc.bulk_assign(
            hr_actor, cycle_id=cycle.pk, template_id=template.pk, position_ids=[org["developer"].pk]
        )
        assert len(summary.created) == 3

    def test_only_hr_assigns(self, head_actor, active_cycle, template, org):
        with pytest.raises(PermissionDeniedError):
            svc.assign_employees(
                head_actor, cycle_id=active_cycle.pk, template_id=template.pk, employee_ids=[org["staff"][0].pk]
            )


@pytest.mark.django_db
class TestAssignmentFlow:

    def test_start_moves_to_in_progress(self, first_assignment, staff_actors):
        assignment = svc.start_self_assessment(staff_actors[0], first_assignment.pk)
        assert assignment.status == AssignmentStatus.IN_PROGRESS
        assert assignment.started_at is not None
        assert assignment.latest_appraisal is not None
        # idempotent
        again = svc.start_self_assessment(staff_actors[0], first_assignment.pk)
        assert again.status == AssignmentStatus.IN_PROGRESS

    def test_only_the_employee_starts(self, first_assignment, head_actor):
        with pytest.raises(PermissionDeniedError):
            svc.start_self_assessment(head_actor, first_assignment.pk)

    def test_planned_cycle_accepts_no_work(self, hr_actor, cycle, template, org, staff_actors):
        summary = svc.assign_employees(
            hr_actor, cycle_id=cycle.pk, template_id=template.pk, employee_ids=[org["staff"][0].pk]
        )
        with pytest.raises(InvalidStateError):
            svc.start_self_assessment(staff_actors[0], summary.created[0])

    def test_remove_only_before_submission(self, hr_actor, evaluated, active_cycle, org):
        with pytest.raises(ConflictError):
            svc.remove_assignment(hr_actor, evaluated.assignment_id)
        other = svc.get_for_cycle_and_employee(active_cycle.pk, org["staff"][2].pk)
        svc.remove_assignment(hr_actor, other.pk)
        assert not AppraisalAssignment.objects.filter(pk=other.pk).exists()

    def test_reassigning_manager_moves_object_permissions(self, hr_actor, first_assignment, org, make_employee):
        new_head = make_employee("Rami", department=org["management"], roles=["DEPARTMENT_HEAD"])
        old_user = org["head"].user
        assert "evaluate_appraisalassignment" in get_perms(old_user, first_assignment)

        updated = svc.update_assignment(hr_actor, first_assignment.pk, manager_id=new_head.pk)
        assert updated.manager_id == new_head.pk
        assert "evaluate_appraisalassignment" in get_perms(new_head.user, updated)
        assert "evaluate_appraisalassignment" not in get_perms(old_user, updated)

    def test_employee_gets_self_assess_permission(self, first_assignment, org):
        perms = get_perms(org["staff"][0].user, first_assignment)
        assert "self_assess_appraisalassignment" in perms
        assert "view_appraisalassignment" in perms

    def test_lists(self, active_cycle, org):
        assert svc.list_for_employee(org["staff"][0].pk).count() == 1
        assert svc.list_for_manager(org["head"].pk, cycle_id=active_cycle.pk).count() == 3
        assert svc.list_for_cycle(active_cycle.pk, department_id=org["engineering"].pk).count() == 3

    def test_no_manager_for_self(self, hr_actor, first_assignment):
        from performance.exceptions import ValidationError

        with pytest.raises(ValidationError):
            svc.update_assignment(hr_actor, first_assignment.pk, manager_id=first_assignment.employee_id)

    def test_stale_copy_conflicts(self, first_assignment, staff_actors):
        stale = AppraisalAssignment.objects.get(pk=first_assignment.pk)
        svc.start_self_assessment(staff_actors[0], first_assignment.pk)
        with pytest.raises(ConflictError):
            svc.transition(stale, AssignmentStatus.IN_PROGRESS)

    def test_actor_helper_roles(self, org):
        actor = actor_of(org["head"], "DEPARTMENT_HEAD")
        assert actor.can("can_flag_high_performers")
        assert not actor.can("can_publish")
