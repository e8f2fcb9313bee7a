import pytest

from performance.access import Actor, Role, actor_for_user, can_view_assignment, resolve_capabilities
from performance.exceptions import PermissionDeniedError


class TestCapabilities:

    def test_plain_employee_has_nothing(self):
        assert resolve_capabilities([Role.DEPARTMENT_EMPLOYEE]).names() == frozenset()

    def test_hr_employee_manages_but_does_not_publish(self):
        caps = resolve_capabilities([Role.HR_EMPLOYEE])
        assert caps.can_manage_cycles and caps.can_assign and caps.can_export
        assert not caps.can_publish
        assert not caps.can_resolve_dispute

    def test_hr_manager(self):
        caps = resolve_capabilities([Role.HR_MANAGER])
        assert caps.can_publish and caps.can_resolve_dispute and caps.can_manage_pips_org_wide
        assert not caps.can_manage_visibility

    def test_admins_manage_visibility(self):
        assert resolve_capabilities([Role.HR_ADMIN]).can_manage_visibility
        assert resolve_capabilities([Role.SYSTEM_ADMIN]).can_manage_visibility

    def test_roles_combine(self):
        caps = resolve_capabilities([Role.DEPARTMENT_HEAD, Role.HR_EMPLOYEE])
        assert caps.can_flag_high_performers and caps.can_assign

    def test_require(self):
        actor = Actor.build(1, [Role.DEPARTMENT_EMPLOYEE])
        with pytest.raises(PermissionDeniedError):
            actor.require("can_publish")


@pytest.mark.django_db
class TestActorForUser:

    def test_groups_become_roles(self, org):
        actor = actor_for_user(org["hr"].user)
        assert actor.employee_id == org["hr"].pk
        assert Role.HR_MANAGER in actor.roles
        assert actor.can("can_publish")
        assert actor.user_id == org["hr"].user_id

    def test_superuser_is_system_admin(self, django_user_model):
        user = django_user_model.objects.create_superuser(email="root@example.com", password="pw", username="root")
        actor = actor_for_user(user)
        assert actor.employee_id is None
        assert actor.can("can_manage_visibility")

    def test_object_rules(self, first_assignment, org, staff_actors, head_actor, hr_actor):
        assert can_view_assignment(staff_actors[0], first_assignment)
        assert can_view_assignment(head_actor, first_assignment)
        assert can_view_assignment(hr_actor, first_assignment)
        assert not can_view_assignment(staff_actors[1], first_assignment)
