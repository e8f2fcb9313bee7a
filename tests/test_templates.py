import pytest

from performance.exceptions import ConflictError, InvalidStateError, PermissionDeniedError, ValidationError
from performance.services import templates as svc
from tests.conftest import actor_of


@pytest.mark.django_db
class TestTemplateRegistry:

    def test_create_with_weighted_criteria(self, template):
        assert template.active is True
        assert [c.key for c in template.criteria.all()] == ["quality", "delivery"]
        assert template.total_weight == 100
        assert template.rating_scale["min"] == 1.0
        assert template.rating_scale["max"] == 5.0

    def test_weights_must_sum_to_100(self, hr_actor):
        with pytest.raises(ValidationError):
            svc.create_template(
                hr_actor,
                name="Broken",
                criteria=[{"key": "a", "weight": 50}, {"key": "b", "weight": 40}],
            )

    def test_weights_within_tolerance_are_accepted(self, hr_actor):
        template = svc.create_template(
            hr_actor,
            name="Thirds",
            criteria=[{"key": "a", "weight": "33.33"}, {"key": "b", "weight": "33.33"}, {"key": "c", "weight": "33.33"}],
        )
        assert template.criteria.count() == 3

    def test_unweighted_template_is_allowed(self, hr_actor):
        template = svc.create_template(hr_actor, name="Free form", criteria=[{"key": "a"}, {"key": "b"}])
        assert template.total_weight == 0

    def test_duplicate_keys_and_names_rejected(self, hr_actor, template):
        with pytest.raises(ValidationError):
            svc.create_template(hr_actor, name="Dup keys", criteria=[{"key": "a", "weight": 50}, {"key": "a", "weight": 50}])
        with pytest.raises(ValidationError):
            svc.create_template(hr_actor, name="annual REVIEW")

    def test_bad_scale_rejected(self, hr_actor):
        with pytest.raises(ValidationError):
            svc.create_template(hr_actor, name="Upside down", rating_scale={"type": "FIVE_POINT", "min": 5, "max": 1})

    def test_employee_cannot_manage_templates(self, org):
        employee = actor_of(org["staff"][0], "DEPARTMENT_EMPLOYEE")
        with pytest.raises(PermissionDeniedError):
            svc.create_template(employee, name="Mine")

    def test_update_replaces_criteria(self, hr_actor, template):
        svc.update_template(hr_actor, template.pk, criteria=[{"key": "impact", "weight": 100}])
        assert list(template.criteria.values_list("key", flat=True)) == ["impact"]

    def test_criteria_frozen_while_cycle_active(self, hr_actor, active_cycle, template):
        with pytest.raises(InvalidStateError):
            svc.update_template(hr_actor, template.pk, criteria=[{"key": "impact", "weight": 100}])
        # narrative fields stay editable
        svc.update_template(hr_actor, template.pk, description="Updated text")
        template.refresh_from_db()
        assert template.description == "Updated text"

    def test_referenced_template_cannot_be_deleted(self, hr_actor, cycle, template):
        with pytest.raises(ConflictError):
            svc.delete_template(hr_actor, template.pk)
        svc.deactivate_template(hr_actor, template.pk)
        template.refresh_from_db()
        assert template.active is False
        assert template not in svc.list_templates(is_active=True)

    def test_unreferenced_template_can_be_deleted(self, hr_actor):
        template = svc.create_template(hr_actor, name="Scratch")
        svc.delete_template(hr_actor, template.pk)
        assert not svc.list_templates().filter(pk=template.pk).exists()
