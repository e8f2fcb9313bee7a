import pytest

from hr import services as hr


@pytest.mark.django_db
class TestOrgLookup:

    def test_profile(self, org):
        amal = org["staff"][0]
        profile = hr.get_employee_profile(amal.pk)
        assert profile.display_name == "Amal Tester"
        assert profile.primary_department_id == org["engineering"].pk
        assert profile.primary_position_id == org["developer"].pk
        assert profile.manager_id == org["head"].pk
        assert hr.get_employee_profile(999999) is None

    def test_reference_normalisation(self, org):
        amal = org["staff"][0]
        by_id = hr.resolve_reference(hr.ref(amal.pk))
        by_model = hr.resolve_reference(hr.ref(amal))
        assert by_id == by_model
        assert hr.ref(by_id).value is by_id

    def test_population_excludes_inactive_and_exclusions(self, org):
        staff = org["staff"]
        population = hr.resolve_population(
            department_ids=[org["engineering"].pk], exclude_employee_ids=[staff[2].pk]
        )
        assert [p.id for p in population] == [staff[0].pk, staff[1].pk]
        assert hr.resolve_population() == []

    def test_population_union_is_deduplicated_and_active_only(self, org):
        from hr.models import Employee

        ghost = Employee.objects.get(first_name="Ghost")
        population = hr.resolve_population(
            department_ids=[org["engineering"].pk],
            position_ids=[org["developer"].pk],
            employee_ids=[org["hr"].pk, ghost.pk],
        )
        expected = sorted([org["hr"].pk] + [e.pk for e in org["staff"]])
        assert [p.id for p in population] == expected

    def test_department_and_position_lookups(self, org):
        assert len(hr.employees_in_departments([org["engineering"].pk])) == 3
        assert len(hr.employees_in_positions([org["developer"].pk])) == 3
        assert [p.name for p in hr.get_positions_by_department(org["engineering"].pk)] == ["Developer"]
        assert hr.get_department_by_id(org["engineering"].pk).name == "Engineering"

    def test_for_user(self, org):
        assert hr.get_employee_for_user(org["head"].user).id == org["head"].pk
        assert hr.display_name(None) is None
