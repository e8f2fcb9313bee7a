import datetime

import pytest
from django.utils import timezone

from performance.access import Role
from performance.exceptions import PermissionDeniedError, ValidationError
from performance.models import VisibilityFieldType as F
from performance.services import visibility as svc
from tests.conftest import actor_of

EVERYONE = [Role.DEPARTMENT_EMPLOYEE, Role.DEPARTMENT_HEAD, Role.HR_MANAGER]


@pytest.fixture
def admin_actor(org):
    return actor_of(org["hr"], Role.HR_ADMIN)


@pytest.fixture
def open_rules(admin_actor):
    for field_type in (F.SELF_ASSESSMENT, F.RATINGS, F.COMMENTS, F.OVERALL_SCORE, F.FINAL_RATING, F.MANAGER_SUMMARY):
        svc.create_rule(admin_actor, name=f"All see {field_type}", field_type=field_type, allowed_roles=EVERYONE)


@pytest.mark.django_db
class TestRuleEngine:

    def test_fail_closed_without_rules(self, db):
        assert svc.is_field_visible(F.RATINGS, Role.HR_MANAGER) is False
        assert svc.visible_fields([Role.HR_MANAGER]) == frozenset()

    def test_rule_grants_listed_roles_only(self, admin_actor):
        svc.create_rule(admin_actor, name="HR ratings", field_type=F.RATINGS, allowed_roles=[Role.HR_MANAGER])
        assert svc.is_field_visible(F.RATINGS, Role.HR_MANAGER)
        assert not svc.is_field_visible(F.RATINGS, Role.DEPARTMENT_EMPLOYEE)

    def test_effective_window(self, admin_actor):
        now = timezone.now()
        svc.create_rule(
            admin_actor,
            name="Next month",
            field_type=F.STRENGTHS,
            allowed_roles=[Role.DEPARTMENT_HEAD],
            effective_from=now + datetime.timedelta(days=30),
        )
        assert not svc.is_field_visible(F.STRENGTHS, Role.DEPARTMENT_HEAD, at_time=now)
        assert svc.is_field_visible(F.STRENGTHS, Role.DEPARTMENT_HEAD, at_time=now + datetime.timedelta(days=31))

    def test_inactive_rule_grants_nothing(self, admin_actor):
        rule = svc.create_rule(admin_actor, name="Off", field_type=F.RATINGS, allowed_roles=[Role.HR_MANAGER])
        svc.update_rule(admin_actor, rule.pk, is_active=False)
        assert not svc.is_field_visible(F.RATINGS, Role.HR_MANAGER)

    def test_validation(self, admin_actor):
        with pytest.raises(ValidationError):
            svc.create_rule(admin_actor, name="Bad role", field_type=F.RATINGS, allowed_roles=["JANITOR"])
        with pytest.raises(ValidationError):
            svc.create_rule(admin_actor, name="Bad type", field_type="SALARY", allowed_roles=[Role.HR_MANAGER])

    def test_only_admins_manage_rules(self, hr_actor):
        with pytest.raises(PermissionDeniedError):
            svc.create_rule(hr_actor, name="x", field_type=F.RATINGS, allowed_roles=[Role.HR_MANAGER])


@pytest.mark.django_db
class TestSerializeAppraisal:

    def test_subject_sees_no_scores_before_publish(self, open_rules, evaluated, staff_actors):
        data = svc.serialize_appraisal(evaluated, staff_actors[0])
        assert "selfAssessment" in data
        assert "ratings" not in data
        assert "totalScore" not in data
        assert "managerSummary" not in data

    def test_subject_sees_scores_after_publish(self, open_rules, published, staff_actors):
        data = svc.serialize_appraisal(published, staff_actors[0])
        assert data["totalScore"] == 4.4
        assert {r["key"] for r in data["ratings"]} == {"quality", "delivery"}
        assert data["managerSummary"] == "Strong quarter"

    def test_manager_follows_rules(self, open_rules, evaluated, head_actor):
        data = svc.serialize_appraisal(evaluated, head_actor)
        assert data["totalScore"] == 4.4
        assert "strengths" not in data

    def test_no_rules_means_no_content(self, published, head_actor):
        data = svc.serialize_appraisal(published, head_actor)
        assert "ratings" not in data
        assert "selfAssessment" not in data
        assert data["stage"] == "HR_PUBLISHED"

    def test_outsider_is_refused(self, evaluated, staff_actors):
        with pytest.raises(PermissionDeniedError):
            svc.serialize_appraisal(evaluated, staff_actors[1])
