"""Shared fixtures: a small org chart, role actors and a ready-made template/cycle."""
import datetime
import itertools

import pytest
from django.contrib.auth.models import Group

from hr.models import Department, Employee, Job
from performance.access import Actor, Role
from performance.services import assignments as assignment_svc
from performance.services import cycles as cycle_svc
from performance.services import evaluations as evaluation_svc
from performance.services import templates as template_svc

_seq = itertools.count(1)


@pytest.fixture(autouse=True)
def _clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_employee(django_user_model):
    def _make(first_name, *, department=None, job=None, manager=None, roles=(), with_user=True, active=True):
        user = None
        if with_user:
            n = next(_seq)
            user = django_user_model.objects.create_user(
                email=f"{first_name.lower()}{n}@example.com", password="pw", username=f"{first_name.lower()}{n}"
            )
            for role in roles:
                group, _ = Group.objects.get_or_create(name=role)
                user.groups.add(group)
        return Employee.objects.create(
            first_name=first_name,
            last_name="Tester",
            department=department,
            job=job,
            manager=manager,
            user=user,
            active=active,
        )
    return _make


def actor_of(employee, *roles):
    return Actor.build(employee.pk, roles, user_id=employee.user_id)


@pytest.fixture
def org(db, make_employee):
    """
    HR (1 HR manager), Management (1 department head) and Engineering
    (3 developers reporting to the head, plus 1 inactive one).
    """
    hr_dept = Department.objects.create(name="HR")
    management = Department.objects.create(name="Management")
    engineering = Department.objects.create(name="Engineering")
    developer = Job.objects.create(name="Developer", department=engineering)

    hr = make_employee("Huda", department=hr_dept, roles=[Role.HR_MANAGER])
    head = make_employee("Marwan", department=management, roles=[Role.DEPARTMENT_HEAD])
    staff = [
        make_employee(name, department=engineering, job=developer, manager=head, roles=[Role.DEPARTMENT_EMPLOYEE])
        for name in ("Amal", "Basel", "Dana")
    ]
    make_employee("Ghost", department=engineering, job=developer, manager=head, active=False)

    return {
        "hr_dept": hr_dept,
        "management": management,
        "engineering": engineering,
        "developer": developer,
        "hr": hr,
        "head": head,
        "staff": staff,
    }


@pytest.fixture
def hr_actor(org):
    return actor_of(org["hr"], Role.HR_MANAGER)


@pytest.fixture
def head_actor(org):
    return actor_of(org["head"], Role.DEPARTMENT_HEAD)


@pytest.fixture
def staff_actors(org):
    return [actor_of(e, Role.DEPARTMENT_EMPLOYEE) for e in org["staff"]]


@pytest.fixture
def template(hr_actor):
    return template_svc.create_template(
        hr_actor,
        name="Annual review",
        rating_scale={"type": "FIVE_POINT", "labels": ["Poor", "Fair", "Good", "Very good", "Outstanding"]},
        criteria=[
            {"key": "quality", "title": "Quality of work", "weight": 60},
            {"key": "delivery", "title": "Delivery", "weight": 40},
        ],
    )


@pytest.fixture
def cycle(hr_actor, template, org):
    return cycle_svc.create_cycle(
        hr_actor,
        name="Q1 2025",
        start_date=datetime.date(2025, 1, 1),
        end_date=datetime.date(2025, 3, 31),
        template_assignments=[{"template_id": template.pk, "department_ids": [org["engineering"].pk]}],
    )


@pytest.fixture
def active_cycle(hr_actor, cycle):
    cycle_svc.activate_cycle(hr_actor, cycle.pk)
    cycle.refresh_from_db()
    return cycle


@pytest.fixture
def first_assignment(active_cycle, org):
    return assignment_svc.get_for_cycle_and_employee(active_cycle.pk, org["staff"][0].pk)


GOOD_SECTIONS = [
    {"key": "quality", "rating_value": 4, "comments": "Solid"},
    {"key": "delivery", "rating_value": 5, "comments": "Always on time"},
]


@pytest.fixture
def evaluated(first_assignment, staff_actors, head_actor):
    """Self-assessment + manager evaluation done; returns the record."""
    me = staff_actors[0]
    assignment_svc.start_self_assessment(me, first_assignment.pk)
    evaluation_svc.submit_self_assessment(me, first_assignment.pk, [{"key": "quality", "note": "proud"}], "Good year")
    return evaluation_svc.submit_manager_evaluation(
        head_actor, first_assignment.pk, GOOD_SECTIONS, manager_summary="Strong quarter"
    )


@pytest.fixture
def published(evaluated, hr_actor, active_cycle):
    cycle_svc.publish_cycle(hr_actor, active_cycle.pk)
    evaluated.refresh_from_db()
    return evaluated
