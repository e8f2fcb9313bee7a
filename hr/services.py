# hr/services.py
"""
Read-only org lookups consumed by the appraisal engine.

The appraisal code never walks Employee/Department relations ad hoc; it asks
this module, which returns small immutable profiles.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Generic, Iterable, Optional, TypeVar, Union

from hr.models import Department, Employee, Job

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ======================================================================
# Profiles
# ======================================================================

@dataclass(frozen=True)
class EmployeeProfile:
    id: int
    first_name: str
    last_name: str
    primary_department_id: Optional[int]
    primary_position_id: Optional[int]
    manager_id: Optional[int]
    user_id: Optional[int]
    active: bool = True

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class DepartmentInfo:
    id: int
    name: str
    parent_id: Optional[int]
    manager_id: Optional[int]


@dataclass(frozen=True)
class PositionInfo:
    id: int
    name: str
    department_id: Optional[int]


def _profile(emp: Employee) -> EmployeeProfile:
    return EmployeeProfile(
        id=emp.pk,
        first_name=emp.first_name,
        last_name=emp.last_name,
        primary_department_id=emp.department_id,
        primary_position_id=emp.job_id,
        manager_id=emp.manager_id,
        user_id=emp.user_id,
        active=emp.active,
    )


# ======================================================================
# Reference<T>: "raw id" or "already resolved"
# ======================================================================

@dataclass(frozen=True)
class IdRef(Generic[T]):
    value: int
    kind: str = "id"


@dataclass(frozen=True)
class Resolved(Generic[T]):
    value: T
    kind: str = "resolved"


Reference = Union[IdRef[T], Resolved[T]]


def ref(value) -> Reference:
    """Wrap a raw id, a model instance or a profile into a Reference."""
    if isinstance(value, (IdRef, Resolved)):
        return value
    if isinstance(value, Employee):
        return Resolved(_profile(value))
    if isinstance(value, EmployeeProfile):
        return Resolved(value)
    return IdRef(int(value))


def resolve_reference(reference: Reference) -> Optional[EmployeeProfile]:
    """The single normalisation point from Reference to EmployeeProfile."""
    if isinstance(reference, Resolved):
        return reference.value
    return get_employee_profile(reference.value)


# ======================================================================
# Lookups
# ======================================================================

def get_employee_profile(employee_id: int) -> Optional[EmployeeProfile]:
    emp = Employee.objects.filter(pk=employee_id).first()
    return _profile(emp) if emp else None


def get_employee_profiles(employee_ids: Iterable[int]) -> dict[int, EmployeeProfile]:
    return {e.pk: _profile(e) for e in Employee.objects.filter(pk__in=set(employee_ids))}


def get_employee_for_user(user) -> Optional[EmployeeProfile]:
    if not user or not getattr(user, "is_authenticated", False):
        return None
    emp = Employee.objects.filter(user=user).first()
    return _profile(emp) if emp else None


def get_department_by_id(department_id: int) -> Optional[DepartmentInfo]:
    dept = Department.objects.filter(pk=department_id).first()
    if not dept:
        return None
    return DepartmentInfo(id=dept.pk, name=dept.name, parent_id=dept.parent_id, manager_id=dept.manager_id)


def get_positions_by_department(department_id: int) -> list[PositionInfo]:
    return [
        PositionInfo(id=j.pk, name=j.name, department_id=j.department_id)
        for j in Job.objects.filter(department_id=department_id, active=True)
    ]


def employees_in_departments(department_ids: Iterable[int]) -> list[EmployeeProfile]:
    qs = Employee.objects.filter(department_id__in=list(department_ids), active=True)
    return [_profile(e) for e in qs.order_by("pk")]


def employees_in_positions(position_ids: Iterable[int]) -> list[EmployeeProfile]:
    qs = Employee.objects.filter(job_id__in=list(position_ids), active=True)
    return [_profile(e) for e in qs.order_by("pk")]


def resolve_population(
    *,
    department_ids: Iterable[int] = (),
    position_ids: Iterable[int] = (),
    employee_ids: Iterable[int] = (),
    exclude_employee_ids: Iterable[int] = (),
) -> list[EmployeeProfile]:
    """
    Active employees in (departments ∪ positions ∪ explicit ids) minus exclusions,
    ordered by id so repeated resolutions are stable.
    """
    department_ids = list(department_ids)
    position_ids = list(position_ids)
    employee_ids = list(employee_ids)
    if not (department_ids or position_ids or employee_ids):
        return []

    found: dict[int, EmployeeProfile] = {}
    if department_ids:
        found.update((p.id, p) for p in employees_in_departments(department_ids))
    if position_ids:
        found.update((p.id, p) for p in employees_in_positions(position_ids))
    if employee_ids:
        found.update((p.id, p) for p in get_employee_profiles(employee_ids).values() if p.active)

    excluded = set(exclude_employee_ids)
    return [found[pk] for pk in sorted(found) if pk not in excluded]


def display_name(employee_id: Optional[int]) -> Optional[str]:
    """Display-only lookup: failures are logged and yield None."""
    if not employee_id:
        return None
    try:
        profile = get_employee_profile(employee_id)
    except Exception:
        logger.exception("Employee lookup failed for id=%s", employee_id)
        return None
    return profile.display_name if profile else None
