# performance/access.py
# ------------------------------------------------------------
# Roles → capabilities, resolved ONCE per request.
# ------------------------------------------------------------
# IMPORTANT:
#   - Services never look at role names; they check capabilities.
#   - Object-level checks (is this my assignment?) use the actor's
#     employee id, plus guardian perms on the HTTP side.
# ------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from hr.services import get_employee_for_user
from performance.exceptions import PermissionDeniedError


class Role:
    DEPARTMENT_EMPLOYEE = "DEPARTMENT_EMPLOYEE"
    DEPARTMENT_HEAD = "DEPARTMENT_HEAD"
    HR_EMPLOYEE = "HR_EMPLOYEE"
    HR_MANAGER = "HR_MANAGER"
    HR_ADMIN = "HR_ADMIN"
    SYSTEM_ADMIN = "SYSTEM_ADMIN"

    ALL = (
        DEPARTMENT_EMPLOYEE,
        DEPARTMENT_HEAD,
        HR_EMPLOYEE,
        HR_MANAGER,
        HR_ADMIN,
        SYSTEM_ADMIN,
    )


@dataclass(frozen=True)
class Capabilities:
    can_manage_templates: bool = False
    can_manage_cycles: bool = False
    can_publish: bool = False
    can_assign: bool = False
    can_raise_dispute_for_others: bool = False
    can_resolve_dispute: bool = False
    can_manage_visibility: bool = False
    can_view_all_appraisals: bool = False
    can_export: bool = False
    can_manage_pips_org_wide: bool = False
    can_flag_high_performers: bool = False

    def names(self) -> frozenset[str]:
        return frozenset(k for k, v in self.__dict__.items() if v)


def resolve_capabilities(roles: Iterable[str]) -> Capabilities:
    roles = frozenset(roles)
    hr_manager = bool(roles & {Role.HR_MANAGER, Role.HR_ADMIN, Role.SYSTEM_ADMIN})
    hr_staff = hr_manager or Role.HR_EMPLOYEE in roles
    dept_head = Role.DEPARTMENT_HEAD in roles
    admin = bool(roles & {Role.HR_ADMIN, Role.SYSTEM_ADMIN})

    return Capabilities(
        can_manage_templates=hr_staff,
        can_manage_cycles=hr_staff,
        can_publish=hr_manager,
        can_assign=hr_staff,
        can_raise_dispute_for_others=hr_staff,
        can_resolve_dispute=hr_manager,
        can_manage_visibility=admin,
        can_view_all_appraisals=hr_staff,
        can_export=hr_staff,
        can_manage_pips_org_wide=hr_manager,
        can_flag_high_performers=hr_manager or dept_head,
    )


@dataclass(frozen=True)
class Actor:
    """The authenticated caller as seen by the services."""
    employee_id: Optional[int]
    roles: frozenset[str] = field(default_factory=frozenset)
    capabilities: Capabilities = field(default_factory=Capabilities)
    user_id: Optional[int] = None

    @classmethod
    def build(cls, employee_id: Optional[int], roles: Iterable[str], user_id: Optional[int] = None) -> "Actor":
        roles = frozenset(roles)
        return cls(
            employee_id=employee_id, roles=roles, capabilities=resolve_capabilities(roles), user_id=user_id
        )

    def can(self, capability: str) -> bool:
        return bool(getattr(self.capabilities, capability))

    def require(self, capability: str) -> None:
        if not self.can(capability):
            raise PermissionDeniedError(
                f"Missing capability '{capability}'.", details={"capability": capability}
            )

    def is_employee(self, employee_id: Optional[int]) -> bool:
        return self.employee_id is not None and self.employee_id == employee_id


def actor_for_user(user) -> Actor:
    """Group names are the role names."""
    if not user or not user.is_authenticated:
        return Actor.build(None, ())
    roles = set(user.role_names)
    if user.is_superuser:
        roles.add(Role.SYSTEM_ADMIN)
    me = get_employee_for_user(user)
    return Actor.build(me.id if me else None, roles, user_id=user.pk)


# ============================================================
# Object-level rules (pure, no DB writes)
# ============================================================

def is_assignment_employee(actor: Actor, assignment) -> bool:
    return actor.is_employee(assignment.employee_id)


def is_assignment_manager(actor: Actor, assignment) -> bool:
    return actor.is_employee(assignment.manager_id)


def can_view_assignment(actor: Actor, assignment) -> bool:
    return (
        is_assignment_employee(actor, assignment)
        or is_assignment_manager(actor, assignment)
        or actor.can("can_view_all_appraisals")
    )


def require_manager_or(actor: Actor, assignment, capability: str) -> None:
    if is_assignment_manager(actor, assignment) or actor.can(capability):
        return
    raise PermissionDeniedError(
        "Only the assignment's manager may perform this action.",
        details={"assignment": assignment.pk},
    )
