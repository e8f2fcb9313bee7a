# performance/signals/ownership.py
from django.db.models.signals import post_save
from django.dispatch import receiver
from guardian.shortcuts import assign_perm, get_users_with_perms, remove_perm

from performance.models import AppraisalAssignment, AppraisalDispute

# مَنح صلاحيات على مستوى السجل للموظف ومديره عند الإنشاء

EMPLOYEE_ASSIGNMENT_PERMS = (
    "performance.view_appraisalassignment",
    "performance.self_assess_appraisalassignment",
)
MANAGER_ASSIGNMENT_PERMS = (
    "performance.view_appraisalassignment",
    "performance.evaluate_appraisalassignment",
)


def _user(employee):
    return getattr(employee, "user", None) if employee else None


@receiver(post_save, sender=AppraisalAssignment)
def grant_assignment_people_acl(sender, instance, created, **kwargs):
    """
    - the appraised employee: view + self-assess
    - the manager: view + evaluate (dropped from other users on reassignment)
    """
    employee_user = _user(instance.employee)
    if employee_user:
        for perm in EMPLOYEE_ASSIGNMENT_PERMS:
            assign_perm(perm, employee_user, instance)

    manager_user = _user(instance.manager) if instance.manager_id else None
    if not created:
        holders = get_users_with_perms(
            instance, only_with_perms_in=["evaluate_appraisalassignment"], with_group_users=False
        )
        for user in holders:
            if manager_user is None or user.pk != manager_user.pk:
                remove_perm("performance.evaluate_appraisalassignment", user, instance)
    if manager_user:
        for perm in MANAGER_ASSIGNMENT_PERMS:
            assign_perm(perm, manager_user, instance)


@receiver(post_save, sender=AppraisalDispute)
def grant_dispute_people_acl(sender, instance, created, **kwargs):
    """The employee who raised it and the evaluation's manager may view it."""
    if not created:
        return
    for employee in (instance.raised_by, instance.assignment.manager):
        user = _user(employee)
        if user:
            assign_perm("performance.view_appraisaldispute", user, instance)
