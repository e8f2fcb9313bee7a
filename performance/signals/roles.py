# performance/signals/roles.py
import logging

from django.contrib.auth.models import Group, Permission
from django.contrib.contenttypes.models import ContentType
from django.db.models.signals import post_migrate
from django.dispatch import receiver

from performance.access import Role
from performance.models import (
    AppraisalAssignment,
    AppraisalCycle,
    AppraisalDispute,
    AppraisalRecord,
    AppraisalTemplate,
    HighPerformerFlag,
    OneOnOneMeeting,
    PerformanceImprovementPlan,
    VisibilityRule,
)

logger = logging.getLogger(__name__)


def _crud(model, *actions):
    name = model._meta.model_name
    return [(f"{a}_{name}", model) for a in actions]


# Role groups carry model-level perms; object-level perms come from ownership.py
HR_STAFF = [
    *_crud(AppraisalTemplate, "view", "add", "change"),
    ("use_appraisal_template", AppraisalTemplate),
    *_crud(AppraisalCycle, "view", "add", "change"),
    ("activate_appraisalcycle", AppraisalCycle),
    *_crud(AppraisalAssignment, "view", "add", "change", "delete"),
    *_crud(AppraisalRecord, "view"),
    *_crud(AppraisalDispute, "view", "add"),
    *_crud(PerformanceImprovementPlan, "view"),
    *_crud(HighPerformerFlag, "view"),
]

HR_MANAGERS = HR_STAFF + [
    *_crud(AppraisalTemplate, "delete"),
    *_crud(AppraisalCycle, "delete"),
    ("publish_appraisalcycle", AppraisalCycle),
    ("publish_appraisalrecord", AppraisalRecord),
    ("view_confidential_appraisal", AppraisalRecord),
    ("evaluate_appraisalassignment", AppraisalAssignment),
    *_crud(AppraisalDispute, "change"),
    ("resolve_appraisaldispute", AppraisalDispute),
    *_crud(PerformanceImprovementPlan, "add", "change", "delete"),
    *_crud(HighPerformerFlag, "add", "change", "delete"),
    *_crud(OneOnOneMeeting, "view", "add", "change", "delete"),
]

ADMINS = HR_MANAGERS + [
    *_crud(VisibilityRule, "view", "add", "change", "delete"),
]

DEPARTMENT_HEADS = [
    *_crud(AppraisalCycle, "view"),
    *_crud(AppraisalTemplate, "view"),
    *_crud(HighPerformerFlag, "view", "add", "change", "delete"),
    *_crud(PerformanceImprovementPlan, "view", "add", "change"),
    *_crud(OneOnOneMeeting, "view", "add", "change"),
]

GROUPS = {
    Role.DEPARTMENT_EMPLOYEE: [],
    Role.DEPARTMENT_HEAD: DEPARTMENT_HEADS,
    Role.HR_EMPLOYEE: HR_STAFF,
    Role.HR_MANAGER: HR_MANAGERS,
    Role.HR_ADMIN: ADMINS,
    Role.SYSTEM_ADMIN: ADMINS,
}


@receiver(post_migrate)
def ensure_appraisal_roles(sender, **kwargs):
    """
    One auth Group per role, named after the role.
    Runs only when the performance app is migrated.
    """
    if getattr(sender, "name", None) != "performance":
        return

    for group_name, entries in GROUPS.items():
        group, _ = Group.objects.get_or_create(name=group_name)
        assigned = 0
        for codename, model in entries:
            ct = ContentType.objects.get_for_model(model)
            perm = Permission.objects.filter(codename=codename, content_type=ct).first()
            if perm is None:
                # perms of a freshly added model show up on the next post_migrate
                continue
            group.permissions.add(perm)
            assigned += 1
        logger.debug("Role group %s: %d permissions", group_name, assigned)
