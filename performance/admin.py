# performance/admin.py
"""
لوحة الإدارة — للقراءة والتصحيح اليدوي؛ انتقالات الحالة تمر عبر الخدمات فقط.
"""

from django.contrib import admin, messages

from performance.models import (
    AppraisalAssignment,
    AppraisalCriterion,
    AppraisalCycle,
    AppraisalDispute,
    AppraisalRating,
    AppraisalRecord,
    AppraisalTemplate,
    CycleTemplateAssignment,
    HighPerformerFlag,
    OneOnOneMeeting,
    PerformanceImprovementPlan,
    VisibilityRule,
)


# أكشنات عامة
@admin.action(description="Activate selected records")
def action_activate(modeladmin, request, queryset):
    messages.success(request, f"Activated {queryset.update(active=True)} record(s).")


@admin.action(description="Deactivate selected records")
def action_deactivate(modeladmin, request, queryset):
    messages.success(request, f"Deactivated {queryset.update(active=False)} record(s).")


# -------- Inlines --------
class AppraisalCriterionInline(admin.TabularInline):
    model = AppraisalCriterion
    extra = 0
    fields = ["sequence", "key", "title", "weight", "max_score", "required"]


class CycleTemplateAssignmentInline(admin.StackedInline):
    model = CycleTemplateAssignment
    extra = 0
    autocomplete_fields = ["template"]
    filter_horizontal = ["departments", "positions", "employees", "excluded_employees"]


class AppraisalRatingInline(admin.TabularInline):
    model = AppraisalRating
    extra = 0
    fields = ["key", "title", "rating_value", "rating_label", "weight", "weighted_score", "is_missing"]
    readonly_fields = fields
    can_delete = False


# -------- Templates & cycles --------
@admin.register(AppraisalTemplate)
class AppraisalTemplateAdmin(admin.ModelAdmin):
    list_display = ("name", "template_type", "scale_type", "active", "updated_at")
    list_filter = ("active", "template_type", "scale_type")
    search_fields = ("name",)
    readonly_fields = ("created_at", "updated_at", "created_by", "updated_by")
    inlines = [AppraisalCriterionInline]
    actions = [action_activate, action_deactivate]


@admin.register(AppraisalCycle)
class AppraisalCycleAdmin(admin.ModelAdmin):
    list_display = ("name", "cycle_type", "start_date", "end_date", "status")
    list_filter = ("status", "cycle_type")
    search_fields = ("name",)
    date_hierarchy = "start_date"
    readonly_fields = (
        "status", "activated_at", "published_at", "closed_at", "archived_at",
        "created_at", "updated_at", "created_by", "updated_by",
    )
    inlines = [CycleTemplateAssignmentInline]


# -------- Assignments & records --------
@admin.register(AppraisalAssignment)
class AppraisalAssignmentAdmin(admin.ModelAdmin):
    list_display = ("employee", "cycle", "template", "manager", "status", "due_date")
    list_filter = ("status", "cycle")
    search_fields = ("employee__first_name", "employee__last_name")
    autocomplete_fields = ("employee", "manager", "department", "position")
    readonly_fields = (
        "status", "version", "assigned_at", "started_at", "submitted_at",
        "published_at", "acknowledged_at", "created_at", "updated_at",
    )


@admin.register(AppraisalRecord)
class AppraisalRecordAdmin(admin.ModelAdmin):
    list_display = ("employee", "cycle", "manager", "status", "total_score", "overall_rating_label")
    list_filter = ("status", "cycle")
    search_fields = ("employee__first_name", "employee__last_name")
    raw_id_fields = ("assignment", "employee", "manager", "published_by")
    readonly_fields = (
        "status", "version", "total_score", "self_submitted_at", "manager_submitted_at",
        "hr_published_at", "employee_viewed_at", "employee_acknowledged_at", "audit_notes",
        "created_at", "updated_at",
    )
    inlines = [AppraisalRatingInline]


@admin.register(AppraisalDispute)
class AppraisalDisputeAdmin(admin.ModelAdmin):
    list_display = ("id", "raised_by", "cycle", "status", "assigned_reviewer", "submitted_at", "resolved_at")
    list_filter = ("status", "cycle")
    search_fields = ("reason", "raised_by__first_name", "raised_by__last_name")
    raw_id_fields = ("appraisal", "assignment", "raised_by", "raised_on_behalf_by", "assigned_reviewer", "resolved_by")
    readonly_fields = ("version", "submitted_at", "review_started_at", "resolved_at", "created_at", "updated_at")


# -------- Improvement --------
@admin.register(PerformanceImprovementPlan)
class PerformanceImprovementPlanAdmin(admin.ModelAdmin):
    list_display = ("title", "employee", "created_by_manager", "status", "start_date", "target_completion_date")
    list_filter = ("status",)
    search_fields = ("title", "employee__first_name", "employee__last_name")
    raw_id_fields = ("appraisal", "employee", "created_by_manager")


@admin.register(HighPerformerFlag)
class HighPerformerFlagAdmin(admin.ModelAdmin):
    list_display = ("employee", "appraisal", "is_high_performer", "flagged_by", "flagged_at")
    list_filter = ("is_high_performer",)
    raw_id_fields = ("appraisal", "employee", "flagged_by")
    readonly_fields = ("flagged_at",)


# -------- Visibility & meetings --------
@admin.register(VisibilityRule)
class VisibilityRuleAdmin(admin.ModelAdmin):
    list_display = ("name", "field_type", "allowed_roles", "active", "effective_from", "effective_to")
    list_filter = ("active", "field_type")
    search_fields = ("name",)
    actions = [action_activate, action_deactivate]


@admin.register(OneOnOneMeeting)
class OneOnOneMeetingAdmin(admin.ModelAdmin):
    list_display = ("manager", "employee", "scheduled_at", "status")
    list_filter = ("status",)
    raw_id_fields = ("manager", "employee")
    readonly_fields = ("completed_at", "cancelled_at", "created_at", "updated_at")
