# performance/urls.py
from django.urls import path
from . import views

app_name = "performance"

urlpatterns = [
    # --------------------------------------------------------
    # Templates
    # --------------------------------------------------------
    path("templates/", views.TemplateListView.as_view(), name="template_list"),
    path("templates/<int:pk>/", views.TemplateDetailView.as_view(), name="template_detail"),
    path("templates/<int:pk>/deactivate/", views.TemplateDeactivateView.as_view(), name="template_deactivate"),

    # --------------------------------------------------------
    # Cycles
    # --------------------------------------------------------
    path("cycles/", views.CycleListView.as_view(), name="cycle_list"),
    path("cycles/<int:pk>/", views.CycleDetailView.as_view(), name="cycle_detail"),
    path("cycles/<int:pk>/activate/", views.CycleActivateView.as_view(), name="cycle_activate"),
    path("cycles/<int:pk>/publish/", views.CyclePublishView.as_view(), name="cycle_publish"),
    path("cycles/<int:pk>/archive/", views.CycleArchiveView.as_view(), name="cycle_archive"),
    path("cycles/<int:pk>/progress/", views.CycleProgressView.as_view(), name="cycle_progress"),
    path(
        "cycles/<int:pk>/departments/",
        views.CycleDepartmentBreakdownView.as_view(),
        name="cycle_departments",
    ),
    path(
        "cycles/<int:pk>/assignments/",
        views.CycleAssignmentListView.as_view(),
        name="cycle_assignments",
    ),

    # --------------------------------------------------------
    # Assignments & submissions
    # --------------------------------------------------------
    path("assignments/", views.AssignmentListView.as_view(), name="assignment_list"),
    path("assignments/bulk/", views.AssignmentBulkView.as_view(), name="assignment_bulk"),
    path("assignments/<int:pk>/", views.AssignmentDetailView.as_view(), name="assignment_detail"),
    path("assignments/<int:pk>/start/", views.StartSelfAssessmentView.as_view(), name="assignment_start"),
    path("assignments/<int:pk>/publish/", views.PublishAssignmentView.as_view(), name="assignment_publish"),
    path(
        "assignments/<int:pk>/self-assessment/",
        views.SelfAssessmentView.as_view(),
        name="self_assessment",
    ),
    path(
        "assignments/<int:pk>/manager-evaluation/",
        views.ManagerEvaluationView.as_view(),
        name="manager_evaluation",
    ),

    # --------------------------------------------------------
    # Evaluations (read model)
    # --------------------------------------------------------
    path("evaluations/<int:pk>/", views.EvaluationDetailView.as_view(), name="evaluation_detail"),
    path("evaluations/<int:pk>/acknowledge/", views.AcknowledgeView.as_view(), name="evaluation_acknowledge"),
    path("employees/<int:employee_id>/history/", views.EmployeeHistoryView.as_view(), name="employee_history"),

    # --------------------------------------------------------
    # Disputes
    # --------------------------------------------------------
    path("disputes/", views.DisputeListView.as_view(), name="dispute_list"),
    path("disputes/<int:pk>/", views.DisputeDetailView.as_view(), name="dispute_detail"),
    path("disputes/<int:pk>/review/", views.DisputeReviewView.as_view(), name="dispute_review"),
    path("disputes/<int:pk>/resolve/", views.DisputeResolveView.as_view(), name="dispute_resolve"),

    # --------------------------------------------------------
    # Improvement plans & high performers
    # --------------------------------------------------------
    path("pips/", views.PipListView.as_view(), name="pip_list"),
    path("pips/<int:pk>/", views.PipDetailView.as_view(), name="pip_detail"),
    path("high-performers/", views.HighPerformerListView.as_view(), name="high_performer_list"),
    path(
        "high-performers/<int:evaluation_id>/",
        views.HighPerformerDetailView.as_view(),
        name="high_performer_detail",
    ),

    # --------------------------------------------------------
    # Visibility rules
    # --------------------------------------------------------
    path("visibility-rules/", views.VisibilityRuleListView.as_view(), name="visibility_rule_list"),
    path("visibility-rules/<int:pk>/", views.VisibilityRuleDetailView.as_view(), name="visibility_rule_detail"),

    # --------------------------------------------------------
    # One-on-one meetings
    # --------------------------------------------------------
    path("meetings/", views.MeetingListView.as_view(), name="meeting_list"),
    path("meetings/<int:pk>/", views.MeetingDetailView.as_view(), name="meeting_detail"),
    path("meetings/<int:pk>/complete/", views.MeetingCompleteView.as_view(), name="meeting_complete"),
    path("meetings/<int:pk>/cancel/", views.MeetingCancelView.as_view(), name="meeting_cancel"),

    # --------------------------------------------------------
    # Reports
    # --------------------------------------------------------
    path("reports/summaries/", views.AppraisalSummaryReportView.as_view(), name="report_summaries"),
    path("reports/outcomes/", views.OutcomeReportView.as_view(), name="report_outcomes"),
]
