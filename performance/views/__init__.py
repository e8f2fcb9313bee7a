# -*- coding: utf-8 -*-
# نقاط JSON لمحرك التقييم
from .templates import TemplateDeactivateView, TemplateDetailView, TemplateListView
from .cycles import (
    CycleActivateView,
    CycleArchiveView,
    CycleAssignmentListView,
    CycleDepartmentBreakdownView,
    CycleDetailView,
    CycleListView,
    CycleProgressView,
    CyclePublishView,
)
from .assignments import (
    AssignmentBulkView,
    AssignmentDetailView,
    AssignmentListView,
    ManagerEvaluationView,
    PublishAssignmentView,
    SelfAssessmentView,
    StartSelfAssessmentView,
)
from .evaluations import AcknowledgeView, EmployeeHistoryView, EvaluationDetailView
from .disputes import DisputeDetailView, DisputeListView, DisputeResolveView, DisputeReviewView
from .improvement import HighPerformerDetailView, HighPerformerListView, PipDetailView, PipListView
from .visibility import VisibilityRuleDetailView, VisibilityRuleListView
from .meetings import MeetingCancelView, MeetingCompleteView, MeetingDetailView, MeetingListView
from .reports import AppraisalSummaryReportView, OutcomeReportView
