from .template import AppraisalCriterion, AppraisalTemplate, RatingScaleType, TemplateType
from .cycle import CYCLE_TRANSITIONS, AppraisalCycle, CycleStatus, CycleTemplateAssignment
from .assignment import (
    ASSIGNMENT_TRANSITIONS,
    EVALUATED_STATUSES,
    REMOVABLE_STATUSES,
    AppraisalAssignment,
    AssignmentStatus,
)
from .appraisal import AppraisalRating, AppraisalRecord, AppraisalRecordStatus
from .dispute import (
    PENDING_DISPUTE_STATUSES,
    TERMINAL_DISPUTE_STATUSES,
    AppraisalDispute,
    DisputeStatus,
)
from .improvement import PIP_TRANSITIONS, HighPerformerFlag, PerformanceImprovementPlan, PipStatus
from .visibility import VisibilityFieldType, VisibilityRule
from .meeting import CLOSED_MEETING_STATUSES, MeetingStatus, OneOnOneMeeting

__all__ = [
    "AppraisalTemplate",
    "AppraisalCriterion",
    "TemplateType",
    "RatingScaleType",
    "AppraisalCycle",
    "CycleTemplateAssignment",
    "CycleStatus",
    "CYCLE_TRANSITIONS",
    "AppraisalAssignment",
    "AssignmentStatus",
    "ASSIGNMENT_TRANSITIONS",
    "EVALUATED_STATUSES",
    "REMOVABLE_STATUSES",
    "AppraisalRecord",
    "AppraisalRating",
    "AppraisalRecordStatus",
    "AppraisalDispute",
    "DisputeStatus",
    "PENDING_DISPUTE_STATUSES",
    "TERMINAL_DISPUTE_STATUSES",
    "PerformanceImprovementPlan",
    "HighPerformerFlag",
    "PipStatus",
    "PIP_TRANSITIONS",
    "VisibilityRule",
    "VisibilityFieldType",
    "OneOnOneMeeting",
    "MeetingStatus",
    "CLOSED_MEETING_STATUSES",
]
