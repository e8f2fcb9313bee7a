# -*- coding: utf-8 -*-
# فورمات التحقق من مدخلات JSON قبل تمريرها للخدمات
from .base import IdListField, ListField, PayloadForm, snake_keys
from .templates import TemplateForm
from .cycles import AssignEmployeesForm, AssignmentUpdateForm, BulkAssignForm, CycleForm
from .evaluations import AcknowledgeForm, ManagerEvaluationForm, SelfAssessmentForm
from .disputes import DisputeForm, ResolveDisputeForm, StartReviewForm
from .improvement import HighPerformerForm, PipForm, PipUpdateForm
from .visibility import VisibilityRuleForm
from .meetings import MeetingForm, MeetingUpdateForm
