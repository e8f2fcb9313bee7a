# -*- coding: utf-8 -*-
from django.http import HttpResponse
from django.utils import timezone

from performance.services import reports as svc
from .mixins import ApiView


class _ReportView(ApiView):
    filename = "report"

    def rows(self, request):
        raise NotImplementedError

    def get(self, request):
        self.actor.require("can_export")
        rows = self.rows(request)
        if request.GET.get("format") == "csv":
            response = HttpResponse(svc.rows_to_csv(rows), content_type="text/csv; charset=utf-8")
            stamp = timezone.now().strftime("%Y%m%d")
            response["Content-Disposition"] = f'attachment; filename="{self.filename}-{stamp}.csv"'
            return response
        return self.ok({"results": rows})


class AppraisalSummaryReportView(_ReportView):
    filename = "appraisal-summaries"

    def rows(self, request):
        return svc.appraisal_summaries(
            cycle_id=self.query_int("cycleId"),
            department_id=self.query_int("departmentId"),
            employee_id=self.query_int("employeeId"),
            status=request.GET.get("status") or None,
        )


class OutcomeReportView(_ReportView):
    filename = "appraisal-outcomes"

    def rows(self, request):
        def flag(name):
            return request.GET.get(name, "1") not in ("0", "false")

        return svc.outcome_report(
            cycle_id=self.query_int("cycleId"),
            department_id=self.query_int("departmentId"),
            include_high_performers=flag("highPerformers"),
            include_pips=flag("pips"),
            include_disputes=flag("disputes"),
        )
