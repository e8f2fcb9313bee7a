import pytest

from performance.services import reports as svc


@pytest.mark.django_db
class TestAppraisalSummaries:

    def test_one_row_per_assignment(self, active_cycle, org):
        rows = svc.appraisal_summaries(cycle_id=active_cycle.pk)
        assert [r["employeeId"] for r in rows] == sorted(e.pk for e in org["staff"])
        assert {r["department"] for r in rows} == {"Engineering"}

    def test_score_hidden_until_published(self, evaluated, active_cycle):
        row = next(r for r in svc.appraisal_summaries(cycle_id=active_cycle.pk) if r["employeeId"] == evaluated.employee_id)
        assert row["totalScore"] is None
        assert row["ratingLabel"] == ""

    def test_score_after_publish(self, published, active_cycle):
        row = svc.appraisal_summaries(employee_id=published.employee_id)[0]
        assert row["totalScore"] == pytest.approx(4.4)
        assert row["publishedAt"] is not None


@pytest.mark.django_db
class TestOutcomeReport:

    def test_only_published_rows(self, published, active_cycle):
        rows = svc.outcome_report(cycle_id=active_cycle.pk)
        assert len(rows) == 1
        assert rows[0]["highPerformer"] is False
        assert rows[0]["pipStatus"] == ""
        assert rows[0]["disputeCount"] == 0

    def test_sections_can_be_left_out(self, published, active_cycle):
        row = svc.outcome_report(cycle_id=active_cycle.pk, include_pips=False, include_disputes=False)[0]
        assert "pipStatus" not in row
        assert "disputeCount" not in row
        assert "highPerformer" in row


class TestCsv:

    def test_header_and_blanks(self):
        data = svc.rows_to_csv([{"a": 1, "b": None}, {"a": 2, "b": "x"}])
        assert data.decode("utf-8").splitlines() == ["a,b", "1,", "2,x"]

    def test_empty(self):
        assert svc.rows_to_csv([]) == b""
