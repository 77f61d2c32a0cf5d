"""Tests for window filtering of submitted reports."""

from datetime import datetime

from app.analyzer.report_filter import filter_reports, get_reports_for_window
from app.analyzer.window_resolver import resolve_window
from app.models.report_models import WeeklyReport

NOW = datetime(2024, 3, 31, 12, 0)
OLD = datetime(2023, 11, 4, 23, 59, 59)


def _report(report_id, created_at, week_ending):
    return WeeklyReport(
        id=report_id,
        submitter_name="Dana",
        metrics=[],
        created_at=created_at,
        week_ending_date=week_ending,
        status="submitted",
    )


class TestFilterReports:
    """A report is kept when either date is inside the window."""

    def setup_method(self):
        self.window = resolve_window("month", NOW)
        self.both_inside = _report(1, datetime(2024, 3, 18), datetime(2024, 3, 23, 23, 59))
        self.created_inside = _report(2, datetime(2024, 3, 25), OLD)
        self.week_inside = _report(3, datetime(2023, 12, 1), datetime(2024, 3, 30, 23, 59))
        self.both_outside = _report(4, datetime(2023, 10, 30), OLD)

    def test_or_inclusion(self):
        """Either date inside the window keeps the report."""
        reports = [self.both_inside, self.created_inside, self.week_inside, self.both_outside]
        kept = filter_reports(reports, self.window)
        assert {r.id for r in kept} == {1, 2, 3}

    def test_sorted_by_week_ending_descending(self):
        """Newest week first."""
        kept = filter_reports([self.created_inside, self.both_inside, self.week_inside], self.window)
        assert [r.id for r in kept] == [3, 1, 2]

    def test_duplicates_collapse(self):
        """The same report is kept once."""
        kept = filter_reports([self.both_inside, self.both_inside], self.window)
        assert len(kept) == 1

    def test_idempotent(self):
        """Filtering twice changes nothing."""
        reports = [self.both_inside, self.created_inside, self.week_inside, self.both_outside]
        once = filter_reports(reports, self.window)
        twice = filter_reports(once, self.window)
        assert [r.id for r in once] == [r.id for r in twice]

    def test_window_bounds_are_inclusive(self):
        """Dates on either bound are inside."""
        on_start = _report(5, self.window.start_date, OLD)
        on_end = _report(6, self.window.end_date, OLD)
        assert len(filter_reports([on_start, on_end], self.window)) == 2

    def test_empty(self):
        """No reports gives empty results."""
        assert filter_reports([], self.window) == []


class TestGetReportsForWindow:
    """Tests for the store-backed window lookup."""

    def test_only_submitted_reports(self, store):
        """Pending reports are left out."""
        store.create(_report(None, datetime(2024, 3, 20), datetime(2024, 3, 23, 23, 59)))
        pending = _report(None, datetime(2024, 3, 21), datetime(2024, 3, 23, 23, 59))
        pending.status = "pending"
        store.create(pending)

        reports = get_reports_for_window(store, "month", NOW)
        assert [r.status for r in reports] == ["submitted"]

    def test_store_failure_yields_empty(self, broken_store):
        """A failing store yields no reports."""
        assert get_reports_for_window(broken_store, "month", NOW) == []
