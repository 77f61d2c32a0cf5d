"""
Unit tests for the analytics pipeline.

Tests:
- Overview assembly from stored reports
- Empty and failing stores
- Dropping results for deselected ranges
"""

import asyncio
from datetime import datetime

from app.analyzer.pipeline import RangeSelection, run_analytics
from app.core.metric_registry import DEFAULT_METRICS
from app.models.analysis_models import AchievementStatus, AnalyticsOverview
from app.services.report_service import create_pending_report, submit_new_report

NOW = datetime(2024, 1, 25, 10, 0)


def _entries(acres, outreach):
    return [
        {"title": "New Accounts Outreach", "value": outreach, "target_value": 10},
        {"title": "Acres Secured", "value": acres, "target_value": 5},
    ]


class TestRunAnalytics:
    """Tests for run_analytics."""

    def test_overview_for_month(self, store):
        """Submitted reports in the month feed every section."""
        submit_new_report(store, "Dana", "Week 2", _entries(2, 12), datetime(2024, 1, 9, 9, 0))
        submit_new_report(store, "Dana", "Week 3", _entries(3, 8), datetime(2024, 1, 16, 9, 0))
        create_pending_report(store, "Dana", datetime(2024, 1, 22, 7, 0))

        overview = asyncio.run(run_analytics(store, "month", NOW))

        assert overview.report_count == 2
        assert overview.window.range_name == "month"
        assert overview.achievements["Acres Secured"].status == AchievementStatus.AHEAD
        assert overview.performance.totals["New Accounts Outreach"] == 20
        assert [c.metric_title for c in overview.charts] == [m.title for m in DEFAULT_METRICS]
        acres_chart = overview.charts[1]
        assert [p.value for p in acres_chart.data] == [2, 3]

    def test_empty_store(self, store):
        """An empty store still lists every metric."""
        overview = asyncio.run(run_analytics(store, "week", NOW))
        assert overview.report_count == 0
        assert all(a.percentage == 0 for a in overview.achievements.values())
        assert all(c.data == [] for c in overview.charts)

    def test_store_failure_renders_empty(self, broken_store):
        """A failing store renders an empty overview."""
        overview = asyncio.run(run_analytics(broken_store, "year", NOW))
        assert overview.report_count == 0
        assert overview.performance.totals == {}
        assert len(overview.charts) == len(DEFAULT_METRICS)


class TestRangeSelection:
    """Tests for discarding results of deselected ranges."""

    def test_current_range_result_is_returned(self):
        """A fetch for the selected range returns its result."""
        async def fetcher(range_name):
            return AnalyticsOverview(report_count=3)

        selection = RangeSelection("month")
        result = asyncio.run(selection.fetch("month", fetcher))
        assert result.report_count == 3
        assert selection.in_flight == []

    def test_stale_range_result_is_discarded(self):
        """A result arriving after the range changed is dropped."""
        async def scenario():
            selection = RangeSelection("month")
            release = asyncio.Event()

            async def fetcher(range_name):
                await release.wait()
                return AnalyticsOverview(report_count=1)

            task = asyncio.create_task(selection.fetch("month", fetcher))
            await asyncio.sleep(0)
            assert selection.in_flight == ["month"]
            selection.select("year")
            release.set()
            return await task

        assert asyncio.run(scenario()) is None

    def test_latest_selection_wins(self):
        """Of two overlapping fetches only the selected range's result survives."""
        async def scenario():
            selection = RangeSelection("month")
            gates = {"month": asyncio.Event(), "year": asyncio.Event()}

            async def fetcher(range_name):
                await gates[range_name].wait()
                return AnalyticsOverview(report_count=len(range_name))

            first = asyncio.create_task(selection.fetch("month", fetcher))
            await asyncio.sleep(0)
            selection.select("year")
            second = asyncio.create_task(selection.fetch("year", fetcher))
            await asyncio.sleep(0)
            gates["year"].set()
            gates["month"].set()
            return await first, await second

        stale, fresh = asyncio.run(scenario())
        assert stale is None
        assert fresh.report_count == 4
