"""TALLY — Analytics Pipeline Orchestrator.

Runs the full analytics flow for one range:
  fetch submitted reports → filter to window → achievements + aggregate → per-metric series

Reports are read once; the per-metric series are independent and built
concurrently. ``RangeSelection`` drops results for ranges the viewer has
already moved away from.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional

from app.analyzer.achievement_engine import calculate_achievements
from app.analyzer.performance_engine import aggregate_metrics
from app.analyzer.report_filter import filter_reports
from app.analyzer.series_engine import build_metric_series
from app.analyzer.window_resolver import resolve_window
from app.config import settings
from app.connectors.report_store import ReportStore, ReportStoreError
from app.core.metric_registry import DEFAULT_METRICS
from app.models.analysis_models import AnalyticsOverview, MetricPerformance
from app.models.report_models import ReportStatus, WeeklyReport
from app.core.logging import get_logger

logger = get_logger("analyzer.pipeline")

ANALYTICS_SCHEMA_VERSION = settings.analytics_schema_version


async def _build_charts(
    reports: List[WeeklyReport], window
) -> List[MetricPerformance]:
    """One series per registered metric, built in parallel."""
    return list(
        await asyncio.gather(
            *(
                asyncio.to_thread(build_metric_series, reports, metric.title, window)
                for metric in DEFAULT_METRICS
            )
        )
    )


async def run_analytics(
    store: ReportStore, range_name: str, now: datetime
) -> AnalyticsOverview:
    """Execute the analytics pipeline for a named range."""
    started = time.perf_counter()
    window = resolve_window(range_name, now)
    logger.info(
        f"Starting analytics: {range_name} "
        f"({window.start_date:%Y-%m-%d} → {window.end_date:%Y-%m-%d})",
        extra={"range_name": range_name},
    )

    # ── Step 1: Fetch ──
    try:
        submitted = store.query_by_status(ReportStatus.SUBMITTED)
    except ReportStoreError as e:
        logger.error(f"Report fetch failed, continuing with no data: {e}")
        submitted = []

    # ── Step 2: Filter ──
    reports = filter_reports(submitted, window)

    # ── Step 3: Engines ──
    achievements = calculate_achievements(reports)
    performance = aggregate_metrics(reports)
    charts = await _build_charts(reports, window)

    overview = AnalyticsOverview(
        schema_version=ANALYTICS_SCHEMA_VERSION,
        generated_at=datetime.now(timezone.utc).isoformat(),
        window=window,
        report_count=len(reports),
        achievements=achievements,
        performance=performance,
        charts=charts,
    )

    duration_ms = round((time.perf_counter() - started) * 1000, 2)
    logger.info(
        f"Analytics complete: {len(reports)} reports for {range_name}",
        extra={"range_name": range_name, "duration_ms": duration_ms},
    )
    return overview


class RangeSelection:
    """Tracks the selected range and discards stale analytics results.

    Each fetch is keyed by the range it was issued for; when it resolves
    after the viewer picked another range, its result is dropped.

    This is the client-side half of range switching: the HTTP routes are
    stateless and always answer for the range asked, so a viewer that
    drives ``run_analytics`` (or calls ``GET /analytics``) directly holds
    one of these and routes every fetch through it.
    """

    def __init__(self, initial: str = "month"):
        self.selected = initial
        self._in_flight: Dict[str, asyncio.Task] = {}

    def select(self, range_name: str) -> None:
        if range_name != self.selected:
            logger.info(
                f"Range changed {self.selected} → {range_name}",
                extra={"range_name": range_name},
            )
        self.selected = range_name

    async def fetch(
        self,
        range_name: str,
        fetcher: Callable[[str], Awaitable[AnalyticsOverview]],
    ) -> Optional[AnalyticsOverview]:
        """Run ``fetcher`` for ``range_name``; None if the range is no longer selected."""
        task = asyncio.ensure_future(fetcher(range_name))
        self._in_flight[range_name] = task
        try:
            result = await task
        finally:
            if self._in_flight.get(range_name) is task:
                del self._in_flight[range_name]

        if range_name != self.selected:
            logger.info(
                f"Discarding stale analytics for {range_name}",
                extra={"range_name": range_name},
            )
            return None
        return result

    @property
    def in_flight(self) -> List[str]:
        return list(self._in_flight)
