"""TALLY — Analytics & Progress API Routes."""

from datetime import datetime
from typing import Dict, List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from app.analyzer.achievement_engine import calculate_achievements
from app.analyzer.performance_engine import get_metrics_performance
from app.analyzer.pipeline import run_analytics
from app.analyzer.progress_engine import (
    build_weekly_guidance,
    calculate_monthly_progress,
    guidance_totals,
)
from app.analyzer.report_filter import get_reports_for_window
from app.analyzer.series_engine import get_performance_by_metric
from app.analyzer.window_resolver import DEFAULT_RANGE, RANGE_NAMES, resolve_window
from app.api.deps import get_now, get_store
from app.connectors.report_store import ReportStore
from app.core.metric_registry import DEFAULT_METRICS
from app.models.analysis_models import (
    Achievement,
    AnalyticsOverview,
    MetricPerformance,
    MetricsPerformance,
    MonthlyProgress,
    TimeWindow,
    WeeklyGuidance,
)
from app.models.report_models import MetricEntry
from app.core.logging import get_logger

logger = get_logger("api.analytics")

router = APIRouter(tags=["Analytics"])

RANGE_HELP = f"One of: {', '.join(RANGE_NAMES)}"


# ── Request / Response Models ──


class GuidanceRequest(BaseModel):
    """Request body for POST /progress/guidance."""

    submitter_name: str
    metrics: List[MetricEntry] = []
    """Current, not-yet-submitted form values."""

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "submitter_name": "Dana",
                    "metrics": [{"title": "Acres Secured", "value": 1, "target_value": 5}],
                }
            ]
        }
    }


class GuidanceResponse(BaseModel):
    """Response for POST /progress/guidance."""

    status: str = "success"
    guidance: List[WeeklyGuidance]
    summary: Dict[str, int]


# ── Analytics ──


@router.get("/analytics", response_model=AnalyticsOverview)
async def analytics_overview(
    range_name: str = Query(DEFAULT_RANGE, alias="range", description=RANGE_HELP),
    store: ReportStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    """Achievements, aggregate and per-metric charts for a range."""
    return await run_analytics(store, range_name, now)


@router.get("/analytics/window", response_model=TimeWindow)
async def analytics_window(
    range_name: str = Query(DEFAULT_RANGE, alias="range", description=RANGE_HELP),
    now: datetime = Depends(get_now),
):
    return resolve_window(range_name, now)


@router.get("/analytics/performance", response_model=MetricsPerformance)
async def metrics_performance(
    range_name: str = Query(DEFAULT_RANGE, alias="range", description=RANGE_HELP),
    store: ReportStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    return get_metrics_performance(store, range_name, now)


@router.get("/analytics/metrics/{metric_title}", response_model=MetricPerformance)
async def metric_performance(
    metric_title: str,
    range_name: str = Query(DEFAULT_RANGE, alias="range", description=RANGE_HELP),
    store: ReportStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    return get_performance_by_metric(store, range_name, metric_title, now)


@router.get("/analytics/achievements", response_model=Dict[str, Achievement])
async def achievements(
    range_name: str = Query(DEFAULT_RANGE, alias="range", description=RANGE_HELP),
    store: ReportStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    reports = get_reports_for_window(store, range_name, now)
    return calculate_achievements(reports)


# ── Monthly Progress ──


@router.get("/progress/monthly", response_model=Dict[str, MonthlyProgress])
async def monthly_progress(
    name: str = Query(..., description="Submitter name"),
    store: ReportStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    """Running totals of Monthly metrics from this month's submitted reports."""
    return calculate_monthly_progress(store, name, now)


@router.post("/progress/guidance", response_model=GuidanceResponse)
async def weekly_guidance(
    request: GuidanceRequest,
    store: ReportStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    """Pace the form's current values against this month's progress."""
    progress = calculate_monthly_progress(store, request.submitter_name, now)
    entries = (
        [m.model_dump(exclude_unset=True) for m in request.metrics]
        if request.metrics
        else [m.to_entry() for m in DEFAULT_METRICS]
    )
    guidance = build_weekly_guidance(entries, progress, now)
    return GuidanceResponse(guidance=guidance, summary=guidance_totals(guidance))
