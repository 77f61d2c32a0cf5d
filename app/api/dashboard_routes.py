"""TALLY — Dashboard & Identity Routes."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from app.api.deps import get_now, get_store, get_submitter
from app.connectors.report_store import ReportStore, ReportStoreError
from app.core.identity import SubmitterSession
from app.models.report_models import ReportRead
from app.services.report_service import ensure_current_week_report, list_active_reports
from app.core.logging import get_logger

logger = get_logger("api.dashboard")

router = APIRouter(tags=["Dashboard"])


class IdentityBody(BaseModel):
    """Request/response body for the submitter identity."""

    name: str = ""


class DashboardResponse(BaseModel):
    """Everything the dashboard shows on load."""

    submitter_name: str
    current_week_report: Optional[ReportRead] = None
    created_this_visit: bool = False
    reports: List[ReportRead] = []


@router.get("/identity", response_model=IdentityBody)
async def get_identity(submitter: SubmitterSession = Depends(get_submitter)):
    return IdentityBody(name=submitter.name)


@router.put("/identity", response_model=IdentityBody)
async def set_identity(
    body: IdentityBody, submitter: SubmitterSession = Depends(get_submitter)
):
    if not submitter.rename(body.name):
        raise HTTPException(status_code=500, detail="Could not save name")
    return IdentityBody(name=submitter.name)


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    store: ReportStore = Depends(get_store),
    submitter: SubmitterSession = Depends(get_submitter),
    now: datetime = Depends(get_now),
):
    """Dashboard load: run the weekly creation check, then list reports."""
    name = submitter.name
    try:
        report, created = ensure_current_week_report(store, name, now)
        reports = list_active_reports(store)
    except ReportStoreError as e:
        logger.error(f"Dashboard load failed: {e}", extra={"endpoint": "/dashboard"})
        raise HTTPException(status_code=503, detail="Report store unavailable") from e

    return DashboardResponse(
        submitter_name=name,
        current_week_report=ReportRead.from_report(report) if report else None,
        created_this_visit=created,
        reports=[ReportRead.from_report(r) for r in reports],
    )
