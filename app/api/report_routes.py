"""TALLY — Report API Routes."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_now, get_store
from app.config import settings
from app.connectors.report_store import ReportNotFoundError, ReportStore, ReportStoreError
from app.models.report_models import (
    ArchivedPage,
    CurrentWeekReport,
    PendingReportRequest,
    ReportDraft,
    ReportRead,
    ReportStatus,
)
from app.services import report_service
from app.services.report_service import (
    ReportExistsError,
    ReportLockedError,
    ReportValidationError,
)
from app.core.logging import get_logger

logger = get_logger("api.reports")

router = APIRouter(prefix="/reports", tags=["Reports"])

NOT_FOUND_DETAIL = "Report not found. It may not exist."


def _raise_http(e: Exception, report_id: Optional[int] = None):
    """Map lifecycle/storage errors to HTTP errors."""
    if isinstance(e, ReportNotFoundError):
        raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL) from e
    if isinstance(e, ReportExistsError):
        existing = e.existing
        detail = {
            "message": str(e),
            "report_id": existing.id,
            "status": existing.status,
        }
        if existing.status == ReportStatus.PENDING.value:
            detail["submit_url"] = f"/reports/{existing.id}/submit"
        raise HTTPException(status_code=409, detail=detail) from e
    if isinstance(e, ReportLockedError):
        raise HTTPException(status_code=409, detail=str(e)) from e
    if isinstance(e, ReportValidationError):
        raise HTTPException(status_code=422, detail=str(e)) from e
    if isinstance(e, ReportStoreError):
        logger.error(f"Store failure: {e}", extra={"report_id": report_id})
        raise HTTPException(status_code=503, detail="Report store unavailable") from e
    raise e


def _entries(draft: ReportDraft) -> Optional[List[dict]]:
    if draft.metrics is None:
        return None
    return [m.model_dump(exclude_unset=True) for m in draft.metrics]


# ── Listing ──


@router.get("", response_model=List[ReportRead])
async def list_reports(store: ReportStore = Depends(get_store)):
    """All non-archived reports, newest week first."""
    try:
        reports = report_service.list_active_reports(store)
    except ReportStoreError as e:
        _raise_http(e)
    return [ReportRead.from_report(r) for r in reports]


@router.get("/archived", response_model=ArchivedPage)
async def list_archived(
    after: Optional[int] = Query(None, description="Cursor: report id ending the previous page"),
    before: Optional[int] = Query(None, description="Cursor: report id starting the next page"),
    page_size: int = Query(settings.archived_page_size, ge=1, le=100),
    store: ReportStore = Depends(get_store),
):
    """Archived submitted reports, paged by cursor."""
    try:
        reports, next_cursor, prev_cursor = report_service.list_archived_reports(
            store, page_size, after=after, before=before
        )
    except (ReportNotFoundError, ReportStoreError) as e:
        _raise_http(e)
    return ArchivedPage(
        reports=[ReportRead.from_report(r) for r in reports],
        next_cursor=next_cursor,
        prev_cursor=prev_cursor,
    )


@router.get("/current-week", response_model=CurrentWeekReport)
async def current_week(
    store: ReportStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    """This week's report. Concurrent duplicates are returned for the caller to resolve."""
    try:
        reports = report_service.current_week_reports(store, now)
    except ReportStoreError as e:
        _raise_http(e)
    if not reports:
        return CurrentWeekReport()
    return CurrentWeekReport(
        report=ReportRead.from_report(reports[0]),
        duplicates=[ReportRead.from_report(r) for r in reports[1:]],
        has_duplicates=len(reports) > 1,
    )


@router.get("/{report_id}", response_model=ReportRead)
async def get_report(report_id: int, store: ReportStore = Depends(get_store)):
    try:
        report = report_service.get_report(store, report_id)
    except Exception as e:
        _raise_http(e, report_id)
    return ReportRead.from_report(report)


# ── Creation ──


@router.post("", response_model=ReportRead, status_code=201)
async def submit_report(
    draft: ReportDraft,
    store: ReportStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    """File a new report directly as submitted."""
    try:
        report = report_service.submit_new_report(
            store,
            draft.submitter_name or "",
            draft.narrative_text or "",
            _entries(draft),
            now,
        )
    except Exception as e:
        _raise_http(e)
    return ReportRead.from_report(report)


@router.post("/pending", response_model=ReportRead, status_code=201)
async def create_pending(
    request: PendingReportRequest,
    store: ReportStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    """Open a pending report for the current week."""
    if not request.submitter_name.strip():
        raise HTTPException(status_code=422, detail="Please enter your name")
    try:
        report = report_service.create_pending_report(store, request.submitter_name, now)
    except Exception as e:
        _raise_http(e)
    return ReportRead.from_report(report)


# ── Lifecycle ──


@router.put("/{report_id}", response_model=ReportRead)
async def save_draft(
    report_id: int,
    draft: ReportDraft,
    store: ReportStore = Depends(get_store),
):
    """Save edits to a pending report without submitting it."""
    try:
        report = report_service.save_draft(
            store,
            report_id,
            submitter_name=draft.submitter_name,
            narrative_text=draft.narrative_text,
            entries=_entries(draft),
        )
    except Exception as e:
        _raise_http(e, report_id)
    return ReportRead.from_report(report)


@router.post("/{report_id}/submit", response_model=ReportRead)
async def submit_pending(
    report_id: int,
    draft: ReportDraft,
    store: ReportStore = Depends(get_store),
):
    try:
        report = report_service.submit_pending_report(
            store,
            report_id,
            draft.submitter_name or "",
            draft.narrative_text or "",
            _entries(draft),
        )
    except Exception as e:
        _raise_http(e, report_id)
    return ReportRead.from_report(report)


@router.post("/{report_id}/reopen", response_model=ReportRead)
async def reopen(
    report_id: int,
    store: ReportStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    """Revert a submitted report to pending (current week only)."""
    try:
        report = report_service.revert_to_pending(store, report_id, now)
    except Exception as e:
        _raise_http(e, report_id)
    return ReportRead.from_report(report)


@router.post("/{report_id}/archive", response_model=ReportRead)
async def archive(report_id: int, store: ReportStore = Depends(get_store)):
    try:
        report = report_service.archive_report(store, report_id)
    except Exception as e:
        _raise_http(e, report_id)
    return ReportRead.from_report(report)


@router.delete("/{report_id}", status_code=204)
async def delete(report_id: int, store: ReportStore = Depends(get_store)):
    try:
        report_service.delete_report(store, report_id)
    except Exception as e:
        _raise_http(e, report_id)
