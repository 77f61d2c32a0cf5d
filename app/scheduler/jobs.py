"""TALLY — Scheduler Jobs.

APScheduler weekly job that opens the pending report every Monday at the
configured hour in the reference timezone. The dashboard runs the same
check on load, so a missed run is picked up by the next visit.
"""

from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlmodel import Session

from app.config import settings
from app.connectors.report_store import ReportError, ReportStore
from app.core.dates import now_local
from app.core.identity import JsonFileIdentityStore, SubmitterSession
from app.database import engine
from app.services.report_service import ensure_current_week_report
from app.core.logging import get_logger

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler(timezone=settings.report_timezone)


def weekly_report_job(
    session_factory=None,
    identity: SubmitterSession | None = None,
    now: datetime | None = None,
):
    """Create this week's pending report if none exists yet."""
    identity = identity or SubmitterSession(JsonFileIdentityStore(settings.identity_file))
    if not identity.is_identified:
        logger.info("No submitter name stored; skipping weekly report creation")
        return None

    logger.info("Scheduled weekly report check starting...")
    factory = session_factory or (lambda: Session(engine))
    try:
        with factory() as session:
            report, created = ensure_current_week_report(
                ReportStore(session), identity.name, now or now_local()
            )
    except ReportError as e:
        logger.error(f"Scheduled weekly report check failed: {e}")
        return None

    if created:
        logger.info(
            f"Scheduled check created report {report.id}", extra={"report_id": report.id}
        )
    return report


def start_scheduler():
    """Configure and start the scheduler."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return

    scheduler.add_job(
        weekly_report_job,
        "cron",
        day_of_week="mon",
        hour=settings.report_creation_hour,
        minute=0,
        id="weekly_report",
        replace_existing=True,
        misfire_grace_time=3600,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started. Weekly report at Monday {settings.report_creation_hour}:00 "
        f"{settings.report_timezone}"
    )


def stop_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
