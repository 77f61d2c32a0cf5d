"""Tests for the scheduled weekly report job."""

from datetime import datetime

from sqlalchemy.exc import OperationalError
from sqlmodel import Session, select

from app.core.identity import InMemoryIdentityStore, SubmitterSession, USER_NAME_KEY
from app.models.report_models import WeeklyReport
from app.scheduler.jobs import weekly_report_job

MONDAY_MORNING = datetime(2024, 1, 15, 7, 0)


def _identity(name=None):
    return SubmitterSession(InMemoryIdentityStore({USER_NAME_KEY: name} if name else None))


def _count(engine):
    with Session(engine) as session:
        return len(session.exec(select(WeeklyReport)).all())


class TestWeeklyReportJob:
    """Tests for weekly_report_job."""

    def test_creates_pending_report(self, engine):
        """Monday morning with a name creates a pending report."""
        report = weekly_report_job(lambda: Session(engine), _identity("Dana"), MONDAY_MORNING)
        assert report is not None
        assert report.status == "pending"
        assert _count(engine) == 1

    def test_second_run_is_a_no_op(self, engine):
        """A second run returns the existing report."""
        first = weekly_report_job(lambda: Session(engine), _identity("Dana"), MONDAY_MORNING)
        second = weekly_report_job(lambda: Session(engine), _identity("Dana"), MONDAY_MORNING)
        assert first.id == second.id
        assert _count(engine) == 1

    def test_not_due_yet(self, engine):
        """Before the creation hour nothing is created."""
        early = datetime(2024, 1, 15, 5, 0)
        assert weekly_report_job(lambda: Session(engine), _identity("Dana"), early) is None
        assert _count(engine) == 0

    def test_skips_without_a_name(self, engine):
        """Without a name nothing is created."""
        assert weekly_report_job(lambda: Session(engine), _identity(), MONDAY_MORNING) is None
        assert _count(engine) == 0

    def test_store_failure_is_logged_not_raised(self, engine):
        """Store failures do not escape the job."""
        def broken_session():
            session = Session(engine)

            def fail(statement):
                raise OperationalError("SELECT", {}, Exception("database is locked"))

            session.exec = fail
            return session

        assert weekly_report_job(broken_session, _identity("Dana"), MONDAY_MORNING) is None
        assert _count(engine) == 0
