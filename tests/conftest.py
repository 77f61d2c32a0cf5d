"""Shared fixtures: in-memory database, report store, report factory, API client."""

import itertools
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.connectors.report_store import ReportStore, ReportStoreError
from app.core.dates import week_ending_date
from app.core.identity import InMemoryIdentityStore, SubmitterSession
from app.models.report_models import ReportStatus, WeeklyReport


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def store(session):
    return ReportStore(session)


class BrokenStore:
    """Store whose every read fails, as when the database is unreachable."""

    def query_by_status(self, status):
        raise ReportStoreError("database unavailable")

    def submitted_between(self, submitter_name, start, end):
        raise ReportStoreError("database unavailable")


@pytest.fixture
def broken_store():
    return BrokenStore()


@pytest.fixture
def make_report():
    """Build unsaved WeeklyReport objects with unique ids."""
    ids = itertools.count(1)

    def _make(
        metrics,
        created_at: datetime,
        week_ending: datetime | None = None,
        status: str = ReportStatus.SUBMITTED.value,
        archived: bool = False,
        submitter_name: str = "Dana",
    ) -> WeeklyReport:
        return WeeklyReport(
            id=next(ids),
            submitter_name=submitter_name,
            narrative_text="Week summary",
            metrics=metrics,
            created_at=created_at,
            week_ending_date=week_ending or week_ending_date(created_at),
            status=status,
            archived=archived,
        )

    return _make


class FrozenClock:
    """Stand-in for the ``get_now`` dependency."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    # Wednesday
    return FrozenClock(datetime(2024, 1, 17, 10, 0))


@pytest.fixture
def identity():
    return SubmitterSession(InMemoryIdentityStore())


@pytest.fixture
def client(engine, clock, identity):
    from app.api.deps import get_now, get_submitter
    from app.database import get_session
    from app.main import app

    def _session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_now] = clock
    app.dependency_overrides[get_submitter] = lambda: identity
    yield TestClient(app)
    app.dependency_overrides.clear()
