"""TALLY — Shared API Dependencies."""

from datetime import datetime

from fastapi import Depends
from sqlmodel import Session

from app.config import settings
from app.connectors.report_store import ReportStore
from app.core.dates import now_local
from app.core.identity import JsonFileIdentityStore, SubmitterSession
from app.database import get_session


def get_store(session: Session = Depends(get_session)) -> ReportStore:
    """Dependency — report store bound to the request's DB session."""
    return ReportStore(session)


def get_now() -> datetime:
    """Dependency — wall-clock now in the reference timezone."""
    return now_local()


def get_submitter() -> SubmitterSession:
    """Dependency — the locally persisted submitter identity."""
    return SubmitterSession(JsonFileIdentityStore(settings.identity_file))
