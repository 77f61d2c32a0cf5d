"""TALLY — Central Configuration via Pydantic Settings."""

import os
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Database ──
    database_url: str = ""

    # ── App ──
    log_level: str = "INFO"
    scheduler_enabled: bool = True
    identity_file: str = ".tally_identity.json"

    # ── Reporting calendar ──
    report_timezone: str = "America/New_York"
    report_creation_hour: int = 6  # Monday 6 AM, reference timezone
    archived_page_size: int = 5

    # ── Analytics ──
    analytics_schema_version: str = "1.0.0"
    default_series_target: float = 10.0  # Metrics missing from the registry

    @property
    def effective_database_url(self) -> str:
        """Return PostgreSQL URL if set, otherwise fall back to SQLite."""
        if self.database_url:
            return self.database_url
        # Vercel has a read-only filesystem; use /tmp for SQLite
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/tally.db"
        return "sqlite:///./tally.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
