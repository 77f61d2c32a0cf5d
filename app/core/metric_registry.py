"""TALLY — Metric Registry.

Defines the canonical set of tracked metrics and their cadences.
Every new pending report is seeded from this list, and the analytics
engines fall back to these targets when reports carry none.
"""

from enum import Enum
from typing import Dict, List


class Cadence(str, Enum):
    """How often a metric's target resets."""

    WEEKLY = "Weekly"
    MONTHLY = "Monthly"


class MetricDefinition:
    """Describes a single tracked metric."""

    def __init__(
        self,
        id: str,
        title: str,
        cadence: Cadence,
        target_value: float,
        target_label: str = "",
        tracking_method: str = "",
    ):
        self.id = id
        self.title = title
        self.cadence = cadence
        self.target_value = target_value
        self.target_label = target_label
        self.tracking_method = tracking_method

    def to_entry(self) -> dict:
        """Blank metric entry as embedded in a new report."""
        return {
            "id": self.id,
            "title": self.title,
            "cadence": self.cadence.value,
            "value": 0,
            "target_value": self.target_value,
            "previous_value": 0,
            "completed": False,
        }

    def __repr__(self) -> str:
        return f"<Metric {self.title} ({self.cadence.value})>"


# ─────────────────────────────────────────────
# DEFAULT METRICS — Canonical Registry
# ─────────────────────────────────────────────

DEFAULT_METRICS: List[MetricDefinition] = [
    MetricDefinition(
        "1",
        "New Accounts Outreach",
        Cadence.WEEKLY,
        10,
        "10 per week",
        "CRM/Spreadsheet (Date, Company, Contact, Outcome)",
    ),
    MetricDefinition(
        "2",
        "Acres Secured",
        Cadence.MONTHLY,
        5,
        "5 per month",
        "Signed Contracts, Internal Records",
    ),
    MetricDefinition(
        "3",
        "Quotations Sent",
        Cadence.MONTHLY,
        20,
        "20 per month",
        "CRM/Spreadsheet (Date, Recipient, Acreage)",
    ),
    MetricDefinition(
        "4",
        "Quotation Closing Rate",
        Cadence.MONTHLY,
        20,
        "20%",
        "(Contracts Signed / Quotations Sent) * 100",
    ),
]


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────

METRICS_BY_TITLE: Dict[str, MetricDefinition] = {m.title: m for m in DEFAULT_METRICS}


def get_metric(title: str) -> MetricDefinition | None:
    """Look up a metric by title."""
    return METRICS_BY_TITLE.get(title)


def default_target(title: str) -> float:
    """Configured target for a metric title, 0 if unknown."""
    metric = get_metric(title)
    return metric.target_value if metric else 0


def default_metric_entries() -> List[dict]:
    """Fresh metric entries for a new pending report."""
    return [m.to_entry() for m in DEFAULT_METRICS]


def entry_cadence(entry: dict) -> str:
    """Cadence of an embedded entry, falling back to the registry by title."""
    cadence = entry.get("cadence")
    if cadence:
        return cadence
    metric = get_metric(entry.get("title", ""))
    return metric.cadence.value if metric else Cadence.WEEKLY.value
