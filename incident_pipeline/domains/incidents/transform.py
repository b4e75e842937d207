"""Normalize and enrich canonical incident records."""

import logging

import pandas as pd

from incident_pipeline.config import NEW_VALUES, RECURRING_VALUES
from incident_pipeline.utils.dates import parse_instants
from incident_pipeline.utils.sentinels import is_unassigned, unassigned_mask
from incident_pipeline.utils.types import Origin, Priority, RecurrenceKind, priority_rank

logger = logging.getLogger(__name__)

# Weekly corrective exports use the Spanish vocabulary
CORRECTIVE_PRIORITY_MAP = {
    "baja": Priority.LOW,
    "media": Priority.MEDIUM,
    "alta": Priority.HIGH,
    "crítica": Priority.CRITICAL,
    "critica": Priority.CRITICAL,
    "urgente": Priority.CRITICAL,
    "low": Priority.LOW,
    "medium": Priority.MEDIUM,
    "high": Priority.HIGH,
    "critical": Priority.CRITICAL,
}


def canonical_priority(raw: str, origin: str) -> str:
    """Map a source priority onto Critical/High/Medium/Low, or ``""`` when unknown."""
    value = str(raw).strip()
    match origin:
        case Origin.WEEKLY_CORRECTIVE:
            mapped = CORRECTIVE_PRIORITY_MAP.get(value.lower())
            return mapped.value if mapped else ""
        case _:
            for priority in Priority:
                if value.lower() == priority.value.lower():
                    return priority.value
            return ""


def classify_recurrence(raw: str) -> str:
    if is_unassigned(raw):
        return RecurrenceKind.UNASSIGNED
    match str(raw).strip().lower():
        case value if value in RECURRING_VALUES:
            return RecurrenceKind.RECURRING
        case value if value in NEW_VALUES:
            return RecurrenceKind.NEW
        case _:
            return RecurrenceKind.UNASSIGNED


def normalize_incidents(df: pd.DataFrame) -> pd.DataFrame:
    """Derive parsed dates, canonical priority and sentinel flags."""
    out = df.copy()

    out["created_at"] = parse_instants(out["created_time"])
    out["priority"] = [
        canonical_priority(raw, origin)
        for raw, origin in zip(out["priority_raw"], out["origin"])
    ]
    out["priority_rank"] = out["priority"].map(priority_rank).astype(int)
    out["has_parent"] = ~unassigned_mask(out["linked_request_id"])
    out["recurrence_kind"] = out["recurrence"].map(classify_recurrence)

    invalid_dates = int(out["created_at"].isna().sum())
    if invalid_dates:
        logger.warning("%d records have an unparseable created time", invalid_dates)
    logger.info("Normalized %d incident records", len(out))
    return out
