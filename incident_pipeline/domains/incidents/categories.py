"""Categorization distribution and keyword-based category selection."""

import logging

import pandas as pd

from incident_pipeline.domains.incidents.ingest import IncidentStore
from incident_pipeline.domains.incidents.prepare import load_incidents
from incident_pipeline.domains.incidents.registry import load_registries
from incident_pipeline.utils.dates import month_label
from incident_pipeline.utils.transforms import count_breakdown, none_if_missing, percentage, sort_by_count
from incident_pipeline.utils.types import RecurrenceKind, ViewFilters, ViewResult, ViewRow

logger = logging.getLogger(__name__)


def category_mask(records: pd.DataFrame, keywords: tuple[str, ...]) -> pd.Series:
    """Records whose categorization display or raw value contains any keyword."""
    display = records["categorization_display"].fillna("").astype(str).str.lower()
    raw = records["categorization"].astype(str).str.lower()
    mask = pd.Series(False, index=records.index)
    for keyword in keywords:
        mask |= display.str.contains(keyword, regex=False) | raw.str.contains(keyword, regex=False)
    return mask


def category_card(records: pd.DataFrame) -> ViewResult:
    """``{total, categories}`` with percentages against the card's own total."""
    total = len(records)
    categories = [
        {
            "categorization_raw": row["raw"],
            "categorization_display": row["display"],
            "count": row["count"],
            "pct": percentage(row["count"], total),
        }
        for row in count_breakdown(records, "categorization", "categorization_display")
    ]
    return {"total": total, "categories": categories}


def get_category_distribution(store: IncidentStore, app: str | None = None, month: str | None = None) -> ViewResult:
    """Recurring / new / unassigned split per raw categorization."""
    registries = load_registries(store)
    records = load_incidents(store, registries, ViewFilters(app=app, month=month))
    total = len(records)

    rows: dict[str, ViewRow] = {}
    for _, record in records.iterrows():
        row = rows.setdefault(record["categorization"], {
            "categorization_raw": record["categorization"],
            "categorization_display": none_if_missing(record["categorization_display"]),
            "recurring_count": 0,
            "new_count": 0,
            "unassigned_count": 0,
            "unassigned_tickets": [],
            "total": 0,
        })
        row["total"] += 1
        match record["recurrence_kind"]:
            case RecurrenceKind.RECURRING:
                row["recurring_count"] += 1
            case RecurrenceKind.NEW:
                row["new_count"] += 1
            case _:
                row["unassigned_count"] += 1
                row["unassigned_tickets"].append({
                    "request_id": record["request_id"],
                    "request_id_link": record["request_id_link"] or None,
                    "subject": record["subject"],
                })

    result = sort_by_count(list(rows.values()), key="total")
    for row in result:
        row["pct"] = percentage(row["total"], total)

    logger.info("Category distribution: %d categorizations over %d records", len(result), total)
    return {"month_name": month_label(month), "total_incidents": total, "data": result}
