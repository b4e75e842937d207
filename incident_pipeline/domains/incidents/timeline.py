"""Time-bucketed views: ISO weeks, days of the month, releases per day."""

import logging
from collections import Counter

from incident_pipeline.config import CHANGE_ERROR_KEYWORDS
from incident_pipeline.domains.incidents.categories import category_mask
from incident_pipeline.domains.incidents.ingest import IncidentStore
from incident_pipeline.domains.incidents.prepare import load_incidents
from incident_pipeline.domains.incidents.registry import load_registries
from incident_pipeline.utils.dates import day_of_month, iso_week, iso_week_bounds
from incident_pipeline.utils.sentinels import is_unassigned
from incident_pipeline.utils.types import ViewFilters, ViewResult, ViewRow

logger = logging.getLogger(__name__)


def get_incidents_by_week(store: IncidentStore, app: str | None = None, year: int | None = None) -> ViewResult:
    """Incident counts per ISO week; ``year`` selects the ISO week-year."""
    registries = load_registries(store)
    records = load_incidents(store, registries, ViewFilters(app=app))
    dated = records["created_at"].dropna()

    weeks = Counter(iso_week(ts) for ts in dated)
    rows = []
    for iso_year, week in sorted(weeks):
        if year is not None and iso_year != year:
            continue
        start, end = iso_week_bounds(iso_year, week)
        rows.append({
            "week": week,
            "year": iso_year,
            "count": weeks[(iso_year, week)],
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
        })

    logger.info("Incidents by week: %d weeks (year=%s)", len(rows), year)
    return {"year": year, "total_incidents": sum(row["count"] for row in rows), "data": rows}


def get_incidents_by_day(store: IncidentStore, app: str | None = None) -> list[ViewRow]:
    """Incident counts per calendar day number, pooled across every month."""
    registries = load_registries(store)
    records = load_incidents(store, registries, ViewFilters(app=app))
    days = Counter(day_of_month(ts) for ts in records["created_at"].dropna())

    rows = [{"day": day, "count": days[day]} for day in sorted(days)]
    logger.info("Incidents by day: %d days observed", len(rows))
    return rows


def get_incidents_by_release_by_day(store: IncidentStore, app: str | None = None, month: str | None = None) -> list[ViewRow]:
    """Incidents and change errors per day, labelled with that day's releases."""
    registries = load_registries(store)
    records = load_incidents(store, registries, ViewFilters(app=app, month=month))
    records = records[records["created_at"].notna()]
    is_change = category_mask(records, CHANGE_ERROR_KEYWORDS)

    buckets: dict[int, ViewRow] = {}
    releases: dict[int, dict[str, None]] = {}
    for created, release, change in zip(records["created_at"], records["release"], is_change):
        day = day_of_month(created)
        row = buckets.setdefault(day, {"day": day, "incidents": 0, "change_error_count": 0, "total": 0})
        if change:
            row["change_error_count"] += 1
        else:
            row["incidents"] += 1
        row["total"] += 1
        if not is_unassigned(release):
            releases.setdefault(day, {})[release.strip()] = None

    rows = []
    for day in sorted(buckets):
        row = buckets[day]
        rows.append({
            "day": day,
            "label": ", ".join(releases.get(day, {})),
            "incidents": row["incidents"],
            "change_error_count": row["change_error_count"],
            "total": row["total"],
        })

    logger.info("Incidents by release by day: %d days", len(rows))
    return rows
