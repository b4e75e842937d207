"""Shared normalize -> match -> dedupe -> resolve -> filter stage used by every view."""

import logging

import pandas as pd

from incident_pipeline.domains.incidents.applications import (
    application_labels,
    canonical_order,
    deduplicate,
    filter_by_application,
    join_applications,
)
from incident_pipeline.domains.incidents.ingest import IncidentStore, fetch_records
from incident_pipeline.domains.incidents.registry import Registries, attach_displays
from incident_pipeline.domains.incidents.transform import normalize_incidents
from incident_pipeline.utils.dates import day_range, parse_month
from incident_pipeline.utils.types import Origin, ViewFilters

logger = logging.getLogger(__name__)


def filter_month(records: pd.DataFrame, month: str | None) -> pd.DataFrame:
    """Keep records created in ``YYYY-MM``; a malformed month is ignored."""
    if not month:
        return records
    parsed = parse_month(month)
    if parsed is None:
        logger.warning("Ignoring malformed month filter: %s", month)
        return records
    year, month_number = parsed
    created = records["created_at"]
    mask = (created.dt.year == year) & (created.dt.month == month_number)
    return records[mask.fillna(False).astype(bool)]


def filter_date_range(records: pd.DataFrame, start: str | None, end: str | None) -> pd.DataFrame:
    """Keep records created between the start and end days, both inclusive."""
    if not start and not end:
        return records
    lower, upper = day_range(start, end)
    created = records["created_at"]
    mask = pd.Series(True, index=records.index)
    if lower is not None:
        mask &= created >= lower
    if upper is not None:
        mask &= created < upper
    if lower is not None or upper is not None:
        mask &= created.notna()
    return records[mask]


def filter_period(records: pd.DataFrame, filters: ViewFilters) -> pd.DataFrame:
    out = filter_month(records, filters.month)
    return filter_date_range(out, filters.start_date, filters.end_date)


def prepare_records(
    records: pd.DataFrame,
    registries: Registries,
    filters: ViewFilters,
) -> pd.DataFrame:
    """Run canonical records through matching, dedupe, registry resolution and filters."""
    normalized = normalize_incidents(records)
    joined = join_applications(normalized, registries.patterns)
    joined = filter_by_application(joined, filters.app)
    deduped = deduplicate(canonical_order(joined))
    deduped["application_label"] = application_labels(deduped)
    resolved = attach_displays(deduped, registries)
    return filter_period(resolved, filters).reset_index(drop=True)


def load_incidents(
    store: IncidentStore,
    registries: Registries,
    filters: ViewFilters,
    origin: Origin = Origin.PRIMARY_MONTHLY,
) -> pd.DataFrame:
    """Read one origin from the store and prepare it for a view."""
    prepared = prepare_records(fetch_records(store, origin), registries, filters)
    logger.debug("Prepared %d %s records for filters %s", len(prepared), origin.value, filters)
    return prepared
