"""Merge the weekly corrective source with level-3 records from the other sources.

Precedence is fixed and shared by every L3 view: weekly-corrective records
first, then primary-monthly records whose raw status is the level-3 marker,
then problem tickets carrying the same marker. A ticket identity already
taken by an earlier source is never replaced by a later one.
"""

import logging

import pandas as pd

from incident_pipeline.config import L3_MARKER
from incident_pipeline.domains.incidents.ingest import IncidentStore, fetch_records
from incident_pipeline.domains.incidents.prepare import load_incidents, prepare_records
from incident_pipeline.domains.incidents.registry import Lookup, Registries, build_lookup, resolve
from incident_pipeline.domains.incidents.transform import canonical_priority
from incident_pipeline.utils.types import CorrectiveStatus, Origin, ViewFilters, priority_rank

logger = logging.getLogger(__name__)

# Fallback sources, in precedence order, after the weekly corrective source
FALLBACK_ORIGINS = [Origin.PRIMARY_MONTHLY, Origin.PROBLEM_TICKET]


def merge_sources(
    corrective: pd.DataFrame,
    *fallbacks: pd.DataFrame,
    marker: str = L3_MARKER,
) -> pd.DataFrame:
    """Union sources by identity; fallbacks contribute only marker-status records."""
    merged = corrective.drop_duplicates(subset="request_id", keep="first")
    seen = set(merged["request_id"])
    parts = [merged]

    for frame in fallbacks:
        if frame.empty:
            continue
        marked = frame[frame["status"].astype(str).str.strip() == marker]
        fresh = marked[~marked["request_id"].isin(seen)].drop_duplicates(subset="request_id", keep="first")
        seen.update(fresh["request_id"])
        parts.append(fresh)

    parts = [part for part in parts if not part.empty]
    if not parts:
        return corrective.iloc[0:0].copy()
    return pd.concat(parts, ignore_index=True)


def resolve_merged_status(
    raw: str,
    origin: str,
    corrective_lookup: Lookup,
    marker: str = L3_MARKER,
) -> str:
    """Corrective mapping, then the primary-monthly marker default, then the raw text."""
    mapped = resolve(raw, corrective_lookup)
    if mapped is not None:
        return mapped
    if origin == Origin.PRIMARY_MONTHLY and str(raw).strip() == marker:
        return CorrectiveStatus.IN_BACKLOG.value
    return raw


def resolve_merged_priority(raw: str, origin: str) -> str:
    return canonical_priority(raw, origin)


def build_l3_records(
    store: IncidentStore,
    registries: Registries,
    filters: ViewFilters,
    marker: str = L3_MARKER,
) -> pd.DataFrame:
    """Prepared, merged L3 records with resolved status and priority."""
    corrective = prepare_records(fetch_records(store, Origin.WEEKLY_CORRECTIVE), registries, filters)
    fallbacks = [load_incidents(store, registries, filters, origin) for origin in FALLBACK_ORIGINS]
    merged = merge_sources(corrective, *fallbacks, marker=marker)

    lookup = build_lookup(registries.corrective_statuses)
    merged["resolved_status"] = [
        resolve_merged_status(raw, origin, lookup, marker)
        for raw, origin in zip(merged["status"], merged["origin"])
    ]
    merged["resolved_priority"] = [
        resolve_merged_priority(raw, origin)
        for raw, origin in zip(merged["priority_raw"], merged["origin"])
    ]
    merged["priority_rank"] = merged["resolved_priority"].map(priority_rank).astype(int)
    merged["module_display"] = merged["module_display"].where(merged["module_display"].notna(), merged["module"])

    logger.info(
        "Merged %d L3 records (%d corrective, %d from fallbacks)",
        len(merged),
        len(corrective),
        len(merged) - len(corrective),
    )
    return merged
