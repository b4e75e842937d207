"""Stability indicators: L2 vs L3 handling per application.

Closed records, and records mapped to a display status outside the L2/L3
vocabulary, are left out of every count and of the row total.
"""

import logging

import numpy as np
import pandas as pd

from incident_pipeline.config import CLOSED_DISPLAY_STATUSES, L2_DISPLAY_STATUSES, L3_DISPLAY_STATUSES, L3_MARKER
from incident_pipeline.domains.incidents.ingest import IncidentStore
from incident_pipeline.domains.incidents.prepare import load_incidents
from incident_pipeline.domains.incidents.registry import load_registries
from incident_pipeline.utils.transforms import sort_by_count
from incident_pipeline.utils.types import ViewFilters, ViewResult, ViewRow

logger = logging.getLogger(__name__)

COUNTED_LEVELS = ("l2", "l3", "unmapped")


def is_l3(records: pd.DataFrame, marker: str = L3_MARKER) -> pd.Series:
    """Mapped to an L3 display status, or still carrying the raw level-3 marker."""
    display = records["status_display"].fillna("").astype(str)
    raw_marker = records["status"].astype(str).str.strip() == marker
    return display.isin(L3_DISPLAY_STATUSES) | raw_marker


def stability_levels(records: pd.DataFrame, marker: str = L3_MARKER) -> pd.Series:
    """``l3``, ``closed``, ``l2``, ``unmapped`` or ``other`` per record."""
    display = records["status_display"].fillna("").astype(str)
    conditions = [
        is_l3(records, marker),
        display.isin(CLOSED_DISPLAY_STATUSES),
        display.isin(L2_DISPLAY_STATUSES),
        records["status_display"].isna(),
    ]
    levels = np.select(conditions, ["l3", "closed", "l2", "unmapped"], default="other")
    return pd.Series(levels, index=records.index, dtype=object)


def get_stability_indicators(
    store: IncidentStore,
    app: str | None = None,
    month: str | None = None,
    marker: str = L3_MARKER,
) -> ViewResult:
    """Per-application L2 / L3 / unmapped counts, largest application first."""
    registries = load_registries(store)
    records = load_incidents(store, registries, ViewFilters(app=app, month=month))
    levels = stability_levels(records, marker)

    rows: dict[str, ViewRow] = {}
    for (_, record), level in zip(records.iterrows(), levels):
        row = rows.setdefault(record["application_label"], {
            "application": record["application_label"],
            "l2_count": 0,
            "l3_count": 0,
            "unmapped_count": 0,
            "unmapped_tickets": [],
            "total": 0,
        })
        if level not in COUNTED_LEVELS:
            continue
        row["total"] += 1
        row[f"{level}_count"] += 1
        if level == "unmapped":
            row["unmapped_tickets"].append({
                "request_id": record["request_id"],
                "request_id_link": record["request_id_link"] or None,
                "raw_status": record["status"],
            })

    data = sort_by_count(list(rows.values()), key="total")
    has_unmapped = any(row["unmapped_count"] > 0 for row in data)
    if has_unmapped:
        logger.warning("Stability indicators found records with unmapped statuses")
    logger.info("Stability indicators: %d applications over %d records", len(data), len(records))
    return {"data": data, "has_unmapped": has_unmapped}
