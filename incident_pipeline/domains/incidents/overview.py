"""Composite incident overview: five category cards over one filtered base set.

The cards are computed concurrently. If any card fails, pending cards are
cancelled and the first error propagates; no partial overview is returned.
"""

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable

import pandas as pd

from incident_pipeline.config import CLOSED_DISPLAY_STATUSES, L3_DISPLAY_STATUSES, L3_MARKER
from incident_pipeline.domains.corrective.merge import build_l3_records
from incident_pipeline.domains.incidents.categories import category_card
from incident_pipeline.domains.incidents.ingest import IncidentStore
from incident_pipeline.domains.incidents.prepare import load_incidents
from incident_pipeline.domains.incidents.registry import Registries, load_registries
from incident_pipeline.domains.incidents.stability import is_l3
from incident_pipeline.utils.transforms import percentage, sort_by_count
from incident_pipeline.utils.types import CorrectiveStatus, RecurrenceKind, ViewFilters, ViewResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 5

type CardTask = Callable[[], ViewResult]


def _displays(records: pd.DataFrame) -> pd.Series:
    return records["status_display"].fillna("").astype(str)


def resolved_in_l2(base: pd.DataFrame, marker: str = L3_MARKER) -> ViewResult:
    closed = _displays(base).isin(CLOSED_DISPLAY_STATUSES) & ~is_l3(base, marker)
    return category_card(base[closed])


def pending(base: pd.DataFrame, marker: str = L3_MARKER) -> ViewResult:
    open_l2 = ~_displays(base).isin(CLOSED_DISPLAY_STATUSES) & ~is_l3(base, marker)
    return category_card(base[open_l2])


def recurrent_in_l2_l3(base: pd.DataFrame) -> ViewResult:
    return category_card(base[base["recurrence_kind"] == RecurrenceKind.RECURRING.value])


def backlog_records(merged: pd.DataFrame, marker: str = L3_MARKER) -> pd.DataFrame:
    """Merged L3 records still waiting on L3: raw marker status or resolved to the backlog."""
    raw_marker = merged["status"].astype(str).str.strip() == marker
    in_backlog = merged["resolved_status"] == CorrectiveStatus.IN_BACKLOG.value
    return merged[raw_marker | in_backlog]


def assigned_to_l3_backlog(
    base: pd.DataFrame,
    store: IncidentStore,
    registries: Registries,
    filters: ViewFilters,
    marker: str = L3_MARKER,
) -> ViewResult:
    """Backlog/ongoing L3 base records unioned with backlog merged records, one per ticket."""
    mapped = base[_displays(base).isin(L3_DISPLAY_STATUSES)]
    merged = backlog_records(build_l3_records(store, registries, filters, marker), marker)
    union = pd.concat([mapped, merged], ignore_index=True)
    return category_card(union.drop_duplicates(subset="request_id", keep="first"))


def l3_status(
    store: IncidentStore,
    registries: Registries,
    filters: ViewFilters,
    marker: str = L3_MARKER,
) -> ViewResult:
    merged = build_l3_records(store, registries, filters, marker)
    total = len(merged)
    statuses = [
        {"status": status, "count": count, "pct": percentage(count, total)}
        for status, count in merged["resolved_status"].value_counts(sort=False).items()
    ]
    return {"total": total, "statuses": sort_by_count(statuses)}


def run_cards(tasks: dict[str, CardTask], max_workers: int = DEFAULT_MAX_WORKERS) -> dict[str, ViewResult]:
    """Run card computations concurrently; the first failure aborts the whole set."""
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {executor.submit(task): name for name, task in tasks.items()}
        done, not_done = wait(futures, return_when=FIRST_EXCEPTION)

        for future in done:
            if future.exception() is not None:
                for pending_future in not_done:
                    pending_future.cancel()
                logger.error("Overview card %s failed: %s", futures[future], future.exception())
                raise future.exception()

        return {futures[future]: future.result() for future in futures}


def get_incident_overview_by_category(
    store: IncidentStore,
    app: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
    marker: str = L3_MARKER,
) -> ViewResult:
    """Resolved, pending, recurrent, L3-backlog and L3-status cards for a date range."""
    filters = ViewFilters(app=app, start_date=start_date, end_date=end_date)
    registries = load_registries(store)
    base = load_incidents(store, registries, filters)

    cards = run_cards(
        {
            "resolved_in_l2": lambda: resolved_in_l2(base, marker),
            "pending": lambda: pending(base, marker),
            "recurrent_in_l2_l3": lambda: recurrent_in_l2_l3(base),
            "assigned_to_l3_backlog": lambda: assigned_to_l3_backlog(base, store, registries, filters, marker),
            "l3_status": lambda: l3_status(store, registries, filters, marker),
        },
        max_workers=max_workers,
    )

    logger.info(
        "Incident overview: %d base records, %d resolved, %d pending",
        len(base),
        cards["resolved_in_l2"]["total"],
        cards["pending"]["total"],
    )
    return cards
