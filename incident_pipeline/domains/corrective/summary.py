"""L3 status x priority matrix, status-bucketed request lists and per-application status counts."""

import logging

import pandas as pd

from incident_pipeline.config import L3_MARKER
from incident_pipeline.domains.corrective.merge import build_l3_records
from incident_pipeline.domains.incidents.ingest import IncidentStore
from incident_pipeline.domains.incidents.registry import linked_children, load_registries
from incident_pipeline.utils.dates import month_label
from incident_pipeline.utils.transforms import sort_by_count, sort_requests
from incident_pipeline.utils.types import (
    CORRECTIVE_STATUS_ORDER,
    PRIORITY_ORDER,
    CorrectiveStatus,
    ViewFilters,
    ViewResult,
    ViewRow,
)

logger = logging.getLogger(__name__)


def status_key(status: CorrectiveStatus) -> str:
    """``Dev in Progress`` -> ``dev_in_progress``."""
    return status.value.lower().replace(" ", "_")


def get_l3_summary(store: IncidentStore, app: str | None = None, marker: str = L3_MARKER) -> ViewResult:
    """Counts of merged L3 records per corrective status and priority."""
    registries = load_registries(store)
    merged = build_l3_records(store, registries, ViewFilters(app=app), marker)

    rows = []
    for status in CORRECTIVE_STATUS_ORDER:
        in_status = merged[merged["resolved_status"] == status.value]
        row: ViewRow = {"status": status_key(status), "label": status.value}
        for priority in PRIORITY_ORDER:
            row[priority.lower()] = int((in_status["resolved_priority"] == priority.value).sum())
        row["total"] = sum(row[priority.lower()] for priority in PRIORITY_ORDER)
        rows.append(row)

    totals = {priority.lower(): sum(row[priority.lower()] for row in rows) for priority in PRIORITY_ORDER}
    totals["total"] = sum(row["total"] for row in rows)

    logger.info("L3 summary: %d records in matrix of %d merged", totals["total"], len(merged))
    return {"data": rows, "totals": totals}


def _request_row(record: pd.Series, children: dict[str, set[str]]) -> ViewRow:
    return {
        "request_id": record["request_id"],
        "created_time": record["created_time"],
        "module": record["module_display"],
        "subject": record["subject"],
        "priority": record["priority_raw"],
        "priority_english": record["resolved_priority"] or None,
        "linked_tickets_count": len(children.get(record["request_id"], ())),
        "eta": record["eta"],
        "origin": record["origin"],
    }


def get_l3_requests_by_status(store: IncidentStore, app: str | None = None, marker: str = L3_MARKER) -> ViewResult:
    """Merged L3 requests bucketed by corrective status, most urgent first."""
    registries = load_registries(store)
    merged = build_l3_records(store, registries, ViewFilters(app=app), marker)
    children = linked_children(registries.links)

    buckets: ViewResult = {}
    for status in CORRECTIVE_STATUS_ORDER:
        in_status = sort_requests(merged[merged["resolved_status"] == status.value])
        buckets[status_key(status)] = [_request_row(record, children) for _, record in in_status.iterrows()]

    logger.info(
        "L3 requests by status: %s",
        {key: len(requests) for key, requests in buckets.items()},
    )
    return buckets


def status_column(status: str, priority: str) -> str:
    """Backlog splits by priority, ``In Backlog (High)``; later statuses are one column each."""
    if status == CorrectiveStatus.IN_BACKLOG.value:
        return f"{status} ({priority})" if priority else status
    return status


# Backlog split by priority, then the statuses past the backlog
L3_TICKET_STATUS_COLUMNS = [
    status_column(CorrectiveStatus.IN_BACKLOG.value, priority.value) for priority in PRIORITY_ORDER
] + [status.value for status in CORRECTIVE_STATUS_ORDER[1:]]


def get_l3_tickets_by_status(
    store: IncidentStore,
    app: str | None = None,
    month: str | None = None,
    marker: str = L3_MARKER,
) -> ViewResult:
    """Merged L3 tickets per application and status column, busiest application first.

    Records whose status or backlog priority has no column are left out of the
    counts, as in the L3 matrix.
    """
    registries = load_registries(store)
    merged = build_l3_records(store, registries, ViewFilters(app=app, month=month), marker)

    rows: dict[str, ViewRow] = {}
    tickets = zip(merged["application_label"], merged["resolved_status"], merged["resolved_priority"])
    for label, status, priority in tickets:
        column = status_column(status, priority)
        if column not in L3_TICKET_STATUS_COLUMNS:
            continue
        row = rows.setdefault(label, {
            "application": label,
            "status_counts": {name: 0 for name in L3_TICKET_STATUS_COLUMNS},
            "total": 0,
        })
        row["status_counts"][column] += 1
        row["total"] += 1

    data = sort_by_count(list(rows.values()), key="total")
    total = sum(row["total"] for row in data)
    logger.info("L3 tickets by status: %d tickets across %d applications", total, len(data))
    return {
        "data": data,
        "status_columns": list(L3_TICKET_STATUS_COLUMNS) if data else [],
        "month_name": month_label(month),
        "total_l3_tickets": total,
    }
