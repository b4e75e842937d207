"""Priority-centred views: critical incidents, priority x module, priority by application."""

import logging
from collections import Counter

import pandas as pd

from incident_pipeline.domains.incidents.ingest import IncidentStore
from incident_pipeline.domains.incidents.prepare import load_incidents
from incident_pipeline.domains.incidents.registry import load_registries
from incident_pipeline.utils.dates import month_label
from incident_pipeline.utils.transforms import none_if_missing, sort_by_count, sort_requests
from incident_pipeline.utils.types import PRIORITY_ORDER, Priority, ViewFilters, ViewResult, ViewRow

logger = logging.getLogger(__name__)

TOP_MODULES = 5


def _incident_row(record: pd.Series) -> ViewRow:
    created = none_if_missing(record["created_at"])
    return {
        "request_id": record["request_id"],
        "request_id_link": record["request_id_link"] or None,
        "subject": record["subject"],
        "application": record["application_label"],
        "module": record["module"],
        "module_display": none_if_missing(record["module_display"]),
        "status": record["status"],
        "status_display": none_if_missing(record["status_display"]),
        "categorization": record["categorization"],
        "categorization_display": none_if_missing(record["categorization_display"]),
        "priority": record["priority"],
        "created_time": record["created_time"],
        "created_at": created.isoformat() if created is not None else None,
        "eta": record["eta"],
        "technician": record["technician"],
    }


def get_critical_incidents(store: IncidentStore, app: str | None = None, month: str | None = None) -> list[ViewRow]:
    """Critical-priority records, newest first."""
    registries = load_registries(store)
    records = load_incidents(store, registries, ViewFilters(app=app, month=month))
    critical = records[records["priority"] == Priority.CRITICAL.value]
    rows = [_incident_row(record) for _, record in sort_requests(critical).iterrows()]
    logger.info("Critical incidents: %d of %d records", len(rows), len(records))
    return rows


def get_business_flow_priority(
    store: IncidentStore,
    app: str | None = None,
    month: str | None = None,
    top_n: int = TOP_MODULES,
) -> ViewResult:
    """Top modules per priority, every observed module pre-seeded at zero."""
    registries = load_registries(store)
    records = load_incidents(store, registries, ViewFilters(app=app, month=month))

    displays: dict[str, object] = {}
    for raw, display in zip(records["module"], records["module_display"]):
        displays.setdefault(raw, none_if_missing(display))

    data = []
    for priority in PRIORITY_ORDER:
        subset = records[records["priority"] == priority.value]
        counts = Counter({module: 0 for module in displays})
        counts.update(subset["module"])
        modules = [
            {"module_raw": module, "module_display": displays[module], "count": count}
            for module, count in counts.items()
        ]
        data.append({
            "priority": priority.value,
            "total_count": len(subset),
            "modules": sort_by_count(modules)[:top_n],
        })

    logger.info("Business flow priority: %d records, %d modules", len(records), len(displays))
    return {
        "month_name": month_label(month),
        "total_incidents": len(records),
        "data": data,
    }


def get_priority_by_app(store: IncidentStore, app: str | None = None, month: str | None = None) -> ViewResult:
    """Per-application priority counts, busiest application first."""
    registries = load_registries(store)
    records = load_incidents(store, registries, ViewFilters(app=app, month=month))

    rows: dict[str, ViewRow] = {}
    for label, priority in zip(records["application_label"], records["priority"]):
        row = rows.setdefault(label, {
            "application": label,
            "critical": 0,
            "high": 0,
            "medium": 0,
            "low": 0,
            "total": 0,
        })
        match priority:
            case Priority.CRITICAL | Priority.HIGH | Priority.MEDIUM | Priority.LOW:
                row[priority.lower()] += 1
                row["total"] += 1
            case _:
                continue

    result = sort_by_count(list(rows.values()), key="total")
    logger.info("Priority by app: %d applications", len(result))
    return {
        "month_name": month_label(month),
        "total_incidents": sum(row["total"] for row in result),
        "data": result,
    }
