"""Module-level views: nested module evolution and change errors per module."""

import logging

import pandas as pd

from incident_pipeline.config import CHANGE_ERROR_KEYWORDS
from incident_pipeline.domains.incidents.categories import category_mask
from incident_pipeline.domains.incidents.ingest import IncidentStore
from incident_pipeline.domains.incidents.prepare import load_incidents
from incident_pipeline.domains.incidents.registry import linked_children, load_registries
from incident_pipeline.utils.sentinels import is_unassigned
from incident_pipeline.utils.transforms import count_breakdown, none_if_missing, percentage
from incident_pipeline.utils.types import ViewFilters, ViewResult, ViewRow

logger = logging.getLogger(__name__)


def _ticket_row(record: pd.Series, children: dict[str, set[str]]) -> ViewRow:
    status_display = none_if_missing(record["status_display"])
    parent = record["linked_request_id"].strip()
    return {
        "subject": record["subject"],
        "request_id": record["request_id"],
        "request_id_link": record["request_id_link"] or None,
        "parent_ticket_id": None if is_unassigned(parent) else parent,
        "linked_tickets_count": len(children.get(record["request_id"], ())),
        "additional_info": record["additional_info"],
        "display_status": status_display if status_display is not None else record["status"],
        "is_unmapped": status_display is None,
    }


def get_module_evolution(
    store: IncidentStore,
    app: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> ViewResult:
    """Module -> categorization -> ticket tree over a date range."""
    registries = load_registries(store)
    records = load_incidents(
        store, registries, ViewFilters(app=app, start_date=start_date, end_date=end_date)
    )
    children = linked_children(registries.links)
    total = len(records)

    data = []
    for module in count_breakdown(records, "module", "module_display"):
        in_module = records[records["module"] == module["raw"]]
        categorizations = []
        for category in count_breakdown(in_module, "categorization", "categorization_display"):
            in_category = in_module[in_module["categorization"] == category["raw"]]
            categorizations.append({
                "categorization_raw": category["raw"],
                "categorization_display": category["display"],
                "count": category["count"],
                "pct": percentage(category["count"], module["count"]),
                "tickets": [_ticket_row(record, children) for _, record in in_category.iterrows()],
            })
        data.append({
            "module_raw": module["raw"],
            "module_display": module["display"],
            "count": module["count"],
            "pct": percentage(module["count"], total),
            "categorizations": categorizations,
        })

    logger.info("Module evolution: %d modules over %d records", len(data), total)
    return {"data": data, "total": total}


def get_change_release_by_module(store: IncidentStore, app: str | None = None, month: str | None = None) -> list[ViewRow]:
    """Change-error incidents per raw module, most affected first."""
    registries = load_registries(store)
    records = load_incidents(store, registries, ViewFilters(app=app, month=month))
    changes = records[category_mask(records, CHANGE_ERROR_KEYWORDS)]

    rows = [
        {"module_raw": row["raw"], "module_display": row["display"], "incident_count": row["count"]}
        for row in count_breakdown(changes, "module", "module_display")
    ]
    logger.info("Change release by module: %d change errors in %d modules", len(changes), len(rows))
    return rows
