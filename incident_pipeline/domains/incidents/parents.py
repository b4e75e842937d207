"""Roll incidents up to the parent ticket they are linked to.

Used by the missing-scope and bugs views. Each row describes one parent:
how many distinct children reference it overall (link source plus every
record pointing at it) and how many of the selected records fall in the
requested month. Records whose parent is a sentinel share one synthetic
``unassigned`` row that is always last.
"""

import logging

import pandas as pd

from incident_pipeline.config import BUG_KEYWORDS, MISSING_SCOPE_KEYWORDS
from incident_pipeline.domains.incidents.categories import category_mask
from incident_pipeline.domains.incidents.ingest import IncidentStore
from incident_pipeline.domains.incidents.prepare import filter_month, load_incidents
from incident_pipeline.domains.incidents.registry import linked_children, load_registries
from incident_pipeline.utils.sentinels import is_unassigned
from incident_pipeline.utils.transforms import iso_date, none_if_missing
from incident_pipeline.utils.types import ViewFilters, ViewRow

logger = logging.getLogger(__name__)

UNASSIGNED_PARENT = "unassigned"


def parent_key(linked_request_id: str) -> str:
    return UNASSIGNED_PARENT if is_unassigned(linked_request_id) else linked_request_id.strip()


def _parent_links(links: pd.DataFrame) -> dict[str, str]:
    found: dict[str, str] = {}
    for parent, link in zip(links.get("linked_request_id", []), links.get("linked_request_id_link", [])):
        if link and not is_unassigned(parent):
            found.setdefault(parent, link)
    return found


def _sort_rollup(rows: list[ViewRow]) -> list[ViewRow]:
    """Created date descending, undated after dated, the unassigned row last."""
    real = [row for row in rows if row["parent_id"] != UNASSIGNED_PARENT]
    unassigned = [row for row in rows if row["parent_id"] == UNASSIGNED_PARENT]
    dated = sorted((row for row in real if row["created_date"]), key=lambda row: row["created_date"], reverse=True)
    undated = [row for row in real if not row["created_date"]]
    return dated + undated + unassigned


def rollup_by_parent(
    selected: pd.DataFrame,
    everything: pd.DataFrame,
    links: pd.DataFrame,
) -> list[ViewRow]:
    """Build one row per parent of the ``selected`` records."""
    parents = everything.drop_duplicates(subset="request_id").set_index("request_id")
    children = linked_children(links)
    parent_links = _parent_links(links)

    referencing: dict[str, set[str]] = {}
    for request_id, linked in zip(everything["request_id"], everything["linked_request_id"]):
        referencing.setdefault(parent_key(linked), set()).add(request_id)

    in_period: dict[str, int] = {}
    for linked in selected["linked_request_id"]:
        key = parent_key(linked)
        in_period[key] = in_period.get(key, 0) + 1

    rows = []
    for key, count in in_period.items():
        if key == UNASSIGNED_PARENT:
            rows.append({
                "created_date": None,
                "parent_id": UNASSIGNED_PARENT,
                "parent_link": None,
                "additional_info": "",
                "total_linked": len(referencing.get(key, ())),
                "linked_in_period": count,
                "status": None,
                "eta": None,
            })
            continue

        parent = parents.loc[key] if key in parents.index else None
        link = parent["request_id_link"] if parent is not None and parent["request_id_link"] else parent_links.get(key)
        status = None
        if parent is not None:
            display = none_if_missing(parent["status_display"])
            status = display if display is not None else parent["status"]
        rows.append({
            "created_date": iso_date(parent["created_at"]) if parent is not None else None,
            "parent_id": key,
            "parent_link": link or None,
            "additional_info": parent["additional_info"] if parent is not None else "",
            "total_linked": len(children.get(key, set()) | referencing.get(key, set())),
            "linked_in_period": count,
            "status": status,
            "eta": parent["eta"] if parent is not None else None,
        })
    return _sort_rollup(rows)


def _by_parent(
    store: IncidentStore,
    app: str | None,
    month: str | None,
    keywords: tuple[str, ...],
) -> list[ViewRow]:
    registries = load_registries(store)
    everything = load_incidents(store, registries, ViewFilters(app=app))
    selected = filter_month(everything[category_mask(everything, keywords)], month)
    return rollup_by_parent(selected, everything, registries.links)


def get_missing_scope_by_parent(store: IncidentStore, app: str | None = None, month: str | None = None) -> list[ViewRow]:
    rows = _by_parent(store, app, month, MISSING_SCOPE_KEYWORDS)
    logger.info("Missing scope by parent: %d parents", len(rows))
    return rows


def get_bugs_by_parent(store: IncidentStore, app: str | None = None, month: str | None = None) -> list[ViewRow]:
    rows = _by_parent(store, app, month, BUG_KEYWORDS)
    logger.info("Bugs by parent: %d parents", len(rows))
    return rows
