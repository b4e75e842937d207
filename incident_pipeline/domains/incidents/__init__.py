"""Incidents domain: reconciliation of incident records and the aggregate views."""

import pandas as pd
from pandera.pandas import DataFrameSchema

from incident_pipeline.domains.incidents.ingest import IncidentStore, fetch_records
from incident_pipeline.domains.incidents.categories import get_category_distribution
from incident_pipeline.domains.incidents.modules import get_change_release_by_module, get_module_evolution
from incident_pipeline.domains.incidents.overview import get_incident_overview_by_category
from incident_pipeline.domains.incidents.parents import get_bugs_by_parent, get_missing_scope_by_parent
from incident_pipeline.domains.incidents.priority import (
    get_business_flow_priority,
    get_critical_incidents,
    get_priority_by_app,
)
from incident_pipeline.domains.incidents.stability import get_stability_indicators
from incident_pipeline.domains.incidents.timeline import (
    get_incidents_by_day,
    get_incidents_by_release_by_day,
    get_incidents_by_week,
)
from incident_pipeline.domains.incidents.models import (
    ApplicationPatternSchema,
    DisplayMappingSchema,
    IncidentSchema,
    ParentChildLinkSchema,
)
from incident_pipeline.domains.incidents.registry import load_registries
from incident_pipeline.utils.types import Origin
from incident_pipeline.utils.validators import validate_dataframe

type TableResult = dict[str, bool | str | int | list[str]]


def _check(table: str, frame: pd.DataFrame, schema: DataFrameSchema) -> TableResult:
    match validate_dataframe(frame, schema):
        case {"valid": True}:
            return {"table": table, "valid": True, "row_count": len(frame)}
        case {"valid": False, "errors": errors}:
            return {"table": table, "valid": False, "row_count": len(frame), "errors": errors}


def validate(store: IncidentStore) -> list[TableResult]:
    """Validate every source and registry table before computing views."""
    results = [
        _check(origin.value, fetch_records(store, origin), IncidentSchema)
        for origin in Origin
    ]
    registries = load_registries(store)
    results.extend([
        _check("application_patterns", registries.patterns, ApplicationPatternSchema),
        _check("module_mappings", registries.modules, DisplayMappingSchema),
        _check("categorization_mappings", registries.categorizations, DisplayMappingSchema),
        _check("status_mappings", registries.statuses, DisplayMappingSchema),
        _check("corrective_status_mappings", registries.corrective_statuses, DisplayMappingSchema),
        _check("parent_child_links", registries.links, ParentChildLinkSchema),
    ])
    return results
