"""Pandera schemas for validating incident and registry DataFrames."""

import pandera.pandas as pa
from pandera.pandas import Check, Column

from incident_pipeline.utils.types import Origin

VALID_ORIGINS = [origin.value for origin in Origin]
VALID_MATCH_TYPES = ["contains"]

# Canonical text columns every origin is mapped onto right after reading
CANONICAL_COLUMNS = [
    "request_id",
    "request_id_link",
    "application",
    "categorization",
    "created_time",
    "status",
    "module",
    "subject",
    "priority_raw",
    "eta",
    "additional_info",
    "resolved_time",
    "affected_countries",
    "recurrence",
    "technician",
    "linked_request_id",
    "release",
    "origin",
]

PATTERN_COLUMNS = [
    "pattern_id",
    "application_code",
    "application_name",
    "pattern",
    "priority",
    "match_type",
    "is_active",
]
MAPPING_COLUMNS = ["raw_value", "display_value", "is_active"]
LINK_COLUMNS = ["request_id", "linked_request_id", "linked_request_id_link"]


IncidentSchema = pa.DataFrameSchema(
    columns={
        "request_id": Column(str, Check.str_length(min_value=1), unique=True),
        "request_id_link": Column(str, nullable=False),
        "application": Column(str, nullable=False),
        "categorization": Column(str, nullable=False),
        "created_time": Column(str, nullable=False),
        "status": Column(str, nullable=False),
        "module": Column(str, nullable=False),
        "subject": Column(str, nullable=False),
        "priority_raw": Column(str, nullable=False),
        "linked_request_id": Column(str, nullable=False),
        "origin": Column(str, Check.isin(VALID_ORIGINS)),
    },
    coerce=True,
    strict=False,
)


ApplicationPatternSchema = pa.DataFrameSchema(
    columns={
        "pattern_id": Column(int, Check.ge(0), unique=True),
        "application_code": Column(str, Check.str_length(min_value=1)),
        "application_name": Column(str, nullable=False),
        "pattern": Column(str, Check.str_length(min_value=1)),
        "priority": Column(int, Check.ge(0)),
        "match_type": Column(str, Check.isin(VALID_MATCH_TYPES)),
        "is_active": Column(bool),
    },
    coerce=True,
    strict=False,
)


DisplayMappingSchema = pa.DataFrameSchema(
    columns={
        "raw_value": Column(str, nullable=False),
        "display_value": Column(str, Check.str_length(min_value=1)),
        "is_active": Column(bool),
    },
    coerce=True,
    strict=False,
)


ParentChildLinkSchema = pa.DataFrameSchema(
    columns={
        "request_id": Column(str, Check.str_length(min_value=1)),
        "linked_request_id": Column(str, nullable=False),
        "linked_request_id_link": Column(str, nullable=True),
    },
    coerce=True,
    strict=False,
)
