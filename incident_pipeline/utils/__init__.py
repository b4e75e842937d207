"""Shared utilities for the incident pipeline."""

from incident_pipeline.utils.dates import parse_instant, parse_instants
from incident_pipeline.utils.io import read_csv_table, write_output
from incident_pipeline.utils.sentinels import is_unassigned, unassigned_mask
from incident_pipeline.utils.transforms import normalize_columns, percentage
from incident_pipeline.utils.validators import validate_dataframe
from incident_pipeline.utils.types import Origin, Priority, ViewFilters
