"""Read incident and registry tables and map each origin onto the canonical shape."""

import logging
from pathlib import Path
from typing import Protocol

import pandas as pd

from incident_pipeline.config import StoreConfig
from incident_pipeline.domains.incidents.models import (
    CANONICAL_COLUMNS,
    LINK_COLUMNS,
    MAPPING_COLUMNS,
    PATTERN_COLUMNS,
)
from incident_pipeline.utils.io import read_csv_table, replace_csv_table
from incident_pipeline.utils.transforms import ColumnMapping, fill_text_columns, normalize_columns
from incident_pipeline.utils.types import Origin

logger = logging.getLogger(__name__)


class IncidentStore(Protocol):
    """Read side of the persistent store; every method returns a fresh frame."""

    def monthly_reports(self) -> pd.DataFrame: ...

    def weekly_correctives(self) -> pd.DataFrame: ...

    def problems(self) -> pd.DataFrame: ...

    def application_patterns(self) -> pd.DataFrame: ...

    def module_mappings(self) -> pd.DataFrame: ...

    def categorization_mappings(self) -> pd.DataFrame: ...

    def status_mappings(self) -> pd.DataFrame: ...

    def corrective_status_mappings(self) -> pd.DataFrame: ...

    def parent_child_links(self) -> pd.DataFrame: ...


# Raw export column -> canonical column, after snake_case normalization
ORIGIN_COLUMNS: dict[Origin, ColumnMapping] = {
    Origin.PRIMARY_MONTHLY: {
        "aplicativos": "application",
        "categorizacion": "categorization",
        "request_status": "status",
        "modulo": "module",
        "priority": "priority_raw",
        "informacion_adicional": "additional_info",
        "paises_afectados": "affected_countries",
        "recurrencia": "recurrence",
    },
    Origin.WEEKLY_CORRECTIVE: {
        "aplicativos": "application",
        "categorizacion": "categorization",
        "request_status": "status",
        "modulo": "module",
        "priority": "priority_raw",
    },
    Origin.PROBLEM_TICKET: {
        "aplicativos": "application",
        "service_category": "categorization",
        "request_status": "status",
        "observaciones": "additional_info",
        "due_by_time": "eta",
    },
}

MAPPING_COLUMN_ALIASES: ColumnMapping = {
    "source_value": "raw_value",
    "raw_status": "raw_value",
    "display_status": "display_value",
}

LINK_COLUMN_ALIASES: ColumnMapping = {
    "child_request_id": "request_id",
    "parent_request_id": "linked_request_id",
    "parent_link": "linked_request_id_link",
}

TABLE_FILES = {
    "monthly_reports": "monthly_reports.csv",
    "weekly_correctives": "weekly_correctives.csv",
    "problems": "problems.csv",
    "application_patterns": "application_patterns.csv",
    "module_mappings": "module_registry.csv",
    "categorization_mappings": "categorization_registry.csv",
    "status_mappings": "monthly_report_status_registry.csv",
    "corrective_status_mappings": "corrective_status_registry.csv",
    "parent_child_links": "parent_child_requests.csv",
}


def to_canonical(raw: pd.DataFrame, origin: Origin) -> pd.DataFrame:
    """Rename an origin's raw columns and fill the ones it does not carry."""
    df = normalize_columns(raw, ORIGIN_COLUMNS[origin])
    df = fill_text_columns(df, CANONICAL_COLUMNS)
    df["origin"] = origin.value
    df["request_id"] = df["request_id"].str.strip()
    return df[CANONICAL_COLUMNS].reset_index(drop=True)


def fetch_records(store: IncidentStore, origin: Origin) -> pd.DataFrame:
    """Read one origin table from the store as canonical records."""
    match origin:
        case Origin.PRIMARY_MONTHLY:
            raw = store.monthly_reports()
        case Origin.WEEKLY_CORRECTIVE:
            raw = store.weekly_correctives()
        case Origin.PROBLEM_TICKET:
            raw = store.problems()
    records = to_canonical(raw, origin)
    logger.info("Read %d %s records", len(records), origin.value)
    return records


def canonical_patterns(raw: pd.DataFrame) -> pd.DataFrame:
    df = normalize_columns(raw, {"id": "pattern_id"})
    return fill_text_columns(df, PATTERN_COLUMNS)[PATTERN_COLUMNS]


def canonical_mapping(raw: pd.DataFrame) -> pd.DataFrame:
    df = normalize_columns(raw, MAPPING_COLUMN_ALIASES)
    return fill_text_columns(df, MAPPING_COLUMNS)[MAPPING_COLUMNS]


def canonical_links(raw: pd.DataFrame) -> pd.DataFrame:
    df = normalize_columns(raw, LINK_COLUMN_ALIASES)
    df = fill_text_columns(df, LINK_COLUMNS)[LINK_COLUMNS]
    for col in ("request_id", "linked_request_id"):
        df[col] = df[col].str.strip()
    return df


class CsvIncidentStore:
    """Incident store backed by one CSV export per table."""

    def __init__(self, config: StoreConfig):
        self.data_dir = Path(config.data_dir)
        self.encoding = config.encoding

    def _path(self, table: str) -> Path:
        if table not in TABLE_FILES:
            raise ValueError(f"Unknown table: {table}")
        return self.data_dir / TABLE_FILES[table]

    def _read(self, table: str) -> pd.DataFrame:
        path = self._path(table)
        if not path.exists():
            logger.warning("Source file missing: %s", path)
        return read_csv_table(path, self.encoding)

    def monthly_reports(self) -> pd.DataFrame:
        return self._read("monthly_reports")

    def weekly_correctives(self) -> pd.DataFrame:
        return self._read("weekly_correctives")

    def problems(self) -> pd.DataFrame:
        return self._read("problems")

    def application_patterns(self) -> pd.DataFrame:
        return self._read("application_patterns")

    def module_mappings(self) -> pd.DataFrame:
        return self._read("module_mappings")

    def categorization_mappings(self) -> pd.DataFrame:
        return self._read("categorization_mappings")

    def status_mappings(self) -> pd.DataFrame:
        return self._read("status_mappings")

    def corrective_status_mappings(self) -> pd.DataFrame:
        return self._read("corrective_status_mappings")

    def parent_child_links(self) -> pd.DataFrame:
        return self._read("parent_child_links")

    def replace_all(self, table: str, frame: pd.DataFrame) -> int:
        """Delete the table's file and write ``frame`` in its place."""
        written = replace_csv_table(frame, self._path(table), self.encoding)
        logger.info("Replaced %s with %d rows", table, written)
        return written
