"""Tests for the CSV-backed store, per-origin column mapping and validation."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from conftest import CATEGORIZATIONS, MODULES, PATTERNS, STATUSES, monthly_row, problem_row
from incident_pipeline.config import StoreConfig
from incident_pipeline.domains.incidents import validate
from incident_pipeline.domains.incidents.ingest import CsvIncidentStore, fetch_records, to_canonical
from incident_pipeline.domains.incidents.models import CANONICAL_COLUMNS
from incident_pipeline.domains.incidents.priority import get_priority_by_app
from incident_pipeline.utils.types import Origin


@pytest.fixture()
def csv_store(tmp_path: Path) -> CsvIncidentStore:
    return CsvIncidentStore(StoreConfig(data_dir=tmp_path, encoding="utf-8"))


def write_tables(store: CsvIncidentStore, monthly: list[dict]) -> None:
    store.replace_all("monthly_reports", pd.DataFrame(monthly))
    store.replace_all("application_patterns", pd.DataFrame(PATTERNS))
    store.replace_all("module_mappings", pd.DataFrame(MODULES))
    store.replace_all("categorization_mappings", pd.DataFrame(CATEGORIZATIONS))
    store.replace_all("status_mappings", pd.DataFrame(STATUSES))


class TestCsvStore:
    def test_missing_table_reads_empty(self, csv_store):
        assert csv_store.weekly_correctives().empty

    def test_replace_all_overwrites(self, csv_store):
        csv_store.replace_all("monthly_reports", pd.DataFrame([monthly_row(1), monthly_row(2)]))
        assert csv_store.replace_all("monthly_reports", pd.DataFrame([monthly_row(3)])) == 1

        frame = csv_store.monthly_reports()
        assert frame["request_id"].tolist() == ["3"]
        assert frame["linked_request_id"].tolist() == ["No asignado"]

    def test_values_stay_text(self, csv_store):
        csv_store.replace_all("monthly_reports", pd.DataFrame([monthly_row("007", informacion_adicional="")]))
        frame = csv_store.monthly_reports()
        assert frame["request_id"].tolist() == ["007"]
        assert frame["informacion_adicional"].tolist() == [""]

    def test_unknown_table(self, csv_store):
        with pytest.raises(ValueError):
            csv_store.replace_all("tickets", pd.DataFrame())

    def test_view_over_csv_exports(self, csv_store):
        write_tables(csv_store, [monthly_row(1, priority="Critical"), monthly_row(2, aplicativos="Somos Belcorp")])
        assert [row["application"] for row in get_priority_by_app(csv_store)["data"]] == ["Portal FFVV", "Somos Belcorp"]


class TestCanonicalMapping:
    def test_primary_columns(self):
        records = to_canonical(pd.DataFrame([monthly_row(" 1 ")]), Origin.PRIMARY_MONTHLY)
        assert records.columns.tolist() == CANONICAL_COLUMNS
        row = records.iloc[0]
        assert row["request_id"] == "1"
        assert row["application"] == "Portal FFVV"
        assert row["status"] == "Resolved"
        assert row["priority_raw"] == "High"
        assert row["origin"] == "primary-monthly"

    def test_problem_columns_fill_missing(self):
        records = to_canonical(pd.DataFrame([problem_row(30)]), Origin.PROBLEM_TICKET)
        row = records.iloc[0]
        assert row["categorization"] == "Problemas"
        assert row["module"] == ""
        assert row["priority_raw"] == ""

    def test_fetch_empty_origin(self, make_store):
        records = fetch_records(make_store(), Origin.WEEKLY_CORRECTIVE)
        assert records.empty
        assert records.columns.tolist() == CANONICAL_COLUMNS


class TestValidate:
    def test_valid_exports(self, csv_store):
        write_tables(csv_store, [monthly_row(1), monthly_row(2)])
        results = validate(csv_store)
        assert all(result["valid"] for result in results), results

    def test_duplicate_ids_reported(self, csv_store):
        write_tables(csv_store, [monthly_row(1), monthly_row(1)])
        results = {result["table"]: result for result in validate(csv_store)}
        assert results["primary-monthly"]["valid"] is False
        assert results["primary-monthly"]["errors"]
