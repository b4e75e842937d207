"""Tests for application pattern matching, canonical ordering and dedupe."""

from __future__ import annotations

import pandas as pd

from conftest import monthly_row
from incident_pipeline.domains.incidents.applications import (
    canonical_order,
    deduplicate,
    filter_by_application,
    join_applications,
)
from incident_pipeline.domains.incidents.ingest import fetch_records
from incident_pipeline.domains.incidents.prepare import prepare_records
from incident_pipeline.domains.incidents.registry import load_registries
from incident_pipeline.utils.types import Origin, ViewFilters


def _records(*pairs: tuple[str, str]) -> pd.DataFrame:
    return pd.DataFrame({
        "request_id": [request_id for request_id, _ in pairs],
        "application": [application for _, application in pairs],
    })


class TestJoinApplications:
    def test_one_row_per_matching_pattern(self, make_store):
        patterns = load_registries(make_store()).patterns
        joined = join_applications(_records(("1", "Portal FFVV")), patterns)
        assert sorted(joined["pattern_id"].tolist()) == [1, 2]
        assert set(joined["application_code"]) == {"FFVV"}

    def test_match_is_case_insensitive_substring(self, make_store):
        patterns = load_registries(make_store()).patterns
        joined = join_applications(_records(("1", "APP SOMOS BELCORP 2.0")), patterns)
        assert joined["application_code"].tolist() == ["SB2"]
        assert joined["application_name"].tolist() == ["Somos Belcorp"]

    def test_unmatched_and_inactive_patterns(self, make_store):
        patterns = load_registries(make_store()).patterns
        joined = join_applications(_records(("1", "Legacy System")), patterns)
        assert len(joined) == 1
        assert joined["application_code"].tolist() == [""]


class TestOrderingAndDedupe:
    def test_highest_priority_pattern_wins(self, make_store):
        patterns = load_registries(make_store()).patterns
        joined = join_applications(_records(("7", "Portal FFVV")), patterns)
        reversed_rows = joined.iloc[::-1]
        deduped = deduplicate(canonical_order(reversed_rows))
        assert len(deduped) == 1
        assert deduped["pattern_id"].tolist() == [1]

    def test_numeric_ids_sort_numerically_before_text_ids(self):
        joined = _records(("10", "x"), ("A-1", "x"), ("9", "x")).assign(pattern_priority=0, pattern_id=0)
        assert canonical_order(joined)["request_id"].tolist() == ["9", "10", "A-1"]

    def test_deduplicate_keeps_first(self):
        frame = pd.DataFrame({"request_id": ["1", "1", "2"], "tag": ["first", "second", "only"]})
        assert deduplicate(frame)["tag"].tolist() == ["first", "only"]


class TestFilterByApplication:
    def test_all_keeps_everything(self, make_store):
        patterns = load_registries(make_store()).patterns
        joined = join_applications(_records(("1", "Portal FFVV"), ("2", "Somos Belcorp")), patterns)
        assert len(filter_by_application(joined, "all")) == len(joined)
        assert len(filter_by_application(joined, None)) == len(joined)

    def test_code_filter_is_case_insensitive(self, make_store):
        patterns = load_registries(make_store()).patterns
        joined = join_applications(_records(("1", "Portal FFVV"), ("2", "Somos Belcorp")), patterns)
        assert set(filter_by_application(joined, "sb2")["request_id"]) == {"2"}


class TestPrepareRecords:
    def test_ticket_matching_two_patterns_appears_once(self, make_store):
        store = make_store(monthly=[monthly_row(1), monthly_row(2, aplicativos="Somos Belcorp")])
        registries = load_registries(store)
        prepared = prepare_records(fetch_records(store, Origin.PRIMARY_MONTHLY), registries, ViewFilters())
        assert prepared["request_id"].tolist() == ["1", "2"]
        assert prepared["application_label"].tolist() == ["Portal FFVV", "Somos Belcorp"]

    def test_unmatched_label_falls_back_to_raw_text(self, make_store):
        store = make_store(monthly=[monthly_row(1, aplicativos="Herramienta X"), monthly_row(2, aplicativos="")])
        registries = load_registries(store)
        prepared = prepare_records(fetch_records(store, Origin.PRIMARY_MONTHLY), registries, ViewFilters())
        assert prepared["application_label"].tolist() == ["Herramienta X", "Unknown"]

    def test_month_filter(self, make_store):
        store = make_store(monthly=[monthly_row(1), monthly_row(2, created_time="not a date")])
        registries = load_registries(store)
        records = fetch_records(store, Origin.PRIMARY_MONTHLY)
        assert prepare_records(records, registries, ViewFilters(month="2024-10"))["request_id"].tolist() == ["1"]
        assert prepare_records(records, registries, ViewFilters(month="2024-11")).empty

    def test_malformed_month_is_ignored(self, make_store):
        store = make_store(monthly=[monthly_row(1), monthly_row(2, created_time="01/01/2023 00:00")])
        registries = load_registries(store)
        records = fetch_records(store, Origin.PRIMARY_MONTHLY)
        assert len(prepare_records(records, registries, ViewFilters(month="October"))) == 2
