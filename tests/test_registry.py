"""Tests for registry lookups and link counting."""

from __future__ import annotations

import pandas as pd

from incident_pipeline.domains.incidents.registry import (
    build_lookup,
    linked_children,
    load_registries,
    resolve,
    resolve_series,
)


def _mapping(*rows: tuple[str, str, bool]) -> pd.DataFrame:
    return pd.DataFrame(rows, columns=["raw_value", "display_value", "is_active"])


class TestLookups:
    def test_inactive_rows_are_absent(self):
        lookup = build_lookup(_mapping(("Pedidos", "Orders", True), ("Catalogo", "Catalog", False)))
        assert resolve("Pedidos", lookup) == "Orders"
        assert resolve("Catalogo", lookup) is None

    def test_first_active_row_wins(self):
        lookup = build_lookup(_mapping(("A", "Old", False), ("A", "First", True), ("A", "Second", True)))
        assert lookup == {"A": "First"}

    def test_missing_values_resolve_to_none(self):
        assert resolve("Unknown", {}) is None
        assert resolve(None, {"None": "x"}) is None

    def test_resolve_series(self):
        resolved = resolve_series(pd.Series(["Pedidos", "Otro"]), _mapping(("Pedidos", "Orders", True)))
        assert resolved.tolist() == ["Orders", None]

    def test_empty_mapping(self):
        assert build_lookup(pd.DataFrame()) == {}


class TestLoadRegistries:
    def test_text_flags_and_column_aliases(self, make_store):
        registries = load_registries(make_store())
        statuses = build_lookup(registries.statuses)
        assert statuses["Nivel 2"] == "On going L2"
        assert "Cerrado" not in statuses
        assert registries.patterns["is_active"].tolist() == [True, True, True, False]

    def test_status_and_corrective_lookups_are_separate(self, make_store):
        registries = load_registries(make_store())
        assert "En Backlog" not in build_lookup(registries.statuses)
        assert build_lookup(registries.corrective_statuses)["En Backlog"] == "In Backlog"


class TestLinkedChildren:
    def test_children_per_parent_without_sentinels(self):
        links = pd.DataFrame({
            "request_id": ["1", "2", "2", "3"],
            "linked_request_id": ["500", "500", "500", "No asignado"],
            "linked_request_id_link": ["", "", "", ""],
        })
        assert linked_children(links) == {"500": {"1", "2"}}
