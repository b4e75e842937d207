"""Tests for the missing-scope and bugs by-parent rollups."""

from __future__ import annotations

from conftest import monthly_row
from incident_pipeline.domains.incidents.parents import (
    UNASSIGNED_PARENT,
    get_bugs_by_parent,
    get_missing_scope_by_parent,
)

SCOPE = "Falta de alcance"


def _scope_store(make_store):
    return make_store(
        monthly=[
            monthly_row(500, created_time="10/09/2024 12:00", request_status="Nivel 2",
                        informacion_adicional="Parent info", eta="31/10/2024"),
            monthly_row(600, created_time="01/10/2024 12:00"),
            monthly_row(1, categorizacion=SCOPE, linked_request_id="500", created_time="15/10/2024 10:00"),
            monthly_row(2, categorizacion=SCOPE, linked_request_id="500", created_time="16/10/2024 10:00"),
            monthly_row(3, categorizacion=SCOPE, linked_request_id="600", created_time="02/10/2024 10:00"),
            monthly_row(4, categorizacion=SCOPE, linked_request_id="No asignado", created_time="03/10/2024 10:00"),
            monthly_row(5, categorizacion=SCOPE, linked_request_id="500", created_time="15/09/2024 10:00"),
            monthly_row(6, categorizacion=SCOPE, linked_request_id="700", created_time="04/10/2024 10:00"),
        ],
        links=[
            {"request_id": "900", "linked_request_id": "500", "linked_request_id_link": ""},
            {"request_id": "1", "linked_request_id": "500", "linked_request_id_link": ""},
            {"request_id": "801", "linked_request_id": "700",
             "linked_request_id_link": "https://tickets.example.com/700"},
        ],
    )


class TestMissingScopeByParent:
    def test_row_order(self, make_store):
        rows = get_missing_scope_by_parent(_scope_store(make_store), month="2024-10")
        assert [row["parent_id"] for row in rows] == ["600", "500", "700", UNASSIGNED_PARENT]

    def test_parent_details(self, make_store):
        rows = {row["parent_id"]: row for row in get_missing_scope_by_parent(_scope_store(make_store), month="2024-10")}

        parent = rows["500"]
        assert parent["created_date"] == "2024-09-10"
        assert parent["parent_link"] == "https://tickets.example.com/500"
        assert parent["additional_info"] == "Parent info"
        assert parent["status"] == "On going L2"
        assert parent["eta"] == "31/10/2024"
        assert parent["linked_in_period"] == 2
        assert parent["total_linked"] == 4

    def test_parent_outside_records_uses_link_source(self, make_store):
        rows = {row["parent_id"]: row for row in get_missing_scope_by_parent(_scope_store(make_store), month="2024-10")}
        orphan = rows["700"]
        assert orphan["created_date"] is None
        assert orphan["status"] is None
        assert orphan["parent_link"] == "https://tickets.example.com/700"
        assert orphan["total_linked"] == 2

    def test_unassigned_row(self, make_store):
        rows = get_missing_scope_by_parent(_scope_store(make_store), month="2024-10")
        assert rows[-1]["parent_id"] == UNASSIGNED_PARENT
        assert rows[-1]["linked_in_period"] == 1
        assert rows[-1]["created_date"] is None

    def test_linked_in_period_sums_to_selected_records(self, make_store):
        rows = get_missing_scope_by_parent(_scope_store(make_store), month="2024-10")
        assert sum(row["linked_in_period"] for row in rows) == 5


class TestBugsByParent:
    def test_unassigned_row_last_even_when_others_undated(self, make_store):
        store = make_store(monthly=[
            monthly_row(1, categorizacion="Bug de sistema", linked_request_id="0"),
            monthly_row(2, categorizacion="Bug de sistema", linked_request_id="404"),
            monthly_row(3, categorizacion=SCOPE, linked_request_id="404"),
        ])
        rows = get_bugs_by_parent(store, month="2024-10")
        assert [row["parent_id"] for row in rows] == ["404", UNASSIGNED_PARENT]
        assert rows[0]["linked_in_period"] == 1
        assert rows[0]["total_linked"] == 2
