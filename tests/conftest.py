from __future__ import annotations

import pandas as pd
import pytest


def monthly_row(request_id: int | str, **overrides) -> dict:
    """One row as the monthly report export delivers it."""
    row = {
        "request_id": str(request_id),
        "request_id_link": f"https://tickets.example.com/{request_id}",
        "aplicativos": "Portal FFVV",
        "categorizacion": "Error de datos",
        "created_time": "15/10/2024 10:30",
        "request_status": "Resolved",
        "modulo": "Pedidos",
        "subject": f"Ticket {request_id}",
        "priority": "High",
        "eta": "No asignado",
        "informacion_adicional": "",
        "resolved_time": "",
        "paises_afectados": "PE",
        "recurrencia": "No",
        "technician": "Soporte N2",
        "linked_request_id": "No asignado",
        "release": "",
    }
    row.update(overrides)
    return row


def weekly_row(request_id: int | str, **overrides) -> dict:
    row = {
        "request_id": str(request_id),
        "request_id_link": f"https://tickets.example.com/{request_id}",
        "technician": "Desarrollo",
        "aplicativos": "Portal FFVV",
        "categorizacion": "Error de datos",
        "created_time": "01/10/2024 09:00",
        "request_status": "En Backlog",
        "modulo": "Pedidos",
        "subject": f"Corrective {request_id}",
        "priority": "Alta",
        "eta": "30/10/2024",
    }
    row.update(overrides)
    return row


def problem_row(request_id: int | str, **overrides) -> dict:
    row = {
        "request_id": str(request_id),
        "request_id_link": f"https://tickets.example.com/{request_id}",
        "service_category": "Problemas",
        "request_status": "Nivel 3",
        "subject": f"Problem {request_id}",
        "created_time": "05/10/2024 08:00",
        "aplicativos": "Portal FFVV",
        "technician": "Problem Manager",
        "due_by_time": "",
    }
    row.update(overrides)
    return row


PATTERNS = [
    {"id": 1, "application_code": "FFVV", "application_name": "Portal FFVV", "pattern": "ffvv",
     "priority": 1, "match_type": "contains", "is_active": "true"},
    {"id": 2, "application_code": "FFVV", "application_name": "Portal FFVV", "pattern": "portal",
     "priority": 2, "match_type": "contains", "is_active": "true"},
    {"id": 3, "application_code": "SB2", "application_name": "Somos Belcorp", "pattern": "somos belcorp",
     "priority": 1, "match_type": "contains", "is_active": "true"},
    {"id": 4, "application_code": "SB2", "application_name": "Somos Belcorp", "pattern": "legacy",
     "priority": 1, "match_type": "contains", "is_active": "false"},
]

MODULES = [
    {"source_value": "Pedidos", "display_value": "Orders", "is_active": "true"},
    {"source_value": "Facturacion", "display_value": "Billing", "is_active": "true"},
    {"source_value": "Catalogo", "display_value": "Catalog (old)", "is_active": "false"},
]

CATEGORIZATIONS = [
    {"source_value": "Error de datos", "display_value": "Data Error", "is_active": "true"},
    {"source_value": "Falta de alcance", "display_value": "Missing Scope", "is_active": "true"},
    {"source_value": "Bug de sistema", "display_value": "Bug", "is_active": "true"},
    {"source_value": "Error de cambio", "display_value": "Change Error", "is_active": "true"},
]

STATUSES = [
    {"raw_status": "Resolved", "display_status": "Closed", "is_active": "true"},
    {"raw_status": "Validado", "display_status": "Closed", "is_active": "true"},
    {"raw_status": "Nivel 2", "display_status": "On going L2", "is_active": "true"},
    {"raw_status": "Pendiente L3", "display_status": "In L3 Backlog", "is_active": "true"},
    {"raw_status": "En Progreso L3", "display_status": "On going L3", "is_active": "true"},
    {"raw_status": "Cerrado", "display_status": "Closed", "is_active": "false"},
]

CORRECTIVE_STATUSES = [
    {"raw_status": "En Backlog", "display_status": "In Backlog", "is_active": "true"},
    {"raw_status": "En Desarrollo", "display_status": "Dev in Progress", "is_active": "true"},
    {"raw_status": "En Pruebas", "display_status": "In Testing", "is_active": "true"},
    {"raw_status": "Desplegado", "display_status": "PRD Deployment", "is_active": "true"},
]


class InMemoryStore:
    """IncidentStore over plain row lists; every read returns a fresh frame."""

    def __init__(self, **tables: list[dict]):
        self.tables = {
            "application_patterns": PATTERNS,
            "module_mappings": MODULES,
            "categorization_mappings": CATEGORIZATIONS,
            "status_mappings": STATUSES,
            "corrective_status_mappings": CORRECTIVE_STATUSES,
            **tables,
        }

    def _frame(self, name: str) -> pd.DataFrame:
        rows = self.tables.get(name, [])
        if not rows:
            return pd.DataFrame()
        return pd.DataFrame(rows).astype(str)

    def monthly_reports(self) -> pd.DataFrame:
        return self._frame("monthly_reports")

    def weekly_correctives(self) -> pd.DataFrame:
        return self._frame("weekly_correctives")

    def problems(self) -> pd.DataFrame:
        return self._frame("problems")

    def application_patterns(self) -> pd.DataFrame:
        return self._frame("application_patterns")

    def module_mappings(self) -> pd.DataFrame:
        return self._frame("module_mappings")

    def categorization_mappings(self) -> pd.DataFrame:
        return self._frame("categorization_mappings")

    def status_mappings(self) -> pd.DataFrame:
        return self._frame("status_mappings")

    def corrective_status_mappings(self) -> pd.DataFrame:
        return self._frame("corrective_status_mappings")

    def parent_child_links(self) -> pd.DataFrame:
        return self._frame("parent_child_links")


@pytest.fixture()
def make_store():
    def _make(
        monthly: list[dict] | None = None,
        weekly: list[dict] | None = None,
        problems: list[dict] | None = None,
        links: list[dict] | None = None,
        **registries: list[dict],
    ) -> InMemoryStore:
        return InMemoryStore(
            monthly_reports=monthly or [],
            weekly_correctives=weekly or [],
            problems=problems or [],
            parent_child_links=links or [],
            **registries,
        )

    return _make
