"""Resolve raw module, categorization and status values to display values."""

import logging
from dataclasses import dataclass

import pandas as pd

from incident_pipeline.domains.incidents.ingest import (
    IncidentStore,
    canonical_links,
    canonical_mapping,
    canonical_patterns,
)
from incident_pipeline.utils.sentinels import unassigned_mask

logger = logging.getLogger(__name__)

type Lookup = dict[str, str]

TRUE_FLAGS = frozenset({"true", "1", "yes", "y", "t"})


@dataclass(frozen=True)
class Registries:
    """Registry tables for one view call, read fresh from the store."""

    patterns: pd.DataFrame
    modules: pd.DataFrame
    categorizations: pd.DataFrame
    statuses: pd.DataFrame
    corrective_statuses: pd.DataFrame
    links: pd.DataFrame


def parse_flag(values: pd.Series) -> pd.Series:
    """Interpret an ``is_active`` column exported as text or bool."""
    if values.dtype == bool:
        return values
    return values.astype(str).str.strip().str.lower().isin(TRUE_FLAGS)


def _with_flags(frame: pd.DataFrame) -> pd.DataFrame:
    out = frame.copy()
    out["is_active"] = parse_flag(out["is_active"])
    return out


def load_registries(store: IncidentStore) -> Registries:
    registries = Registries(
        patterns=_with_flags(canonical_patterns(store.application_patterns())),
        modules=_with_flags(canonical_mapping(store.module_mappings())),
        categorizations=_with_flags(canonical_mapping(store.categorization_mappings())),
        statuses=_with_flags(canonical_mapping(store.status_mappings())),
        corrective_statuses=_with_flags(canonical_mapping(store.corrective_status_mappings())),
        links=canonical_links(store.parent_child_links()),
    )
    logger.debug(
        "Loaded registries: %d patterns, %d modules, %d categorizations, %d statuses, %d corrective statuses",
        len(registries.patterns),
        len(registries.modules),
        len(registries.categorizations),
        len(registries.statuses),
        len(registries.corrective_statuses),
    )
    return registries


def build_lookup(mapping: pd.DataFrame) -> Lookup:
    """Raw value -> display value from active rows; the first active row wins."""
    lookup: Lookup = {}
    if mapping.empty:
        return lookup
    active = mapping[parse_flag(mapping["is_active"])]
    for raw, display in zip(active["raw_value"], active["display_value"]):
        lookup.setdefault(str(raw), str(display))
    return lookup


def resolve(raw: object, lookup: Lookup) -> str | None:
    """Display value for ``raw``, or ``None`` when no active mapping exists."""
    if raw is None:
        return None
    return lookup.get(str(raw))


def resolve_series(values: pd.Series, mapping: pd.DataFrame) -> pd.Series:
    lookup = build_lookup(mapping)
    return pd.Series(
        [resolve(value, lookup) for value in values],
        index=values.index,
        dtype=object,
    )


def attach_displays(records: pd.DataFrame, registries: Registries) -> pd.DataFrame:
    """Add ``module_display``, ``categorization_display`` and ``status_display``."""
    out = records.copy()
    out["module_display"] = resolve_series(out["module"], registries.modules)
    out["categorization_display"] = resolve_series(out["categorization"], registries.categorizations)
    out["status_display"] = resolve_series(out["status"], registries.statuses)
    return out


def linked_children(links: pd.DataFrame) -> dict[str, set[str]]:
    """Parent ticket id -> child ticket ids from the link source, sentinels excluded."""
    children: dict[str, set[str]] = {}
    if links.empty:
        return children
    real = links[~unassigned_mask(links["linked_request_id"])]
    for child, parent in zip(real["request_id"], real["linked_request_id"]):
        children.setdefault(parent, set()).add(child)
    return children
