"""Engine configuration and environment setup."""

import tomllib
from dataclasses import dataclass, replace
from pathlib import Path

type ConfigDict = dict[str, str | int | bool | list[str]]

PROJECT_ROOT = Path(__file__).parent.parent

# Raw status that marks a primary/problem record as escalated to level 3
L3_MARKER = "Nivel 3"

# Primary-status display values, as the status registry defines them
CLOSED_DISPLAY_STATUSES = frozenset({"Closed"})
L2_DISPLAY_STATUSES = frozenset({"On going L2"})
L3_DISPLAY_STATUSES = frozenset({"On going L3", "In L3 Backlog"})

RECURRING_VALUES = frozenset({"si", "sí", "yes"})
NEW_VALUES = frozenset({"no"})

# Matched case-insensitively against categorization display, then raw value
MISSING_SCOPE_KEYWORDS = ("missing scope", "falta de alcance", "alcance")
BUG_KEYWORDS = ("bug",)
CHANGE_ERROR_KEYWORDS = ("change error", "error de cambio", "cambio")

UNKNOWN_APPLICATION = "Unknown"


@dataclass(frozen=True)
class StoreConfig:
    data_dir: Path
    encoding: str


@dataclass(frozen=True)
class EngineConfig:
    store: StoreConfig
    max_workers: int
    top_modules: int
    l3_marker: str


VIEW_NAMES = [
    "critical-incidents",
    "module-evolution",
    "stability-indicators",
    "category-distribution",
    "business-flow-priority",
    "priority-by-app",
    "incidents-by-week",
    "incidents-by-day",
    "incident-overview-by-category",
    "l3-summary",
    "l3-requests-by-status",
    "l3-tickets-by-status",
    "missing-scope-by-parent",
    "bugs-by-parent",
    "incidents-by-release-by-day",
    "change-release-by-module",
]


def load_engine_config(env: str = "production") -> EngineConfig:
    match env:
        case "production":
            store = StoreConfig(data_dir=Path("/data/incidents"), encoding="utf-8")
            max_workers = 5
        case "staging":
            store = StoreConfig(data_dir=Path("/data/staging/incidents"), encoding="utf-8")
            max_workers = 5
        case "development":
            store = StoreConfig(data_dir=PROJECT_ROOT / "data", encoding="utf-8")
            max_workers = 2
        case other:
            raise ValueError(f"Unknown environment: {other}")

    config = EngineConfig(
        store=store,
        max_workers=max_workers,
        top_modules=5,
        l3_marker=L3_MARKER,
    )
    return apply_overrides(config, get_env_config())


def apply_overrides(config: EngineConfig, overrides: ConfigDict) -> EngineConfig:
    """Layer ``[tool.incident_pipeline]`` style overrides onto a profile."""
    store = config.store
    if "data_dir" in overrides:
        store = replace(store, data_dir=Path(str(overrides["data_dir"])))
    if "encoding" in overrides:
        store = replace(store, encoding=str(overrides["encoding"]))

    return replace(
        config,
        store=store,
        max_workers=int(overrides.get("max_workers", config.max_workers)),
        top_modules=int(overrides.get("top_modules", config.top_modules)),
        l3_marker=str(overrides.get("l3_marker", config.l3_marker)),
    )


def get_env_config(pyproject: Path | None = None) -> ConfigDict:
    """Read engine config from pyproject.toml."""
    pyproject = pyproject or PROJECT_ROOT / "pyproject.toml"
    if not pyproject.exists():
        return {}
    with open(pyproject, "rb") as f:
        data = tomllib.load(f)
    return data.get("tool", {}).get("incident_pipeline", {})
