"""Command-line runner: validate the source tables or compute one view."""

import argparse
import logging
import sys
import tomllib
from dataclasses import replace
from pathlib import Path
from typing import Callable

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from incident_pipeline.config import VIEW_NAMES, EngineConfig, apply_overrides, load_engine_config
from incident_pipeline.domains import corrective, incidents
from incident_pipeline.domains.incidents.ingest import CsvIncidentStore, IncidentStore
from incident_pipeline.utils.io import write_output
from incident_pipeline.utils.types import ViewFilters

type ViewFunction = Callable[[IncidentStore, ViewFilters, EngineConfig], object]

console = Console()

logger = logging.getLogger(__name__)

# View name -> call with the filters that view accepts
VIEWS: dict[str, ViewFunction] = {
    "critical-incidents": lambda store, f, cfg: incidents.get_critical_incidents(store, f.app, f.month),
    "module-evolution": lambda store, f, cfg: incidents.get_module_evolution(store, f.app, f.start_date, f.end_date),
    "stability-indicators": lambda store, f, cfg: incidents.get_stability_indicators(
        store, f.app, f.month, marker=cfg.l3_marker
    ),
    "category-distribution": lambda store, f, cfg: incidents.get_category_distribution(store, f.app, f.month),
    "business-flow-priority": lambda store, f, cfg: incidents.get_business_flow_priority(
        store, f.app, f.month, top_n=cfg.top_modules
    ),
    "priority-by-app": lambda store, f, cfg: incidents.get_priority_by_app(store, f.app, f.month),
    "incidents-by-week": lambda store, f, cfg: incidents.get_incidents_by_week(store, f.app, f.year),
    "incidents-by-day": lambda store, f, cfg: incidents.get_incidents_by_day(store, f.app),
    "incident-overview-by-category": lambda store, f, cfg: incidents.get_incident_overview_by_category(
        store, f.app, f.start_date, f.end_date, max_workers=cfg.max_workers, marker=cfg.l3_marker
    ),
    "l3-summary": lambda store, f, cfg: corrective.get_l3_summary(store, f.app, marker=cfg.l3_marker),
    "l3-requests-by-status": lambda store, f, cfg: corrective.get_l3_requests_by_status(
        store, f.app, marker=cfg.l3_marker
    ),
    "l3-tickets-by-status": lambda store, f, cfg: corrective.get_l3_tickets_by_status(
        store, f.app, f.month, marker=cfg.l3_marker
    ),
    "missing-scope-by-parent": lambda store, f, cfg: incidents.get_missing_scope_by_parent(store, f.app, f.month),
    "bugs-by-parent": lambda store, f, cfg: incidents.get_bugs_by_parent(store, f.app, f.month),
    "incidents-by-release-by-day": lambda store, f, cfg: incidents.get_incidents_by_release_by_day(
        store, f.app, f.month
    ),
    "change-release-by-module": lambda store, f, cfg: incidents.get_change_release_by_module(store, f.app, f.month),
}


def load_config(root: Path | None = None) -> dict:
    """Read ``pipeline.yaml`` when present, otherwise ``[tool.incident_pipeline]``."""
    root = root or Path(__file__).parent.parent
    config_path = root / "pipeline.yaml"
    if config_path.exists():
        import yaml
        with open(config_path) as f:
            return yaml.safe_load(f) or {}

    pyproject = root / "pyproject.toml"
    if not pyproject.exists():
        return {}
    with open(pyproject, "rb") as f:
        return tomllib.load(f).get("tool", {}).get("incident_pipeline", {})


def build_config(args: argparse.Namespace) -> EngineConfig:
    config = apply_overrides(load_engine_config(args.env), load_config())
    if args.data_dir:
        config = replace(config, store=replace(config.store, data_dir=Path(args.data_dir)))
    return config


def run_view(name: str, store: IncidentStore, filters: ViewFilters, config: EngineConfig) -> object:
    if name not in VIEWS:
        raise ValueError(f"Unknown view: {name}")
    logger.info("Computing view %s with %s", name, filters)
    return VIEWS[name](store, filters, config)


def validate_all(store: IncidentStore) -> bool:
    results = incidents.validate(store)
    table = Table(title="Validation Results")
    table.add_column("Table")
    table.add_column("Rows", justify="right")
    table.add_column("Valid")
    table.add_column("Details")

    for r in results:
        status = "[green]✓[/green]" if r["valid"] else "[red]✗[/red]"
        detail = "; ".join(r.get("errors", [])[:3]) or "OK"
        table.add_row(r["table"], str(r["row_count"]), status, detail)

    console.print(table)
    return all(r["valid"] for r in results)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Compute incident analytics views")
    parser.add_argument("--env", default="development", help="Config profile: production, staging, development")
    parser.add_argument("--data-dir", type=str, help="Directory holding the CSV table exports")
    parser.add_argument("--validate", action="store_true", help="Only validate the source tables")
    parser.add_argument("--list", action="store_true", help="List the available views")
    parser.add_argument("--view", type=str, help="View to compute")
    parser.add_argument("--app", type=str, default=None, help="Application code, or 'all'")
    parser.add_argument("--month", type=str, default=None, help="Month filter as YYYY-MM")
    parser.add_argument("--year", type=int, default=None, help="ISO week-year filter")
    parser.add_argument("--start-date", type=str, default=None)
    parser.add_argument("--end-date", type=str, default=None)
    parser.add_argument("--output", type=str, default=None, help="Write JSON here instead of stdout")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )

    if args.list:
        for name in VIEW_NAMES:
            console.print(name)
        return 0

    config = build_config(args)
    store = CsvIncidentStore(config.store)

    if args.validate:
        return 0 if validate_all(store) else 1

    if not args.view:
        parser.print_usage()
        return 2
    if args.view not in VIEWS:
        console.print(f"[red]Unknown view: {args.view}[/red]")
        return 1

    filters = ViewFilters(
        app=args.app,
        month=args.month,
        year=args.year,
        start_date=args.start_date,
        end_date=args.end_date,
    )
    write_output(run_view(args.view, store, filters, config), args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
