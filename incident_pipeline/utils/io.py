"""File I/O utilities for reading source tables and writing view output."""

import json
from pathlib import Path

import pandas as pd
from rich.console import Console

type FilePath = str | Path

console = Console(stderr=True)


def read_csv_table(path: FilePath, encoding: str = "utf-8") -> pd.DataFrame:
    """Read one exported table with every column kept as text."""
    path = Path(path)
    if not path.exists():
        return pd.DataFrame()
    return pd.read_csv(path, dtype=str, keep_default_na=False, encoding=encoding)


def replace_csv_table(df: pd.DataFrame, path: FilePath, encoding: str = "utf-8") -> int:
    """Delete-then-write a table file; returns the number of rows written."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.unlink(missing_ok=True)
    df.to_csv(path, index=False, encoding=encoding)
    return len(df)


def _json_default(value: object) -> object:
    match value:
        case pd.Timestamp():
            return value.isoformat()
        case _ if hasattr(value, "item"):
            return value.item()
        case _ if hasattr(value, "isoformat"):
            return value.isoformat()
        case _:
            raise TypeError(f"Not JSON serializable: {type(value).__name__}")


def to_json(result: object) -> str:
    return json.dumps(result, indent=2, ensure_ascii=False, default=_json_default)


def write_output(result: object, path: FilePath | None = None, fmt: str = "json") -> None:
    """Write a view result to a file, or to stdout when no path is given."""
    match fmt:
        case "json":
            content = to_json(result)
        case "csv" if isinstance(result, pd.DataFrame):
            content = result.to_csv(index=False)
        case other:
            raise ValueError(f"Unsupported output format: {other}")

    if path is None:
        print(content)
        return

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    console.print(f"  Wrote view output to {path}")
