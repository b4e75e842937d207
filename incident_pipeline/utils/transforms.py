"""Common data transformation utilities shared by every view."""

import math
from collections import Counter

import pandas as pd

type ColumnMapping = dict[str, str]


def normalize_columns(df: pd.DataFrame, mapping: ColumnMapping | None = None) -> pd.DataFrame:
    """Normalize column names to snake_case and apply optional mapping."""
    df = df.copy()
    df.columns = [
        str(col).strip().lower().replace(" ", "_").replace("-", "_").replace(".", "")
        for col in df.columns
    ]

    if mapping:
        df = df.rename(columns=mapping)

    return df


def fill_text_columns(df: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    """Ensure every listed column exists as text, with missing values as ``""``."""
    out = df.copy()
    for col in columns:
        if col not in out.columns:
            out[col] = ""
        out[col] = out[col].astype("string").fillna("").astype(object)
    return out


def percentage(count: int, total: int) -> float:
    """Share of ``total`` rounded half-up to two decimals; zero when ``total`` is 0."""
    if total == 0:
        return 0.0
    return math.floor(count / total * 10000 + 0.5) / 100


def sort_by_count(rows: list[dict], key: str = "count") -> list[dict]:
    """Sort rows by a count descending; ties keep their incoming order."""
    return sorted(rows, key=lambda row: -row[key])


def sort_requests(df: pd.DataFrame) -> pd.DataFrame:
    """Order request lists by priority rank, then newest first (undated last)."""
    if df.empty:
        return df
    dated = df.assign(_undated=df["created_at"].isna())
    ordered = dated.sort_values(
        ["priority_rank", "_undated", "created_at"],
        ascending=[True, True, False],
        kind="stable",
    )
    return ordered.drop(columns="_undated")


def none_if_missing(value: object) -> object:
    """Turn NaN/NaT/NA into ``None`` so results serialize as JSON ``null``."""
    if value is None:
        return None
    try:
        return None if pd.isna(value) else value
    except (TypeError, ValueError):
        return value


def count_breakdown(df: pd.DataFrame, raw_col: str, display_col: str) -> list[dict]:
    """Count rows per raw value, keeping the display value of the first record seen.

    Rows come back as ``{raw, display, count}`` ordered by count descending,
    ties in first-observed order.
    """
    counts: Counter[str] = Counter()
    displays: dict[str, object] = {}
    for raw, display in zip(df[raw_col], df[display_col]):
        displays.setdefault(raw, none_if_missing(display))
        counts[raw] += 1
    rows = [{"raw": raw, "display": displays[raw], "count": count} for raw, count in counts.items()]
    return sort_by_count(rows)


def iso_date(value: object) -> str | None:
    value = none_if_missing(value)
    return None if value is None else value.date().isoformat()
