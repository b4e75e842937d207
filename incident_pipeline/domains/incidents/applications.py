"""Application pattern matching and per-ticket deduplication.

A record's free-text application field is matched against every active
pattern (case-insensitive substring). One record can match several
patterns, so the join produces one row per (record, pattern) and callers
collapse it back to one row per ticket with :func:`deduplicate` after
:func:`canonical_order` has pinned which row comes first.
"""

import logging

import pandas as pd

from incident_pipeline.config import UNKNOWN_APPLICATION
from incident_pipeline.utils.types import ALL_APPLICATIONS

logger = logging.getLogger(__name__)

def active_patterns(patterns: pd.DataFrame) -> pd.DataFrame:
    """Active, non-empty ``contains`` patterns with numeric priority and id."""
    if patterns.empty:
        return patterns.assign(pattern_key="")
    active = patterns[patterns["is_active"].astype(bool)].copy()
    active["pattern_key"] = active["pattern"].astype(str).str.strip().str.lower()
    active = active[active["pattern_key"] != ""]

    match_type = active["match_type"].astype(str).str.strip().str.lower()
    unsupported = active[~match_type.isin(["contains", ""])]
    for _, row in unsupported.iterrows():
        logger.warning("Skipping pattern %s with unsupported match type %s", row["pattern_id"], row["match_type"])
    active = active[match_type.isin(["contains", ""])]

    active["priority"] = pd.to_numeric(active["priority"], errors="coerce").fillna(100).astype(int)
    active["pattern_id"] = pd.to_numeric(active["pattern_id"], errors="coerce").fillna(0).astype(int)
    return active


def join_applications(records: pd.DataFrame, patterns: pd.DataFrame) -> pd.DataFrame:
    """Left-join records against active patterns, one row per match."""
    active = active_patterns(patterns)
    app_text = records["application"].astype(str).str.lower()

    matched = []
    seen = pd.Series(False, index=records.index)
    for _, pattern in active.iterrows():
        hits = app_text.str.contains(pattern["pattern_key"], regex=False)
        if not hits.any():
            continue
        seen |= hits
        matched.append(
            records[hits].assign(
                application_code=str(pattern["application_code"]).strip(),
                application_name=str(pattern["application_name"]).strip(),
                pattern_priority=int(pattern["priority"]),
                pattern_id=int(pattern["pattern_id"]),
            )
        )

    unmatched = records[~seen].assign(
        application_code="",
        application_name="",
        pattern_priority=0,
        pattern_id=0,
    )
    joined = pd.concat([*matched, unmatched], ignore_index=True) if matched else unmatched.reset_index(drop=True)

    logger.debug(
        "Joined %d records against %d patterns into %d rows (%d unmatched)",
        len(records), len(active), len(joined), len(unmatched),
    )
    return joined


def filter_by_application(joined: pd.DataFrame, app: str | None) -> pd.DataFrame:
    """Keep rows whose matched pattern belongs to ``app``; ``None``/``"all"`` keeps everything."""
    if app is None or app.strip().lower() in ("", ALL_APPLICATIONS):
        return joined
    target = app.strip().lower()
    return joined[joined["application_code"].str.lower() == target]


def canonical_order(joined: pd.DataFrame, key: str = "request_id") -> pd.DataFrame:
    """Sort by identity (numeric ids first, numerically), then pattern priority and id."""
    if joined.empty:
        return joined
    ids = joined[key].astype(str).str.strip()
    non_numeric = ~ids.str.fullmatch(r"\d+")
    ordered = joined.assign(
        _non_numeric=non_numeric,
        _numeric=pd.to_numeric(ids.where(~non_numeric), errors="coerce"),
        _text=ids,
        _priority=pd.to_numeric(joined["pattern_priority"], errors="coerce"),
        _pattern=pd.to_numeric(joined["pattern_id"], errors="coerce"),
    ).sort_values(
        ["_non_numeric", "_numeric", "_text", "_priority", "_pattern"],
        kind="stable",
        na_position="last",
    )
    return ordered.drop(columns=["_non_numeric", "_numeric", "_text", "_priority", "_pattern"])


def deduplicate(frame: pd.DataFrame, key: str = "request_id") -> pd.DataFrame:
    """Keep the first row per ticket identity under the incoming order."""
    deduped = frame.drop_duplicates(subset=key, keep="first").reset_index(drop=True)
    dropped = len(frame) - len(deduped)
    if dropped:
        logger.debug("Dropped %d duplicate join rows", dropped)
    return deduped


def application_labels(frame: pd.DataFrame) -> pd.Series:
    """Registry display name, falling back to the raw application text."""
    raw = frame["application"].astype(str).str.strip()
    name = frame["application_name"].astype(str).str.strip()
    label = name.where(name != "", raw)
    return label.where(label != "", UNKNOWN_APPLICATION)
