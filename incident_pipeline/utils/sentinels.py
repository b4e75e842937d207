"""Recognize the placeholder values that stand for "no real value"."""

import pandas as pd

# Compared after trimming and lower-casing
UNASSIGNED_VALUES = frozenset({"", "0", "not assigned", "no asignado"})


def is_unassigned(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and pd.isna(value):
        return True
    return str(value).strip().lower() in UNASSIGNED_VALUES


def unassigned_mask(values: pd.Series) -> pd.Series:
    """Boolean mask of sentinel entries in a text series."""
    text = values.astype("string").fillna("").str.strip().str.lower()
    return text.isin(UNASSIGNED_VALUES).astype(bool)
