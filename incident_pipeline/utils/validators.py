"""Table validation against pandera schemas.

Exports can hold thousands of rows failing the same check, so failures are
reported once per (column, check) with a count and a sample value.
"""

import pandas as pd
from pandera.errors import SchemaErrors
from pandera.pandas import DataFrameSchema

from incident_pipeline.utils.types import ValidationOutcome


def summarize_failures(failure_cases: pd.DataFrame) -> list[str]:
    errors = []
    grouped = failure_cases.groupby(["column", "check"], dropna=False, sort=False)
    for (column, check), cases in grouped:
        sample = cases["failure_case"].iloc[0]
        match column:
            case str():
                errors.append(f"Column '{column}' failed '{check}' on {len(cases)} row(s), e.g. {sample!r}")
            case _:
                errors.append(f"Table failed '{check}': {sample!r}")
    return errors


def validate_dataframe(df: pd.DataFrame, schema: DataFrameSchema) -> ValidationOutcome:
    """Lazily validate ``df``; every failing check is collected, not just the first."""
    try:
        schema.validate(df, lazy=True)
    except SchemaErrors as e:
        return {"valid": False, "status": "error", "errors": summarize_failures(e.failure_cases)}
    return {"valid": True, "status": "ok", "errors": []}
