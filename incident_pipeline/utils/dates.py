"""Date/time normalization for the two textual encodings the sources use.

Records carry their created time either as ``dd/MM/yyyy HH:mm`` (the
spreadsheet exports) or as ISO-8601. Parsing never raises: anything that
matches neither encoding comes back as ``None`` (scalars) or ``NaT``
(series) and is dropped only by the date-dependent computations.
"""

import calendar
import logging
import re
from datetime import date, datetime, time, timedelta, timezone

import pandas as pd

logger = logging.getLogger(__name__)

DAY_FIRST_FORMAT = "%d/%m/%Y %H:%M"

_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")

type MonthKey = tuple[int, int]
type IsoWeek = tuple[int, int]


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_instant(value: object) -> datetime | None:
    """Parse a day-first or ISO-8601 value, returning ``None`` when neither fits."""
    if value is None or value is pd.NaT or isinstance(value, float):
        return None
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else _to_naive_utc(value.to_pydatetime())
    if isinstance(value, datetime):
        return _to_naive_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min)

    text = str(value).strip()
    if not text:
        return None
    try:
        return datetime.strptime(text, DAY_FIRST_FORMAT)
    except ValueError:
        pass
    try:
        return _to_naive_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def parse_instants(values: pd.Series) -> pd.Series:
    """Vectorized :func:`parse_instant` producing a naive ``datetime64`` series."""
    text = values.astype("string").str.strip()
    day_first = pd.to_datetime(text, format=DAY_FIRST_FORMAT, errors="coerce", utc=True)
    iso = pd.to_datetime(text.where(day_first.isna()), format="ISO8601", errors="coerce", utc=True)
    parsed = day_first.fillna(iso)
    return parsed.dt.tz_localize(None).astype("datetime64[ns]")


def parse_month(text: str | None) -> MonthKey | None:
    """Parse a ``YYYY-MM`` filter value."""
    if text is None:
        return None
    match _MONTH_PATTERN.match(text.strip()):
        case None:
            return None
        case found:
            year, month = int(found.group(1)), int(found.group(2))
            return (year, month) if 1 <= month <= 12 else None


def month_key(ts: datetime | pd.Timestamp) -> str:
    return f"{ts.year:04d}-{ts.month:02d}"


def month_label(month: str | None) -> str | None:
    """Human label for a ``YYYY-MM`` filter, e.g. ``October 2024``."""
    parsed = parse_month(month)
    if parsed is None:
        return None
    year, month_number = parsed
    return f"{calendar.month_name[month_number]} {year}"


def day_of_month(ts: datetime | pd.Timestamp) -> int:
    return ts.day


def iso_week(ts: datetime | pd.Timestamp) -> IsoWeek:
    iso_year, week, _ = ts.isocalendar()
    return iso_year, week


def iso_week_bounds(iso_year: int, week: int) -> tuple[date, date]:
    """Monday and Sunday of an ISO-8601 week."""
    monday = date.fromisocalendar(iso_year, week, 1)
    return monday, monday + timedelta(days=6)


def day_range(start: object, end: object) -> tuple[datetime | None, datetime | None]:
    """Turn a start/end pair into ``[start-of-day, day-after-end)`` bounds.

    An unparseable bound is dropped (with a warning) rather than raised.
    """
    lower = parse_instant(start) if start else None
    upper = parse_instant(end) if end else None
    if start and lower is None:
        logger.warning("Ignoring unparseable start date: %s", start)
    if end and upper is None:
        logger.warning("Ignoring unparseable end date: %s", end)

    if lower is not None:
        lower = datetime.combine(lower.date(), time.min)
    if upper is not None:
        upper = datetime.combine(upper.date(), time.min) + timedelta(days=1)
    return lower, upper
