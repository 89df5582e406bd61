"""
Date Keys
=========

Date-key domains used by the aggregation engine and date helpers for the
fetchers:

- day:   ``YYYY-MM-DD``
- week:  ``YYYY-WW`` (ISO year and ISO week, weeks start on Monday)
- month: ``YYYY-MM``
- quarter: ``YYYY-Qn``
"""

from datetime import UTC, date, datetime, timedelta

import pandas as pd

ALL_TIME_START = date(2000, 1, 1)

_LAUNCH_DATE_FORMATS = (
    "%Y-%m-%d",
    "%b %d, %Y",
    "%B %d, %Y",
    "%m/%d/%Y",
    "%d %b %Y",
    "%Y/%m/%d",
)


def to_unix_ms(dt: datetime) -> int:
    """
    Convert datetime to Unix timestamp in milliseconds.

    Args:
        dt: Datetime object (timezone-aware or naive assumed UTC)

    Returns:
        Unix timestamp in milliseconds
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)

    return int(dt.timestamp() * 1000)


def date_from_unix_seconds(timestamp: int | float) -> date:
    """UTC calendar day of a unix timestamp in seconds."""
    return datetime.fromtimestamp(timestamp, tz=UTC).date()


def parse_day(value: str | date) -> date:
    """Parse a ``YYYY-MM-DD`` day key (explorer chart dates also carry this shape)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def parse_launch_date(value: str | None) -> date | None:
    """
    Parse a launch date as typed into the registry sheet.

    Accepts ISO dates and the sheet's display formats ("Jun 1, 2024",
    "June 1, 2024", "6/1/2024"). Returns None when nothing matches.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    for fmt in _LAUNCH_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def day_key(day: date) -> str:
    return day.isoformat()


def week_key(day: date | str) -> str:
    """ISO week key, e.g. 2024-12-30 -> "2025-01"."""
    iso = parse_day(day).isocalendar()
    return f"{iso.year}-{iso.week:02d}"


def week_start(key: str) -> date:
    """Monday of an ISO week key."""
    year, week = key.split("-")
    return date.fromisocalendar(int(year), int(week), 1)


def previous_week_key(key: str) -> str:
    return week_key(week_start(key) - timedelta(days=7))


def month_key(day: date | str) -> str:
    return parse_day(day).strftime("%Y-%m")


def quarter_key(day: date | str) -> str:
    d = parse_day(day)
    return f"{d.year}-Q{(d.month - 1) // 3 + 1}"


def date_range(start: date, end: date) -> list[str]:
    """
    Every calendar day between start and end (inclusive) as day keys.

    Returns an empty list when end precedes start.
    """
    if end < start:
        return []
    return [ts.date().isoformat() for ts in pd.date_range(start, end, freq="D")]


def utc_today() -> date:
    return datetime.now(UTC).date()


def _months_back(today: date, months: int) -> date:
    """Same day ``months`` calendar months earlier, clipped to month end."""
    return (pd.Timestamp(today) - pd.DateOffset(months=months)).date()


def resolve_date_range(
    window: str,
    today: date,
    launch_date: date | None = None,
) -> tuple[date, date]:
    """
    Translate an explorer time window into a ``(from, to)`` pair.

    Windows:
        daily     today only
        1month    one calendar month back
        4months   four calendar months back
        6months   six calendar months back
        all       everything since 2000-01-01
        launch    since the chain's launch date (falls back to "all")

    Raises:
        ValueError: On an unknown window
    """
    key = window.strip().lower().replace(" ", "")
    if key == "daily":
        return today, today
    if key in ("1month", "monthly"):
        return _months_back(today, 1), today
    if key in ("4months", "fourmonths"):
        return _months_back(today, 4), today
    if key in ("6months", "sixmonths"):
        return _months_back(today, 6), today
    if key == "all":
        return ALL_TIME_START, today
    if key == "launch":
        return (launch_date or ALL_TIME_START), today
    raise ValueError(f"Invalid time range specified: {window}")


def trailing_days(days: int, today: date) -> list[str]:
    """The last ``days`` calendar days ending today, as day keys."""
    return date_range(today - timedelta(days=days), today)
