from __future__ import annotations

from datetime import date, datetime, timezone

import pandas as pd


def utc_now() -> datetime:
    """UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def to_day(value: str | date | datetime | pd.Timestamp) -> pd.Timestamp:
    """Normalize a date-like value to a midnight pd.Timestamp (naive)."""
    ts = pd.Timestamp(value)
    if ts.tzinfo is not None:
        ts = ts.tz_convert(None)
    return ts.normalize()


def day_keys(ts: pd.Series) -> pd.Series:
    """Truncate a datetime series to day granularity."""
    return pd.to_datetime(ts).dt.normalize()


def days_between(start: pd.Series | pd.Timestamp, end: pd.Series | pd.Timestamp) -> pd.Series:
    """
    Whole calendar days from `start` to `end` (end - start), both truncated to days.
    Missing values stay missing (nullable Int64).
    """
    if isinstance(start, pd.Series):
        start = day_keys(start)
    else:
        start = to_day(start)
    if isinstance(end, pd.Series):
        end = day_keys(end)
    else:
        end = to_day(end)
    delta = end - start
    return delta.dt.days.astype("Int64")
