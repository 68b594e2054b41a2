from __future__ import annotations

import datetime as dt

import pandas as pd

from marketpulse.common.time import day_keys, days_between, to_day, utc_now


def test_utc_now_is_timezone_aware():
    assert utc_now().tzinfo is not None


def test_to_day_normalizes_inputs():
    expected = pd.Timestamp("2016-02-01")
    assert to_day("2016-02-01") == expected
    assert to_day(dt.date(2016, 2, 1)) == expected
    assert to_day(pd.Timestamp("2016-02-01 18:30")) == expected
    assert to_day(pd.Timestamp("2016-02-01 10:00", tz="UTC")) == expected


def test_day_keys_truncate():
    s = pd.Series(pd.to_datetime(["2016-01-01 23:59:59", "2016-01-02 00:00:01"]))
    assert day_keys(s).tolist() == [pd.Timestamp("2016-01-01"), pd.Timestamp("2016-01-02")]


def test_days_between_counts_calendar_boundaries_and_keeps_missing():
    start = pd.Series(pd.to_datetime(["2016-01-01 23:00", "2016-01-05 01:00", "2016-01-05 00:00"]))
    end = pd.Series(pd.to_datetime(["2016-01-02 01:00", "2016-01-03 23:00", None]))

    out = days_between(start, end)

    assert str(out.dtype) == "Int64"
    assert out.iloc[0] == 1
    assert out.iloc[1] == -2
    assert pd.isna(out.iloc[2])


def test_days_between_scalar_end():
    start = pd.Series(pd.to_datetime(["2015-10-24 12:00"]))
    assert days_between(start, "2016-02-01").tolist() == [100]
