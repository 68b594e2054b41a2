# tests/conftest.py
from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest


# Day 0 of the worked example; the reference date is day 100.
DAY0 = pd.Timestamp("2015-10-24")
REFERENCE_DATE = "2016-02-01"


def day(n: int, hour: int = 12) -> pd.Timestamp:
    return DAY0 + pd.Timedelta(days=n, hours=hour)


def actions_frame(rows) -> pd.DataFrame:
    """rows: iterable of (user_id, action_type, action_ts, item_id)."""
    df = pd.DataFrame(rows, columns=["user_id", "action_type", "action_ts", "item_id"])
    df["action_ts"] = pd.to_datetime(df["action_ts"])
    df["device"] = "an"
    df["b2c"] = True
    return df


@pytest.fixture()
def sandbox(tmp_path: Path) -> Path:
    """Per-test filesystem sandbox."""
    return tmp_path


@pytest.fixture()
def chdir_sandbox(monkeypatch, sandbox: Path):
    """
    Run code as-if repo root is sandbox so all relative paths
    like data/... outputs/... resolve inside sandbox.
    """
    monkeypatch.chdir(sandbox)
    return sandbox


@pytest.fixture()
def reference_date() -> str:
    return REFERENCE_DATE


@pytest.fixture()
def example_actions_df() -> pd.DataFrame:
    """
    U1 posts I1 on day 0, U2 replies to I1 on day 1, U1 replies (to an item nobody posted) on day 70.
    """
    return actions_frame(
        [
            ("U1", "P", day(0), "I1"),
            ("U2", "R", day(1), "I1"),
            ("U1", "R", day(70), "I9"),
        ]
    )


@pytest.fixture()
def small_actions_df() -> pd.DataFrame:
    """
    Tiny deterministic log covering both pipelines.

    day 0 : I1 (3 replies: d0, d1, d5), I2 (no replies), I3 (5 replies: d2..d6)
    day 10: I4 (1 reply on d20, outside 7 days)
    plus a view (other action type) and an orphaned reply.
    """
    return actions_frame(
        [
            ("A", "P", day(0, 9), "I1"),
            ("B", "R", day(0, 18), "I1"),
            ("C", "R", day(1), "I1"),
            ("D", "R", day(5), "I1"),
            ("A", "P", day(0, 10), "I2"),
            ("B", "P", day(0, 11), "I3"),
            ("A", "R", day(2), "I3"),
            ("C", "R", day(3), "I3"),
            ("D", "R", day(4), "I3"),
            ("E", "R", day(5), "I3"),
            ("F", "R", day(6), "I3"),
            ("C", "P", day(10), "I4"),
            ("A", "R", day(20), "I4"),
            ("G", "V", day(30), "I4"),
            ("H", "R", day(31), "ZZ"),
        ]
    )
