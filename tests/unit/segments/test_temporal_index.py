from __future__ import annotations

import pandas as pd

from conftest import actions_frame, day
from marketpulse.segments.temporal_index import build_temporal_index


def test_example_user_stats(example_actions_df, reference_date):
    idx, stats = build_temporal_index(example_actions_df, reference_date)
    by_user = idx.set_index("user_id")

    assert by_user.loc["U1"].to_dict() == {"recency_days": 30, "tenure_days": 100, "interaction_count": 2}
    assert by_user.loc["U2"].to_dict() == {"recency_days": 99, "tenure_days": 99, "interaction_count": 1}
    assert stats["n_users"] == 2
    assert stats["n_qualifying_actions"] == 3
    assert stats["n_future_actions"] == 0


def test_other_action_types_are_ignored(small_actions_df, reference_date):
    idx, _ = build_temporal_index(small_actions_df, reference_date)

    # G only has a view
    assert "G" not in set(idx["user_id"])
    assert idx["user_id"].tolist() == sorted(idx["user_id"].tolist())


def test_age_uses_calendar_days_not_elapsed_hours(reference_date):
    # 23:59 on day 99 is still one calendar day before the reference date
    df = actions_frame([("X", "P", pd.Timestamp("2016-01-31 23:59:59"), "I1")])
    idx, _ = build_temporal_index(df, reference_date)
    assert idx.loc[0, "recency_days"] == 1


def test_duplicate_timestamps_count_every_action(reference_date):
    ts = day(90)
    df = actions_frame([("X", "P", ts, "I1"), ("X", "R", ts, "I2"), ("X", "R", ts, "I3")])
    idx, _ = build_temporal_index(df, reference_date)
    assert idx.loc[0, "interaction_count"] == 3


def test_actions_after_reference_date_give_negative_age(reference_date):
    df = actions_frame([("X", "P", day(95), "I1"), ("X", "R", day(103), "I1")])
    idx, stats = build_temporal_index(df, reference_date)

    assert idx.loc[0, "recency_days"] == -3
    assert idx.loc[0, "tenure_days"] == 5
    assert stats["n_future_actions"] == 1


def test_no_qualifying_actions_gives_empty_index(reference_date):
    df = actions_frame([("X", "V", day(1), "I1")])
    idx, stats = build_temporal_index(df, reference_date)

    assert idx.empty
    assert list(idx.columns) == ["user_id", "recency_days", "tenure_days", "interaction_count"]
    assert stats["n_users"] == 0
