# src/marketpulse/segments/temporal_index.py
from __future__ import annotations

from datetime import date
from typing import Any, Dict, Tuple

import pandas as pd

from marketpulse.common.time import days_between, to_day
from marketpulse.data.schemas import SCHEMA


INDEX_COLUMNS = ("user_id", "recency_days", "tenure_days", "interaction_count")


def qualifying_actions(actions: pd.DataFrame) -> pd.DataFrame:
    """Posts and replies only; every other action type is ignored by segmentation."""
    mask = actions[SCHEMA.ACTION_TYPE].isin(SCHEMA.qualifying_types)
    return actions.loc[mask, [SCHEMA.USER_ID, SCHEMA.ACTION_TS]]


def build_temporal_index(
    actions: pd.DataFrame,
    reference_date: str | date | pd.Timestamp,
) -> Tuple[pd.DataFrame, Dict[str, Any]]:
    """
    Per-user recency / tenure / interaction count as of `reference_date`.

    age_days          = reference_date - date(action_ts)
    recency_days      = min(age_days)   (most recent qualifying action)
    tenure_days       = max(age_days)   (first qualifying action)
    interaction_count = number of qualifying actions, duplicates on the same
                        timestamp included

    Returns (index_df sorted by user_id, stats).
    """
    ref = to_day(reference_date)
    q = qualifying_actions(actions)

    if q.empty:
        empty = pd.DataFrame({c: pd.Series(dtype="int64") for c in INDEX_COLUMNS})
        empty["user_id"] = empty["user_id"].astype(str)
        return empty, {"n_qualifying_actions": 0, "n_users": 0, "n_future_actions": 0}

    age = days_between(q[SCHEMA.ACTION_TS], ref).astype("int64")
    base = pd.DataFrame({"user_id": q[SCHEMA.USER_ID].to_numpy(), "age_days": age.to_numpy()})

    idx = (
        base.groupby("user_id", sort=True)
        .agg(
            recency_days=("age_days", "min"),
            tenure_days=("age_days", "max"),
            interaction_count=("age_days", "size"),
        )
        .reset_index()
    )
    idx = idx.astype({"recency_days": "int64", "tenure_days": "int64", "interaction_count": "int64"})

    stats = {
        "n_qualifying_actions": int(len(base)),
        "n_users": int(len(idx)),
        # actions dated after the reference date give negative ages
        "n_future_actions": int((base["age_days"] < 0).sum()),
    }
    return idx[list(INDEX_COLUMNS)], stats
