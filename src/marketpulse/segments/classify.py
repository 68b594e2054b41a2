# src/marketpulse/segments/classify.py
from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd

from marketpulse.data.schemas import SEGMENTS


@dataclass(frozen=True)
class SegmentRules:
    """
    Lifecycle thresholds (days / interactions).

    Rules are evaluated in a fixed order and the first match wins:
      1. recency >= lost_days                                       -> Lost
      2. recency <= active_days and count > repeat_min_interactions
         and tenure >= repeat_tenure_days                           -> Repeat
      3. recency >= active_days                                     -> Dormant
      4. tenure >= novice_tenure_days                               -> Novice
      5. otherwise                                                  -> Trial
    """
    lost_days: int = 84              # 12 weeks without a post/reply
    active_days: int = 28            # 4 weeks
    repeat_tenure_days: int = 56     # 8 weeks since first post/reply
    repeat_min_interactions: int = 1
    novice_tenure_days: int = 7      # 1 week since first post/reply

    def validate(self) -> None:
        if min(self.lost_days, self.active_days, self.repeat_tenure_days, self.novice_tenure_days) < 0:
            raise ValueError("segment thresholds must be >= 0")
        if self.active_days > self.lost_days:
            raise ValueError("active_days must be <= lost_days")
        if self.repeat_min_interactions < 0:
            raise ValueError("repeat_min_interactions must be >= 0")


DEFAULT_RULES = SegmentRules()


def classify_segment(
    recency_days: int,
    tenure_days: int,
    interaction_count: int,
    rules: SegmentRules = DEFAULT_RULES,
) -> str:
    if recency_days >= rules.lost_days:
        return "Lost"
    if (
        recency_days <= rules.active_days
        and interaction_count > rules.repeat_min_interactions
        and tenure_days >= rules.repeat_tenure_days
    ):
        return "Repeat"
    if recency_days >= rules.active_days:
        return "Dormant"
    if tenure_days >= rules.novice_tenure_days:
        return "Novice"
    return "Trial"


def classify_users(index: pd.DataFrame, rules: SegmentRules = DEFAULT_RULES) -> pd.DataFrame:
    """
    Vectorized rule cascade over the temporal index.
    np.select takes the first true condition, which is exactly the priority order above.
    """
    rules.validate()

    recency = index["recency_days"].to_numpy()
    tenure = index["tenure_days"].to_numpy()
    count = index["interaction_count"].to_numpy()

    conditions = [
        recency >= rules.lost_days,
        (recency <= rules.active_days)
        & (count > rules.repeat_min_interactions)
        & (tenure >= rules.repeat_tenure_days),
        recency >= rules.active_days,
        tenure >= rules.novice_tenure_days,
    ]
    labels = ["Lost", "Repeat", "Dormant", "Novice"]

    out = pd.DataFrame(
        {
            "user_id": index["user_id"].to_numpy(),
            "segment": np.select(conditions, labels, default="Trial"),
        }
    )
    out["segment"] = out["segment"].astype(str)

    if len(out) != len(index):
        raise RuntimeError("Segmentation produced row loss/gain (segments != users)")
    return out.sort_values("user_id", kind="mergesort").reset_index(drop=True)


def segment_distribution(segments: pd.DataFrame) -> pd.DataFrame:
    """Absolute count and relative share of users per segment (all five labels present)."""
    counts = segments["segment"].value_counts().reindex(list(SEGMENTS), fill_value=0)
    total = int(counts.sum())
    out = pd.DataFrame({"segment": counts.index, "n_users": counts.to_numpy().astype("int64")})
    out["relative_size"] = out["n_users"] / total if total > 0 else 0.0
    return out.reset_index(drop=True)
