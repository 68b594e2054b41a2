# src/marketpulse/pipelines/build_segments.py
from __future__ import annotations

from datetime import date
from typing import Any, Dict, Tuple

import pandas as pd

from marketpulse.segments.classify import DEFAULT_RULES, SegmentRules, classify_users, segment_distribution
from marketpulse.segments.temporal_index import build_temporal_index


def _log(msg: str) -> None:
    print(msg, flush=True)


def build_segment_relations(
    actions: pd.DataFrame,
    reference_date: str | date | pd.Timestamp,
    rules: SegmentRules = DEFAULT_RULES,
) -> Tuple[Dict[str, pd.DataFrame], Dict[str, Any]]:
    """
    User segmentation pipeline: actions -> temporal index -> user_segment.
    Pure function of the snapshot and the reference date.
    """
    index, index_stats = build_temporal_index(actions, reference_date)
    segments = classify_users(index, rules)

    if len(segments) != len(index):
        raise RuntimeError("Segmentation is not total (users in index != users segmented)")

    dist = segment_distribution(segments)
    _log(f"[segments] users segmented: {len(segments):,}")
    for row in dist.itertuples(index=False):
        _log(f"[segments]   {row.segment:<8} {row.n_users:>8,}  ({row.relative_size:.1%})")
    if index_stats["n_future_actions"]:
        _log(f"[segments] WARNING: {index_stats['n_future_actions']:,} actions dated after the reference date")

    meta: Dict[str, Any] = {
        **index_stats,
        "rules": {
            "lost_days": rules.lost_days,
            "active_days": rules.active_days,
            "repeat_tenure_days": rules.repeat_tenure_days,
            "repeat_min_interactions": rules.repeat_min_interactions,
            "novice_tenure_days": rules.novice_tenure_days,
        },
        "distribution": {
            r.segment: {"n_users": int(r.n_users), "relative_size": float(r.relative_size)}
            for r in dist.itertuples(index=False)
        },
    }
    return {"user_segment": segments}, meta
