# src/marketpulse/pipelines/build_liquidity.py
from __future__ import annotations

from typing import Any, Dict, Tuple

import pandas as pd

from marketpulse.liquidity.aggregate import DEFAULT_WINDOWS, LiquidityWindows, daily_liquidity, item_liquidity
from marketpulse.liquidity.items import build_items
from marketpulse.liquidity.join import join_items_replies


def _log(msg: str) -> None:
    print(msg, flush=True)


def build_liquidity_relations(
    actions: pd.DataFrame,
    windows: LiquidityWindows = DEFAULT_WINDOWS,
) -> Tuple[Dict[str, pd.DataFrame], Dict[str, Any]]:
    """
    Liquidity pipeline: posts -> items, items LEFT JOIN replies -> per-item counts -> per-day rates.
    The `dates` dimension is built from the store separately (see build_marts).
    """
    items, item_stats = build_items(actions)
    joined, diag = join_items_replies(items, actions)
    per_item = item_liquidity(joined, windows)
    per_day = daily_liquidity(per_item, windows)

    if len(per_item) != len(items):
        raise RuntimeError("fact_item_liquidity must have exactly one row per posted item")

    _log(f"[liquidity] items: {len(items):,} | replies matched: {diag.n_replies_matched:,}")
    _log(f"[liquidity] post days: {len(per_day):,}")

    meta: Dict[str, Any] = {
        **item_stats,
        **diag.as_dict(),
        "n_post_days": int(len(per_day)),
        "windows": {
            "short_days": windows.short_days,
            "long_days": windows.long_days,
            "short_min_replies": windows.short_min_replies,
            "long_min_replies_low": windows.long_min_replies_low,
            "long_min_replies_high": windows.long_min_replies_high,
        },
    }
    relations = {
        "items": items,
        "fact_item_liquidity": per_item,
        "fact_liquidity": per_day,
    }
    return relations, meta
