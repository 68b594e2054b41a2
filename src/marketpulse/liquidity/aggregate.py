# src/marketpulse/liquidity/aggregate.py
from __future__ import annotations

from dataclasses import dataclass

import pandas as pd


@dataclass(frozen=True)
class LiquidityWindows:
    # latency horizons (days)
    short_days: int = 1
    long_days: int = 7

    # item is liquid when it gets >= N replies inside the horizon
    short_min_replies: int = 1
    long_min_replies_low: int = 3
    long_min_replies_high: int = 5


DEFAULT_WINDOWS = LiquidityWindows()


def item_liquidity(joined: pd.DataFrame, windows: LiquidityWindows = DEFAULT_WINDOWS) -> pd.DataFrame:
    """
    Stage A: reply counts per (item_id, post_date).
    Rows without a reply count as 0 but still produce the item's record.
    """
    latency = joined["latency_days"]
    base = pd.DataFrame(
        {
            "item_id": joined["item_id"],
            "post_date": joined["post_date"],
            "replies_within_1_day": (latency <= windows.short_days).fillna(False).astype("int64"),
            "replies_within_7_days": (latency <= windows.long_days).fillna(False).astype("int64"),
        }
    )

    out = (
        base.groupby(["item_id", "post_date"], sort=True, as_index=False)[
            ["replies_within_1_day", "replies_within_7_days"]
        ]
        .sum()
        .reset_index(drop=True)
    )
    return out.astype({"replies_within_1_day": "int64", "replies_within_7_days": "int64"})


def daily_liquidity(items: pd.DataFrame, windows: LiquidityWindows = DEFAULT_WINDOWS) -> pd.DataFrame:
    """
    Stage B: per post_date, how many items were posted and how many of them were liquid.

    liquid_1d_count    : replies_within_1_day  >= 1
    liquid_3in7d_count : replies_within_7_days >= 3
    liquid_5in7d_count : replies_within_7_days >= 5
    rate_*             : count / items_posted
    """
    flags = pd.DataFrame(
        {
            "post_date": items["post_date"],
            "item_id": items["item_id"],
            "liquid_1d": (items["replies_within_1_day"] >= windows.short_min_replies).astype("int64"),
            "liquid_3in7d": (items["replies_within_7_days"] >= windows.long_min_replies_low).astype("int64"),
            "liquid_5in7d": (items["replies_within_7_days"] >= windows.long_min_replies_high).astype("int64"),
        }
    )

    daily = (
        flags.groupby("post_date", sort=True)
        .agg(
            items_posted=("item_id", "size"),
            liquid_1d_count=("liquid_1d", "sum"),
            liquid_3in7d_count=("liquid_3in7d", "sum"),
            liquid_5in7d_count=("liquid_5in7d", "sum"),
        )
        .reset_index()
    )

    if (daily["items_posted"] <= 0).any():
        raise RuntimeError("Daily liquidity has a post_date with zero items posted")

    posted = daily["items_posted"].astype("float64")
    daily["rate_1d"] = daily["liquid_1d_count"].astype("float64") / posted
    daily["rate_3in7d"] = daily["liquid_3in7d_count"].astype("float64") / posted
    daily["rate_5in7d"] = daily["liquid_5in7d_count"].astype("float64") / posted

    daily = daily.astype(
        {
            "items_posted": "int64",
            "liquid_1d_count": "int64",
            "liquid_3in7d_count": "int64",
            "liquid_5in7d_count": "int64",
        }
    )
    return daily[
        [
            "post_date",
            "items_posted",
            "liquid_1d_count",
            "liquid_3in7d_count",
            "liquid_5in7d_count",
            "rate_1d",
            "rate_3in7d",
            "rate_5in7d",
        ]
    ]
