# src/marketpulse/liquidity/join.py
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Tuple

import pandas as pd

from marketpulse.common.time import days_between
from marketpulse.data.schemas import SCHEMA


JOINED_COLUMNS = ("item_id", "post_date", "reply_ts", "latency_days")


@dataclass(frozen=True)
class JoinDiagnostics:
    n_replies: int
    n_replies_matched: int
    n_orphaned_replies: int          # reply item_id matches no posted item (or is null)
    n_negative_latency: int          # reply dated before the post day
    n_replyless_items: int

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _log(msg: str) -> None:
    print(msg, flush=True)


def reply_actions(actions: pd.DataFrame) -> pd.DataFrame:
    replies = actions.loc[actions[SCHEMA.ACTION_TYPE] == SCHEMA.REPLY, [SCHEMA.ITEM_ID, SCHEMA.ACTION_TS]]
    return pd.DataFrame(
        {
            "item_id": replies[SCHEMA.ITEM_ID].to_numpy(),
            "reply_ts": replies[SCHEMA.ACTION_TS].to_numpy(),
        }
    )


def join_items_replies(items: pd.DataFrame, actions: pd.DataFrame) -> Tuple[pd.DataFrame, JoinDiagnostics]:
    """
    Left-preserving join of posted items to their replies.

    - every item appears at least once (reply_ts / latency_days null when it has no reply)
    - each matching reply adds one row per item row it matches
    - replies whose item_id matches no item are dropped and counted

    latency_days = date(reply_ts) - post_date; negative values are kept.
    """
    replies = reply_actions(actions)

    # Null reply item ids cannot match; drop them before the join so they count as orphans.
    keyed = replies[replies["item_id"].notna()].copy()
    keyed["item_id"] = keyed["item_id"].astype(str)

    joined = items.merge(keyed, on="item_id", how="left", sort=False)
    joined["latency_days"] = days_between(joined["post_date"], joined["reply_ts"])
    joined = (
        joined[list(JOINED_COLUMNS)]
        .sort_values(["item_id", "post_date", "reply_ts"], kind="mergesort", na_position="first")
        .reset_index(drop=True)
    )

    posted_ids = set(items["item_id"])
    n_matched = int(keyed["item_id"].isin(posted_ids).sum())
    diag = JoinDiagnostics(
        n_replies=int(len(replies)),
        n_replies_matched=n_matched,
        n_orphaned_replies=int(len(replies)) - n_matched,
        n_negative_latency=int((joined["latency_days"] < 0).fillna(False).sum()),
        n_replyless_items=int(joined["reply_ts"].isna().sum()),
    )

    if diag.n_orphaned_replies:
        _log(f"[liquidity] dropped {diag.n_orphaned_replies:,} orphaned replies (no matching post)")
    if diag.n_negative_latency:
        _log(f"[liquidity] WARNING: {diag.n_negative_latency:,} replies dated before their post day")

    # every item must survive the join
    if joined[["item_id", "post_date"]].drop_duplicates().shape[0] != len(items):
        raise RuntimeError("Item/reply join lost posted items")

    return joined, diag
