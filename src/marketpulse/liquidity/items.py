# src/marketpulse/liquidity/items.py
from __future__ import annotations

from typing import Any, Dict, Tuple

import duckdb
import pandas as pd

from marketpulse.common.time import day_keys
from marketpulse.data.schemas import SCHEMA


def build_items(actions: pd.DataFrame) -> Tuple[pd.DataFrame, Dict[str, Any]]:
    """
    Posted items: distinct (item_id, post_date) over Post actions.
    post_date is the post timestamp truncated to the day.
    """
    posts = actions.loc[actions[SCHEMA.ACTION_TYPE] == SCHEMA.POST, [SCHEMA.ITEM_ID, SCHEMA.ACTION_TS]]
    n_posts = int(len(posts))

    # a post without an item id has nothing to attach replies to
    posts = posts[posts[SCHEMA.ITEM_ID].notna()]

    items = pd.DataFrame(
        {
            "item_id": posts[SCHEMA.ITEM_ID].astype(str).to_numpy(),
            "post_date": day_keys(posts[SCHEMA.ACTION_TS]).to_numpy(),
        }
    )
    items = (
        items.drop_duplicates()
        .sort_values(["item_id", "post_date"], kind="mergesort")
        .reset_index(drop=True)
    )

    stats = {
        "n_post_actions": n_posts,
        "n_posts_without_item": n_posts - int(len(posts)),
        "n_items": int(len(items)),
        "n_items_reposted": int(items["item_id"].duplicated().sum()),
    }
    return items, stats


def build_dates_dimension(con: duckdb.DuckDBPyConnection, table: str = "action") -> pd.DataFrame:
    """
    Calendar decomposition of every distinct action timestamp.
    Reporting tools join against it on dates_datekey.
    """
    return con.execute(
        f"""
        SELECT DISTINCT
            a.{SCHEMA.ACTION_TS}                               AS dates_datekey,
            CAST(a.{SCHEMA.ACTION_TS} AS DATE)                 AS dates_date,
            strftime(a.{SCHEMA.ACTION_TS}, '%H:%M:%S')         AS dates_time,
            CAST(EXTRACT(day FROM a.{SCHEMA.ACTION_TS}) AS INTEGER)   AS dates_day,
            CAST(EXTRACT(month FROM a.{SCHEMA.ACTION_TS}) AS INTEGER) AS dates_month_num,
            CAST(EXTRACT(year FROM a.{SCHEMA.ACTION_TS}) AS INTEGER)  AS dates_year,
            monthname(a.{SCHEMA.ACTION_TS})                    AS dates_month
        FROM {table} a
        WHERE a.{SCHEMA.ACTION_TS} IS NOT NULL
        ORDER BY dates_datekey;
        """
    ).df()
