from __future__ import annotations

import duckdb
import pandas as pd

from marketpulse.data.schemas import SCHEMA


# Read-only sanity checks run after ingestion. None of these feed the pipelines.


def row_count(con: duckdb.DuckDBPyConnection, table: str = "action") -> int:
    return int(con.execute(f"SELECT COUNT(*) FROM {table};").fetchone()[0])


def latest_actions(con: duckdb.DuckDBPyConnection, n: int = 100, table: str = "action") -> pd.DataFrame:
    """Top-N most recent actions (newest first)."""
    if n < 1:
        raise ValueError("n must be >= 1")
    return con.execute(
        f"""
        SELECT *
        FROM {table}
        ORDER BY {SCHEMA.ACTION_TS} DESC, {SCHEMA.USER_ID}, {SCHEMA.ITEM_ID}
        LIMIT {int(n)};
        """
    ).df()


def action_type_distribution(con: duckdb.DuckDBPyConnection, table: str = "action") -> pd.DataFrame:
    return con.execute(
        f"""
        SELECT
            {SCHEMA.ACTION_TYPE},
            COUNT(*) AS n_actions,
            COUNT(DISTINCT {SCHEMA.USER_ID}) AS n_users,
            MIN({SCHEMA.ACTION_TS}) AS min_ts,
            MAX({SCHEMA.ACTION_TS}) AS max_ts
        FROM {table}
        GROUP BY {SCHEMA.ACTION_TYPE}
        ORDER BY {SCHEMA.ACTION_TYPE};
        """
    ).df()
