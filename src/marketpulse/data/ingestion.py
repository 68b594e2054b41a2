from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import duckdb
import pandas as pd

from marketpulse.data.schemas import SCHEMA
from marketpulse.data.validation import coerce_actions


@dataclass(frozen=True)
class IngestConfig:
    # Raw dump: .csv, .csv.gz or .parquet
    source_path: Path = Path("data/external/actions.csv.gz")

    # Warehouse database holding the `action` table and all derived relations
    db_path: Path = Path("data/warehouse/marketpulse.duckdb")
    table: str = "action"

    # CHECKPOINT after load so storage statistics/compression are refreshed
    refresh_statistics: bool = True

    threads: int = 4
    tmp_dir: Path = Path("data/interim/duckdb_tmp")


class EventStoreError(RuntimeError):
    pass


def _log(msg: str) -> None:
    print(msg, flush=True)


def _ensure_exists(path: Path) -> None:
    if not path.exists():
        raise EventStoreError(f"Required path not found: {path}")


def connect(db_path: Path | str, *, threads: int = 4, tmp_dir: Optional[Path] = None,
            read_only: bool = False) -> duckdb.DuckDBPyConnection:
    """Open the warehouse (":memory:" is allowed for tests)."""
    db = str(db_path)
    if db != ":memory:":
        p = Path(db)
        if read_only:
            _ensure_exists(p)
        else:
            p.parent.mkdir(parents=True, exist_ok=True)
        db = p.as_posix()

    con = duckdb.connect(database=db, read_only=read_only)
    con.execute(f"PRAGMA threads={threads};")
    if tmp_dir is not None:
        tmp_dir.mkdir(parents=True, exist_ok=True)
        con.execute(f"PRAGMA temp_directory='{tmp_dir.as_posix()}';")
    return con


def _source_relation(path: Path) -> str:
    name = path.name.lower()
    if name.endswith(".parquet"):
        return f"read_parquet('{path.as_posix()}')"
    if name.endswith(".csv") or name.endswith(".csv.gz"):
        # gzip is detected from the extension
        return f"read_csv_auto('{path.as_posix()}', header=true)"
    raise EventStoreError(f"Unsupported action dump format: {path}")


def _cast_select(src: str) -> str:
    """SELECT over `src` casting every action column to its stored type."""
    return f"""
        SELECT
            CAST({SCHEMA.USER_ID} AS VARCHAR)       AS {SCHEMA.USER_ID},
            CAST({SCHEMA.ACTION_TYPE} AS VARCHAR)   AS {SCHEMA.ACTION_TYPE},
            CAST({SCHEMA.ACTION_TS} AS TIMESTAMP)   AS {SCHEMA.ACTION_TS},
            CAST({SCHEMA.ITEM_ID} AS VARCHAR)       AS {SCHEMA.ITEM_ID},
            CAST({SCHEMA.DEVICE} AS VARCHAR)        AS {SCHEMA.DEVICE},
            CAST({SCHEMA.B2C} AS BOOLEAN)           AS {SCHEMA.B2C}
        FROM {src}
    """


def load_actions(con: duckdb.DuckDBPyConnection, source_path: Path, *, table: str = "action") -> int:
    """
    Bulk-load a raw action dump into `table`, replacing any previous contents.
    Returns the number of rows loaded.
    """
    _ensure_exists(source_path)
    con.execute(f"CREATE OR REPLACE TABLE {table} AS {_cast_select(_source_relation(source_path))};")
    return int(con.execute(f"SELECT COUNT(*) FROM {table};").fetchone()[0])


def register_actions(con: duckdb.DuckDBPyConnection, df: pd.DataFrame, *, table: str = "action") -> None:
    """Materialize an in-memory action frame as the `action` table (tests, notebooks)."""
    frame = df.copy()
    for col in (SCHEMA.DEVICE, SCHEMA.B2C):
        if col not in frame.columns:
            frame[col] = None
    frame = frame[list(SCHEMA.all_columns)]

    con.register("_actions_in", frame)
    try:
        con.execute(f"CREATE OR REPLACE TABLE {table} AS {_cast_select('_actions_in')};")
    finally:
        con.unregister("_actions_in")


def read_actions(con: duckdb.DuckDBPyConnection, *, table: str = "action") -> pd.DataFrame:
    """Read the full action snapshot as a validated, dtype-normalized frame."""
    exists = con.execute(
        "SELECT COUNT(*) FROM information_schema.tables WHERE table_name = ?;", [table]
    ).fetchone()[0]
    if not exists:
        raise EventStoreError(f"Event store has no '{table}' table. Run ingestion first.")

    cols = ", ".join(SCHEMA.all_columns)
    df = con.execute(f"SELECT {cols} FROM {table};").df()
    return coerce_actions(df)


def ingest(cfg: IngestConfig) -> int:
    _log("=== Ingestion: action dump -> event store ===")
    _log(f"[ingestion] source: {cfg.source_path}")
    _log(f"[ingestion] store : {cfg.db_path}")

    con = connect(cfg.db_path, threads=cfg.threads, tmp_dir=cfg.tmp_dir)
    try:
        n_rows = load_actions(con, cfg.source_path, table=cfg.table)
        if cfg.refresh_statistics:
            con.execute("CHECKPOINT;")
    finally:
        con.close()

    _log(f"[ingestion] done. total rows: {n_rows:,}")
    return n_rows
