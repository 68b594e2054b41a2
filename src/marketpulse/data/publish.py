from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

import duckdb
import pandas as pd

from marketpulse.common.io import swap_directory
from marketpulse.data.schemas import DATE_COLUMNS, OUTPUT_COLUMNS


def _default_sort_keys() -> Dict[str, Tuple[str, ...]]:
    return {
        "user_segment": ("segment", "user_id"),
        "items": ("post_date", "item_id"),
        "dates": ("dates_datekey",),
        "fact_item_liquidity": ("post_date", "item_id"),
        "fact_liquidity": ("post_date",),
    }


def _default_dist_keys() -> Dict[str, str]:
    return {
        "items": "item_id",
        "dates": "dates_datekey",
        "fact_item_liquidity": "item_id",
        "fact_liquidity": "post_date",
    }


@dataclass(frozen=True)
class StorageLayout:
    """
    Physical layout hints per relation.
    sort_keys are applied as ORDER BY when a relation is materialized;
    dist_keys have no DuckDB equivalent and are only recorded in run metadata.
    """
    sort_keys: Dict[str, Tuple[str, ...]] = field(default_factory=_default_sort_keys)
    dist_keys: Dict[str, str] = field(default_factory=_default_dist_keys)

    def order_by(self, relation: str) -> str:
        keys = self.sort_keys.get(relation, ())
        return f" ORDER BY {', '.join(keys)}" if keys else ""

    def as_dict(self) -> Dict[str, Dict[str, object]]:
        return {"sort_keys": {k: list(v) for k, v in self.sort_keys.items()}, "dist_keys": dict(self.dist_keys)}


def _check_columns(name: str, df: pd.DataFrame) -> pd.DataFrame:
    expected = OUTPUT_COLUMNS.get(name)
    if expected is None:
        return df
    missing = [c for c in expected if c not in df.columns]
    if missing:
        raise ValueError(f"Relation '{name}' is missing columns: {missing}")
    return df[list(expected)]


def _select_list(columns) -> str:
    return ", ".join(f"CAST({c} AS DATE) AS {c}" if c in DATE_COLUMNS else c for c in columns)


def _staging_dir(out_dir: Path) -> Path:
    return out_dir.with_name(out_dir.name + ".staging")


def stage_parquet(
    con: duckdb.DuckDBPyConnection,
    names: Tuple[str, ...] | list[str],
    out_dir: Path,
    layout: Optional[StorageLayout] = None,
) -> Path:
    """COPY relations into the staging directory next to `out_dir`; nothing under `out_dir` changes."""
    layout = layout or StorageLayout()
    staging = _staging_dir(out_dir)
    staging.mkdir(parents=True, exist_ok=True)
    for old in staging.glob("*.parquet"):
        old.unlink()

    for name in names:
        con.execute(
            f"""
            COPY (SELECT * FROM {name}{layout.order_by(name)})
            TO '{(staging / f"{name}.parquet").as_posix()}'
            (FORMAT PARQUET, COMPRESSION ZSTD);
            """
        )
    return staging


def publish_relations(
    con: duckdb.DuckDBPyConnection,
    relations: Mapping[str, pd.DataFrame],
    layout: Optional[StorageLayout] = None,
    *,
    export_dir: Optional[Path] = None,
) -> Dict[str, int]:
    """
    Replace every relation in one transaction: either all new versions become
    visible or none do. Returns row counts per relation.

    With `export_dir`, parquet copies are staged before COMMIT and swapped in
    after it, so a failed export leaves both the tables and the files untouched.
    """
    layout = layout or StorageLayout()
    counts: Dict[str, int] = {}
    staging = _staging_dir(export_dir) if export_dir is not None else None

    con.execute("BEGIN TRANSACTION;")
    try:
        for name, df in relations.items():
            frame = _check_columns(name, df)
            con.register("_staging", frame)
            try:
                con.execute(
                    f"CREATE OR REPLACE TABLE {name} AS "
                    f"SELECT {_select_list(frame.columns)} FROM _staging{layout.order_by(name)};"
                )
            finally:
                con.unregister("_staging")
            counts[name] = int(len(frame))
        if export_dir is not None:
            stage_parquet(con, list(relations), export_dir, layout)
        con.execute("COMMIT;")
    except Exception:
        con.execute("ROLLBACK;")
        if staging is not None and staging.is_dir():
            shutil.rmtree(staging)
        raise

    if staging is not None:
        swap_directory(staging, export_dir)
    return counts


def parquet_paths(names: Tuple[str, ...] | list[str], out_dir: Path) -> Dict[str, Path]:
    return {name: out_dir / f"{name}.parquet" for name in names}
