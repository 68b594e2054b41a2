# src/marketpulse/pipelines/build_marts.py
from __future__ import annotations

import argparse
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import pandas as pd

from marketpulse.common.io import write_json
from marketpulse.common.time import to_day, utc_now
from marketpulse.data.ingestion import connect, read_actions
from marketpulse.data.publish import StorageLayout, parquet_paths, publish_relations
from marketpulse.data.schemas import OUTPUT_COLUMNS
from marketpulse.liquidity.aggregate import DEFAULT_WINDOWS, LiquidityWindows
from marketpulse.liquidity.items import build_dates_dimension
from marketpulse.pipelines.build_liquidity import build_liquidity_relations
from marketpulse.pipelines.build_segments import build_segment_relations
from marketpulse.segments.classify import DEFAULT_RULES, SegmentRules


@dataclass(frozen=True)
class MartsConfig:
    # Snapshot horizon for every recency/tenure computation. No default on purpose.
    reference_date: Optional[str] = None

    # Event store / warehouse
    db_path: Path = Path("data/warehouse/marketpulse.duckdb")
    action_table: str = "action"

    # Outputs
    out_dir: Path = Path("outputs/marts")
    meta_path: Path = Path("outputs/marts_meta.json")
    write_parquet: bool = True

    rules: SegmentRules = DEFAULT_RULES
    windows: LiquidityWindows = DEFAULT_WINDOWS
    layout: StorageLayout = field(default_factory=StorageLayout)

    # DuckDB tuning
    threads: int = 4
    tmp_dir: Path = Path("data/interim/duckdb_tmp")


class PipelineConfigError(ValueError):
    pass


def _log(msg: str) -> None:
    print(msg, flush=True)


def _resolve_reference_date(cfg: MartsConfig) -> pd.Timestamp:
    if cfg.reference_date is None or str(cfg.reference_date).strip() == "":
        raise PipelineConfigError("reference_date is required (YYYY-MM-DD); refusing to guess a snapshot horizon.")
    try:
        return to_day(cfg.reference_date)
    except (ValueError, TypeError) as e:
        raise PipelineConfigError(f"reference_date is not a valid date: {cfg.reference_date!r}") from e


def build_relations(
    actions: pd.DataFrame,
    reference_date: pd.Timestamp,
    cfg: MartsConfig,
) -> tuple[Dict[str, pd.DataFrame], Dict[str, Any]]:
    """Both pipelines over one in-memory snapshot (no store access)."""
    seg_rel, seg_meta = build_segment_relations(actions, reference_date, cfg.rules)
    liq_rel, liq_meta = build_liquidity_relations(actions, cfg.windows)
    return {**seg_rel, **liq_rel}, {"segments": seg_meta, "liquidity": liq_meta}


def run(cfg: MartsConfig) -> Dict[str, Any]:
    ref = _resolve_reference_date(cfg)
    cfg.rules.validate()

    _log("=== Marts: user segments + item liquidity ===")
    _log(f"[marts] reference date: {ref.date()}")

    con = connect(cfg.db_path, threads=cfg.threads, tmp_dir=cfg.tmp_dir)
    try:
        _log("[1/4] Reading action snapshot")
        actions = read_actions(con, table=cfg.action_table)
        _log(f"[marts] actions: {len(actions):,}")

        _log("[2/4] Building segments and liquidity")
        relations, pipeline_meta = build_relations(actions, ref, cfg)
        relations["dates"] = build_dates_dimension(con, table=cfg.action_table)

        ordered = {name: relations[name] for name in OUTPUT_COLUMNS}
        export_dir = cfg.out_dir if cfg.write_parquet else None
        _log("[3/4] Publishing relations (single transaction)")
        counts = publish_relations(con, ordered, cfg.layout, export_dir=export_dir)

        written: Dict[str, str] = {}
        if export_dir is not None:
            _log(f"[4/4] Parquet staged before commit, swapped into {export_dir}")
            written = {k: str(v) for k, v in parquet_paths(list(ordered), export_dir).items()}
        else:
            _log("[4/4] Parquet export disabled")
    finally:
        con.close()

    meta: Dict[str, Any] = {
        "reference_date": str(ref.date()),
        "db_path": str(cfg.db_path),
        "action_table": cfg.action_table,
        "n_actions": int(len(actions)),
        "row_counts": counts,
        "parquet": written,
        "layout": cfg.layout.as_dict(),
        **pipeline_meta,
        "built_at": utc_now().isoformat(),
    }
    write_json(cfg.meta_path, meta)

    for name, n in counts.items():
        _log(f"✅ {name}: {n:,} rows")
    _log(f"✅ Meta : {cfg.meta_path}")
    return meta


def parse_args(argv: Optional[Sequence[str]] = None) -> MartsConfig:
    ap = argparse.ArgumentParser(description="Build user segments and liquidity marts from the action log.")
    ap.add_argument("--reference-date", type=str, default=None, help="snapshot horizon, YYYY-MM-DD (required)")
    ap.add_argument("--db", type=Path, default=MartsConfig.db_path)
    ap.add_argument("--out-dir", type=Path, default=MartsConfig.out_dir)
    ap.add_argument("--meta", type=Path, default=MartsConfig.meta_path)
    ap.add_argument("--no-parquet", action="store_true", help="only publish tables inside the warehouse")
    ap.add_argument("--threads", type=int, default=MartsConfig.threads)
    args = ap.parse_args(argv)

    return replace(
        MartsConfig(),
        reference_date=args.reference_date,
        db_path=args.db,
        out_dir=args.out_dir,
        meta_path=args.meta,
        write_parquet=not args.no_parquet,
        threads=args.threads,
    )


def main(argv: Optional[Sequence[str]] = None) -> None:
    run(parse_args(argv))


if __name__ == "__main__":
    main()
