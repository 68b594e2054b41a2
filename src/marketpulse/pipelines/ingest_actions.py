from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional, Sequence

from marketpulse.data.ingestion import IngestConfig, connect, ingest
from marketpulse.data.verification import action_type_distribution, latest_actions, row_count


def _log(msg: str) -> None:
    print(msg, flush=True)


def verify(cfg: IngestConfig, *, top_n: int = 100) -> int:
    """Post-load sanity checks: row count, newest actions, action type mix."""
    con = connect(cfg.db_path, threads=cfg.threads, read_only=True)
    try:
        n = row_count(con, cfg.table)
        latest = latest_actions(con, top_n, cfg.table)
        mix = action_type_distribution(con, cfg.table)
    finally:
        con.close()

    _log(f"[verify] {cfg.table}: {n:,} rows")
    _log(f"[verify] newest {len(latest)} actions:")
    _log(latest.head(10).to_string(index=False))
    _log("[verify] action types:")
    _log(mix.to_string(index=False))
    return n


def main(argv: Optional[Sequence[str]] = None) -> None:
    ap = argparse.ArgumentParser(description="Load a raw action dump into the event store.")
    ap.add_argument("--source", type=Path, default=IngestConfig.source_path)
    ap.add_argument("--db", type=Path, default=IngestConfig.db_path)
    ap.add_argument("--top-n", type=int, default=100)
    ap.add_argument("--skip-verify", action="store_true")
    args = ap.parse_args(argv)

    cfg = IngestConfig(source_path=args.source, db_path=args.db)
    ingest(cfg)
    if not args.skip_verify:
        verify(cfg, top_n=args.top_n)


if __name__ == "__main__":
    main()
