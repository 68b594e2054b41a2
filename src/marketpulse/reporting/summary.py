# src/marketpulse/reporting/summary.py
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import pandas as pd

from marketpulse.segments.classify import segment_distribution


# ============================================================
# Marts summary
# - Reads only produced artifacts (parquet/json)
# - Never crashes if a file is missing
# - Prints a plain-text table for the run log
# ============================================================

@dataclass(frozen=True)
class SummaryPaths:
    marts_meta: Path = Path("outputs/marts_meta.json")
    user_segment: Path = Path("outputs/marts/user_segment.parquet")
    fact_item_liquidity: Path = Path("outputs/marts/fact_item_liquidity.parquet")
    fact_liquidity: Path = Path("outputs/marts/fact_liquidity.parquet")


# ----------------------------
# helpers
# ----------------------------
def _read_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        return {}


def _safe_parquet_shape(path: Path) -> Optional[Tuple[int, int]]:
    if not path.exists():
        return None
    df = pd.read_parquet(path, engine="pyarrow")
    return df.shape


def _fmt3(x: Any) -> Any:
    if isinstance(x, float):
        return float(f"{x:.6g}")
    return x


def segment_shares(path: Path) -> pd.DataFrame:
    """Relative size of each segment, read back from the published user_segment relation."""
    if not path.exists():
        return pd.DataFrame(columns=["segment", "n_users", "relative_size"])
    return segment_distribution(pd.read_parquet(path, columns=["segment"], engine="pyarrow"))


def overall_liquidity(path: Path) -> Dict[str, Optional[float]]:
    """Item-weighted liquidity rates over every post day."""
    if not path.exists():
        return {"items_posted": None, "rate_1d": None, "rate_3in7d": None, "rate_5in7d": None}
    df = pd.read_parquet(path, engine="pyarrow")
    posted = int(df["items_posted"].sum())
    if posted == 0:
        return {"items_posted": 0, "rate_1d": None, "rate_3in7d": None, "rate_5in7d": None}
    return {
        "items_posted": posted,
        "rate_1d": float(df["liquid_1d_count"].sum() / posted),
        "rate_3in7d": float(df["liquid_3in7d_count"].sum() / posted),
        "rate_5in7d": float(df["liquid_5in7d_count"].sum() / posted),
    }


def build_summary_table(paths: SummaryPaths = SummaryPaths()) -> pd.DataFrame:
    meta = _read_json(paths.marts_meta)
    liq_meta = meta.get("liquidity", {})

    rows: list[tuple[str, str, Any]] = []

    rows.append(("Run", "reference_date", meta.get("reference_date")))
    rows.append(("Run", "n_actions", meta.get("n_actions")))

    rows.append(("Segments", "user_segment shape", _safe_parquet_shape(paths.user_segment)))
    for r in segment_shares(paths.user_segment).itertuples(index=False):
        rows.append(("Segments", r.segment, f"{int(r.n_users)} ({_fmt3(float(r.relative_size))})"))

    rows.append(("Liquidity", "fact_item_liquidity shape", _safe_parquet_shape(paths.fact_item_liquidity)))
    rows.append(("Liquidity", "fact_liquidity shape", _safe_parquet_shape(paths.fact_liquidity)))
    for k, v in overall_liquidity(paths.fact_liquidity).items():
        rows.append(("Liquidity", k, _fmt3(v)))

    for k in ["n_orphaned_replies", "n_negative_latency", "n_replyless_items"]:
        if k in liq_meta:
            rows.append(("Data quality", k, liq_meta.get(k)))

    df = pd.DataFrame(rows, columns=["Section", "Metric", "Value"])
    df["Value"] = df["Value"].apply(lambda x: "" if x is None else x)
    return df


def main() -> None:
    df = build_summary_table()
    print(df.to_string(index=False))


if __name__ == "__main__":
    main()
