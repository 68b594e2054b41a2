from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from marketpulse.common.io import write_json
from marketpulse.reporting.summary import SummaryPaths, build_summary_table, overall_liquidity, segment_shares


def test_summary_never_crashes_without_artifacts(sandbox: Path):
    paths = SummaryPaths(
        marts_meta=sandbox / "missing.json",
        user_segment=sandbox / "a.parquet",
        fact_item_liquidity=sandbox / "b.parquet",
        fact_liquidity=sandbox / "c.parquet",
    )
    df = build_summary_table(paths)
    assert list(df.columns) == ["Section", "Metric", "Value"]
    assert len(df) > 0


def test_overall_liquidity_is_item_weighted(sandbox: Path):
    p = sandbox / "fact_liquidity.parquet"
    pd.DataFrame(
        {
            "post_date": pd.to_datetime(["2016-01-01", "2016-01-02"]),
            "items_posted": [3, 1],
            "liquid_1d_count": [1, 1],
            "liquid_3in7d_count": [2, 0],
            "liquid_5in7d_count": [1, 0],
        }
    ).to_parquet(p, index=False)

    out = overall_liquidity(p)

    assert out["items_posted"] == 4
    assert out["rate_1d"] == pytest.approx(0.5)
    assert out["rate_3in7d"] == pytest.approx(0.5)
    assert out["rate_5in7d"] == pytest.approx(0.25)


def test_summary_reads_segments_and_data_quality(sandbox: Path):
    seg_path = sandbox / "user_segment.parquet"
    pd.DataFrame({"user_id": ["a", "b"], "segment": ["Lost", "Trial"]}).to_parquet(seg_path, index=False)
    meta_path = sandbox / "marts_meta.json"
    write_json(meta_path, {"reference_date": "2016-02-01", "liquidity": {"n_orphaned_replies": 7}})

    shares = segment_shares(seg_path).set_index("segment")
    assert shares.loc["Lost", "relative_size"] == pytest.approx(0.5)

    df = build_summary_table(
        SummaryPaths(
            marts_meta=meta_path,
            user_segment=seg_path,
            fact_item_liquidity=sandbox / "none.parquet",
            fact_liquidity=sandbox / "none.parquet",
        )
    )
    values = dict(zip(df["Metric"], df["Value"]))
    assert values["reference_date"] == "2016-02-01"
    assert values["n_orphaned_replies"] == 7
