from __future__ import annotations

import datetime as dt
from pathlib import Path

import pandas as pd
import pytest

from marketpulse.data.ingestion import connect
from marketpulse.data.publish import StorageLayout, parquet_paths, publish_relations


def _segments(labels):
    return pd.DataFrame({"user_id": [f"u{i}" for i in range(len(labels))], "segment": labels})


def test_publish_replaces_previous_version():
    con = connect(":memory:")
    publish_relations(con, {"user_segment": _segments(["Lost", "Trial", "Repeat"])})
    counts = publish_relations(con, {"user_segment": _segments(["Novice"])})

    assert counts == {"user_segment": 1}
    assert con.execute("SELECT COUNT(*) FROM user_segment;").fetchone()[0] == 1


def test_failed_publish_keeps_old_relations():
    con = connect(":memory:")
    publish_relations(con, {"user_segment": _segments(["Lost", "Trial"])})

    broken = pd.DataFrame({"item_id": ["I1"]})  # missing post_date
    with pytest.raises(ValueError):
        publish_relations(con, {"user_segment": _segments(["Novice"]), "items": broken})

    rows = con.execute("SELECT segment FROM user_segment ORDER BY user_id;").fetchall()
    assert [r[0] for r in rows] == ["Lost", "Trial"]
    tables = {r[0] for r in con.execute("SELECT table_name FROM information_schema.tables;").fetchall()}
    assert "items" not in tables


def test_published_columns_follow_relation_order():
    con = connect(":memory:")
    shuffled = _segments(["Lost"])[["segment", "user_id"]]
    publish_relations(con, {"user_segment": shuffled})

    cols = [r[0] for r in con.execute("DESCRIBE user_segment;").fetchall()]
    assert cols == ["user_id", "segment"]


def test_layout_order_by():
    layout = StorageLayout()
    assert layout.order_by("fact_liquidity") == " ORDER BY post_date"
    assert layout.order_by("unknown") == ""
    assert layout.as_dict()["dist_keys"]["items"] == "item_id"


def test_repeated_export_swaps_directory(sandbox: Path):
    con = connect(":memory:")
    out_dir = sandbox / "marts"

    publish_relations(con, {"user_segment": _segments(["Lost", "Trial"])}, export_dir=out_dir)
    publish_relations(con, {"user_segment": _segments(["Novice"])}, export_dir=out_dir)
    paths = parquet_paths(["user_segment"], out_dir)

    df = pd.read_parquet(paths["user_segment"])
    assert df["segment"].tolist() == ["Novice"]
    assert not (sandbox / "marts.staging").exists()
    assert not (sandbox / "marts.old").exists()


def test_day_columns_are_published_as_date():
    con = connect(":memory:")
    items = pd.DataFrame({"item_id": ["I1", "I2"], "post_date": pd.to_datetime(["2016-01-02", "2016-01-01"])})
    publish_relations(con, {"items": items})

    types = {r[0]: r[1] for r in con.execute("DESCRIBE items;").fetchall()}
    assert types["post_date"] == "DATE"
    assert types["item_id"] == "VARCHAR"
    rows = con.execute("SELECT item_id, post_date FROM items ORDER BY post_date;").fetchall()
    assert rows == [("I2", dt.date(2016, 1, 1)), ("I1", dt.date(2016, 1, 2))]


def test_publish_with_export_dir_swaps_files_after_commit(sandbox: Path):
    con = connect(":memory:")
    out_dir = sandbox / "marts"

    publish_relations(con, {"user_segment": _segments(["Lost", "Trial"])}, export_dir=out_dir)

    df = pd.read_parquet(out_dir / "user_segment.parquet")
    assert df["segment"].tolist() == ["Lost", "Trial"]
    assert not (sandbox / "marts.staging").exists()


def test_failed_export_rolls_back_tables_and_keeps_old_files(sandbox: Path):
    con = connect(":memory:")
    out_dir = sandbox / "marts"
    publish_relations(con, {"user_segment": _segments(["Lost", "Trial"])}, export_dir=out_dir)

    # a plain file where the staging directory should go makes the export fail
    (sandbox / "marts.staging").write_text("blocked", encoding="utf-8")
    with pytest.raises(FileExistsError):
        publish_relations(con, {"user_segment": _segments(["Novice"])}, export_dir=out_dir)

    rows = con.execute("SELECT segment FROM user_segment ORDER BY user_id;").fetchall()
    assert [r[0] for r in rows] == ["Lost", "Trial"]
    df = pd.read_parquet(out_dir / "user_segment.parquet")
    assert df["segment"].tolist() == ["Lost", "Trial"]
