from __future__ import annotations
import argparse
from pathlib import Path

import numpy as np
import pandas as pd

DEVICES = ["an", "io", "wb"]

def make_actions(n_users: int, n_posts: int, start: str, days: int, seed: int) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    t0 = pd.Timestamp(start)
    users = np.array([f"u{i:05d}" for i in range(n_users)])

    post_users = rng.choice(users, size=n_posts)
    post_ts = t0 + pd.to_timedelta(rng.integers(0, days * 86400, size=n_posts), unit="s")
    item_ids = np.array([f"i{i:06d}" for i in range(n_posts)])

    # replies: Poisson count per item, latency skewed towards the first days
    n_replies = rng.poisson(2.0, size=n_posts)
    reply_item = np.repeat(item_ids, n_replies)
    reply_base = np.repeat(post_ts.values, n_replies)
    reply_lag = pd.to_timedelta(rng.exponential(2.5 * 86400, size=len(reply_item)).astype("int64"), unit="s")
    reply_users = rng.choice(users, size=len(reply_item))

    # some noise: views (other action type) and orphaned replies
    n_views = n_posts
    view_ts = t0 + pd.to_timedelta(rng.integers(0, days * 86400, size=n_views), unit="s")

    frames = [
        pd.DataFrame({"user_id": post_users, "action_type": "P", "action_ts": post_ts, "item_id": item_ids}),
        pd.DataFrame({"user_id": reply_users, "action_type": "R",
                      "action_ts": pd.DatetimeIndex(reply_base) + reply_lag, "item_id": reply_item}),
        pd.DataFrame({"user_id": rng.choice(users, size=n_views), "action_type": "V",
                      "action_ts": view_ts, "item_id": rng.choice(item_ids, size=n_views)}),
        pd.DataFrame({"user_id": rng.choice(users, size=10), "action_type": "R",
                      "action_ts": t0 + pd.to_timedelta(rng.integers(0, days, size=10), unit="D"),
                      "item_id": [f"x{i:03d}" for i in range(10)]}),
    ]
    df = pd.concat(frames, ignore_index=True)
    df["device"] = rng.choice(DEVICES, size=len(df))
    df["b2c"] = rng.random(len(df)) < 0.8
    return df.sort_values(["action_ts", "user_id"]).reset_index(drop=True)

def main(out: Path, n_users: int, n_posts: int, start: str, days: int, seed: int) -> None:
    out.parent.mkdir(parents=True, exist_ok=True)
    df = make_actions(n_users, n_posts, start, days, seed)
    df.to_csv(out, index=False, compression="gzip")
    print(f"[sample] wrote {len(df):,} actions -> {out}")

if __name__ == "__main__":
    ap = argparse.ArgumentParser()
    ap.add_argument("--out", type=Path, default=Path("data/external/actions.csv.gz"))
    ap.add_argument("--users", type=int, default=2_000)
    ap.add_argument("--posts", type=int, default=10_000)
    ap.add_argument("--start", type=str, default="2015-09-01")
    ap.add_argument("--days", type=int, default=150)
    ap.add_argument("--seed", type=int, default=42)
    args = ap.parse_args()
    main(args.out, args.users, args.posts, args.start, args.days, args.seed)
