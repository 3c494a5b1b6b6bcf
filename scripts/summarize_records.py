"""
Summarize the long-orbit log written during a run.

Each line of the .jsonl file is {"point": [re, im], "iterations": n}.

Run:
    python scripts/summarize_records.py output/buddhabrot_20240101_120000_points.jsonl
    python scripts/summarize_records.py LOG --top 20 --csv results/top_orbits.csv
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import pandas as pd


def load_records(path: str | Path) -> pd.DataFrame:
    if Path(path).stat().st_size == 0:
        return pd.DataFrame(columns=["re", "im", "iterations"])
    df = pd.read_json(path, lines=True, precise_float=True)
    df["re"] = df["point"].str[0].astype(float)
    df["im"] = df["point"].str[1].astype(float)
    return df[["re", "im", "iterations"]]


def main():
    parser = argparse.ArgumentParser(description="Summarize a Buddhabrot long-orbit log")
    parser.add_argument("log", type=str)
    parser.add_argument("--top", type=int, default=10, help="show the N longest orbits")
    parser.add_argument("--csv", type=str, default=None, help="write the top N orbits as CSV")
    args = parser.parse_args()

    df = load_records(args.log)
    print(f"Records: {len(df)}")
    if df.empty:
        return 0

    print("\nIteration counts:")
    print(df["iterations"].describe())

    top = df.sort_values("iterations", ascending=False).head(args.top)
    print(f"\nLongest {len(top)} orbits:")
    print(top.to_string(index=False))

    if args.csv:
        out = Path(args.csv)
        out.parent.mkdir(parents=True, exist_ok=True)
        top.to_csv(out, index=False)
        print(f"\nSaved {out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
