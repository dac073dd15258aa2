#!/usr/bin/env python3
"""
plot_dispatch_results.py

Bar charts of where tasks ended up (device vs cloud) and the mean number of
hops, one group per results CSV written by run_dispatch.py.

Reads:
results/dispatch/<scenario>_<protocol>_metrics.csv
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List

import numpy as np
import pandas as pd
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

REQUIRED_COLUMNS = ("Placement", "Hops")


def find_metric_files(results_dir: Path) -> List[Path]:
    return sorted(results_dir.glob("*_metrics.csv"), key=lambda p: p.name)


def load_placement_table(paths: List[Path]) -> pd.DataFrame:
    """
    rows = runs (file stem without the _metrics suffix)
    cols = Device, Cloud, MeanHops
    """
    rows = {}
    for path in paths:
        df = pd.read_csv(path)
        missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"Missing columns in {path}: {missing}")
        placement = df["Placement"]
        rows[path.stem.removesuffix("_metrics")] = {
            "Device": float((placement == "device").mean()) if len(df) else 0.0,
            "Cloud": float((placement == "cloud").mean()) if len(df) else 0.0,
            "MeanHops": float(pd.to_numeric(df["Hops"], errors="coerce").mean()) if len(df) else 0.0,
        }
    return pd.DataFrame.from_dict(rows, orient="index")


def plot_placement(table: pd.DataFrame, out_path: Path, dpi: int = 180):
    runs = table.index.tolist()
    x = np.arange(len(runs))
    width = 0.4

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(max(10, 1.8 * len(runs)), 5))

    ax1.bar(x - width / 2, table["Device"].values, width, label="Device")
    ax1.bar(x + width / 2, table["Cloud"].values, width, label="Cloud")
    ax1.set_title("Placement ratio")
    ax1.set_ylabel("Share of tasks")
    ax1.set_ylim(0, 1)
    ax1.legend()

    ax2.bar(x, table["MeanHops"].values, width * 1.5, color="tab:gray")
    ax2.set_title("Mean station hops per task")

    for ax in (ax1, ax2):
        ax.set_xticks(x)
        ax.set_xticklabels(runs, rotation=30, ha="right")
        ax.grid(True, axis="y", alpha=0.3)

    fig.tight_layout()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    print(f"[plot_dispatch_results] Saved plot to {out_path}")


def main():
    parser = argparse.ArgumentParser(description="Plot edge dispatch results")
    parser.add_argument("--results-dir", type=str, default="results/dispatch")
    parser.add_argument("--out", type=str, default="results/dispatch/placement.png")
    args = parser.parse_args()

    results_dir = Path(args.results_dir)
    if not results_dir.exists():
        raise FileNotFoundError(f"Results dir not found: {results_dir}")

    paths = find_metric_files(results_dir)
    if not paths:
        raise FileNotFoundError(f"No *_metrics.csv files in {results_dir}")

    table = load_placement_table(paths)
    print(table.to_string(float_format=lambda v: f"{v:.3f}"))
    plot_placement(table, Path(args.out))


if __name__ == "__main__":
    main()
