"""
Preview a raw count grid (.npy written with output.save_counts: true).

Plots log(1 + count) with the histogram's complex-plane extent on the axes.

Run:
    python scripts/plot_density.py output/buddhabrot_20240101_120000.npy \
        --xmin -2 --xmax 2 --ymin -2 --ymax 2 --outfile figures/preview.png
"""

import argparse
from pathlib import Path

import numpy as np
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("counts", type=str)
    parser.add_argument("--xmin", type=float, default=-2.0)
    parser.add_argument("--xmax", type=float, default=2.0)
    parser.add_argument("--ymin", type=float, default=-2.0)
    parser.add_argument("--ymax", type=float, default=2.0)
    parser.add_argument("--outfile", type=str, required=True)
    args = parser.parse_args()

    counts = np.load(args.counts)
    density = np.log1p(counts.astype(np.float64))

    out_path = Path(args.outfile)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    plt.figure(figsize=(10, 10))
    # row 0 is the imaginary minimum
    plt.imshow(density, cmap="gray", origin="lower",
               extent=[args.xmin, args.xmax, args.ymin, args.ymax])
    plt.title(f"Orbit density ({counts.shape[1]}x{counts.shape[0]}, {int(counts.sum())} hits)")
    plt.xlabel("Re(z)")
    plt.ylabel("Im(z)")
    plt.gca().set_aspect("equal", adjustable="box")
    plt.savefig(out_path, dpi=150, bbox_inches="tight")
    print(f"[run] saved {out_path}")


if __name__ == "__main__":
    main()
