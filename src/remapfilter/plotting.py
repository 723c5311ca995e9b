from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List

import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)


def plot_score_hist(
    *,
    bin_edges: List[float],
    counts: List[int],
    out_png: str | Path,
    title: str = "Alignment score of kept placements",
) -> None:
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    widths = [bin_edges[i + 1] - bin_edges[i] for i in range(len(counts))]
    centers = [bin_edges[i] + widths[i] / 2.0 for i in range(len(counts))]

    plt.figure()
    plt.bar(centers, counts, width=widths, align="center")
    plt.xlabel("Relative alignment score")
    plt.ylabel("Placement count")
    plt.title(title)
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()


def plot_class_counts(
    *,
    statistics: Dict[str, int],
    out_png: str | Path,
    title: str = "Mapping outcome per variant",
) -> None:
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    labels = ["Unique", "Multi", "Failed", "Unmapped"]
    values = [
        int(statistics.get("stats_unique_map", 0)),
        int(statistics.get("stats_multi_map", 0)),
        int(statistics.get("stats_failed", 0)),
        int(statistics.get("pre_count_unmapped", 0)),
    ]

    plt.figure()
    plt.bar(labels, values)
    plt.ylabel("Variant count")
    plt.title(title)
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()
