from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import __version__
from .joiner import FeatureJoiner, load_feature_records
from .models import RemapConfig
from .plotting import plot_class_counts, plot_score_hist
from .report import render_report
from .resolver import resolve_mappings
from .seq_region import SeqRegionResolver
from .statistics import collect_pre_filter_statistics, write_statistics
from .utils import ensure_outdir, write_json

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShardPaths:
    """Input and output files of one shard."""

    mappings: Path
    failed_mappings: Path
    fasta: Path
    features: Path
    filtered_mappings: Path
    statistics: Path
    load_features: Path

    @classmethod
    def from_layout(
        cls,
        file_number: int | str,
        *,
        mapping_results_dir: str | Path,
        filtered_mappings_dir: str | Path,
        statistics_dir: str | Path,
        dump_features_dir: str | Path,
        load_features_dir: str | Path,
        fasta_files_dir: str | Path,
    ) -> "ShardPaths":
        """Paths following the directory layout of the remapping pipeline."""
        n = str(file_number)
        return cls(
            mappings=Path(mapping_results_dir) / f"mappings_{n}.txt",
            failed_mappings=Path(mapping_results_dir) / f"failed_mapping_{n}.txt",
            fasta=Path(fasta_files_dir) / f"{n}.fa",
            features=Path(dump_features_dir) / f"{n}.txt",
            filtered_mappings=Path(filtered_mappings_dir) / f"{n}.txt",
            statistics=Path(statistics_dir) / f"{n}.txt",
            load_features=Path(load_features_dir) / f"{n}.txt",
        )

    @classmethod
    def in_outdir(
        cls,
        outdir: str | Path,
        *,
        mappings: str | Path,
        failed_mappings: str | Path,
        fasta: str | Path,
        features: str | Path,
    ) -> "ShardPaths":
        outdir = Path(outdir)
        return cls(
            mappings=Path(mappings),
            failed_mappings=Path(failed_mappings),
            fasta=Path(fasta),
            features=Path(features),
            filtered_mappings=outdir / "filtered_mappings.txt",
            statistics=outdir / "statistics.txt",
            load_features=outdir / "load_features.txt",
        )

    @property
    def inputs(self) -> List[Path]:
        return [self.mappings, self.failed_mappings, self.fasta, self.features]

    @property
    def outputs(self) -> List[Path]:
        return [self.filtered_mappings, self.statistics, self.load_features]

    def check_inputs(self) -> None:
        missing = [str(p) for p in self.inputs if not p.is_file()]
        if missing:
            raise FileNotFoundError("Missing input file(s): " + ", ".join(missing))

    def outputs_exist(self) -> bool:
        return all(p.exists() for p in self.outputs)

    def to_dict(self) -> Dict[str, str]:
        return {k: str(v) for k, v in asdict(self).items()}


def _write_report(report_dir: Path, summary: Dict[str, Any]) -> Path:
    report_dir = ensure_outdir(report_dir)
    write_json(report_dir / "summary.json", summary)

    plots_dir = report_dir / "plots"
    class_counts_png = plots_dir / "class_counts.png"
    score_png = plots_dir / "score_hist.png"
    plot_class_counts(statistics=summary["statistics"], out_png=class_counts_png)
    plot_score_hist(
        bin_edges=summary["score_hist"]["bin_edges"],
        counts=summary["score_hist"]["counts"],
        out_png=score_png,
    )
    plots_rel = {
        "class_counts": str(Path("plots") / class_counts_png.name),
        "score_hist": str(Path("plots") / score_png.name),
    }
    return render_report(outdir=report_dir, version=__version__, summary=summary, plots=plots_rel)


def run_shard(
    paths: ShardPaths,
    config: RemapConfig,
    seq_regions: SeqRegionResolver,
    *,
    shard: str = "",
    report_dir: Optional[str | Path] = None,
) -> Dict[str, Any]:
    """Filter the mappings of one shard and build its load-ready feature rows.

    Passes, in order: pre-filter counts, resolution (writes the filtered
    mapping file), statistics, join (writes the load-ready file). Any error
    aborts the shard; outputs written before the error must not be loaded.
    """
    t0 = time.time()
    paths.check_inputs()
    for p in paths.outputs:
        ensure_outdir(p.parent)

    stats = collect_pre_filter_statistics(paths.mappings, paths.failed_mappings, paths.fasta)

    result = resolve_mappings(paths.mappings, paths.filtered_mappings, config)
    stats = stats.merge_resolution(result)
    write_statistics(paths.statistics, stats)

    features = load_feature_records(paths.features)
    joiner = FeatureJoiner(features, seq_regions, mode=config.mode)
    load_rows = joiner.join(paths.filtered_mappings, paths.load_features)

    summary: Dict[str, Any] = {
        "shard": shard or paths.mappings.stem,
        "version": __version__,
        "config": {
            "mode": config.mode,
            "score_threshold": config.score_threshold,
            "use_prior_for_filtering": config.use_prior_for_filtering,
        },
        "paths": paths.to_dict(),
        "statistics": stats.as_dict(),
        "filtered_rows": len(result.placements),
        "load_rows": load_rows,
        "score_hist": result.score_histogram(),
        "runtime_seconds": float(time.time() - t0),
    }

    if report_dir is not None:
        report_path = _write_report(Path(report_dir), summary)
        logger.info("Report written: %s", report_path)
        summary["report"] = str(report_path)

    return summary
