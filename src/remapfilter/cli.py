from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .joiner import JoinConsistencyError
from .models import RemapConfig
from .query_key import MODE_ALIASES, MODE_STANDARD, MODES
from .pipeline import ShardPaths, run_shard
from .records import MalformedRecordError
from .seq_region import load_seq_region_table
from .toy_data import make_toy_data


def _setup_logging(verbosity: int, *, logfile: Optional[Path] = None) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    log_fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(level=level, format=log_fmt, stream=sys.stderr)

    if logfile is not None:
        logfile.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(logfile)
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(log_fmt))
        logging.getLogger().addHandler(fh)


def _path_exists(p: str) -> str:
    if not Path(p).exists():
        raise argparse.ArgumentTypeError(f"Path does not exist: {p}")
    return p


def _score_threshold(value: str) -> float:
    try:
        x = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Not a number: {value}") from None
    if not 0.0 <= x <= 1.0:
        raise argparse.ArgumentTypeError(f"Score threshold must be within [0, 1], got {value}")
    return x


def _log_path(outdir: Path, name: str) -> Path:
    return outdir / "logs" / name


def _handle_error(err: Exception, *, log_path: Optional[Path] = None) -> int:
    if isinstance(err, (MalformedRecordError, JoinConsistencyError)):
        msg = f"{err.__class__.__name__}: {err}\nThe shard's outputs are incomplete and must not be loaded."
    else:
        msg = f"{err.__class__.__name__}: {err}"

    sys.stderr.write(msg + "\n")
    if log_path is not None:
        sys.stderr.write(f"See log: {log_path}\n")
    return 2


def _add_filter_options(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--seq-regions",
        required=True,
        type=_path_exists,
        help="Two-column table: sequence name <TAB> seq_region_id on the new assembly.",
    )
    p.add_argument(
        "--score-threshold",
        type=_score_threshold,
        default=0.95,
        help="Minimum relative alignment score (0-1) for a placement to be kept.",
    )
    p.add_argument(
        "--use-prior-for-filtering",
        action="store_true",
        help="For multi-mapped variants, only consider placements on the original chromosome.",
    )
    p.add_argument(
        "--mode",
        choices=list(MODES) + sorted(MODE_ALIASES),
        default=MODE_STANDARD,
        help="standard: one query name per variant. "
        "multi-representation: several query names (versions/alleles) per vf_id.",
    )
    p.add_argument("--no-report", action="store_true", help="Do not write report.html / plots.")
    p.add_argument("--no-progress", action="store_true", help="Disable progress bars.")
    p.add_argument("--dry-run", action="store_true", help="Validate inputs and print planned outputs.")
    p.add_argument("--resume", action="store_true", help="Skip if outputs already exist.")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v/-vv).")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="remapfilter",
        description=(
            "remapfilter: resolve variant placements on a new genome assembly from flanking-sequence "
            "alignments, and build load-ready variation feature rows."
        ),
    )
    p.add_argument("--version", action="version", version=f"remapfilter {__version__}")

    sub = p.add_subparsers(dest="cmd", required=True)

    # -----------------
    # quickstart
    # -----------------
    sub.add_parser(
        "quickstart",
        help="Print ready-to-run recipes for common scenarios.",
    )

    # -----------------
    # make-toy-data
    # -----------------
    t = sub.add_parser(
        "make-toy-data",
        help="Generate a tiny shard (mappings, FASTA, feature dump, seq_region table) for demos/tests.",
    )
    t.add_argument("--outdir", required=True, help="Output directory for toy data.")
    t.add_argument("--dry-run", action="store_true", help="Validate paths without writing files.")

    # -----------------
    # filter
    # -----------------
    f = sub.add_parser(
        "filter",
        help="Filter one shard given explicit input files; outputs go into --outdir.",
    )
    f.add_argument("--mappings", required=True, type=_path_exists, help="Primary mapping file.")
    f.add_argument(
        "--failed-mappings", required=True, type=_path_exists, help="Failed mapping file."
    )
    f.add_argument(
        "--fasta", required=True, type=_path_exists, help="FASTA of the sequences sent to the aligner."
    )
    f.add_argument(
        "--features",
        required=True,
        type=_path_exists,
        help="Feature dump of the old assembly (key=value fields, tab-separated).",
    )
    f.add_argument("--outdir", required=True, help="Output directory.")
    _add_filter_options(f)

    # -----------------
    # shard
    # -----------------
    s = sub.add_parser(
        "shard",
        help="Filter shard N using the remapping pipeline directory layout.",
    )
    s.add_argument("--file-number", required=True, help="Shard number (N in mappings_N.txt).")
    s.add_argument("--mapping-results-dir", required=True, type=_path_exists)
    s.add_argument("--fasta-files-dir", required=True, type=_path_exists)
    s.add_argument("--dump-features-dir", required=True, type=_path_exists)
    s.add_argument("--filtered-mappings-dir", required=True)
    s.add_argument("--statistics-dir", required=True)
    s.add_argument("--load-features-dir", required=True)
    s.add_argument(
        "--outdir",
        default=None,
        help="Directory for logs and report (default: <statistics-dir>/report_<N>).",
    )
    _add_filter_options(s)

    return p


# -----------------
# Command handlers
# -----------------

def cmd_quickstart() -> int:
    lines = [
        "remapfilter quickstart (copy/paste):",
        "",
        "1) Try it on toy data:",
        "   remapfilter make-toy-data --outdir toy/",
        "   remapfilter filter \\",
        "     --mappings toy/mappings.txt \\",
        "     --failed-mappings toy/failed_mappings.txt \\",
        "     --fasta toy/input.fa \\",
        "     --features toy/features.txt \\",
        "     --seq-regions toy/seq_regions.tsv \\",
        "     --outdir results/",
        "   Outputs: results/filtered_mappings.txt, results/statistics.txt, results/load_features.txt",
        "",
        "2) One shard of a remapping run (standard mode, prefer original chromosome):",
        "   remapfilter shard --file-number 7 \\",
        "     --mapping-results-dir mapping_results/ --fasta-files-dir fasta_files/ \\",
        "     --dump-features-dir dump_features/ --filtered-mappings-dir filtered_mappings/ \\",
        "     --statistics-dir statistics/ --load-features-dir load_features/ \\",
        "     --seq-regions seq_regions.tsv --use-prior-for-filtering",
        "",
        "3) dbSNP-style input with several representations per variant:",
        "   remapfilter filter ... --mode multi-representation",
        "",
        "Tip: use --dry-run to validate inputs and print the planned outputs.",
    ]
    print("\n".join(lines))
    return 0


def cmd_make_toy_data(args: argparse.Namespace) -> int:
    outdir = Path(args.outdir).expanduser().resolve()
    if args.dry_run:
        print(f"Would write toy data into: {outdir}")
        return 0

    summary = make_toy_data(outdir=outdir)
    print(json.dumps(summary, indent=2))
    return 0


def _run(args: argparse.Namespace, paths: ShardPaths, outdir: Path, shard: str) -> int:
    log_path = _log_path(outdir, f"remapfilter_{shard}.log")
    _setup_logging(args.verbose, logfile=None if args.dry_run else log_path)

    logger = logging.getLogger("remapfilter")
    logger.info("remapfilter %s", __version__)

    try:
        config = RemapConfig(
            score_threshold=float(args.score_threshold),
            use_prior_for_filtering=bool(args.use_prior_for_filtering),
            mode=str(args.mode),
            progress=not bool(args.no_progress),
        )
        paths.check_inputs()

        if args.dry_run:
            print("Dry-run: inputs look OK.")
            print(f"Mode: {config.mode}, score threshold: {config.score_threshold}, "
                  f"prior chromosome filtering: {config.use_prior_for_filtering}")
            print("Planned outputs:")
            print(f"  filtered mappings -> {paths.filtered_mappings}")
            print(f"  statistics -> {paths.statistics}")
            print(f"  load-ready features -> {paths.load_features}")
            return 0

        if args.resume and paths.outputs_exist():
            logger.info("Resume enabled: outputs already exist for shard %s", shard)
            print(str(paths.load_features))
            return 0

        seq_regions = load_seq_region_table(args.seq_regions)
        summary = run_shard(
            paths,
            config,
            seq_regions,
            shard=shard,
            report_dir=None if args.no_report else outdir,
        )
        logger.info("Shard %s done: %s", shard, json.dumps(summary["statistics"], sort_keys=True))
        print(str(paths.load_features))
        return 0
    except Exception as e:
        return _handle_error(e, log_path=None if args.dry_run else log_path)


def cmd_filter(args: argparse.Namespace) -> int:
    outdir = Path(args.outdir).expanduser().resolve()
    paths = ShardPaths.in_outdir(
        outdir,
        mappings=args.mappings,
        failed_mappings=args.failed_mappings,
        fasta=args.fasta,
        features=args.features,
    )
    return _run(args, paths, outdir, shard=Path(args.mappings).stem)


def cmd_shard(args: argparse.Namespace) -> int:
    n = str(args.file_number)
    paths = ShardPaths.from_layout(
        n,
        mapping_results_dir=args.mapping_results_dir,
        filtered_mappings_dir=args.filtered_mappings_dir,
        statistics_dir=args.statistics_dir,
        dump_features_dir=args.dump_features_dir,
        load_features_dir=args.load_features_dir,
        fasta_files_dir=args.fasta_files_dir,
    )
    if args.outdir is not None:
        outdir = Path(args.outdir).expanduser().resolve()
    else:
        outdir = Path(args.statistics_dir).expanduser().resolve() / f"report_{n}"
    return _run(args, paths, outdir, shard=n)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.cmd == "quickstart":
        return cmd_quickstart()
    if args.cmd == "make-toy-data":
        return cmd_make_toy_data(args)
    if args.cmd == "filter":
        return cmd_filter(args)
    if args.cmd == "shard":
        return cmd_shard(args)

    parser.error(f"Unknown command: {args.cmd}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
