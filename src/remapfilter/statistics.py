from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Dict, List, Set

import pysam

from .records import MalformedRecordError, iter_failed_mappings
from .resolver import ResolutionResult
from .utils import iter_numbered_lines

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemapStatistics:
    """Counters reported for one shard. Field order is the serialization order."""

    count_input_ids: int = 0
    pre_count_mapped: int = 0
    pre_count_unmapped: int = 0
    stats_failed: int = 0
    stats_unique_map: int = 0
    stats_multi_map: int = 0

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def merge_resolution(self, result: ResolutionResult) -> "RemapStatistics":
        return replace(self, **result.counts)

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)

    def to_lines(self) -> List[str]:
        return [f"{name}={getattr(self, name)}" for name in self.field_names()]


def _query_name_of_mapping_line(line: str) -> str:
    # query_name is the third column of the primary mapping file
    parts = line.split("\t")
    if len(parts) < 3:
        raise ValueError(f"expected at least 3 tab-separated fields, found {len(parts)}")
    return parts[2]


def distinct_mapped_queries(mappings_path: str | Path) -> Set[str]:
    mapped: Set[str] = set()
    for line_no, line in iter_numbered_lines(mappings_path):
        try:
            mapped.add(_query_name_of_mapping_line(line))
        except ValueError as e:
            raise MalformedRecordError(mappings_path, line_no, str(e)) from e
    return mapped


def count_unmapped_queries(failed_path: str | Path, mapped: Set[str]) -> int:
    """Distinct query names in the failed-mapping file that never mapped."""
    unmapped = {rec.query_name for rec in iter_failed_mappings(failed_path)}
    return len(unmapped - mapped)


def count_fasta_entries(fasta_path: str | Path) -> int:
    """Number of sequences in the FASTA file sent to the aligner.

    The file is assumed to be well formed, as written by the flanking-sequence
    dumper: every record starts with a '>' header. Other content is not
    validated and may be counted as records by pysam.
    """
    path = Path(fasta_path)
    if not path.exists():
        raise FileNotFoundError(f"FASTA file not found: {path}")
    if path.stat().st_size == 0:
        return 0
    n = 0
    with pysam.FastxFile(str(path)) as fh:
        for _ in fh:
            n += 1
    return n


def collect_pre_filter_statistics(
    mappings_path: str | Path,
    failed_path: str | Path,
    fasta_path: str | Path,
) -> RemapStatistics:
    mapped = distinct_mapped_queries(mappings_path)
    unmapped = count_unmapped_queries(failed_path, mapped)
    input_ids = count_fasta_entries(fasta_path)
    logger.info(
        "Pre-filter: %d input sequences, %d mapped queries, %d unmapped queries",
        input_ids,
        len(mapped),
        unmapped,
    )
    if input_ids and len(mapped) + unmapped > input_ids:
        logger.warning(
            "More mapped/unmapped queries (%d) than input sequences (%d); "
            "check that the files belong to the same shard.",
            len(mapped) + unmapped,
            input_ids,
        )
    return RemapStatistics(
        count_input_ids=input_ids,
        pre_count_mapped=len(mapped),
        pre_count_unmapped=unmapped,
    )


def write_statistics(path: str | Path, stats: RemapStatistics) -> None:
    with open(path, "wt", encoding="utf-8") as fh:
        for line in stats.to_lines():
            fh.write(line + "\n")


def read_statistics(path: str | Path) -> RemapStatistics:
    values: Dict[str, int] = {}
    known = set(RemapStatistics.field_names())
    for _, line in iter_numbered_lines(path):
        name, _, value = line.partition("=")
        if name in known:
            values[name] = int(value)
    return RemapStatistics(**values)
