from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, List

from .models import (
    AlignmentRecord,
    FailedMapping,
    FeatureRecord,
    FilteredPlacement,
    Locus,
)
from .query_key import decode_query_name
from .utils import iter_numbered_lines

logger = logging.getLogger(__name__)

MAPPING_COLUMNS = 7
FAILED_MAPPING_COLUMNS = 8
FILTERED_COLUMNS = 6


class MalformedRecordError(ValueError):
    """Raised when an input line cannot be parsed into a record."""

    def __init__(self, path: str | Path | None, line_no: int | None, reason: str) -> None:
        where = f"{path}:{line_no}" if path is not None else f"line {line_no}"
        super().__init__(f"Malformed record at {where}: {reason}")
        self.path = None if path is None else str(path)
        self.line_no = line_no
        self.reason = reason


def _split_fields(line: str, expected: int) -> List[str]:
    fields = line.split("\t")
    if len(fields) < expected:
        raise ValueError(f"expected {expected} tab-separated fields, found {len(fields)}")
    return fields


def parse_mapping_line(line: str, mode: str) -> AlignmentRecord:
    """Parse one line of the primary mapping file.

    Columns: old_locus, new_locus, query_name, map_weight, cigar, score, clip_info.
    Raises ValueError on short lines, non-numeric values or a map_weight below 1.
    """
    fields = _split_fields(line, MAPPING_COLUMNS)
    old_locus, new_locus, query_name, map_weight, cigar, score, clip_info = fields[:MAPPING_COLUMNS]
    if not query_name:
        raise ValueError("empty query name")
    weight = int(map_weight)
    if weight < 1:
        raise ValueError(f"map_weight must be >= 1, got {weight}")
    score_text = score.strip()
    return AlignmentRecord(
        old_locus=old_locus,
        new_locus=Locus.parse(new_locus),
        query_name=query_name,
        map_weight=weight,
        cigar=cigar,
        score=float(score_text),
        score_text=score_text,
        clip_info=clip_info,
        key=decode_query_name(query_name, mode),
    )


def parse_failed_mapping_line(line: str) -> FailedMapping:
    fields = _split_fields(line, FAILED_MAPPING_COLUMNS)
    return FailedMapping(*fields[:FAILED_MAPPING_COLUMNS])


def parse_filtered_line(line: str) -> FilteredPlacement:
    fields = _split_fields(line, FILTERED_COLUMNS)
    query_name, chrom, start, end, strand, score = fields[:FILTERED_COLUMNS]
    locus = Locus(chrom=chrom, start=int(start), end=int(end), strand=int(strand))
    float(score)  # reject non-numeric scores here rather than in the joiner
    return FilteredPlacement(query_name=query_name, locus=locus, score_text=score)


def parse_feature_line(line: str) -> FeatureRecord:
    """Parse a tab-separated list of ``key=value`` pairs.

    Values may themselves contain ``=``; only the first one splits.
    """
    data = {}
    for item in line.split("\t"):
        key, sep, value = item.partition("=")
        if not sep:
            raise ValueError(f"field {item!r} is not key=value")
        data[key] = value
    if "variation_feature_id" not in data:
        raise ValueError("missing variation_feature_id")
    return FeatureRecord(variation_feature_id=data["variation_feature_id"], fields=data)


def iter_mapping_records(path: str | Path, mode: str) -> Iterator[AlignmentRecord]:
    for line_no, line in iter_numbered_lines(path):
        try:
            yield parse_mapping_line(line, mode)
        except ValueError as e:
            raise MalformedRecordError(path, line_no, str(e)) from e


def iter_failed_mappings(path: str | Path) -> Iterator[FailedMapping]:
    for line_no, line in iter_numbered_lines(path):
        try:
            yield parse_failed_mapping_line(line)
        except ValueError as e:
            raise MalformedRecordError(path, line_no, str(e)) from e


def iter_filtered_placements(path: str | Path) -> Iterator[FilteredPlacement]:
    for line_no, line in iter_numbered_lines(path):
        try:
            yield parse_filtered_line(line)
        except ValueError as e:
            raise MalformedRecordError(path, line_no, str(e)) from e


def iter_feature_records(path: str | Path) -> Iterator[FeatureRecord]:
    for line_no, line in iter_numbered_lines(path):
        try:
            yield parse_feature_line(line)
        except ValueError as e:
            raise MalformedRecordError(path, line_no, str(e)) from e


def write_placements(path: str | Path, placements: List[FilteredPlacement]) -> None:
    with open(path, "wt", encoding="utf-8") as fh:
        for p in placements:
            fh.write(p.to_line() + "\n")
