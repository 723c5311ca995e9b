from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Tuple

from .query_key import MODE_STANDARD, QueryKey, normalize_mode


@dataclass(frozen=True)
class Locus:
    """A placement on the new assembly.

    Attributes
    ----------
    chrom:
        Sequence region name on the new assembly.
    start, end:
        Coordinates as reported by the aligner (1-based, inclusive).
    strand:
        +1 or -1.
    """

    chrom: str
    start: int
    end: int
    strand: int

    @classmethod
    def parse(cls, text: str) -> "Locus":
        """Parse the space-separated ``"chrom start end strand"`` column.

        Raises ValueError on a wrong field count or non-integer coordinates.
        """
        parts = text.split()
        if len(parts) != 4:
            raise ValueError(f"expected 'chrom start end strand', got {text!r}")
        chrom, start, end, strand = parts
        return cls(chrom=chrom, start=int(start), end=int(end), strand=int(strand))

    @property
    def sort_key(self) -> Tuple[str, int, int, int]:
        return (self.chrom, self.start, self.end, self.strand)

    def to_fields(self) -> List[str]:
        return [self.chrom, str(self.start), str(self.end), str(self.strand)]


@dataclass(frozen=True)
class AlignmentRecord:
    """One line of the primary mapping file, with its query key decoded once."""

    old_locus: str
    new_locus: Locus
    query_name: str
    map_weight: int
    cigar: str
    score: float
    score_text: str  # score exactly as read, re-emitted verbatim
    clip_info: str
    key: QueryKey


@dataclass(frozen=True)
class FailedMapping:
    """One line of the failed-mapping file. Only the query name is used downstream."""

    indel_flag: str
    old_locus: str
    new_locus: str
    query_name: str
    map_weight: str
    cigar: str
    score: str
    clip_info: str


@dataclass(frozen=True)
class FilteredPlacement:
    """A surviving placement: one row of the filtered mapping file."""

    query_name: str
    locus: Locus
    score_text: str

    @property
    def score(self) -> float:
        return float(self.score_text)

    def to_line(self) -> str:
        return "\t".join([self.query_name, *self.locus.to_fields(), self.score_text])


@dataclass(frozen=True)
class FeatureRecord:
    """Attribute record of one variation feature from the dump of the old assembly.

    ``fields`` holds every key=value pair of the dump line in input order,
    including ``variation_feature_id``.
    """

    variation_feature_id: str
    fields: Mapping[str, str] = field(default_factory=dict)

    def with_placement(
        self,
        *,
        seq_region_id: str,
        placement: FilteredPlacement,
        map_weight: int,
    ) -> Dict[str, str]:
        """Return the column mapping for one load-ready row.

        The stored record is left untouched so that several placements of the
        same feature each start from the original attributes.
        """
        data: Dict[str, str] = dict(self.fields)
        data["seq_region_id"] = str(seq_region_id)
        data["seq_region_start"] = str(placement.locus.start)
        data["seq_region_end"] = str(placement.locus.end)
        data["seq_region_strand"] = str(placement.locus.strand)
        data["alignment_quality"] = placement.score_text
        data["map_weight"] = str(map_weight)
        data["variation_feature_id_old"] = self.variation_feature_id
        return data


LOAD_ROW_EXCLUDED_COLUMNS = frozenset({"variation_feature_id", "seq_region_name"})


def to_load_row(data: Mapping[str, str]) -> str:
    """Values of ``data`` sorted by column name, minus the excluded columns."""
    return "\t".join(
        data[name] for name in sorted(data) if name not in LOAD_ROW_EXCLUDED_COLUMNS
    )


@dataclass(frozen=True)
class RemapConfig:
    """Per-run parameters for filtering a shard."""

    score_threshold: float = 0.95
    use_prior_for_filtering: bool = False
    mode: str = MODE_STANDARD
    progress: bool = False

    def __post_init__(self) -> None:
        if not 0.0 <= float(self.score_threshold) <= 1.0:
            raise ValueError(
                f"score_threshold must be within [0, 1], got {self.score_threshold}"
            )
        object.__setattr__(self, "score_threshold", float(self.score_threshold))
        object.__setattr__(self, "mode", normalize_mode(self.mode))
