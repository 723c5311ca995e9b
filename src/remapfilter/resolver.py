"""Choose which candidate placements of a variant survive remapping.

Two policies are implemented:

standard
    Unambiguous alignments (map_weight 1) are kept if they clear the score
    threshold. Ambiguous alignments are grouped by query name; if the best
    candidate is a perfect match only perfect matches survive, otherwise every
    candidate clearing the threshold survives. Optionally, candidates that are
    not on the chromosome the variant was on before remapping are discarded
    first.

multi-representation
    Several query names (versions / allele encodings) denote the same variant.
    They are grouped by vf_id and, for each distinct placement, only the best
    scoring representation is kept before the threshold rules above apply.

Exact score ties are broken deterministically: candidates by locus
``(chrom, start, end, strand)``, representations by query name.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
from tqdm import tqdm

from .models import (
    AlignmentRecord,
    FilteredPlacement,
    Locus,
    RemapConfig,
)
from .query_key import MODE_MULTI_REPRESENTATION
from .records import iter_mapping_records, write_placements

logger = logging.getLogger(__name__)

PERFECT_SCORE = 1.0

# (locus, query_name, score_text, score)
_Candidate = Tuple[Locus, str, str, float]


@dataclass
class ResolutionResult:
    """Outcome of resolving one mapping file."""

    stats_failed: int = 0
    stats_unique_map: int = 0
    stats_multi_map: int = 0
    placements: List[FilteredPlacement] = field(default_factory=list)

    @property
    def counts(self) -> Dict[str, int]:
        return {
            "stats_failed": self.stats_failed,
            "stats_unique_map": self.stats_unique_map,
            "stats_multi_map": self.stats_multi_map,
        }

    def classify(self, survivors: int) -> None:
        if survivors == 0:
            self.stats_failed += 1
        elif survivors == 1:
            self.stats_unique_map += 1
        else:
            self.stats_multi_map += 1

    def score_histogram(self, nbins: int = 20) -> Dict[str, List[float]]:
        bin_edges = np.linspace(0.0, 1.0, nbins + 1)
        scores = np.array([p.score for p in self.placements], dtype=float)
        counts, _ = np.histogram(scores, bins=bin_edges)
        return {"bin_edges": bin_edges.tolist(), "counts": counts.tolist()}


def _by_score_then_locus(c: _Candidate) -> Tuple[float, Tuple[str, int, int, int]]:
    return (-c[3], c[0].sort_key)


def select_survivors(
    candidates: Sequence[_Candidate],
    score_threshold: float,
) -> List[_Candidate]:
    """Apply the threshold rule to one group of candidates.

    If the best candidate is a perfect match the threshold becomes 1.0, so a
    perfect placement always excludes imperfect ones. Survivors are returned
    best first.
    """
    if not candidates:
        return []
    ordered = sorted(candidates, key=_by_score_then_locus)
    threshold = score_threshold
    if ordered[0][3] == PERFECT_SCORE:
        threshold = PERFECT_SCORE
    return [c for c in ordered if c[3] >= threshold]


def _maybe_progress(records: Iterable[AlignmentRecord], config: RemapConfig, desc: str):
    if config.progress:
        return tqdm(records, unit="aln", desc=desc)
    return records


def resolve_standard(
    records: Iterable[AlignmentRecord],
    config: RemapConfig,
) -> ResolutionResult:
    result = ResolutionResult()
    threshold = config.score_threshold
    use_prior = config.use_prior_for_filtering

    unique_rows: List[FilteredPlacement] = []
    # query_name -> locus -> (score_text, score); a repeated locus keeps the last score
    multi_all: Dict[str, Dict[Locus, Tuple[str, float]]] = {}
    multi_same_chrom: Dict[str, Dict[Locus, Tuple[str, float]]] = {}
    missing_hint = 0

    for rec in records:
        if rec.map_weight > 1:
            multi_all.setdefault(rec.query_name, {})[rec.new_locus] = (rec.score_text, rec.score)
            if use_prior:
                hint = rec.key.prior_chrom_hint
                if hint is None:
                    missing_hint += 1
                elif rec.new_locus.chrom == hint:
                    multi_same_chrom.setdefault(rec.query_name, {})[rec.new_locus] = (
                        rec.score_text,
                        rec.score,
                    )
            continue

        if rec.score >= threshold:
            unique_rows.append(FilteredPlacement(rec.query_name, rec.new_locus, rec.score_text))
            result.stats_unique_map += 1
        else:
            result.stats_failed += 1

    if missing_hint:
        logger.warning(
            "%d multi-mapped alignments carry no prior chromosome in their query name; "
            "they cannot pass same-chromosome filtering.",
            missing_hint,
        )

    working = multi_all
    if use_prior:
        off_chrom = len(multi_all) - len(multi_same_chrom)
        result.stats_failed += off_chrom
        logger.info(
            "Prior-chromosome filtering: %d of %d multi-mapped queries have no candidate "
            "on their original chromosome.",
            off_chrom,
            len(multi_all),
        )
        working = multi_same_chrom

    multi_rows: List[FilteredPlacement] = []
    for query_name in sorted(working):
        candidates = [
            (locus, query_name, score_text, score)
            for locus, (score_text, score) in working[query_name].items()
        ]
        survivors = select_survivors(candidates, threshold)
        logger.debug(
            "%s: %d candidates, %d survive", query_name, len(candidates), len(survivors)
        )
        result.classify(len(survivors))
        multi_rows.extend(FilteredPlacement(q, locus, s) for locus, q, s, _ in survivors)

    result.placements = unique_rows + multi_rows
    return result


def _best_representation(reps: Dict[str, Tuple[str, float]]) -> Tuple[str, str, float]:
    query_name = min(reps, key=lambda q: (-reps[q][1], q))
    score_text, score = reps[query_name]
    return query_name, score_text, score


def _vf_id_order(vf_id: str) -> Tuple[int, int, str]:
    if vf_id.isdigit():
        return (0, int(vf_id), vf_id)
    return (1, 0, vf_id)


def resolve_multi_representation(
    records: Iterable[AlignmentRecord],
    config: RemapConfig,
) -> ResolutionResult:
    result = ResolutionResult()
    threshold = config.score_threshold

    # vf_id -> locus -> query_name -> (score_text, score)
    mapped: Dict[str, Dict[Locus, Dict[str, Tuple[str, float]]]] = {}
    for rec in records:
        by_locus = mapped.setdefault(rec.key.vf_id, {})
        by_locus.setdefault(rec.new_locus, {})[rec.query_name] = (rec.score_text, rec.score)

    for vf_id in sorted(mapped, key=_vf_id_order):
        passed: List[_Candidate] = []
        for locus, reps in mapped[vf_id].items():
            query_name, score_text, score = _best_representation(reps)
            if score >= threshold:
                passed.append((locus, query_name, score_text, score))

        survivors = select_survivors(passed, threshold)
        logger.debug(
            "vf_id %s: %d placements, %d passed, %d survive",
            vf_id,
            len(mapped[vf_id]),
            len(passed),
            len(survivors),
        )
        result.classify(len(survivors))
        result.placements.extend(FilteredPlacement(q, locus, s) for locus, q, s, _ in survivors)

    return result


def resolve_records(
    records: Iterable[AlignmentRecord],
    config: RemapConfig,
) -> ResolutionResult:
    if config.mode == MODE_MULTI_REPRESENTATION:
        return resolve_multi_representation(records, config)
    return resolve_standard(records, config)


def resolve_mappings(
    mappings_path: str | Path,
    filtered_path: Optional[str | Path],
    config: RemapConfig,
) -> ResolutionResult:
    """Resolve a primary mapping file and write the filtered mapping file.

    Parameters
    ----------
    mappings_path:
        Primary mapping file produced by the aligner step.
    filtered_path:
        Destination for surviving placements
        (query_name, chrom, start, end, strand, score). Skipped if None.
    config:
        Threshold, prior-chromosome filtering and mode.
    """
    records = _maybe_progress(
        iter_mapping_records(mappings_path, config.mode), config, desc="Resolving mappings"
    )
    result = resolve_records(records, config)

    logger.info(
        "Resolved %s (%s mode): unique=%d multi=%d failed=%d, %d placements kept",
        mappings_path,
        config.mode,
        result.stats_unique_map,
        result.stats_multi_map,
        result.stats_failed,
        len(result.placements),
    )
    if not result.placements:
        logger.warning("No placements survived filtering for %s.", mappings_path)

    if filtered_path is not None:
        write_placements(filtered_path, result.placements)
    return result
