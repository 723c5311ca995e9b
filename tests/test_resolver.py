from typing import List

import pytest

from conftest import mapping_line
from remapfilter.models import Locus, RemapConfig
from remapfilter.records import parse_mapping_line
from remapfilter.resolver import resolve_records, select_survivors


def _records(lines: List[str], mode: str = "standard"):
    return [parse_mapping_line(line, mode) for line in lines]


def _q(vf_id: int, chrom: str = "1") -> str:
    return f"{vf_id}-150-1-150-{chrom}:5000:5000:1:A/G:rs{vf_id}:dbSNP:SNV"


def _resolve(lines: List[str], **config):
    mode = config.get("mode", "standard")
    return resolve_records(_records(lines, RemapConfig(mode=mode).mode), RemapConfig(**config))


def test_unambiguous_records_kept_iff_score_clears_threshold():
    result = _resolve(
        [
            mapping_line(_q(1), "1 100 100 1", 1, "0.99"),
            mapping_line(_q(2), "1 200 200 1", 1, "0.9"),
            mapping_line(_q(3), "1 300 300 1", 1, "0.89"),
        ],
        score_threshold=0.9,
    )
    assert [p.query_name for p in result.placements] == [_q(1), _q(2)]
    assert result.stats_unique_map == 2
    assert result.stats_failed == 1
    assert result.stats_multi_map == 0


def test_perfect_best_score_keeps_only_perfect_placements():
    result = _resolve(
        [
            mapping_line(_q(9), "3 500 500 1", 3, "0.95"),
            mapping_line(_q(9), "1 100 100 1", 3, "1.0"),
            mapping_line(_q(9), "2 300 300 -1", 3, "1.0"),
        ],
        score_threshold=0.9,
    )
    assert [p.locus for p in result.placements] == [Locus("1", 100, 100, 1), Locus("2", 300, 300, -1)]
    assert [p.score_text for p in result.placements] == ["1.0", "1.0"]
    assert result.stats_multi_map == 1
    assert result.stats_unique_map == 0
    assert result.stats_failed == 0


def test_imperfect_best_score_uses_configured_threshold():
    result = _resolve(
        [
            mapping_line(_q(9), "1 100 100 1", 3, "0.80"),
            mapping_line(_q(9), "1 200 200 1", 3, "0.95"),
            mapping_line(_q(9), "1 300 300 1", 3, "0.97"),
        ],
        score_threshold=0.9,
    )
    assert [p.score_text for p in result.placements] == ["0.97", "0.95"]
    assert result.stats_multi_map == 1


def test_multi_mapped_group_with_nothing_above_threshold_fails():
    result = _resolve(
        [
            mapping_line(_q(4), "1 100 100 1", 2, "0.5"),
            mapping_line(_q(4), "1 200 200 1", 2, "0.6"),
        ],
        score_threshold=0.9,
    )
    assert result.placements == []
    assert result.stats_failed == 1


def test_single_survivor_of_multi_mapped_group_is_unique():
    result = _resolve(
        [
            mapping_line(_q(4), "1 100 100 1", 2, "0.97"),
            mapping_line(_q(4), "1 200 200 1", 2, "0.6"),
        ],
        score_threshold=0.9,
    )
    assert len(result.placements) == 1
    assert result.stats_unique_map == 1


def test_prior_chromosome_filtering():
    lines = [
        mapping_line(_q(5, "1"), "1 100 100 1", 3, "0.99"),
        mapping_line(_q(5, "1"), "1 200 200 1", 3, "0.98"),
        mapping_line(_q(5, "1"), "7 300 300 1", 3, "1"),
        # only placed off its original chromosome
        mapping_line(_q(6, "1"), "7 400 400 1", 2, "1"),
        mapping_line(_q(6, "1"), "8 400 400 1", 2, "1"),
    ]
    result = _resolve(lines, score_threshold=0.9, use_prior_for_filtering=True)
    assert [(p.query_name, p.locus.chrom) for p in result.placements] == [
        (_q(5), "1"),
        (_q(5), "1"),
    ]
    assert result.stats_multi_map == 1
    assert result.stats_failed == 1
    assert result.stats_unique_map == 0


def test_without_prior_filtering_off_chromosome_perfect_match_wins():
    lines = [
        mapping_line(_q(5, "1"), "1 100 100 1", 3, "0.99"),
        mapping_line(_q(5, "1"), "1 200 200 1", 3, "0.98"),
        mapping_line(_q(5, "1"), "7 300 300 1", 3, "1"),
    ]
    result = _resolve(lines, score_threshold=0.9)
    assert [p.locus.chrom for p in result.placements] == ["7"]
    assert result.stats_unique_map == 1
    assert result.stats_failed == 0


def test_ties_are_ordered_by_locus():
    lines = [
        mapping_line(_q(7), "2 50 50 1", 3, "1"),
        mapping_line(_q(7), "10 50 50 1", 3, "1"),
        mapping_line(_q(7), "1 900 900 -1", 3, "1"),
    ]
    result = _resolve(lines, score_threshold=0.9)
    assert [p.locus.chrom for p in result.placements] == ["1", "10", "2"]


def test_output_order_unique_first_then_groups_by_query_name():
    lines = [
        mapping_line(_q(30), "1 300 300 1", 2, "1"),
        mapping_line(_q(20), "1 200 200 1", 1, "1"),
        mapping_line(_q(30), "1 301 301 1", 2, "1"),
        mapping_line(_q(10), "1 100 100 1", 2, "0.99"),
        mapping_line(_q(10), "1 101 101 1", 2, "0.5"),
    ]
    result = _resolve(lines, score_threshold=0.9)
    assert [p.query_name for p in result.placements] == [_q(20), _q(10), _q(30), _q(30)]


def _rep(vf: str, version: str) -> str:
    return f"{vf}.{version}-150-1-150-A/G:rs{vf}"


def test_multi_representation_keeps_best_representation_per_locus():
    result = _resolve(
        [
            mapping_line(_rep("500", "0"), "2 100 100 1", 8, "0.99"),
            mapping_line(_rep("500", "1"), "2 100 100 1", 8, "1"),
        ],
        score_threshold=0.9,
        mode="multi-representation",
    )
    assert [(p.query_name, p.score_text) for p in result.placements] == [(_rep("500", "1"), "1")]
    assert result.stats_unique_map == 1


def test_multi_representation_perfect_match_excludes_other_loci():
    result = _resolve(
        [
            mapping_line(_rep("27587", "1"), "9 65226786 65226786 -1", 8, "0.998456790123457"),
            mapping_line(_rep("27587", "0"), "9 65226786 65226786 -1", 8, "1"),
            mapping_line(_rep("27587", "1"), "9 63022076 63022076 1", 8, "0.970679012345679"),
            mapping_line(_rep("27587", "0"), "9 63022076 63022076 1", 8, "0.972222222222222"),
        ],
        score_threshold=0.95,
        mode="multi-representation",
    )
    assert [p.locus.start for p in result.placements] == [65226786]
    assert result.stats_unique_map == 1
    assert result.stats_multi_map == 0


def test_multi_representation_without_perfect_match_keeps_all_passing_loci():
    result = _resolve(
        [
            mapping_line(_rep("3", "0"), "1 10 10 1", 4, "0.97"),
            mapping_line(_rep("3", "1"), "1 20 20 1", 4, "0.96"),
            mapping_line(_rep("3", "1"), "1 30 30 1", 4, "0.5"),
        ],
        score_threshold=0.95,
        mode="multi-representation",
    )
    assert [(p.query_name, p.locus.start) for p in result.placements] == [
        (_rep("3", "0"), 10),
        (_rep("3", "1"), 20),
    ]
    assert result.stats_multi_map == 1


def test_multi_representation_score_tie_picks_smallest_query_name():
    result = _resolve(
        [
            mapping_line(_rep("8", "1"), "1 10 10 1", 2, "1"),
            mapping_line(_rep("8", "0"), "1 10 10 1", 2, "1"),
        ],
        score_threshold=0.9,
        mode="multi-representation",
    )
    assert [p.query_name for p in result.placements] == [_rep("8", "0")]


def test_multi_representation_failed_and_vf_order():
    result = _resolve(
        [
            mapping_line(_rep("500", "0"), "1 10 10 1", 1, "1"),
            mapping_line(_rep("99", "0"), "1 20 20 1", 1, "1"),
            mapping_line(_rep("77", "0"), "1 30 30 1", 1, "0.2"),
        ],
        score_threshold=0.9,
        mode="multi-representation",
    )
    assert [p.query_name for p in result.placements] == [_rep("99", "0"), _rep("500", "0")]
    assert result.stats_failed == 1
    assert result.stats_unique_map == 2


def test_select_survivors_empty():
    assert select_survivors([], 0.5) == []


def test_score_histogram_counts_placements():
    result = _resolve(
        [
            mapping_line(_q(1), "1 100 100 1", 1, "1"),
            mapping_line(_q(2), "1 200 200 1", 1, "0.97"),
        ],
        score_threshold=0.9,
    )
    hist = result.score_histogram(nbins=10)
    assert len(hist["bin_edges"]) == 11
    assert sum(hist["counts"]) == 2
    assert hist["counts"][-1] == 2


def test_config_rejects_bad_threshold_and_mode():
    with pytest.raises(ValueError):
        RemapConfig(score_threshold=1.5)
    with pytest.raises(ValueError):
        RemapConfig(mode="fuzzy")
    assert RemapConfig(mode="remap_multi_map").mode == "multi-representation"
