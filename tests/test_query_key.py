import pytest

from remapfilter.query_key import (
    MODE_MULTI_REPRESENTATION,
    MODE_STANDARD,
    decode_query_name,
    decode_representation,
    decode_standard,
    normalize_mode,
)


def test_decode_standard_extracts_id_and_prior_chrom():
    key = decode_standard("156358-150-1-150-11:5502587:5502587:1:T/C:rs202026261:dbSNP:SNV")
    assert key.variant_feature_id == "156358"
    assert key.prior_chrom_hint == "11"


def test_decode_standard_without_hint_segment():
    key = decode_standard("156358-150-1")
    assert key.variant_feature_id == "156358"
    assert key.prior_chrom_hint is None


def test_decode_standard_keeps_dashes_in_fifth_segment():
    key = decode_standard("7-150-1-150-HG1_PATCH-1:100:100:1:A/G:rs1")
    assert key.prior_chrom_hint == "HG1_PATCH-1"


def test_decode_representation_version_and_alleles():
    key = decode_representation("14086.1-110-1-497-G:C/G:rs708635")
    assert key.vf_id == "14086"
    assert key.vf_version == "1"
    assert key.allele == "G"
    assert key.allele_string == "C/G"
    assert key.rsid == "rs708635"


def test_decode_representation_indel_with_leading_dash():
    key = decode_representation("3509.1-200-28-200--/CGGAGCCAGAGG:rs361903")
    assert key.vf_id == "3509"
    assert key.allele == "-/CGGAGCCAGAGG"
    assert key.allele_string == "rs361903"
    assert key.rsid is None


def test_decode_representation_without_version():
    key = decode_representation("480394-101-1-101-A/G:rs75513536")
    assert key.vf_id == "480394"
    assert key.vf_version is None


def test_decode_dispatches_on_mode():
    q = "500.1-150-1-150-A/G:rs5"
    assert decode_query_name(q, "multi-representation").vf_id == "500"
    assert decode_query_name(q, "standard").variant_feature_id == "500.1"


def test_feature_id_is_leading_id_in_standard_mode():
    assert decode_query_name("101-150-1-150-1:5000", MODE_STANDARD).feature_id == "101"
    assert decode_query_name("101", MODE_STANDARD).feature_id == "101"


def test_feature_id_drops_version_in_multi_representation_mode():
    key = decode_query_name("500.1-150-1-150-A/G:rs500", MODE_MULTI_REPRESENTATION)
    assert key.feature_id == "500"


def test_mode_aliases_normalize_to_constants():
    assert normalize_mode("remap_multi_map") == MODE_MULTI_REPRESENTATION
    assert normalize_mode("dbsnp") == MODE_MULTI_REPRESENTATION
    assert normalize_mode(" Standard ") == MODE_STANDARD
    with pytest.raises(ValueError):
        normalize_mode("fuzzy")
