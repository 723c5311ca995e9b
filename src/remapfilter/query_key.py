"""Decoding of the composite query names written by the flanking-sequence dumper.

Standard query names look like::

    156358-150-1-150-11:5502587:5502587:1:T/C:rs202026261:dbSNP:SNV

The leading integer is the variation_feature_id of the old assembly. The fifth
dash-separated segment carries the old locus; its first colon field is the
chromosome the variant sat on before remapping.

In multi-representation mode the first segment also carries a version and the
fifth segment the alleles::

    480394.1-101-1-101-A/G:rs75513536
    3509.1-200-28-200--/CGGAGCCAGAGG:rs361903

Only the first four dashes split; the fifth segment keeps any further dashes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Union

MODE_STANDARD = "standard"
MODE_MULTI_REPRESENTATION = "multi-representation"

# Name used for the multi-representation mode by the remapping pipeline config.
MODE_ALIASES = {
    "remap_multi_map": MODE_MULTI_REPRESENTATION,
    "dbsnp": MODE_MULTI_REPRESENTATION,
}

MODES = (MODE_STANDARD, MODE_MULTI_REPRESENTATION)

_MAX_DASH_SPLITS = 4


def normalize_mode(mode: str) -> str:
    m = str(mode).strip().lower()
    m = MODE_ALIASES.get(m, m)
    if m not in MODES:
        raise ValueError(f"Unknown mode '{mode}'. Expected one of: {', '.join(MODES)}")
    return m


@dataclass(frozen=True)
class StandardQueryKey:
    query_name: str
    variant_feature_id: str
    prior_chrom_hint: Optional[str]

    @property
    def feature_id(self) -> str:
        return self.variant_feature_id


@dataclass(frozen=True)
class RepresentationQueryKey:
    query_name: str
    vf_id: str
    vf_version: Optional[str]
    allele: Optional[str]
    allele_string: Optional[str]
    rsid: Optional[str]

    @property
    def feature_id(self) -> str:
        return self.vf_id


QueryKey = Union[StandardQueryKey, RepresentationQueryKey]


def _dash_segments(query_name: str) -> List[str]:
    return query_name.split("-", _MAX_DASH_SPLITS)


def decode_standard(query_name: str) -> StandardQueryKey:
    segments = _dash_segments(query_name)
    hint: Optional[str] = None
    if len(segments) > _MAX_DASH_SPLITS:
        hint = segments[_MAX_DASH_SPLITS].split(":", 1)[0]
    return StandardQueryKey(
        query_name=query_name,
        variant_feature_id=segments[0],
        prior_chrom_hint=hint,
    )


def decode_representation(query_name: str) -> RepresentationQueryKey:
    segments = _dash_segments(query_name)
    vf_id, dot, version = segments[0].partition(".")

    allele_fields: List[Optional[str]] = [None, None, None]
    if len(segments) > _MAX_DASH_SPLITS:
        for i, value in enumerate(segments[_MAX_DASH_SPLITS].split(":")[:3]):
            allele_fields[i] = value

    return RepresentationQueryKey(
        query_name=query_name,
        vf_id=vf_id,
        vf_version=version if dot else None,
        allele=allele_fields[0],
        allele_string=allele_fields[1],
        rsid=allele_fields[2],
    )


def decode_query_name(query_name: str, mode: str) -> QueryKey:
    """Decode ``query_name`` for the given resolution mode.

    ``mode`` must already be normalized (see ``normalize_mode``). The decoded
    key's ``feature_id`` is the variation_feature_id of the old assembly.
    """
    if mode == MODE_MULTI_REPRESENTATION:
        return decode_representation(query_name)
    return decode_standard(query_name)
