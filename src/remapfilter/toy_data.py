from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Tuple

from .utils import ensure_outdir, write_json

# (vf_id, old chrom, old pos, alleles, rsid)
_VARIANTS: List[Tuple[int, str, int, str, str]] = [
    (101, "1", 5000, "A/G", "rs1001"),
    (102, "1", 6000, "C/T", "rs1002"),
    (103, "1", 7000, "G/A", "rs1003"),
    (104, "2", 8000, "T/C", "rs1004"),
    (105, "7", 9000, "A/C", "rs1005"),
]

# (vf_id, new locus, map_weight, score)
_ALIGNMENTS: List[Tuple[int, str, int, str]] = [
    (101, "1 15000 15000 1", 1, "1"),
    (102, "1 16000 16000 1", 1, "0.5"),
    (103, "1 17000 17000 1", 3, "1"),
    (103, "1 27000 27000 -1", 3, "1"),
    (103, "7 37000 37000 1", 3, "0.96"),
    (104, "2 18000 18000 1", 2, "0.97"),
    (104, "2 28000 28000 1", 2, "0.93"),
]

_SEQ_REGIONS = {"1": 131550, "2": 131551, "7": 131556}


def _query_name(vf_id: int, chrom: str, pos: int, alleles: str, rsid: str) -> str:
    return f"{vf_id}-150-1-150-{chrom}:{pos}:{pos}:1:{alleles}:{rsid}:dbSNP:SNV"


def _write_lines(path: Path, lines: List[str]) -> None:
    path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")


def make_toy_data(*, outdir: str | Path) -> Dict[str, str]:
    """Create a tiny shard suitable for quick demos/tests.

    The outputs include:
    - input.fa (flanking sequences sent to the aligner)
    - mappings.txt / failed_mappings.txt (aligner results)
    - features.txt (feature dump of the old assembly)
    - seq_regions.tsv (sequence name -> seq_region_id on the new assembly)

    Returns
    -------
    dict
        Paths to the generated files.
    """
    outdir_p = ensure_outdir(outdir)
    variants = {v[0]: v for v in _VARIANTS}

    fasta = outdir_p / "input.fa"
    fasta_lines: List[str] = []
    for vf_id, chrom, pos, alleles, rsid in _VARIANTS:
        fasta_lines.append(">" + _query_name(vf_id, chrom, pos, alleles, rsid))
        fasta_lines.append("ACGT" * 15)
    _write_lines(fasta, fasta_lines)

    mappings = outdir_p / "mappings.txt"
    mapping_lines: List[str] = []
    for vf_id, new_locus, map_weight, score in _ALIGNMENTS:
        _, chrom, pos, alleles, rsid = variants[vf_id]
        old_locus = f"{chrom} {pos} {pos} 1"
        qname = _query_name(vf_id, chrom, pos, alleles, rsid)
        mapping_lines.append(
            "\t".join([old_locus, new_locus, qname, str(map_weight), "301M", score, "clipped nucleotides 0"])
        )
    _write_lines(mappings, mapping_lines)

    failed = outdir_p / "failed_mappings.txt"
    failed_lines: List[str] = []
    for vf_id in (102, 105):
        _, chrom, pos, alleles, rsid = variants[vf_id]
        qname = _query_name(vf_id, chrom, pos, alleles, rsid)
        failed_lines.append(
            "\t".join(["0", f"{chrom} {pos} {pos} 1", "", qname, "0", "", "0", ""])
        )
    _write_lines(failed, failed_lines)

    features = outdir_p / "features.txt"
    feature_lines: List[str] = []
    for vf_id, chrom, pos, alleles, rsid in _VARIANTS:
        fields = {
            "variation_feature_id": str(vf_id),
            "variation_id": str(vf_id + 9000),
            "variation_name": rsid,
            "seq_region_id": "27511",
            "seq_region_name": chrom,
            "seq_region_start": str(pos),
            "seq_region_end": str(pos),
            "seq_region_strand": "1",
            "allele_string": alleles,
            "map_weight": "1",
            "source_id": "1",
        }
        feature_lines.append("\t".join(f"{k}={v}" for k, v in fields.items()))
    _write_lines(features, feature_lines)

    seq_regions = outdir_p / "seq_regions.tsv"
    _write_lines(seq_regions, [f"{name}\t{rid}" for name, rid in _SEQ_REGIONS.items()])

    summary = {
        "fasta": str(fasta),
        "mappings": str(mappings),
        "failed_mappings": str(failed),
        "features": str(features),
        "seq_regions": str(seq_regions),
        "outdir": str(outdir_p),
    }

    write_json(outdir_p / "toy_summary.json", summary)
    return summary
