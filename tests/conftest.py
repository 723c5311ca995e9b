from __future__ import annotations

from pathlib import Path
from typing import List

import pytest


def mapping_line(
    query_name: str,
    new_locus: str,
    map_weight: int,
    score: str,
    old_locus: str = "",
) -> str:
    return "\t".join(
        [old_locus, new_locus, query_name, str(map_weight), "301M", score, "clipped nucleotides 0"]
    )


def write_lines(path: Path, lines: List[str]) -> Path:
    path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
    return path


@pytest.fixture
def toy_dir(tmp_path: Path) -> Path:
    from remapfilter.toy_data import make_toy_data

    make_toy_data(outdir=tmp_path / "toy")
    return tmp_path / "toy"
