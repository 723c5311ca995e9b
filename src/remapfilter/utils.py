from __future__ import annotations

import gzip
import json
import logging
import os
from pathlib import Path
from typing import Any, Iterator, TextIO, Tuple

logger = logging.getLogger(__name__)


def ensure_outdir(path: str | Path) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def open_textmaybe_gzip(path: str | Path, mode: str = "rt") -> TextIO:
    p = str(path)
    if p.endswith(".gz"):
        return gzip.open(p, mode)  # type: ignore[return-value]
    return open(p, mode)


def iter_numbered_lines(path: str | Path) -> Iterator[Tuple[int, str]]:
    """Yield (1-based line number, line) with the trailing newline removed.

    Blank lines are skipped but still counted.
    """
    with open_textmaybe_gzip(path, "rt") as fh:
        for line_no, line in enumerate(fh, start=1):
            line = line.rstrip("\r\n")
            if not line.strip():
                continue
            yield line_no, line


def write_json(path: str | Path, obj: Any) -> None:
    with open(path, "wt", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, sort_keys=True)


def atomic_replace(tmp_path: str | Path, final_path: str | Path) -> None:
    # os.replace is atomic on POSIX when both paths share a filesystem.
    os.replace(str(tmp_path), str(final_path))
