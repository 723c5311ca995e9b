"""Lookup of persistent seq_region ids for sequence names on the new assembly.

The feature table stores a seq_region_id rather than a chromosome name. Where
the ids come from (a core database, a dump of its seq_region table) is up to
the caller; the joiner only needs ``resolve(name)``.
"""

from __future__ import annotations

import abc
import logging
from pathlib import Path
from typing import Dict, Mapping

from .records import MalformedRecordError
from .utils import iter_numbered_lines

logger = logging.getLogger(__name__)


class UnknownSeqRegionError(LookupError):
    """Raised when a sequence name has no seq_region id."""


class SeqRegionResolver(abc.ABC):
    @abc.abstractmethod
    def resolve(self, name: str) -> str:
        """Return the seq_region_id of ``name`` or raise UnknownSeqRegionError."""


class MappingSeqRegionResolver(SeqRegionResolver):
    """Resolver backed by an in-memory ``name -> id`` mapping."""

    def __init__(self, ids: Mapping[str, object]) -> None:
        self._ids: Dict[str, str] = {str(k): str(v) for k, v in ids.items()}

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, name: object) -> bool:
        return name in self._ids

    def resolve(self, name: str) -> str:
        try:
            return self._ids[name]
        except KeyError:
            raise UnknownSeqRegionError(f"No seq_region_id for sequence name '{name}'") from None


def load_seq_region_table(path: str | Path) -> MappingSeqRegionResolver:
    """Read a two-column ``name<TAB>seq_region_id`` table.

    Lines starting with '#' are ignored. A name listed twice must map to the
    same id.
    """
    ids: Dict[str, str] = {}
    for line_no, line in iter_numbered_lines(path):
        if line.startswith("#"):
            continue
        parts = line.split("\t")
        if len(parts) < 2 or not parts[0] or not parts[1]:
            raise MalformedRecordError(path, line_no, "expected 'name<TAB>seq_region_id'")
        name, region_id = parts[0], parts[1].strip()
        if name in ids and ids[name] != region_id:
            raise MalformedRecordError(
                path, line_no, f"conflicting ids for '{name}': {ids[name]} and {region_id}"
            )
        ids[name] = region_id
    logger.info("Loaded %d seq_region ids from %s", len(ids), path)
    return MappingSeqRegionResolver(ids)
