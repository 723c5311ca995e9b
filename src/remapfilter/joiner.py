from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Dict, Mapping

from .models import FeatureRecord, to_load_row
from .query_key import MODE_STANDARD, decode_query_name, normalize_mode
from .records import iter_feature_records, iter_filtered_placements
from .seq_region import SeqRegionResolver, UnknownSeqRegionError
from .utils import atomic_replace

logger = logging.getLogger(__name__)


class JoinConsistencyError(RuntimeError):
    """A filtered placement cannot be joined to its feature or seq_region."""

    def __init__(self, message: str, *, query_name: str) -> None:
        super().__init__(message)
        self.query_name = query_name


def load_feature_records(path: str | Path) -> Dict[str, FeatureRecord]:
    """Index the feature dump by variation_feature_id. A repeated id keeps the last line."""
    features: Dict[str, FeatureRecord] = {}
    duplicates = 0
    for rec in iter_feature_records(path):
        if rec.variation_feature_id in features:
            duplicates += 1
        features[rec.variation_feature_id] = rec
    if duplicates:
        logger.warning(
            "%d duplicate variation_feature_id lines in %s; the last one wins.", duplicates, path
        )
    logger.info("Loaded %d feature records from %s", len(features), path)
    return features


def count_map_weights(filtered_path: str | Path) -> Counter:
    """Number of surviving placements per query name (the new map_weight)."""
    return Counter(p.query_name for p in iter_filtered_placements(filtered_path))


class FeatureJoiner:
    """Merge surviving placements into the feature records of the old assembly."""

    def __init__(
        self,
        features: Mapping[str, FeatureRecord],
        seq_regions: SeqRegionResolver,
        mode: str = MODE_STANDARD,
    ) -> None:
        self.features = features
        self.seq_regions = seq_regions
        self.mode = normalize_mode(mode)

    def join(self, filtered_path: str | Path, out_path: str | Path) -> int:
        """Write one load-ready row per filtered placement; return the row count.

        The output only appears at ``out_path`` once every row joined.
        """
        map_weights = count_map_weights(filtered_path)

        out_path = Path(out_path)
        tmp_path = out_path.with_name(out_path.name + ".tmp")
        n_rows = 0
        try:
            with open(tmp_path, "wt", encoding="utf-8") as out:
                for placement in iter_filtered_placements(filtered_path):
                    vf_id = decode_query_name(placement.query_name, self.mode).feature_id
                    feature = self.features.get(vf_id)
                    if feature is None:
                        raise JoinConsistencyError(
                            f"No feature record for variation_feature_id '{vf_id}' "
                            f"(query {placement.query_name})",
                            query_name=placement.query_name,
                        )
                    try:
                        seq_region_id = self.seq_regions.resolve(placement.locus.chrom)
                    except UnknownSeqRegionError as e:
                        raise JoinConsistencyError(
                            f"{e} (query {placement.query_name})",
                            query_name=placement.query_name,
                        ) from e

                    data = feature.with_placement(
                        seq_region_id=seq_region_id,
                        placement=placement,
                        map_weight=map_weights[placement.query_name],
                    )
                    out.write(to_load_row(data) + "\n")
                    n_rows += 1
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

        atomic_replace(tmp_path, out_path)
        logger.info("Wrote %d load-ready rows to %s", n_rows, out_path)
        return n_rows
