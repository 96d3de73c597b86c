"""Zone lookup: zone name to matrix index and zone to cluster (region code)."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Mapping, Optional

from ..config import settings
from ..exceptions import ZoneNotFoundError

logger = logging.getLogger(__name__)


class ZonesLookup:
    """Read-only after construction, shared by all workers without locking."""

    def __init__(self, indices: Mapping[str, int], clusters: Optional[Mapping[str, str]] = None) -> None:
        self._indices = dict(indices)
        self._clusters = dict(clusters or {})

    def get_index(self, zone: str) -> int:
        try:
            return self._indices[zone]
        except KeyError:
            raise ZoneNotFoundError(zone) from None

    def get_cluster(self, zone: str) -> str:
        try:
            return self._clusters[zone]
        except KeyError:
            raise ZoneNotFoundError(zone) from None

    def zone_ids(self) -> list[str]:
        """Zone ids ordered by matrix index."""
        return sorted(self._indices, key=self._indices.__getitem__)

    def __contains__(self, zone: object) -> bool:
        return zone in self._indices

    def __len__(self) -> int:
        return len(self._indices)


def load_zones(source: Optional[Path] = None, cluster_column: Optional[str] = None) -> ZonesLookup:
    """Load a zone lookup from a delimited file with NAME, NO and an optional cluster column."""

    path = source or settings.zones_file
    if path is None:
        raise ValueError("No zones file configured.")
    if not path.exists():
        raise FileNotFoundError(f"Zones file not found: {path}")
    cluster_column = cluster_column or settings.cluster_column

    indices: dict[str, int] = {}
    clusters: dict[str, str] = {}
    with path.open(mode="r", encoding="utf-8-sig", newline="") as handle:
        sample = handle.read(4096)
        handle.seek(0)
        delimiter = ";" if sample.count(";") >= sample.count(",") else ","
        reader = csv.DictReader(handle, delimiter=delimiter)
        fieldnames = reader.fieldnames or []
        for required in ("NAME", "NO"):
            if required not in fieldnames:
                raise ValueError(f"Zones file '{path}' must contain '{required}' column.")
        for row in reader:
            name = row["NAME"].strip()
            indices[name] = int(row["NO"])
            cluster = (row.get(cluster_column) or "").strip()
            if cluster:
                clusters[name] = cluster

    logger.info(f"Loaded {len(indices)} zones ({len(clusters)} with cluster) from {path}")
    return ZonesLookup(indices, clusters)
