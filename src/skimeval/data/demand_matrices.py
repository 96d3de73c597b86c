"""Zone-indexed demand matrices, one per time window."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

import numpy as np

from ..exceptions import ZoneNotFoundError
from .zones_repository import ZonesLookup


class DemandMatrices:
    """Stack of OD demand matrices shaped (time windows, zones, zones)."""

    def __init__(self, data: np.ndarray, lookup: ZonesLookup) -> None:
        data = np.array(data, dtype=float)
        if data.ndim == 2:
            data = data[np.newaxis, :, :]
        if data.ndim != 3 or data.shape[1] != data.shape[2]:
            raise ValueError(f"Demand data must be square per time window, got shape {data.shape}.")
        self._data = data
        self.lookup = lookup
        self._data.setflags(write=False)

    @classmethod
    def from_od_demands(
        cls,
        demands: Iterable[tuple[str, str, float]],
        lookup: ZonesLookup | None = None,
    ) -> "DemandMatrices":
        """Build a single-window matrix from (from, to, demand) triples.

        Without an explicit lookup, zones are indexed in order of first appearance.
        """
        rows = list(demands)
        if lookup is None:
            indices: dict[str, int] = {}
            for from_zone, to_zone, _ in rows:
                for zone in (from_zone, to_zone):
                    indices.setdefault(zone, len(indices))
            lookup = ZonesLookup(indices)
        size = max((lookup.get_index(zone) for zone in lookup.zone_ids()), default=-1) + 1
        data = np.zeros((size, size), dtype=float)
        for from_zone, to_zone, value in rows:
            data[lookup.get_index(from_zone), lookup.get_index(to_zone)] += value
        return cls(data, lookup)

    @classmethod
    def from_matrix(cls, matrix: Sequence[Sequence[float]], zone_ids: Sequence[str], clusters: Mapping[str, str] | None = None) -> "DemandMatrices":
        lookup = ZonesLookup({zone: index for index, zone in enumerate(zone_ids)}, clusters)
        return cls(np.asarray(matrix, dtype=float), lookup)

    @property
    def time_windows(self) -> int:
        return self._data.shape[0]

    def zone_ids(self) -> list[str]:
        return self.lookup.zone_ids()

    def _index(self, zone: str) -> int:
        index = self.lookup.get_index(zone)
        if index >= self._data.shape[1]:
            raise ZoneNotFoundError(zone)
        return index

    def get_value(self, from_zone: str, to_zone: str) -> float:
        return float(self._data[:, self._index(from_zone), self._index(to_zone)].sum())

    def get_origin_sum(self, zone: str) -> float:
        return float(self._data[:, self._index(zone), :].sum())

    def get_sum(self) -> float:
        return float(self._data.sum())
