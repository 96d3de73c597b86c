"""Accounting for demand the router could not place on any route."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

from ...config import settings
from ...models.domain import ODPair, UnroutableDemandPart, UnroutableDemandZone

logger = logging.getLogger(__name__)


class OriginDemandSource(Protocol):
    def get_origin_sum(self, zone: str) -> float: ...

    def get_sum(self) -> float: ...


class UnroutableDemand:
    """Ordered collection of unroutable demand parts.

    Filled through :meth:`add_part` (the router's failure callback) and only
    read once statistics are computed.
    """

    def __init__(self, parts: Iterable[UnroutableDemandPart] = ()) -> None:
        self._parts: list[UnroutableDemandPart] = list(parts)

    @property
    def parts(self) -> tuple[UnroutableDemandPart, ...]:
        return tuple(self._parts)

    def add_part(self, part: UnroutableDemandPart) -> None:
        self._parts.append(part)

    def extend(self, parts: Iterable[UnroutableDemandPart]) -> None:
        self._parts.extend(parts)

    def sum(self) -> float:
        return sum(part.demand for part in self._parts)

    def by_od_pair(self) -> dict[ODPair, float]:
        """Demand merged per OD pair, in order of first appearance."""
        merged: dict[ODPair, float] = {}
        for part in self._parts:
            key = ODPair(part.from_zone, part.to_zone)
            merged[key] = merged.get(key, 0.0) + part.demand
        return merged

    def __len__(self) -> int:
        return len(self._parts)


@dataclass(slots=True)
class UnroutableDemandSummary:
    total: float
    percent: float
    largest_zone: Optional[str]
    largest_zone_demand: Optional[float]


class UnroutableDemandStats:
    def __init__(self, unroutable_demand: UnroutableDemand, demand: OriginDemandSource) -> None:
        self.unroutable_demand = unroutable_demand
        self.demand = demand

    def unroutable_demand_per_origin(self) -> dict[str, float]:
        """Unroutable demand summed per origin zone, in order of first appearance."""
        per_origin: dict[str, float] = {}
        for part in self.unroutable_demand.parts:
            per_origin[part.from_zone] = per_origin.get(part.from_zone, 0.0) + part.demand
        return per_origin

    def total_unroutable_demand(self) -> float:
        return self.unroutable_demand.sum()

    def percent_unroutable_demand(self) -> float:
        total_demand = self.demand.get_sum()
        if total_demand == 0:
            return 0.0
        return self.total_unroutable_demand() / total_demand

    def largest_unroutable_demand_zone(self, limit: float | None = None) -> UnroutableDemandZone:
        """Origin zone with the largest total demand among those whose unroutable share exceeds ``limit``.

        Ties keep the zone seen first in the unroutable parts.
        """
        limit = settings.unroutable_share_limit if limit is None else limit

        largest: UnroutableDemandZone = UnroutableDemandZone.EMPTY
        for zone, unroutable in self.unroutable_demand_per_origin().items():
            total = self.demand.get_origin_sum(zone)
            share = unroutable / total if total != 0 else 0.0
            if share <= limit:
                continue
            if largest.is_empty or total > largest.demand:
                largest = UnroutableDemandZone(zone, total)

        if largest.is_empty:
            logger.info(f"No unroutable demand zone found above the limit {limit}")
        return largest

    def summary(self, limit: float | None = None) -> UnroutableDemandSummary:
        zone = self.largest_unroutable_demand_zone(limit)
        return UnroutableDemandSummary(
            total=self.total_unroutable_demand(),
            percent=self.percent_unroutable_demand(),
            largest_zone=zone.from_zone,
            largest_zone_demand=zone.demand,
        )
