"""Skim aggregation over the routes found for one origin zone.

For every destination zone the six metrics are folded in a fixed order. The
demand-weighted metrics are divided by the demand total of the same
destination once all routes are folded, so DEMAND (index 0) has to be final
before any of them is normalized. Journey times keep the route unit (seconds),
adaptation time is reported in minutes.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Callable, Mapping, Sequence

from ...models.domain import FoundRoute

SkimVector = list[float]


def _demand(route: FoundRoute) -> float:
    return route.demand


def _journey_time(route: FoundRoute) -> float:
    return route.journey_time


def _route_count(route: FoundRoute) -> float:
    return 1.0


def _weighted_journey_time(route: FoundRoute) -> float:
    return route.demand * route.journey_time


def _weighted_transfers(route: FoundRoute) -> float:
    return route.demand * route.transfers


def _weighted_adaptation_time(route: FoundRoute) -> float:
    return route.demand * route.adaptation_time / 60.0


class SkimMetric(Enum):
    """Skim columns in vector order: (index, per-route contribution, normalized by demand)."""

    DEMAND = (0, _demand, False)
    JOURNEY_TIME = (1, _journey_time, False)
    NUMBER_OF_ROUTES = (2, _route_count, False)
    WEIGHTED_JOURNEY_TIME = (3, _weighted_journey_time, True)
    WEIGHTED_TRANSFERS = (4, _weighted_transfers, True)
    WEIGHTED_ADAPTATION_TIME = (5, _weighted_adaptation_time, True)

    def __init__(self, index: int, contribution: Callable[[FoundRoute], float], normalized: bool) -> None:
        self.index = index
        self.contribution = contribution
        self.normalized_by_demand = normalized

    def aggregate(self, routes: Sequence[FoundRoute]) -> float:
        value = 0.0
        for route in routes:
            value += self.contribution(route)
        return value


DEMAND_IDX = SkimMetric.DEMAND.index
JRT_IDX = SkimMetric.WEIGHTED_JOURNEY_TIME.index
NTR_IDX = SkimMetric.WEIGHTED_TRANSFERS.index
ADT_IDX = SkimMetric.WEIGHTED_ADAPTATION_TIME.index
SKIM_COLUMNS = tuple(metric.name for metric in SkimMetric)


def divide_by_demand(value: float, demand: float) -> float:
    """IEEE division: 0/0 is NaN and x/0 is a signed infinity, as for the route totals upstream."""
    if demand == 0:
        if value == 0 or math.isnan(value):
            return math.nan
        return math.copysign(math.inf, value)
    return value / demand


def calculate_skim_vector(routes: Sequence[FoundRoute]) -> SkimVector:
    vector = [0.0] * len(SkimMetric)
    for metric in SkimMetric:
        value = metric.aggregate(routes)
        if metric.normalized_by_demand:
            value = divide_by_demand(value, vector[DEMAND_IDX])
        vector[metric.index] = value
    return vector


def calculate_skims(routes_per_destination: Mapping[str, Sequence[FoundRoute]]) -> dict[str, SkimVector]:
    """Map each destination zone to its skim vector. Holds no state between calls."""
    return {
        destination: calculate_skim_vector(routes)
        for destination, routes in routes_per_destination.items()
    }
