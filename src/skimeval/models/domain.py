"""Domain models for routes, skims, elasticities and unroutable demand."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional


@dataclass(frozen=True, slots=True)
class ODPair:
    """Origin-destination zone pair used as aggregation and lookup key."""

    from_zone: str
    to_zone: str


@dataclass(slots=True)
class FoundRoute:
    """A route produced by the router for one destination zone.

    Times are seconds after midnight, ``adaptation_time`` is in seconds.
    """

    destination_zone: str
    departure_time: float
    arrival_time: float
    transfers: int = 0
    demand: float = 0.0
    adaptation_time: float = 0.0

    @property
    def journey_time(self) -> float:
        return self.arrival_time - self.departure_time


class SkimType(str, Enum):
    """Skim metric a row of the elasticity table applies to."""

    JRT = "JRT"
    NTR = "NTR"
    ADT = "ADT"
    PM = "PM"


@dataclass(frozen=True, slots=True)
class ElasticityEntry:
    """A single row of the elasticity table."""

    cluster: int
    segment: str
    description: str
    skim_type: SkimType
    elasticity0: float
    a: float
    b: float
    min: float
    max: float
    f_min: float
    f_max: float
    kg_max: Optional[float] = None


@dataclass(frozen=True, slots=True)
class UnroutableDemandPart:
    from_zone: str
    to_zone: str
    demand: float


@dataclass(frozen=True, slots=True)
class UnroutableDemandZone:
    """Origin zone with the largest total demand among the zones above the share limit.

    ``demand`` is the total (routable + unroutable) demand of that origin.
    """

    from_zone: Optional[str]
    demand: Optional[float]

    EMPTY: ClassVar["UnroutableDemandZone"]

    @property
    def is_empty(self) -> bool:
        return self.from_zone is None


UnroutableDemandZone.EMPTY = UnroutableDemandZone(None, None)
