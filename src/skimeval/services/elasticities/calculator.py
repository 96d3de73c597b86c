"""Demand factors from reference/variant skim differences via elasticity curves."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, NamedTuple, Protocol, Sequence

import numpy as np

from ...config import settings
from ...exceptions import ConfigurationError
from ...models.domain import ElasticityEntry, SkimType
from ...models.results import ElasticityResult, FactorTriple
from ..skims import ADT_IDX, JRT_IDX, NTR_IDX, SkimVector
from .entries import read_elasticity_entries

logger = logging.getLogger(__name__)

REQUIRED_SKIM_TYPES = (SkimType.JRT, SkimType.ADT, SkimType.NTR)
# covariate pivots, applied to the raw skim values
ADAPTATION_TIME_PIVOT = 15.0
JOURNEY_TIME_PIVOT = 45.0
NEUTRAL_FACTOR = 1.0


class ClusterLookup(Protocol):
    def get_cluster(self, zone: str) -> str: ...


class ElasticityKey(NamedTuple):
    cluster: int
    skim_type: SkimType


@dataclass(slots=True)
class ElasticitiesParameters:
    file: Path = settings.elasticities_file
    segment: str = settings.elasticities_segment
    transfer_offset: float = settings.transfer_offset
    adaptation_time_upper_bound: float = settings.adaptation_time_upper_bound


def _power(base: float, exponent: float) -> float:
    if base < 0.0:
        return math.nan
    if base == 0.0 and exponent < 0.0:
        return math.inf
    return base ** exponent


class DemandFactorCalculator:
    """Holds the elasticity table of one segment; shared read-only between workers.

    Per-origin evaluation state lives in :class:`Multiplier`, created through
    :meth:`create_multiplier` once per origin zone task.
    """

    def __init__(
        self,
        params: ElasticitiesParameters,
        lookup: ClusterLookup,
        entries: Sequence[ElasticityEntry] | None = None,
        *,
        home_cluster: str | None = None,
        domestic_cluster: int | None = None,
        international_cluster: int | None = None,
    ) -> None:
        self.params = params
        self.lookup = lookup
        self.home_cluster = home_cluster or settings.home_cluster
        self.domestic_cluster = domestic_cluster if domestic_cluster is not None else settings.domestic_cluster_id
        self.international_cluster = (
            international_cluster if international_cluster is not None else settings.international_cluster_id
        )
        if params.transfer_offset <= 0:
            raise ConfigurationError("transfer_offset must be > 0")

        if entries is None:
            entries = read_elasticity_entries(params.file)
        self.entries = self._index_entries(
            entries, params.segment, (self.domestic_cluster, self.international_cluster)
        )

    @staticmethod
    def _index_entries(
        entries: Sequence[ElasticityEntry], segment: str, required_clusters: Sequence[int] = ()
    ) -> Mapping[ElasticityKey, ElasticityEntry]:
        indexed: dict[ElasticityKey, ElasticityEntry] = {}
        for entry in entries:
            if entry.segment != segment:
                continue
            indexed[ElasticityKey(entry.cluster, entry.skim_type)] = entry

        if not indexed:
            raise ConfigurationError(f"No elasticity entries found for segment {segment}")

        # every cluster compute_cluster can return must be complete
        for cluster in sorted({key.cluster for key in indexed} | set(required_clusters)):
            missing = [t.value for t in REQUIRED_SKIM_TYPES if ElasticityKey(cluster, t) not in indexed]
            if missing:
                raise ConfigurationError(
                    f"Elasticity entries for segment {segment}, cluster {cluster} are missing: {', '.join(missing)}"
                )

        logger.info(f"Indexed {len(indexed)} elasticity entries for segment {segment}")
        return MappingProxyType(indexed)

    def create_multiplier(self, reference: Mapping[str, SkimVector], variant: Mapping[str, SkimVector]) -> "Multiplier":
        return Multiplier(self, reference, variant)

    def compute_cluster(self, from_zone: str, to_zone: str) -> int:
        # only home-home relations are domestic, border regions count as international
        a = self.lookup.get_cluster(from_zone)
        b = self.lookup.get_cluster(to_zone)
        if a == b == self.home_cluster:
            return self.domestic_cluster
        return self.international_cluster

    def entry(self, cluster: int, skim_type: SkimType) -> ElasticityEntry:
        try:
            return self.entries[ElasticityKey(cluster, skim_type)]
        except KeyError:
            raise ConfigurationError(
                f"No elasticity entry for segment {self.params.segment}, cluster {cluster}, skim type {skim_type.value}"
            ) from None

    @staticmethod
    def compute_elasticity(entry: ElasticityEntry, ax: float, bx: float) -> float:
        return float(np.clip(entry.elasticity0 + entry.a * ax + entry.b * bx, entry.min, entry.max))

    def compute_factor(
        self, variant: SkimVector, reference: SkimVector, idx: int, elasticity: float, entry: ElasticityEntry
    ) -> float:
        if idx == NTR_IDX:
            offset = self.params.transfer_offset
            factor = _power((variant[idx] + offset) / (reference[idx] + offset), elasticity)
        elif reference[idx] == 0:
            return NEUTRAL_FACTOR
        else:
            factor = _power(variant[idx] / reference[idx], elasticity)
        return float(np.clip(factor, entry.f_min, entry.f_max))

    def compute_factors(self, from_zone: str, to_zone: str, reference: SkimVector, variant: SkimVector) -> FactorTriple:
        cluster = self.compute_cluster(from_zone, to_zone)

        ax = float(np.minimum(reference[ADT_IDX], self.params.adaptation_time_upper_bound)) / ADAPTATION_TIME_PIVOT
        bx = reference[JRT_IDX] / JOURNEY_TIME_PIVOT

        factors = []
        for skim_type, idx in ((SkimType.JRT, JRT_IDX), (SkimType.ADT, ADT_IDX), (SkimType.NTR, NTR_IDX)):
            entry = self.entry(cluster, skim_type)
            elasticity = self.compute_elasticity(entry, ax, bx)
            factors.append(self.compute_factor(variant, reference, idx, elasticity, entry))
        return factors[0], factors[1], factors[2]


class Multiplier:
    """Demand multiplier for a single origin zone.

    Records the per-metric factors of every destination it evaluated. Not
    thread-safe: each origin zone task creates its own instance.
    """

    def __init__(
        self,
        calculator: DemandFactorCalculator,
        reference: Mapping[str, SkimVector],
        variant: Mapping[str, SkimVector],
    ) -> None:
        self.calculator = calculator
        self.reference = reference
        self.variant = variant
        self.factors: dict[str, FactorTriple] = {}

    def get_factor(self, from_zone: str, to_zone: str, time_min: int = -1) -> float:
        reference_values = self.reference.get(to_zone)
        variant_values = self.variant.get(to_zone)
        if reference_values is None or variant_values is None:
            return NEUTRAL_FACTOR

        f_jrt, f_adt, f_ntr = self.calculator.compute_factors(from_zone, to_zone, reference_values, variant_values)
        self.factors[to_zone] = (f_jrt, f_adt, f_ntr)
        return f_jrt * f_adt * f_ntr

    def evaluate(self, from_zone: str, destinations: Sequence[str] | None = None) -> dict[str, float]:
        """Evaluate every destination known to both scenarios (or the given ones)."""
        if destinations is None:
            destinations = [zone for zone in self.reference if zone in self.variant]
        return {to_zone: self.get_factor(from_zone, to_zone) for to_zone in destinations}

    def create_result(self, from_zone: str) -> ElasticityResult:
        return ElasticityResult(
            origin_zone=from_zone,
            factors=dict(self.factors),
            skims_reference=dict(self.reference),
            skims_variant=dict(self.variant),
        )
