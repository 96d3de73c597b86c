"""Result containers produced per origin zone."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .domain import UnroutableDemandPart

# (F_JRT, F_ADT, F_NTR)
FactorTriple = tuple[float, float, float]


@dataclass(slots=True)
class ElasticityResult:
    """Per-destination factors of one origin zone together with the skims they were derived from."""

    origin_zone: str
    factors: Dict[str, FactorTriple]
    skims_reference: Dict[str, List[float]]
    skims_variant: Dict[str, List[float]]

    def total_factor(self, destination_zone: str) -> float:
        f_jrt, f_adt, f_ntr = self.factors[destination_zone]
        return f_jrt * f_adt * f_ntr


@dataclass(slots=True)
class WorkResult:
    """Outcome of one scenario for one origin zone."""

    origin_zone: str
    scenario: str
    skims: Dict[str, List[float]]
    unroutable: List[UnroutableDemandPart] = field(default_factory=list)
    elasticity: Optional[ElasticityResult] = None
