"""Demand elasticity services."""

from .calculator import (
    DemandFactorCalculator,
    ElasticitiesParameters,
    ElasticityKey,
    Multiplier,
)
from .entries import parse_entry, read_elasticity_entries

__all__ = [
    "DemandFactorCalculator",
    "ElasticitiesParameters",
    "ElasticityKey",
    "Multiplier",
    "parse_entry",
    "read_elasticity_entries",
]
