"""Skim aggregation services."""

from .calculator import (
    ADT_IDX,
    DEMAND_IDX,
    JRT_IDX,
    NTR_IDX,
    SKIM_COLUMNS,
    SkimMetric,
    SkimVector,
    calculate_skim_vector,
    calculate_skims,
)

__all__ = [
    "ADT_IDX",
    "DEMAND_IDX",
    "JRT_IDX",
    "NTR_IDX",
    "SKIM_COLUMNS",
    "SkimMetric",
    "SkimVector",
    "calculate_skim_vector",
    "calculate_skims",
]
