"""Adaptation time calculators."""

from .calculator import (
    DeltaTCalculator,
    IntervalBoundaries,
    IntervalCenter,
    normalize_delta_t,
)
from .dispatcher import get_calculator

__all__ = [
    "DeltaTCalculator",
    "IntervalBoundaries",
    "IntervalCenter",
    "normalize_delta_t",
    "get_calculator",
]
