"""Factory for adaptation time policies based on configuration."""

from __future__ import annotations

from .calculator import DeltaTCalculator, IntervalBoundaries, IntervalCenter


def get_calculator(policy: str) -> DeltaTCalculator:
    match policy:
        case "boundaries":
            return IntervalBoundaries()
        case "center":
            return IntervalCenter()
        case _:
            raise ValueError(f"Unknown delta T policy '{policy}'.")
