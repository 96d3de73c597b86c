"""Unroutable demand accounting."""

from .unroutable import (
    OriginDemandSource,
    UnroutableDemand,
    UnroutableDemandStats,
    UnroutableDemandSummary,
)

__all__ = [
    "OriginDemandSource",
    "UnroutableDemand",
    "UnroutableDemandStats",
    "UnroutableDemandSummary",
]
