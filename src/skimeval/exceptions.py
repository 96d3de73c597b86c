"""Error types shared across the evaluation services."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised when static inputs (elasticity table, settings) cannot support a run."""


class ZoneNotFoundError(LookupError):
    """Raised when a zone id is unknown to a lookup or demand matrix."""

    def __init__(self, zone: str) -> None:
        super().__init__(f"Zone '{zone}' not found.")
        self.zone = zone
