"""Unit of parallel work: one origin zone with one result slot per scenario."""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import List

from ...models.results import WorkResult


@dataclass(slots=True)
class WorkItem:
    """Slot 0 holds the reference scenario, slot i the i-th variant.

    Each slot is resolved exactly once by the worker, either with a
    :class:`WorkResult` or with the exception that stopped the zone.
    """

    origin_zone: str
    results: List["Future[WorkResult]"] = field(default_factory=list)

    @classmethod
    def create(cls, origin_zone: str, slots: int = 1) -> "WorkItem":
        if slots < 1:
            raise ValueError("A work item needs at least one result slot.")
        return cls(origin_zone=origin_zone, results=[Future() for _ in range(slots)])

    def fail(self, error: BaseException) -> None:
        """Fail every slot that has not been resolved yet."""
        for future in self.results:
            if not future.done():
                future.set_exception(error)

    @property
    def done(self) -> bool:
        return all(future.done() for future in self.results)
