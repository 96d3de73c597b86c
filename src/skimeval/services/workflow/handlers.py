"""Consumers of finished work results."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List

from ...models.results import WorkResult
from ..demand import UnroutableDemand


class WorkResultHandler(ABC):
    """Receives every result of a run; :meth:`close` runs once after the run is drained."""

    @abstractmethod
    def handle_result(self, result: WorkResult) -> None:
        raise NotImplementedError

    def close(self) -> None:
        """Release resources opened by the handler."""

    def __enter__(self) -> "WorkResultHandler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class CollectingResultHandler(WorkResultHandler):
    """Keeps results in memory, in delivery order."""

    def __init__(self) -> None:
        self.results: List[WorkResult] = []
        self.closed = False

    def handle_result(self, result: WorkResult) -> None:
        self.results.append(result)

    def close(self) -> None:
        self.closed = True

    def for_scenario(self, scenario: str) -> List[WorkResult]:
        return [result for result in self.results if result.scenario == scenario]


class UnroutableDemandCollector(WorkResultHandler):
    """Merges the per-zone unroutable parts into one collection per scenario."""

    def __init__(self) -> None:
        self.demand: Dict[str, UnroutableDemand] = {}

    def handle_result(self, result: WorkResult) -> None:
        self.demand.setdefault(result.scenario, UnroutableDemand()).extend(result.unroutable)

    def for_scenario(self, scenario: str) -> UnroutableDemand:
        return self.demand.get(scenario, UnroutableDemand())
