"""Per-origin-zone computation: skims, demand factors and unroutable demand."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Protocol, Sequence

from ...models.domain import FoundRoute, UnroutableDemandPart
from ...models.results import WorkResult
from ..demand import UnroutableDemand
from ..elasticities import DemandFactorCalculator
from ..skims import calculate_skims
from .items import WorkItem

logger = logging.getLogger(__name__)


class Router(Protocol):
    """Upstream route search for one scenario. Must be safe to call from several threads."""

    def find_routes(
        self,
        origin_zone: str,
        on_unroutable: Callable[[UnroutableDemandPart], None],
    ) -> Mapping[str, Sequence[FoundRoute]]: ...


class StaticRouter:
    """Router over routes that were found beforehand, e.g. loaded from an assignment run."""

    def __init__(
        self,
        routes: Mapping[str, Mapping[str, Sequence[FoundRoute]]],
        unroutable: Sequence[UnroutableDemandPart] = (),
    ) -> None:
        self._routes = routes
        self._unroutable: Dict[str, List[UnroutableDemandPart]] = {}
        for part in unroutable:
            self._unroutable.setdefault(part.from_zone, []).append(part)

    def find_routes(
        self,
        origin_zone: str,
        on_unroutable: Callable[[UnroutableDemandPart], None],
    ) -> Mapping[str, Sequence[FoundRoute]]:
        for part in self._unroutable.get(origin_zone, ()):
            on_unroutable(part)
        return self._routes.get(origin_zone, {})


@dataclass(slots=True)
class Scenario:
    name: str
    router: Router


class EvaluationWorker:
    """Processes work items; holds only read-only collaborators and can serve all pool threads.

    A fresh :class:`~skimeval.services.elasticities.Multiplier` is created
    inside every task, so the per-destination factor record of one origin
    zone is never visible to another.
    """

    def __init__(
        self,
        reference: Scenario,
        variants: Sequence[Scenario] = (),
        factor_calculator: DemandFactorCalculator | None = None,
    ) -> None:
        if variants and factor_calculator is None:
            raise ValueError("Comparing variants requires a demand factor calculator.")
        self.reference = reference
        self.variants = tuple(variants)
        self.factor_calculator = factor_calculator

    @property
    def slots(self) -> int:
        return 1 + len(self.variants)

    @property
    def scenario_names(self) -> List[str]:
        return [self.reference.name, *(scenario.name for scenario in self.variants)]

    def create_work_item(self, origin_zone: str) -> WorkItem:
        return WorkItem.create(origin_zone, self.slots)

    def evaluate_scenario(self, scenario: Scenario, origin_zone: str) -> WorkResult:
        unroutable = UnroutableDemand()
        routes = scenario.router.find_routes(origin_zone, unroutable.add_part)
        return WorkResult(
            origin_zone=origin_zone,
            scenario=scenario.name,
            skims=calculate_skims(routes),
            unroutable=list(unroutable.parts),
        )

    def process(self, item: WorkItem) -> None:
        origin_zone = item.origin_zone
        try:
            reference_result = self.evaluate_scenario(self.reference, origin_zone)
            item.results[0].set_result(reference_result)

            for slot, scenario in enumerate(self.variants, start=1):
                result = self.evaluate_scenario(scenario, origin_zone)
                multiplier = self.factor_calculator.create_multiplier(reference_result.skims, result.skims)
                multiplier.evaluate(origin_zone)
                result.elasticity = multiplier.create_result(origin_zone)
                item.results[slot].set_result(result)
        except Exception as exc:
            logger.warning(f"Processing of origin zone {origin_zone} failed: {exc}")
            item.fail(exc)
        finally:
            if not item.done:
                item.fail(RuntimeError(f"Origin zone {origin_zone} was not processed."))
