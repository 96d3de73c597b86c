"""High-level orchestration for evaluation requests."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from ...config import settings
from ...data.demand_matrices import DemandMatrices
from ...data.zones_repository import ZonesLookup, load_zones
from ...exceptions import ZoneNotFoundError
from ...models.domain import ElasticityEntry, FoundRoute, UnroutableDemandPart
from ...models.results import FactorTriple, WorkResult
from ...persistence.filesystem import FileStorage
from ...schemas.evaluation import (
    EvaluationRequest,
    EvaluationResponse,
    FactorModel,
    ScenarioModel,
    ScenarioResultModel,
    UnroutableStatsModel,
)
from ..deltat import DeltaTCalculator, get_calculator
from ..demand import UnroutableDemandStats
from ..elasticities import DemandFactorCalculator, ElasticitiesParameters
from ..outputs import FileResultHandler, json_number, skim_vector_to_json, unroutable_summary_to_json
from ..workflow import (
    CollectingResultHandler,
    EvaluationRunner,
    EvaluationWorker,
    Scenario,
    StaticRouter,
    UnroutableDemandCollector,
    WorkResultHandler,
)

logger = logging.getLogger(__name__)


def _build_lookup(request: EvaluationRequest) -> ZonesLookup:
    indices: Dict[str, int] = {}
    clusters: Dict[str, str] = {}
    for position, zone in enumerate(request.zones):
        if zone.zone_id in indices:
            raise ValueError(f"Zone '{zone.zone_id}' is listed more than once.")
        indices[zone.zone_id] = zone.index if zone.index is not None else position
        if zone.cluster:
            clusters[zone.zone_id] = zone.cluster
    if len(set(indices.values())) != len(indices):
        raise ValueError("Zone indices must be unique.")
    if not clusters and settings.zones_file is not None:
        clusters = _clusters_from_zones_file(indices)
    return ZonesLookup(indices, clusters)


def _clusters_from_zones_file(zone_ids: Iterable[str]) -> Dict[str, str]:
    """Fill clusters from the configured zones file when the request carries none."""
    file_lookup = load_zones()
    clusters: Dict[str, str] = {}
    for zone in zone_ids:
        try:
            clusters[zone] = file_lookup.get_cluster(zone)
        except ZoneNotFoundError:
            continue
    logger.info(f"Took clusters of {len(clusters)} zones from {settings.zones_file}")
    return clusters


def _build_router(scenario: ScenarioModel, calculator: DeltaTCalculator) -> StaticRouter:
    window = scenario.departure_window
    routes: Dict[str, Dict[str, List[FoundRoute]]] = {}
    for origin in scenario.routes:
        per_destination = routes.setdefault(origin.origin_zone, {})
        for route in origin.routes:
            adaptation_time = route.adaptation_time
            if adaptation_time is None:
                adaptation_time = (
                    calculator.adaptation_time(route.departure_time, window.start, window.end) if window else 0.0
                )
            per_destination.setdefault(route.destination_zone, []).append(
                FoundRoute(
                    destination_zone=route.destination_zone,
                    departure_time=route.departure_time,
                    arrival_time=route.arrival_time,
                    transfers=route.transfers,
                    demand=route.demand,
                    adaptation_time=adaptation_time,
                )
            )
    unroutable = [UnroutableDemandPart(part.from_zone, part.to_zone, part.demand) for part in scenario.unroutable]
    return StaticRouter(routes, unroutable)


def _build_factor_calculator(request: EvaluationRequest, lookup: ZonesLookup) -> Optional[DemandFactorCalculator]:
    if not request.variants:
        return None
    params = ElasticitiesParameters(segment=request.segment or settings.elasticities_segment)
    entries = None
    if request.elasticities is not None:
        entries = [ElasticityEntry(**entry.model_dump()) for entry in request.elasticities]
    return DemandFactorCalculator(params, lookup, entries)


def _scenario_result(
    name: str,
    results: List[WorkResult],
    collector: UnroutableDemandCollector,
    demand: DemandMatrices,
    share_limit: Optional[float],
) -> ScenarioResultModel:
    stats = UnroutableDemandStats(collector.for_scenario(name), demand)
    return ScenarioResultModel(
        name=name,
        skims={
            result.origin_zone: {to_zone: skim_vector_to_json(vector) for to_zone, vector in result.skims.items()}
            for result in results
        },
        unroutable=UnroutableStatsModel(**unroutable_summary_to_json(stats.summary(share_limit))),
    )


def _factor_row(
    variant: str, from_zone: str, to_zone: str, triple: FactorTriple, demand: DemandMatrices
) -> FactorModel:
    f_jrt, f_adt, f_ntr = triple
    total = f_jrt * f_adt * f_ntr
    od_demand = demand.get_value(from_zone, to_zone)
    return FactorModel(
        variant=variant,
        from_zone=from_zone,
        to_zone=to_zone,
        f_jrt=json_number(f_jrt),
        f_adt=json_number(f_adt),
        f_ntr=json_number(f_ntr),
        total_factor=json_number(total),
        demand=od_demand,
        adjusted_demand=json_number(od_demand * total),
    )


def run_evaluation(request: EvaluationRequest) -> EvaluationResponse:
    lookup = _build_lookup(request)
    demand = DemandMatrices.from_od_demands(
        ((row.from_zone, row.to_zone, row.demand) for row in request.demand),
        lookup,
    )
    delta_t = get_calculator(request.delta_t_policy or settings.delta_t_policy)

    worker = EvaluationWorker(
        reference=Scenario(request.reference.name, _build_router(request.reference, delta_t)),
        variants=[Scenario(variant.name, _build_router(variant, delta_t)) for variant in request.variants],
        factor_calculator=_build_factor_calculator(request, lookup),
    )

    collector = CollectingResultHandler()
    unroutable = UnroutableDemandCollector()
    handlers: List[WorkResultHandler] = [collector, unroutable]
    file_handler: Optional[FileResultHandler] = None
    if request.persist:
        file_handler = FileResultHandler(
            FileStorage(),
            demand,
            prefix=request.run_label or "evaluation",
            share_limit=request.unroutable_share_limit,
        )
        handlers.append(file_handler)

    origin_zones = list(request.origin_zones) if request.origin_zones is not None else lookup.zone_ids()
    unknown = [zone for zone in origin_zones if zone not in lookup]
    if unknown:
        raise ValueError(f"Unknown origin zones: {', '.join(unknown)}")

    runner = EvaluationRunner(worker, handlers, thread_count=request.thread_count, ordered=request.ordered)
    summary = runner.run(origin_zones)

    scenarios = [
        _scenario_result(name, collector.for_scenario(name), unroutable, demand, request.unroutable_share_limit)
        for name in worker.scenario_names
    ]
    factors = [
        _factor_row(result.scenario, result.origin_zone, to_zone, triple, demand)
        for result in collector.results
        if result.elasticity is not None
        for to_zone, triple in result.elasticity.factors.items()
    ]

    metadata: dict = {
        "origin_zones": len(origin_zones),
        "elapsed_seconds": summary.elapsed_seconds,
        "demand_total": demand.get_sum(),
        "time_windows": demand.time_windows,
    }
    if file_handler is not None and file_handler.run_directory is not None:
        metadata["output_dir"] = str(file_handler.run_directory)

    logger.info(
        f"Evaluation finished: {len(summary.completed)} zones completed, {len(summary.failed)} failed"
    )
    return EvaluationResponse(
        scenarios=scenarios,
        factors=factors,
        completed_zones=summary.completed,
        failed_zones={zone: str(error) for zone, error in summary.failed.items()},
        metadata=metadata,
    )
