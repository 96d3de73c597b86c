import threading
import time
from concurrent.futures import Future

import pytest

from src.skimeval.data.zones_repository import ZonesLookup
from src.skimeval.models.domain import ElasticityEntry, FoundRoute, SkimType, UnroutableDemandPart
from src.skimeval.models.results import WorkResult
from src.skimeval.services.elasticities import DemandFactorCalculator, ElasticitiesParameters
from src.skimeval.services.workflow import (
    CollectingResultHandler,
    EvaluationRunner,
    EvaluationWorker,
    Scenario,
    StaticRouter,
    UnroutableDemandCollector,
    WorkItem,
    WorkResultHandler,
)

ZONES = ["A", "B", "C", "D"]


def _route(destination: str, minutes: float, demand: float = 1.0, transfers: int = 0) -> FoundRoute:
    return FoundRoute(destination, 0.0, minutes * 60.0, transfers=transfers, demand=demand)


def _static_router(minutes: float) -> StaticRouter:
    routes = {
        origin: {dest: [_route(dest, minutes)] for dest in ZONES if dest != origin}
        for origin in ZONES
    }
    return StaticRouter(routes, [UnroutableDemandPart("B", "A", 3.0)])


class SlowFailingRouter:
    """Delegates to a static router, sleeps for ``slow`` zones and raises for ``failing`` zones."""

    def __init__(self, router: StaticRouter, failing=(), slow=()) -> None:
        self.router = router
        self.failing = set(failing)
        self.slow = set(slow)

    def find_routes(self, origin_zone, on_unroutable):
        if origin_zone in self.slow:
            time.sleep(0.05)
        if origin_zone in self.failing:
            raise RuntimeError(f"no network for {origin_zone}")
        return self.router.find_routes(origin_zone, on_unroutable)


class CountingHandler(WorkResultHandler):
    def __init__(self) -> None:
        self.count = 0
        self.close_calls = 0

    def handle_result(self, result: WorkResult) -> None:
        self.count += 1

    def close(self) -> None:
        self.close_calls += 1


class ExplodingHandler(WorkResultHandler):
    def __init__(self) -> None:
        self.close_calls = 0

    def handle_result(self, result: WorkResult) -> None:
        raise RuntimeError("disk full")

    def close(self) -> None:
        self.close_calls += 1
        raise RuntimeError("still full")


def _calculator() -> DemandFactorCalculator:
    entries = [
        ElasticityEntry(cluster, "Fr", "", skim_type, -1.0, 0.0, 0.0, -5.0, 5.0, 0.1, 10.0)
        for cluster in (1, 2)
        for skim_type in (SkimType.JRT, SkimType.ADT, SkimType.NTR)
    ]
    lookup = ZonesLookup({zone: i for i, zone in enumerate(ZONES)}, {zone: "CH" for zone in ZONES})
    return DemandFactorCalculator(ElasticitiesParameters(segment="Fr"), lookup, entries)


def test_work_item_slots_and_failure() -> None:
    with pytest.raises(ValueError):
        WorkItem.create("A", slots=0)

    item = WorkItem.create("A", slots=2)
    item.results[0].set_result("done")
    item.fail(RuntimeError("boom"))

    assert item.done
    assert item.results[0].result() == "done"
    with pytest.raises(RuntimeError):
        item.results[1].result()


def test_worker_resolves_reference_slot() -> None:
    worker = EvaluationWorker(Scenario("reference", _static_router(10)))
    item = worker.create_work_item("B")

    worker.process(item)

    result = item.results[0].result()
    assert result.origin_zone == "B"
    assert result.scenario == "reference"
    assert set(result.skims) == {"A", "C", "D"}
    assert result.unroutable == [UnroutableDemandPart("B", "A", 3.0)]
    assert result.elasticity is None


def test_worker_requires_calculator_for_variants() -> None:
    with pytest.raises(ValueError):
        EvaluationWorker(Scenario("reference", _static_router(10)), [Scenario("variant", _static_router(5))])


def test_worker_failure_is_set_on_all_slots() -> None:
    router = SlowFailingRouter(_static_router(10), failing={"A"})
    worker = EvaluationWorker(Scenario("reference", router), [Scenario("variant", router)], _calculator())
    item = worker.create_work_item("A")

    worker.process(item)

    assert item.done
    for future in item.results:
        with pytest.raises(RuntimeError, match="no network"):
            future.result()


def test_runner_isolates_failing_zone_and_closes_handlers_once() -> None:
    router = SlowFailingRouter(_static_router(10), failing={"C"})
    worker = EvaluationWorker(Scenario("reference", router))
    collector = CollectingResultHandler()
    counter = CountingHandler()

    summary = EvaluationRunner(worker, [collector, counter], thread_count=3, ordered=True).run(ZONES)

    assert summary.completed == ["A", "B", "D"]
    assert list(summary.failed) == ["C"]
    assert not summary.ok
    assert [result.origin_zone for result in collector.results] == ["A", "B", "D"]
    assert counter.count == 3
    assert counter.close_calls == 1
    assert collector.closed


def test_ordered_delivery_follows_submission_order() -> None:
    router = SlowFailingRouter(_static_router(10), slow={"A", "B"})
    worker = EvaluationWorker(Scenario("reference", router))
    collector = CollectingResultHandler()

    EvaluationRunner(worker, [collector], thread_count=4, ordered=True).run(ZONES)

    assert [result.origin_zone for result in collector.results] == ZONES


def test_unordered_delivery_delivers_every_zone() -> None:
    router = SlowFailingRouter(_static_router(10), slow={"A"})
    worker = EvaluationWorker(Scenario("reference", router))
    collector = CollectingResultHandler()

    summary = EvaluationRunner(worker, [collector], thread_count=4, ordered=False).run(ZONES)

    assert sorted(result.origin_zone for result in collector.results) == ZONES
    assert sorted(summary.completed) == ZONES


def test_variant_results_carry_factors() -> None:
    worker = EvaluationWorker(
        Scenario("reference", _static_router(20)),
        [Scenario("faster", _static_router(10))],
        _calculator(),
    )
    collector = CollectingResultHandler()
    unroutable = UnroutableDemandCollector()

    EvaluationRunner(worker, [collector, unroutable], thread_count=2).run(ZONES)

    variants = collector.for_scenario("faster")
    assert len(variants) == len(ZONES)
    assert len(collector.for_scenario("reference")) == len(ZONES)
    for result in variants:
        assert result.elasticity is not None
        for to_zone in result.skims:
            # (10 / 20) ** -1 on journey time, neutral otherwise
            assert result.elasticity.total_factor(to_zone) == pytest.approx(2.0)
    assert unroutable.for_scenario("reference").sum() == 3.0
    assert unroutable.for_scenario("faster").sum() == 3.0


def test_handler_errors_do_not_stop_draining() -> None:
    worker = EvaluationWorker(Scenario("reference", _static_router(10)))
    exploding = ExplodingHandler()
    counter = CountingHandler()

    summary = EvaluationRunner(worker, [exploding, counter], thread_count=2).run(ZONES)

    assert counter.count == len(ZONES)
    assert counter.close_calls == 1
    assert exploding.close_calls == 1
    assert set(summary.failed) == set(ZONES)


def test_workers_run_in_parallel_threads() -> None:
    seen = set()
    lock = threading.Lock()

    class RecordingRouter:
        def find_routes(self, origin_zone, on_unroutable):
            with lock:
                seen.add(threading.current_thread().name)
            time.sleep(0.02)
            return {}

    worker = EvaluationWorker(Scenario("reference", RecordingRouter()))
    EvaluationRunner(worker, [CollectingResultHandler()], thread_count=2).run(ZONES)

    assert all(name.startswith("skimeval") for name in seen)
    assert isinstance(WorkItem.create("A").results[0], Future)


def test_handler_context_manager_closes() -> None:
    with CollectingResultHandler() as handler:
        handler.handle_result(WorkResult("A", "reference", {}))

    assert handler.closed
    assert len(handler.for_scenario("reference")) == 1


def test_each_origin_keeps_its_own_factor_record() -> None:
    def routes(minutes: float) -> StaticRouter:
        return StaticRouter(
            {
                "A": {"B": [_route("B", minutes)], "C": [_route("C", minutes)]},
                "B": {"D": [_route("D", minutes)]},
                "C": {},
                "D": {"A": [_route("A", minutes)], "B": [_route("B", minutes)], "C": [_route("C", minutes)]},
            }
        )

    worker = EvaluationWorker(
        Scenario("reference", SlowFailingRouter(routes(20), slow=set(ZONES))),
        [Scenario("variant", SlowFailingRouter(routes(10), slow=set(ZONES)))],
        _calculator(),
    )
    collector = CollectingResultHandler()

    EvaluationRunner(worker, [collector], thread_count=4, ordered=False).run(ZONES)

    factors = {result.origin_zone: result.elasticity.factors for result in collector.for_scenario("variant")}
    assert set(factors["A"]) == {"B", "C"}
    assert set(factors["B"]) == {"D"}
    assert factors["C"] == {}
    assert set(factors["D"]) == {"A", "B", "C"}
    assert len({id(record) for record in factors.values()}) == len(ZONES)
