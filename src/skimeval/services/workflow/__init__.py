"""Work item / result contract and the per-origin-zone worker pool."""

from .handlers import CollectingResultHandler, UnroutableDemandCollector, WorkResultHandler
from .items import WorkItem
from .runner import EvaluationRunner, ResultWorker, RunSummary
from .worker import EvaluationWorker, Router, Scenario, StaticRouter

__all__ = [
    "CollectingResultHandler",
    "EvaluationRunner",
    "EvaluationWorker",
    "ResultWorker",
    "Router",
    "RunSummary",
    "Scenario",
    "StaticRouter",
    "UnroutableDemandCollector",
    "WorkItem",
    "WorkResultHandler",
]
