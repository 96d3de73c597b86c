"""Dispatches one task per origin zone to a worker pool and drains the results."""

from __future__ import annotations

import logging
import queue
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ...config import settings
from .handlers import WorkResultHandler
from .items import WorkItem
from .worker import EvaluationWorker

logger = logging.getLogger(__name__)

# closes the result channel
_END_OF_RUN = None


@dataclass(slots=True)
class RunSummary:
    completed: List[str] = field(default_factory=list)
    failed: Dict[str, BaseException] = field(default_factory=dict)
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.failed


class ResultWorker(threading.Thread):
    """Consumes work items from the channel until it is closed, then closes all handlers."""

    def __init__(self, channel: "queue.Queue[Optional[WorkItem]]", handlers: Sequence[WorkResultHandler], total: int) -> None:
        super().__init__(name="skimeval-results", daemon=True)
        self.channel = channel
        self.handlers = list(handlers)
        self.total = total
        self.summary = RunSummary()

    def run(self) -> None:
        counter = 0
        try:
            while True:
                item = self.channel.get()
                if item is _END_OF_RUN:
                    break
                counter += 1
                self._deliver(item)
                logger.info(f" - finished processing zone {item.origin_zone} ({counter}/{self.total})")
        finally:
            for handler in self.handlers:
                try:
                    handler.close()
                except Exception:
                    logger.exception(f"Error closing handler {type(handler).__name__}")

    def _deliver(self, item: WorkItem) -> None:
        failed = False
        for future in item.results:
            try:
                result = future.result()
            except Exception as exc:
                if not failed:
                    self.summary.failed[item.origin_zone] = exc
                    failed = True
                continue
            for handler in self.handlers:
                try:
                    handler.handle_result(result)
                except Exception as exc:
                    logger.exception(f"Handler {type(handler).__name__} failed for zone {item.origin_zone}")
                    if not failed:
                        self.summary.failed[item.origin_zone] = exc
                        failed = True
        if not failed:
            self.summary.completed.append(item.origin_zone)


class EvaluationRunner:
    """Runs an :class:`EvaluationWorker` over many origin zones.

    Tasks finish in any order. With ``ordered`` the results reach the handlers
    in submission order, otherwise in completion order. A failing zone only
    fails its own result slots.
    """

    def __init__(
        self,
        worker: EvaluationWorker,
        handlers: Sequence[WorkResultHandler],
        *,
        thread_count: int | None = None,
        ordered: bool | None = None,
    ) -> None:
        self.worker = worker
        self.handlers = list(handlers)
        self.thread_count = thread_count or settings.thread_count
        self.ordered = settings.ordered_results if ordered is None else ordered

    def run(self, origin_zones: Sequence[str]) -> RunSummary:
        start_time = time.time()
        channel: "queue.Queue[Optional[WorkItem]]" = queue.Queue()
        result_worker = ResultWorker(channel, self.handlers, len(origin_zones))
        result_worker.start()

        logger.info(
            f"Evaluating {len(origin_zones)} origin zones with {self.thread_count} threads "
            f"(scenarios: {', '.join(self.worker.scenario_names)})"
        )
        try:
            with ThreadPoolExecutor(max_workers=self.thread_count, thread_name_prefix="skimeval") as executor:
                for zone in origin_zones:
                    item = self.worker.create_work_item(zone)
                    task = executor.submit(self.worker.process, item)
                    if self.ordered:
                        channel.put(item)
                    else:
                        task.add_done_callback(lambda _, item=item: channel.put(item))
        finally:
            channel.put(_END_OF_RUN)
            result_worker.join()

        summary = result_worker.summary
        summary.elapsed_seconds = time.time() - start_time
        if summary.failed:
            logger.warning(
                f"{len(summary.failed)} of {len(origin_zones)} origin zones failed: {sorted(summary.failed)}"
            )
        logger.info(f"Completed {len(summary.completed)} origin zones in {summary.elapsed_seconds:.2f}s")
        return summary
