"""Result handler that writes run artifacts to disk once the run is drained."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from ...models.results import ElasticityResult, WorkResult
from ...persistence.filesystem import FileStorage
from ..demand import OriginDemandSource, UnroutableDemand, UnroutableDemandStats
from ..workflow.handlers import WorkResultHandler
from .formatter import factors_to_csv, skims_to_csv, unroutable_summary_to_json, unroutable_to_csv

logger = logging.getLogger(__name__)


class FileResultHandler(WorkResultHandler):
    """Buffers results and writes factors, skims and unroutable demand files on close.

    Unroutable statistics are only written when a demand source is given.
    """

    def __init__(
        self,
        storage: FileStorage,
        demand: Optional[OriginDemandSource] = None,
        *,
        prefix: str = "evaluation",
        share_limit: Optional[float] = None,
    ) -> None:
        self.storage = storage
        self.demand = demand
        self.prefix = prefix
        self.share_limit = share_limit
        self.run_directory: Optional[Path] = None
        self._results: List[WorkResult] = []
        self._factors: List[ElasticityResult] = []
        self._unroutable: Dict[str, UnroutableDemand] = {}

    def handle_result(self, result: WorkResult) -> None:
        self._results.append(result)
        self._unroutable.setdefault(result.scenario, UnroutableDemand()).extend(result.unroutable)
        if result.elasticity is not None:
            self._factors.append(result.elasticity)

    def close(self) -> None:
        if self.run_directory is not None:
            return
        run_dir = self.storage.make_run_directory(prefix=self.prefix)
        self.storage.write_csv(run_dir / "skims.csv", skims_to_csv(self._results))
        self.storage.write_csv(run_dir / "unroutable_demand.csv", unroutable_to_csv(self._unroutable))
        if self._factors:
            self.storage.write_csv(run_dir / "factors.csv", factors_to_csv(self._factors))
        if self.demand is not None:
            stats = {
                scenario: unroutable_summary_to_json(
                    UnroutableDemandStats(demand, self.demand).summary(self.share_limit)
                )
                for scenario, demand in self._unroutable.items()
            }
            self.storage.write_json(run_dir / "unroutable_stats.json", stats)
        self.run_directory = run_dir
        logger.info(f"Wrote {len(self._results)} results to {run_dir}")
