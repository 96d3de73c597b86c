"""Serialize evaluation results into CSV/JSON artifacts."""

from __future__ import annotations

import csv
import io
import math
from typing import Iterable, Optional, Sequence

from ...models.results import ElasticityResult, WorkResult
from ..demand import UnroutableDemand, UnroutableDemandSummary
from ..skims import SKIM_COLUMNS

SEPARATOR = ";"
FACTOR_COLUMNS = ["From", "To", "F_JRT", "F_ADT", "F_NTR", "TotalFactor"]


def _decimal(value: float) -> str:
    return f"{value:.6f}"


def factors_to_csv(results: Iterable[ElasticityResult]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=SEPARATOR, lineterminator="\n")
    writer.writerow(FACTOR_COLUMNS)
    for result in results:
        for to_zone, (f_jrt, f_adt, f_ntr) in result.factors.items():
            writer.writerow(
                [
                    result.origin_zone,
                    to_zone,
                    _decimal(f_jrt),
                    _decimal(f_adt),
                    _decimal(f_ntr),
                    _decimal(f_jrt * f_adt * f_ntr),
                ]
            )
    return buffer.getvalue()


def skims_to_csv(results: Iterable[WorkResult]) -> str:
    buffer = io.StringIO()
    fieldnames = ["scenario", "from_zone", "to_zone", *SKIM_COLUMNS]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames, delimiter=SEPARATOR, lineterminator="\n")
    writer.writeheader()
    for result in results:
        for to_zone, vector in result.skims.items():
            writer.writerow(
                {
                    "scenario": result.scenario,
                    "from_zone": result.origin_zone,
                    "to_zone": to_zone,
                    **{column: _decimal(value) for column, value in zip(SKIM_COLUMNS, vector)},
                }
            )
    return buffer.getvalue()


def unroutable_to_csv(demand_per_scenario: dict[str, UnroutableDemand]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=SEPARATOR, lineterminator="\n")
    writer.writerow(["scenario", "from_zone", "to_zone", "demand"])
    for scenario, demand in demand_per_scenario.items():
        for od_pair, value in demand.by_od_pair().items():
            writer.writerow([scenario, od_pair.from_zone, od_pair.to_zone, _decimal(value)])
    return buffer.getvalue()


def json_number(value: Optional[float]) -> Optional[float]:
    # JSON has no NaN/Infinity
    if value is None or not math.isfinite(value):
        return None
    return value


def unroutable_summary_to_json(summary: UnroutableDemandSummary) -> dict:
    return {
        "total": json_number(summary.total),
        "percent": json_number(summary.percent),
        "largest_zone": summary.largest_zone,
        "largest_zone_demand": json_number(summary.largest_zone_demand),
    }


def skim_vector_to_json(vector: Sequence[float]) -> list[Optional[float]]:
    return [json_number(value) for value in vector]
