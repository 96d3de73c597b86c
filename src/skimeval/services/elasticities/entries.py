"""Reader for the elasticity parameter table."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Optional

from ...models.domain import ElasticityEntry, SkimType

DEFAULT_SEPARATOR = ";"
MANDATORY_COLUMNS = 11

logger = logging.getLogger(__name__)


def _optional_float(value: str) -> Optional[float]:
    value = value.strip()
    return float(value) if value else None


def parse_entry(row: list[str]) -> ElasticityEntry:
    """Parse one table row.

    Columns: cluster, segment, description, skim_type, elasticity0, a, b,
    min, max, f_min, f_max and an optional kg_max.
    """
    if len(row) < MANDATORY_COLUMNS:
        raise ValueError(f"Expected at least {MANDATORY_COLUMNS} columns, got {len(row)}.")
    return ElasticityEntry(
        cluster=int(row[0].strip()),
        segment=row[1].strip(),
        description=row[2].strip(),
        skim_type=SkimType(row[3].strip()),
        elasticity0=float(row[4]),
        a=float(row[5]),
        b=float(row[6]),
        min=float(row[7]),
        max=float(row[8]),
        f_min=float(row[9]),
        f_max=float(row[10]),
        kg_max=_optional_float(row[11]) if len(row) > MANDATORY_COLUMNS else None,
    )


def read_elasticity_entries(path: Path, separator: str = DEFAULT_SEPARATOR) -> list[ElasticityEntry]:
    """Read all rows of the elasticity table, skipping malformed ones."""

    if not path.exists():
        raise FileNotFoundError(f"Elasticity file not found: {path}")

    entries: list[ElasticityEntry] = []
    with path.open(mode="r", encoding="utf-8-sig", newline="") as handle:
        reader = csv.reader(handle, delimiter=separator)
        header = next(reader, None)
        if header is None:
            logger.warning(f"Empty elasticity file: {path}")
            return entries
        for line_no, row in enumerate(reader, start=2):
            if not row or not any(cell.strip() for cell in row):
                continue
            try:
                entries.append(parse_entry(row))
            except ValueError as exc:
                logger.warning(f"Skipping malformed line {line_no} in elasticity file {path}: {exc}")

    logger.info(f"Loaded {len(entries)} elasticity entries from file: {path}")
    return entries
