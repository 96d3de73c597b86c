"""Output formatting and file-writing result handlers."""

from .formatter import (
    FACTOR_COLUMNS,
    factors_to_csv,
    json_number,
    skim_vector_to_json,
    skims_to_csv,
    unroutable_summary_to_json,
    unroutable_to_csv,
)
from .handlers import FileResultHandler

__all__ = [
    "FACTOR_COLUMNS",
    "FileResultHandler",
    "factors_to_csv",
    "json_number",
    "skim_vector_to_json",
    "skims_to_csv",
    "unroutable_summary_to_json",
    "unroutable_to_csv",
]
