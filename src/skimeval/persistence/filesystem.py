"""File-based persistence for evaluation run outputs."""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..config import settings

# run labels come from requests and must stay a single path component
_UNSAFE_LABEL_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


def safe_run_label(label: str, default: str = "evaluation") -> str:
    cleaned = _UNSAFE_LABEL_CHARS.sub("_", label).strip("._")
    return cleaned or default


class FileStorage:
    """Stores one directory of CSV/JSON artifacts per evaluation run under ``<data_root>/outputs``."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = (root or settings.data_root).resolve()
        self.output_root = self.root / "outputs"
        self.output_root.mkdir(parents=True, exist_ok=True)

    def make_run_directory(self, prefix: str = "evaluation") -> Path:
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        path = self.output_root / f"{safe_run_label(prefix)}_{timestamp}"
        path.mkdir(parents=True, exist_ok=False)
        return path

    def write_json(self, path: Path, data: Any, *, indent: int = 2) -> None:
        """Write strict JSON; NaN and infinities must be mapped by the caller."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=indent, allow_nan=False)

    def write_csv(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="") as handle:
            handle.write(content)
