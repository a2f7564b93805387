from __future__ import annotations

import json
from pathlib import Path

from ..engines.base import ScanResult


class JSONExporter:
    """Full scan result: candidates, per-store summaries and counters."""

    def export(self, result: ScanResult, path: str) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)
