from __future__ import annotations

import csv
from pathlib import Path

from ..engines.base import ScanResult


class CSVExporter:
    """
    One row per candidate, ready for a spreadsheet review pass.
    Summaries and counters are not part of the CSV; use JSONExporter for those.
    """

    _headers = [
        "candidate_id",
        "store_id",
        "store_name",
        "seed_label",
        "seed_url",
        "product_url",
        "product_name",
        "image_url",
        "normalized_url",
    ]

    def export(self, result: ScanResult, path: str) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            w = csv.writer(f)
            w.writerow(self._headers)
            for candidate in result.candidates:
                row = candidate.to_dict()
                w.writerow([row[h] if row[h] is not None else "" for h in self._headers])
