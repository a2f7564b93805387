from __future__ import annotations

from typing import Protocol

from ..engines.base import ScanResult


class Exporter(Protocol):
    def export(self, result: ScanResult, path: str) -> None:
        ...
