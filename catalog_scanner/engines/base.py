from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set
from abc import ABC, abstractmethod

from ..adapters.base import Candidate
from ..schemas import ScanRequest


class ScanDecision(Enum):
    """What the scanner should do after offering a candidate."""

    CONTINUE = "continue"
    STOP = "stop"


@dataclass
class StoreSummary:
    store_id: Optional[str]
    store_name: str
    seeds_total: int
    seeds_failed: int = 0
    candidates_found: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "store_id": self.store_id,
            "store_name": self.store_name,
            "seeds_total": self.seeds_total,
            "seeds_failed": self.seeds_failed,
            "candidates_found": self.candidates_found,
        }


@dataclass
class ScanResult:
    candidates: List[Candidate] = field(default_factory=list)
    summaries: List[StoreSummary] = field(default_factory=list)
    duplicates_ignored: int = 0
    ignored_existing: int = 0
    # Distinct normalized URLs seen, existing ones included.
    scanned_total: int = 0
    limit_reached: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "candidates": [c.to_dict() for c in self.candidates],
            "summaries": [s.to_dict() for s in self.summaries],
            "duplicates_ignored": self.duplicates_ignored,
            "ignored_existing": self.ignored_existing,
            "scanned_total": self.scanned_total,
            "limit_reached": self.limit_reached,
        }


class ScanEngine(ABC):
    """
    Abstract engine interface. Implementations own the scan lifecycle.
    """
    @abstractmethod
    async def scan(
        self,
        request: ScanRequest,
        existing_urls: Optional[Iterable[str]] = None,
        max_new_products: Optional[int] = None,
    ) -> ScanResult:  # pragma: no cover - interface
        ...


def filter_out_existing(candidates: Iterable[Candidate], existing_urls: Set[str]) -> tuple[List[Candidate], int]:
    """
    Split off candidates already linked, e.g. when a reviewed batch is imported
    later than it was scanned. Returns (pending, ignored_count).
    """
    pending: List[Candidate] = []
    ignored = 0
    for item in candidates:
        if item.normalized_url in existing_urls:
            ignored += 1
            continue
        pending.append(item)
    return pending, ignored
