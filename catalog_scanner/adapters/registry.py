from __future__ import annotations

from typing import Dict, List, Optional, Union
from importlib import metadata
import logging

from .base import ExtractAdapter, RawCandidate
from .generic import GenericAdapter
from .hint import HintAdapter
from ..schemas import ExtractMode

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """
    Maps a seed's extract mode to the adapter that handles it.
    Built-ins cover "hint" and "generic"; entry-point plugins registered for
    the same mode replace the built-in (e.g. a store-tuned generic adapter).
    """
    def __init__(self) -> None:
        self._adapters: Dict[str, ExtractAdapter] = {}
        self.register(HintAdapter())
        self.register(GenericAdapter())

    # ---- Introspection / Management ----

    def register(self, adapter: ExtractAdapter) -> None:
        self._adapters[adapter.mode] = adapter

    @property
    def adapters(self) -> List[ExtractAdapter]:
        return list(self._adapters.values())

    def get(self, mode: Union[ExtractMode, str]) -> ExtractAdapter:
        key = mode.value if isinstance(mode, ExtractMode) else str(mode)
        try:
            return self._adapters[key]
        except KeyError:
            raise ValueError(f"No adapter registered for extract mode {key!r}") from None

    def extract(
        self,
        html: str,
        page_url: str,
        mode: Union[ExtractMode, str],
        hint: Optional[str] = None,
    ) -> List[RawCandidate]:
        return self.get(mode).extract(html, page_url, hint)

    # ---- Discovery ----

    def discover_entry_points(self, group: str = "catalog_scanner.adapters") -> int:
        """
        Register adapters installed as entry points. Returns how many were added.
        """
        added = 0
        for ep in metadata.entry_points().select(group=group):
            try:
                adapter_cls = ep.load()
            except Exception as exc:
                logger.warning("Failed to load adapter entry point %s: %r", ep.name, exc)
                continue
            self.register(adapter_cls())
            added += 1
        return added
