from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Set

from .base import ScanDecision
from ..adapters.base import Candidate, RawCandidate
from ..adapters.registry import AdapterRegistry
from ..config import DEFAULT_TOTAL_PRODUCTS_PATTERN
from ..schemas import ExtractMode, SeedInput, StoreInput
from ..utils.http import FetchError
from ..utils.pagination import (
    build_page_url,
    effective_page_cap,
    infer_max_pages_by_links,
    infer_max_pages_by_total,
)
from ..utils.parsing import normalize_url

logger = logging.getLogger(__name__)

Fetch = Callable[[str], Awaitable[str]]
OnCandidate = Callable[[Candidate], ScanDecision]


@dataclass
class SeedOutcome:
    pages_fetched: int = 0
    pages_failed: int = 0
    candidates_offered: int = 0
    known_pages: int = 0  # 0 when pagination was explored blindly
    limit_reached: bool = False


class SeedScanner:
    """
    Walks the listing pages of one seed, one request at a time.

    Page 1 decides the strategy: if it tells us how many pages there are,
    exactly those pages are visited and failures are skipped. Otherwise pages
    are probed until ``empty_streak_stop`` consecutive pages come back empty or
    broken, or the page cap is hit.
    """

    def __init__(
        self,
        fetch: Fetch,
        registry: AdapterRegistry | None = None,
        *,
        max_pages_cap: int = 120,
        empty_streak_stop: int = 6,
        total_products_pattern: str = DEFAULT_TOTAL_PRODUCTS_PATTERN,
    ) -> None:
        self.fetch = fetch
        self.registry = registry or AdapterRegistry()
        self.max_pages_cap = max_pages_cap
        self.empty_streak_stop = empty_streak_stop
        self.total_products_re = re.compile(total_products_pattern, re.IGNORECASE)

    async def scan(self, store: StoreInput, seed: SeedInput, on_candidate: OnCandidate) -> SeedOutcome:
        """
        Scan ``seed`` and hand every candidate new to this seed to ``on_candidate``.

        A FetchError on page 1 propagates; later page failures are absorbed.
        """
        outcome = SeedOutcome()
        seen: Set[str] = set()

        def offer(rows: List[RawCandidate]) -> ScanDecision:
            for row in rows:
                normalized = normalize_url(row.product_url)
                if not normalized or normalized in seen:
                    continue
                seen.add(normalized)
                outcome.candidates_offered += 1
                candidate = Candidate.from_raw(
                    row,
                    store_id=store.store_id,
                    store_name=store.store_name,
                    seed_label=seed.label,
                    seed_url=seed.url,
                    normalized_url=normalized,
                )
                if on_candidate(candidate) is ScanDecision.STOP:
                    return ScanDecision.STOP
            return ScanDecision.CONTINUE

        first_url = build_page_url(seed.url, 1, seed.pagination_mode)
        first_html = await self.fetch(first_url)
        outcome.pages_fetched += 1
        first_rows = self.registry.extract(first_html, first_url, seed.extract_mode, seed.href_hint)

        if offer(first_rows) is ScanDecision.STOP:
            outcome.limit_reached = True
            return outcome

        inferred = infer_max_pages_by_links(first_html, first_url)
        if inferred <= 1 and seed.extract_mode is ExtractMode.HINT:
            inferred = infer_max_pages_by_total(first_html, len(first_rows), self.total_products_re)

        cap = effective_page_cap(seed.max_pages, self.max_pages_cap)
        known = min(inferred, cap) if inferred > 1 else 0
        outcome.known_pages = known

        last_page = known or cap
        logger.debug(
            "Seed %r: inferred=%s cap=%s mode=%s",
            seed.label, inferred, cap, "known" if known else "explore",
        )

        empty_streak = 0
        for page in range(2, last_page + 1):
            url = build_page_url(seed.url, page, seed.pagination_mode)
            try:
                html = await self.fetch(url)
                outcome.pages_fetched += 1
                rows = self.registry.extract(html, url, seed.extract_mode, seed.href_hint)
            except Exception as exc:
                outcome.pages_failed += 1
                if isinstance(exc, FetchError):
                    logger.warning("Skipping page %s of seed %r: %s", page, seed.label, exc)
                else:
                    logger.exception("Skipping page %s of seed %r: extraction failed", page, seed.label)
                if not known:
                    empty_streak += 1
                    if empty_streak >= self.empty_streak_stop:
                        break
                continue

            if not known:
                empty_streak = 0 if rows else empty_streak + 1

            if offer(rows) is ScanDecision.STOP:
                outcome.limit_reached = True
                return outcome

            if not known and empty_streak >= self.empty_streak_stop:
                logger.debug("Seed %r: %s empty pages in a row, stopping at page %s", seed.label, empty_streak, page)
                break

        return outcome
