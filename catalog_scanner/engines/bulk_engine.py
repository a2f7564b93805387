from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Set

from .base import ScanDecision, ScanEngine, ScanResult, StoreSummary
from .seed_scanner import Fetch, SeedScanner
from ..adapters.base import Candidate
from ..adapters.registry import AdapterRegistry
from ..config import ScanConfig
from ..schemas import ScanRequest
from ..utils.http import FetchError, HostRateLimiter, create_session, fetch_html
from ..utils.parsing import normalize_url

logger = logging.getLogger(__name__)


class ScanState:
    """
    Everything that spans seeds within one scan: dedup sets, counters and the
    pending candidate list. Owned by a single scan; never shared.
    """

    def __init__(self, existing_urls: Iterable[str] = (), max_new_products: Optional[int] = None) -> None:
        self.existing: Set[str] = {normalize_url(u) for u in existing_urls if u and u.strip()}
        self.max_new_products = max_new_products
        self.seen: Set[str] = set()
        self.pending: List[Candidate] = []
        self.summaries: List[StoreSummary] = []
        self.duplicates_ignored = 0
        self.ignored_existing = 0
        self.scanned_total = 0
        self.limit_reached = False

    def offer(self, candidate: Candidate, summary: StoreSummary) -> ScanDecision:
        url = candidate.normalized_url
        if url in self.seen:
            self.duplicates_ignored += 1
            return ScanDecision.CONTINUE
        self.seen.add(url)
        self.scanned_total += 1

        if url in self.existing:
            self.ignored_existing += 1
            return ScanDecision.CONTINUE

        self.pending.append(candidate)
        summary.candidates_found += 1

        if self.max_new_products is not None and len(self.pending) >= self.max_new_products:
            self.limit_reached = True
            return ScanDecision.STOP
        return ScanDecision.CONTINUE

    def to_result(self) -> ScanResult:
        return ScanResult(
            candidates=list(self.pending),
            summaries=list(self.summaries),
            duplicates_ignored=self.duplicates_ignored,
            ignored_existing=self.ignored_existing,
            scanned_total=self.scanned_total,
            limit_reached=self.limit_reached,
        )


class BulkScanEngine(ScanEngine):
    """
    Scans stores and their seeds strictly in request order, one page at a time.

    - The engine owns HTTP (session, per-host throttling, retries).
    - Seed scanners own pagination.
    - Adapters own markup.
    A seed whose first page cannot be loaded is logged and skipped; the rest of
    the batch still runs.
    """
    def __init__(
        self,
        config: ScanConfig | None = None,
        registry: AdapterRegistry | None = None,
        fetch: Fetch | None = None,
    ) -> None:
        self.config = config or ScanConfig()
        self.registry = registry or AdapterRegistry()
        self._fetch = fetch

    async def scan(
        self,
        request: ScanRequest,
        existing_urls: Optional[Iterable[str]] = None,
        max_new_products: Optional[int] = None,
    ) -> ScanResult:
        cfg = self.config
        limit = max_new_products or request.max_new_products or cfg.max_new_products
        state = ScanState(existing_urls or (), max(1, limit) if limit else None)
        delay_ms = max(cfg.min_request_delay_ms, request.request_delay_ms or cfg.request_delay_ms)

        if self._fetch is not None:
            await self._run(request, state, self._fetch)
            return state.to_result()

        limiter = HostRateLimiter()
        session = create_session()
        try:
            async def fetch(url: str) -> str:
                return await fetch_html(
                    session,
                    url,
                    limiter=limiter,
                    delay_ms=delay_ms,
                    timeout=cfg.request_timeout,
                    user_agent=cfg.user_agent,
                    accept_language=cfg.accept_language,
                    retries=cfg.retries,
                    backoff_ms=cfg.retry_backoff_ms,
                )

            await self._run(request, state, fetch)
        finally:
            await session.close()
        return state.to_result()

    async def _run(self, request: ScanRequest, state: ScanState, fetch: Fetch) -> None:
        cfg = self.config
        scanner = SeedScanner(
            fetch,
            self.registry,
            max_pages_cap=cfg.max_pages_cap,
            empty_streak_stop=cfg.empty_streak_stop,
            total_products_pattern=cfg.total_products_pattern,
        )

        for store in request.stores:
            if state.limit_reached:
                break
            summary = StoreSummary(
                store_id=store.store_id,
                store_name=store.store_name,
                seeds_total=len(store.seeds),
            )
            state.summaries.append(summary)

            for seed in store.seeds:
                if state.limit_reached:
                    break
                try:
                    outcome = await scanner.scan(
                        store, seed, lambda candidate: state.offer(candidate, summary)
                    )
                except FetchError as exc:
                    summary.seeds_failed += 1
                    logger.warning("Seed %r of %s skipped: %s", seed.label, store.store_name, exc)
                    continue
                except Exception:
                    summary.seeds_failed += 1
                    logger.exception("Seed %r of %s failed", seed.label, store.store_name)
                    continue

                logger.info(
                    "Seed %r of %s: %s page(s), %s failed, %s candidate(s)",
                    seed.label, store.store_name,
                    outcome.pages_fetched, outcome.pages_failed, outcome.candidates_offered,
                )
                if outcome.limit_reached:
                    state.limit_reached = True
                    break

        logger.info(
            "Scan finished: %s new, %s existing, %s duplicate(s), limit_reached=%s",
            len(state.pending), state.ignored_existing, state.duplicates_ignored, state.limit_reached,
        )
