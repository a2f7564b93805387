from __future__ import annotations

from typing import Any, Dict, List
import logging

from fastapi import FastAPI
from pydantic import Field

from ..config import ScanConfig
from ..schemas import ScanRequest
from ..utils.loader import load_symbol
from ..utils.parsing import normalize_url
from ..engines.base import ScanResult
from ..adapters.registry import AdapterRegistry
from ..version import __version__

logger = logging.getLogger(__name__)

DEFAULT_MAX_NEW_PRODUCTS = 100

app = FastAPI(title="catalog_scanner API", version=__version__)


class ScanApiRequest(ScanRequest):
    # Product URLs already linked on the caller's side; they are never returned as new.
    existing_urls: List[str] = Field(default_factory=list)


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/scan")
async def scan(req: ScanApiRequest) -> Dict[str, Any]:
    cfg = ScanConfig.from_env()
    cfg.validate()

    existing = {normalize_url(u) for u in req.existing_urls if u.strip()}
    max_new = req.max_new_products or cfg.max_new_products or DEFAULT_MAX_NEW_PRODUCTS

    engine_cls = load_symbol(cfg.engine)
    registry = AdapterRegistry()
    registry.discover_entry_points()

    engine = engine_cls(cfg, registry=registry)
    result: ScanResult = await engine.scan(req, existing_urls=existing, max_new_products=max_new)
    return {
        "summary": {
            "scanned_total": result.scanned_total,
            "pending_total": len(result.candidates),
            "ignored_existing": result.ignored_existing,
            "duplicates_ignored": result.duplicates_ignored,
            "max_new_products": max_new,
            "limit_reached": result.limit_reached,
        },
        "stores": [s.to_dict() for s in result.summaries],
        "items": [c.to_dict() for c in result.candidates],
    }
