from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import List, Set

from ..config import ScanConfig
from ..schemas import ScanRequest
from ..utils.logging import setup_logging
from ..utils.loader import load_symbol
from ..utils.parsing import normalize_url
from ..adapters.registry import AdapterRegistry
from ..engines.base import ScanResult
from ..export.base import Exporter

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Bulk store catalog scanner")
    p.add_argument("request", nargs="?", help="Path to a scan request JSON (stores + seeds)")
    p.add_argument("--config", type=str, help="Path to config JSON", default=None)
    p.add_argument("--existing", type=str, default=None,
                   help="File with already-linked product URLs, one per line (# for comments)")
    p.add_argument("--max-new-products", type=int, default=None,
                   help="Stop after this many new candidates (overrides request/config)")
    p.add_argument("--delay-ms", type=int, default=None,
                   help="Minimum delay between requests to the same host (overrides request/config)")
    p.add_argument("--engine", type=str, default=None, help="Engine dotted path (module:ClassName)")
    p.add_argument("--exporter", type=str, default=None, help="Exporter dotted path (module:ClassName)")
    p.add_argument("--output", type=str, default=None, help="Output file path")
    p.add_argument("--log-level", type=str, default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
    p.add_argument("--serve", action="store_true", help="Run the HTTP API instead of a one-off scan")
    p.add_argument("--host", type=str, default="127.0.0.1", help="API host (when --serve)")
    p.add_argument("--port", type=int, default=8000, help="API port (when --serve)")
    return p


def _load_config(args: argparse.Namespace) -> ScanConfig:
    if args.config:
        cfg = ScanConfig.from_file(args.config)
    else:
        cfg = ScanConfig.from_env()

    if args.max_new_products is not None:
        cfg.max_new_products = args.max_new_products
    if args.engine:
        cfg.engine = args.engine
    if args.exporter:
        cfg.exporter = args.exporter
    if args.output:
        cfg.output_path = args.output

    cfg.validate()
    return cfg


def load_request(path: str, delay_ms: int | None = None) -> ScanRequest:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if delay_ms is not None:
        data["request_delay_ms"] = delay_ms
    return ScanRequest.model_validate(data)


def load_existing_urls(path: str | None) -> Set[str]:
    """Normalized URLs from a plain-text file; blank lines and # comments are skipped."""
    if not path:
        return set()
    out: Set[str] = set()
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        out.add(normalize_url(line))
    return out


def run_server(host: str, port: int) -> None:
    import uvicorn

    uvicorn.run("catalog_scanner.apis.app:app", host=host, port=port)


def run_cli(argv: List[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if args.serve:
        run_server(args.host, args.port)
        return 0

    if not args.request:
        parser.error("a scan request file is required unless --serve is given")

    cfg = _load_config(args)
    request = load_request(args.request, args.delay_ms)
    existing = load_existing_urls(args.existing)

    engine_cls = load_symbol(cfg.engine)
    exporter_cls = load_symbol(cfg.exporter)

    registry = AdapterRegistry()
    registry.discover_entry_points()

    async def _run() -> ScanResult:
        engine = engine_cls(cfg, registry=registry)
        return await engine.scan(request, existing_urls=existing)

    result: ScanResult = asyncio.run(_run())

    exporter: Exporter = exporter_cls()
    exporter.export(result, cfg.output_path)

    logger.info("New: %s | Existing: %s | Duplicates: %s | Scanned: %s | Limit reached: %s | Output: %s",
                len(result.candidates),
                result.ignored_existing,
                result.duplicates_ignored,
                result.scanned_total,
                result.limit_reached,
                cfg.output_path)
    return 0
