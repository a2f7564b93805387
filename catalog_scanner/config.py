from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any
import os
import json
import re

from .version import __version__, CONFIG_SCHEMA_VERSION

DEFAULT_USER_AGENT = f"Mozilla/5.0 (Windows NT 10.0; Win64; x64) catalog_scanner/{__version__}"
DEFAULT_TOTAL_PRODUCTS_PATTERN = r"(\d{1,7})\s*(?:productos|products)\b"


@dataclass
class ScanConfig:
    """
    Tuning knobs for a bulk scan. Values that arrive with a scan request
    (delay, new-product ceiling) override the ones here.
    """
    schema_version: int = CONFIG_SCHEMA_VERSION
    request_delay_ms: int = 700
    min_request_delay_ms: int = 250
    request_timeout: float = 16.0
    retries: int = 3
    retry_backoff_ms: int = 450
    user_agent: str = DEFAULT_USER_AGENT
    accept_language: str = "es-CL,es;q=0.9"
    # Hard ceiling on pages per seed, whatever the seed or the page says.
    max_pages_cap: int = 120
    # Consecutive empty/failed pages before giving up on a seed with no known page count.
    empty_streak_stop: int = 6
    max_new_products: Optional[int] = None
    total_products_pattern: str = DEFAULT_TOTAL_PRODUCTS_PATTERN
    engine: str = "catalog_scanner.engines.bulk_engine:BulkScanEngine"
    exporter: str = "catalog_scanner.export.json_exporter:JSONExporter"
    output_path: str = "output/scan_result.json"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    # ---------- Loaders ----------

    @classmethod
    def from_env(cls) -> "ScanConfig":
        """
        Build config from SCANNER_* environment variables (all optional).
        """
        def _get(name: str, default: str) -> str:
            return os.getenv(name, default)

        max_new = _get("SCANNER_MAX_NEW_PRODUCTS", "").strip()

        return cls(
            request_delay_ms=int(_get("SCANNER_REQUEST_DELAY_MS", "700")),
            min_request_delay_ms=int(_get("SCANNER_MIN_REQUEST_DELAY_MS", "250")),
            request_timeout=float(_get("SCANNER_REQUEST_TIMEOUT", "16.0")),
            retries=int(_get("SCANNER_RETRIES", "3")),
            retry_backoff_ms=int(_get("SCANNER_RETRY_BACKOFF_MS", "450")),
            user_agent=_get("SCANNER_USER_AGENT", DEFAULT_USER_AGENT),
            accept_language=_get("SCANNER_ACCEPT_LANGUAGE", "es-CL,es;q=0.9"),
            max_pages_cap=int(_get("SCANNER_MAX_PAGES_CAP", "120")),
            empty_streak_stop=int(_get("SCANNER_EMPTY_STREAK_STOP", "6")),
            max_new_products=int(max_new) if max_new else None,
            total_products_pattern=_get("SCANNER_TOTAL_PRODUCTS_PATTERN", DEFAULT_TOTAL_PRODUCTS_PATTERN),
            engine=_get("SCANNER_ENGINE", "catalog_scanner.engines.bulk_engine:BulkScanEngine"),
            exporter=_get("SCANNER_EXPORTER", "catalog_scanner.export.json_exporter:JSONExporter"),
            output_path=_get("SCANNER_OUTPUT_PATH", "output/scan_result.json"),
        )

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> "ScanConfig":
        """
        Load configuration from a JSON file, migrating older schema versions.
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        data = migrate_config(data)
        return cls(**data)

    # ---------- Validation ----------

    def validate(self) -> None:
        if self.min_request_delay_ms < 0:
            raise ValueError("min_request_delay_ms must be >= 0")
        if self.request_delay_ms < self.min_request_delay_ms:
            raise ValueError("request_delay_ms must be >= min_request_delay_ms")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")
        if self.retries < 1:
            raise ValueError("retries must be >= 1 (it counts total attempts)")
        if self.retry_backoff_ms < 0:
            raise ValueError("retry_backoff_ms must be >= 0")
        if self.max_pages_cap < 1:
            raise ValueError("max_pages_cap must be >= 1")
        if self.empty_streak_stop < 1:
            raise ValueError("empty_streak_stop must be >= 1")
        if self.max_new_products is not None and self.max_new_products < 1:
            raise ValueError("max_new_products must be >= 1 when set")
        try:
            compiled = re.compile(self.total_products_pattern, re.IGNORECASE)
        except re.error as exc:
            raise ValueError(f"total_products_pattern is not a valid regex: {exc}") from exc
        if compiled.groups < 1:
            raise ValueError("total_products_pattern needs one capture group for the count")


def migrate_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Migrate a config dict to the latest schema version. Pure and additive.
    """
    schema = raw.get("schema_version", 1)

    if schema < 2:
        # v1 expressed timings in seconds.
        if "request_delay" in raw:
            raw["request_delay_ms"] = int(float(raw.pop("request_delay")) * 1000)
        if "retry_backoff" in raw:
            raw["retry_backoff_ms"] = int(float(raw.pop("retry_backoff")) * 1000)
        raw["schema_version"] = 2

    raw.setdefault("schema_version", CONFIG_SCHEMA_VERSION)
    return raw
