"""Tests for the HTTP API surface (engine replaced by a stub)."""

import pytest
from fastapi.testclient import TestClient

from catalog_scanner.adapters.base import Candidate, RawCandidate
from catalog_scanner.apis import app as app_module
from catalog_scanner.engines.base import ScanResult, StoreSummary


class StubEngine:
    calls = []

    def __init__(self, config, registry=None):
        self.config = config

    async def scan(self, request, existing_urls=None, max_new_products=None):
        StubEngine.calls.append((request, existing_urls, max_new_products))
        candidate = Candidate.from_raw(
            RawCandidate(product_url="https://s.test/producto/a/", product_name="A"),
            store_id=None,
            store_name="S",
            seed_label="Todo",
            seed_url="https://s.test/tienda",
        )
        return ScanResult(
            candidates=[candidate],
            summaries=[StoreSummary(store_id=None, store_name="S", seeds_total=1, candidates_found=1)],
            duplicates_ignored=2,
            ignored_existing=1,
            scanned_total=2,
            limit_reached=False,
        )


@pytest.fixture
def client(monkeypatch, tmp_path):
    StubEngine.calls = []
    monkeypatch.setenv("SCANNER_OUTPUT_PATH", str(tmp_path / "scan.json"))
    monkeypatch.delenv("SCANNER_MAX_NEW_PRODUCTS", raising=False)
    monkeypatch.setattr(app_module, "load_symbol", lambda dotted: StubEngine)
    return TestClient(app_module.app)


PAYLOAD = {
    "stores": [{"store_name": "S", "seeds": [{"url": "https://s.test/tienda", "label": "Todo"}]}],
    "existing_urls": ["https://s.test/producto/b/?utm_source=x", "  "],
}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_scan_returns_summary_stores_and_items(client):
    resp = client.post("/scan", json=PAYLOAD)
    assert resp.status_code == 200
    body = resp.json()
    assert body["summary"] == {
        "scanned_total": 2,
        "pending_total": 1,
        "ignored_existing": 1,
        "duplicates_ignored": 2,
        "max_new_products": 100,
        "limit_reached": False,
    }
    assert body["stores"][0]["candidates_found"] == 1
    assert body["items"][0]["normalized_url"] == "https://s.test/producto/a"


def test_scan_normalizes_existing_urls_and_honors_ceiling(client):
    client.post("/scan", json={**PAYLOAD, "max_new_products": 7})
    _, existing, max_new = StubEngine.calls[-1]
    assert existing == {"https://s.test/producto/b"}
    assert max_new == 7


def test_invalid_payload_is_rejected(client):
    resp = client.post("/scan", json={"stores": [{"store_name": "S", "seeds": [{"url": "nope", "label": "x"}]}]})
    assert resp.status_code == 422
    assert StubEngine.calls == []


def test_scan_does_not_touch_the_output_path(client, monkeypatch, tmp_path):
    target = tmp_path / "never" / "created" / "scan.json"
    monkeypatch.setenv("SCANNER_OUTPUT_PATH", str(target))

    assert client.post("/scan", json=PAYLOAD).status_code == 200
    assert not (tmp_path / "never").exists()
