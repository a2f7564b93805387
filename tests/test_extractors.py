"""Tests for the hint and generic extract adapters."""

import pytest

from catalog_scanner.adapters.generic import GenericAdapter
from catalog_scanner.adapters.hint import HintAdapter
from catalog_scanner.adapters.registry import AdapterRegistry
from catalog_scanner.schemas import ExtractMode

PAGE_URL = "https://shop.test/tienda/"

MIXED_PAGE = """
<html><body>
  <a href="/">Inicio</a>
  <a href="/carrito/">Carrito</a>
  <a href="/mi-cuenta/">Mi cuenta</a>
  <a href="/checkout/">Pagar</a>
  <a href="https://other.test/producto/ajeno/">Ajeno</a>
  <a href="mailto:ventas@shop.test">Correo</a>
  <a href="/tienda/page/2/">2</a>
  <a href="/producto/dragon-rojo/?utm_source=home">
     <img src="data:image/gif;base64,AAAA" data-src="/wp-content/uploads/dragon.jpg">
     <h2 class="title">Drag&oacute;n   Rojo</h2>
     <span class="price">$2.500</span>
  </a>
  <a href="/carta/espada-sagrada/">Espada Sagrada $990</a>
  <a href="/producto/dragon-rojo/">Dragón Rojo</a>
</body></html>
"""


def test_generic_keeps_only_product_paths():
    rows = GenericAdapter().extract(MIXED_PAGE, PAGE_URL)
    assert [r.product_url for r in rows] == ["https://shop.test/producto/dragon-rojo/?utm_source=home"]


def test_generic_cleans_name_and_resolves_image():
    [row] = GenericAdapter().extract(MIXED_PAGE, PAGE_URL)
    assert row.product_name == "Dragón Rojo"
    assert row.image_url == "https://shop.test/wp-content/uploads/dragon.jpg"


def test_generic_path_rules():
    adapter = GenericAdapter()
    assert adapter.is_product_path("/producto/x/")
    assert adapter.is_product_path("/tienda/mitos/x/")
    assert adapter.is_product_path("/single-card")
    assert not adapter.is_product_path("/")
    assert not adapter.is_product_path("/p/")
    assert not adapter.is_product_path("/tienda/page/4/")
    assert not adapter.is_product_path("/producto/x/cart")
    assert not adapter.is_product_path("/nosotros/")


def test_hint_mode_matches_path_substring_case_insensitively():
    rows = HintAdapter().extract(MIXED_PAGE, PAGE_URL, "/CARTA/")
    assert len(rows) == 1
    assert rows[0].product_url == "https://shop.test/carta/espada-sagrada/"
    assert rows[0].product_name == "Espada Sagrada"
    assert rows[0].image_url is None


def test_hint_mode_without_hint_extracts_nothing():
    assert HintAdapter().extract(MIXED_PAGE, PAGE_URL, None) == []


def test_duplicate_links_on_a_page_are_merged():
    html = """
    <a href="/producto/a/"><img data-lazy-src="/img/a.jpg"></a>
    <a href="/producto/a/?utm_medium=grid">Carta A</a>
    <a href="/producto/b/">Carta B</a>
    """
    rows = GenericAdapter().extract(html, PAGE_URL)
    assert [r.product_url for r in rows] == [
        "https://shop.test/producto/a/",
        "https://shop.test/producto/b/",
    ]
    assert rows[0].product_name == "Carta A"
    assert rows[0].image_url == "https://shop.test/img/a.jpg"


def test_document_order_is_preserved(listing):
    products = [f"/producto/p{i}/" for i in (5, 1, 9, 3)]
    rows = GenericAdapter().extract(listing(products), PAGE_URL)
    assert [r.product_url for r in rows] == [f"https://shop.test{p}" for p in products]


def test_long_names_are_truncated():
    html = f'<a href="/producto/long/">{"x" * 800}</a>'
    [row] = GenericAdapter().extract(html, PAGE_URL)
    assert len(row.product_name) == 500


def test_registry_dispatches_by_mode():
    registry = AdapterRegistry()
    assert isinstance(registry.get(ExtractMode.HINT), HintAdapter)
    assert isinstance(registry.get("generic"), GenericAdapter)
    rows = registry.extract(MIXED_PAGE, PAGE_URL, ExtractMode.HINT, "/carta/")
    assert len(rows) == 1


def test_registry_unknown_mode():
    with pytest.raises(ValueError):
        AdapterRegistry().get("ml")


def test_registered_adapter_replaces_builtin():
    class OnlyDragons:
        name = "dragons"
        mode = "generic"

        def extract(self, html, page_url, hint=None):
            return GenericAdapter().extract(html, page_url)[:0]

    registry = AdapterRegistry()
    registry.register(OnlyDragons())
    assert registry.extract(MIXED_PAGE, PAGE_URL, "generic") == []
    assert len(registry.adapters) == 2


def test_malformed_image_and_href_do_not_raise():
    html = """
    <a href="/producto/roto/"><img src="http://[broken/img.png"> Roto</a>
    <a href="http://[broken/">Enlace roto</a>
    <a href="/producto/sano/"><img src="/img/sano.jpg"> Sano</a>
    """
    rows = GenericAdapter().extract(html, PAGE_URL)
    assert [r.product_url for r in rows] == [
        "https://shop.test/producto/roto/",
        "https://shop.test/producto/sano/",
    ]
    assert rows[0].product_name == "Roto"
    assert rows[0].image_url is None
    assert rows[1].image_url == "https://shop.test/img/sano.jpg"
