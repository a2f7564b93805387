"""Shared fixtures: in-memory store catalogs standing in for the network."""

from typing import Dict, Iterable, List, Optional

import pytest

from catalog_scanner.utils.http import FetchError


class FakeSite:
    """Serves canned HTML by exact URL; unknown or failing URLs raise FetchError."""

    def __init__(self, pages: Optional[Dict[str, str]] = None, failing: Iterable[str] = ()) -> None:
        self.pages: Dict[str, str] = dict(pages or {})
        self.failing = set(failing)
        self.requests: List[str] = []

    async def __call__(self, url: str) -> str:
        self.requests.append(url)
        if url in self.failing or url not in self.pages:
            raise FetchError(url, 3)
        return self.pages[url]


def render_listing(
    product_paths: Iterable[str],
    page_links: Iterable[str] = (),
    extra: str = "",
) -> str:
    cards = []
    for path in product_paths:
        slug = path.rstrip("/").rsplit("/", 1)[-1]
        cards.append(
            f'<li class="product"><a href="{path}"><img src="/img/{slug}.jpg">'
            f"<h2>Product {slug}</h2> $1.990</a></li>"
        )
    cards = "\n".join(cards)
    nav = "".join(f'<a class="page-numbers" href="{href}">{href}</a>' for href in page_links)
    return (
        "<html><body>"
        '<header><a href="/">Home</a><a href="/carrito/">Cart</a></header>'
        f'<ul class="products">{cards}</ul><nav>{nav}</nav>{extra}'
        "</body></html>"
    )


@pytest.fixture
def fake_site():
    return FakeSite


@pytest.fixture
def listing():
    return render_listing


@pytest.fixture
def three_page_catalog():
    """Path-paginated catalog: 3 pages x 10 distinct products, pagination links on page 1."""
    base = "https://shop.test/tienda/"
    pages = {}
    for page in (1, 2, 3):
        products = [f"/producto/item-{page}-{i}/" for i in range(10)]
        url = base if page == 1 else f"{base}page/{page}/"
        links = ["/tienda/page/2/", "/tienda/page/3/"] if page == 1 else []
        pages[url] = render_listing(products, links)
    return pages
