from __future__ import annotations

from typing import List, Optional, Tuple

from .base import RawCandidate, extract_anchors
from ..utils.parsing import is_pagination_path


class GenericAdapter:
    """
    Store-agnostic product detection from URL path conventions.
    Used when a seed has no better hint about what product links look like.
    """
    name = "generic"
    mode = "generic"

    product_markers: Tuple[str, ...] = (
        "/product/",
        "/products/",
        "/producto/",
        "/productos/",
        "/single",
        "/tienda/",
    )
    excluded_markers: Tuple[str, ...] = (
        "/cart",
        "/carrito",
        "/checkout",
        "/finalizar-compra",
        "/cuenta",
        "/mi-cuenta",
        "/account",
        "/my-account",
    )

    def is_product_path(self, path: str) -> bool:
        p = path.lower()
        if p == "/" or len(p) < 4:
            return False
        if is_pagination_path(p):
            return False
        if any(marker in p for marker in self.excluded_markers):
            return False
        return any(marker in p for marker in self.product_markers)

    def extract(self, html: str, page_url: str, hint: Optional[str] = None) -> List[RawCandidate]:
        return extract_anchors(html, page_url, self.is_product_path)
