from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol
from urllib.parse import urlsplit
import uuid

from ..utils.parsing import (
    is_pagination_path,
    iter_anchors,
    normalize_url,
    resolve,
    same_host,
    strip_price,
)

MAX_NAME_LENGTH = 500


@dataclass
class RawCandidate:
    """A product reference as found on one listing page."""

    product_url: str
    product_name: Optional[str] = None
    image_url: Optional[str] = None


@dataclass
class Candidate:
    """A discovered product link awaiting operator review."""

    candidate_id: str
    store_id: Optional[str]
    store_name: str
    seed_label: str
    seed_url: str
    product_url: str
    product_name: Optional[str]
    image_url: Optional[str]
    normalized_url: str

    @classmethod
    def from_raw(
        cls,
        raw: RawCandidate,
        *,
        store_id: Optional[str],
        store_name: str,
        seed_label: str,
        seed_url: str,
        normalized_url: Optional[str] = None,
    ) -> "Candidate":
        return cls(
            candidate_id=str(uuid.uuid4()),
            store_id=store_id,
            store_name=store_name,
            seed_label=seed_label,
            seed_url=seed_url,
            product_url=raw.product_url,
            product_name=raw.product_name,
            image_url=raw.image_url,
            normalized_url=normalized_url or normalize_url(raw.product_url),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "candidate_id": self.candidate_id,
            "store_id": self.store_id,
            "store_name": self.store_name,
            "seed_label": self.seed_label,
            "seed_url": self.seed_url,
            "product_url": self.product_url,
            "product_name": self.product_name,
            "image_url": self.image_url,
            "normalized_url": self.normalized_url,
        }


class ExtractAdapter(Protocol):
    """
    Turns one listing page into product candidates.
    The scanner owns HTTP and pagination; adapters only look at markup.
    """

    name: str
    mode: str  # the seed extract_mode this adapter serves

    def extract(self, html: str, page_url: str, hint: Optional[str] = None) -> List[RawCandidate]:
        ...


def extract_anchors(
    html: str,
    page_url: str,
    accept_path: Callable[[str], bool],
) -> List[RawCandidate]:
    """
    Shared anchor walk: same-host http(s) links that are not pagination and
    whose path passes ``accept_path``, de-duplicated by normalized URL.
    """
    page_host = urlsplit(page_url).hostname or ""
    by_url: Dict[str, RawCandidate] = {}
    out: List[RawCandidate] = []

    for anchor in iter_anchors(html):
        absolute = resolve(page_url, anchor.href)
        if absolute is None or not same_host(absolute, page_host):
            continue
        path = urlsplit(absolute).path
        if is_pagination_path(path) or not accept_path(path):
            continue

        name = strip_price(anchor.text)[:MAX_NAME_LENGTH].strip() if anchor.text else ""
        image = resolve(page_url, anchor.image) if anchor.image else None

        normalized = normalize_url(absolute)
        existing = by_url.get(normalized)
        if existing is not None:
            # Product cards often link twice: image first, title second.
            existing.product_name = existing.product_name or name or None
            existing.image_url = existing.image_url or image
            continue

        candidate = RawCandidate(product_url=absolute, product_name=name or None, image_url=image)
        by_url[normalized] = candidate
        out.append(candidate)
    return out
