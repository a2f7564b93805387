from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit
import re

from bs4 import BeautifulSoup, SoupStrainer

TRACKING_QUERY_PARAM_PREFIXES = ("utm_",)
TRACKING_QUERY_PARAMS = frozenset({
    "fbclid",
    "gclid",
    "mc_cid",
    "mc_eid",
    "igshid",
    "ref",
    "ref_src",
    "source",
})

_DEFAULT_PORTS = {"http": 80, "https": 443}

RE_SPACES = re.compile(r"\s+")
RE_PAGINATION_PATH = re.compile(r"/page/\d+/?$", re.IGNORECASE)
RE_PRICE_START = re.compile(r"[$€£¥₡]")

LAZY_IMAGE_ATTRS = ("data-src", "data-lazy-src", "data-original", "src")


def _is_tracking_param(key: str) -> bool:
    lower = key.lower()
    return lower in TRACKING_QUERY_PARAMS or lower.startswith(TRACKING_QUERY_PARAM_PREFIXES)


def normalize_url(url: str) -> str:
    """
    Canonical form used for deduplication.

    Drops the fragment and tracking parameters, sorts the remaining query keys
    (values of a repeated key keep their order), trims trailing slashes on
    non-root paths, lowercases scheme/host and removes default ports.
    Anything that does not parse as an absolute URL comes back stripped but
    otherwise untouched.
    """
    trimmed = url.strip()
    try:
        parts = urlsplit(trimmed)
        port = parts.port
    except ValueError:
        return trimmed
    if not parts.scheme or not parts.hostname:
        return trimmed

    scheme = parts.scheme.lower()
    host = parts.hostname.lower()
    if ":" in host:
        host = f"[{host}]"
    netloc = host
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        netloc = f"{host}:{port}"
    if parts.username:
        creds = parts.username + (f":{parts.password}" if parts.password else "")
        netloc = f"{creds}@{netloc}"

    pairs = [
        (key, value.strip())
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if not _is_tracking_param(key)
    ]
    pairs.sort(key=lambda kv: kv[0])

    path = parts.path or "/"
    if len(path) > 1:
        path = path.rstrip("/") or "/"

    return urlunsplit((scheme, netloc, path, urlencode(pairs), ""))


def clean_text(value: str) -> str:
    return RE_SPACES.sub(" ", value).strip()


def strip_price(text: str) -> str:
    """Cut "Carta X $1.990" down to "Carta X"."""
    return RE_PRICE_START.split(text, 1)[0].strip()


def is_pagination_path(path: str) -> bool:
    return bool(RE_PAGINATION_PATH.search(path))


def same_host(url: str, host: str) -> bool:
    try:
        return (urlsplit(url).hostname or "").lower() == host.lower()
    except ValueError:
        return False


@dataclass
class Anchor:
    """An <a> element reduced to what extraction needs."""

    href: str
    text: str
    image: Optional[str] = None


def _first_image(tag) -> Optional[str]:
    img = tag.find("img")
    if img is None:
        return None
    for attr in LAZY_IMAGE_ATTRS:
        value = (img.get(attr) or "").strip()
        # Lazy-loading themes park a tiny data: URI in src until scroll.
        if value and not value.startswith("data:"):
            return value
    return None


def iter_anchors(html: str) -> Iterator[Anchor]:
    """
    Yield anchors with a usable href, in document order.

    Only <a> elements (and their children) are built, so a broken page
    layout around the product grid does not matter.
    """
    soup = BeautifulSoup(html, "html.parser", parse_only=SoupStrainer("a"))
    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        if not href or href == "#":
            continue
        yield Anchor(href=href, text=clean_text(a.get_text(" ")), image=_first_image(a))


def resolve_links(html: str, base_url: str) -> List[Tuple[str, str]]:
    """
    Absolute http(s) links of a page as (url, path) pairs, same host as base_url only.
    """
    host = urlsplit(base_url).hostname or ""
    out: List[Tuple[str, str]] = []
    for anchor in iter_anchors(html):
        absolute = resolve(base_url, anchor.href)
        if absolute is None or not same_host(absolute, host):
            continue
        out.append((absolute, urlsplit(absolute).path))
    return out


def resolve(base_url: str, href: str) -> Optional[str]:
    """Resolve href against base_url; None for non-http(s) or unparseable targets."""
    try:
        absolute = urljoin(base_url, href)
        parts = urlsplit(absolute)
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return None
    return urlunsplit((parts.scheme, parts.netloc, parts.path, parts.query, ""))
