from __future__ import annotations

from typing import Optional, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit
import math
import re

from ..schemas import PaginationMode, check_http_url
from .parsing import resolve_links

RE_PAGE_LINK = re.compile(r"/page/(\d+)(?:/|$)", re.IGNORECASE)


def build_page_url(base: str, page: int, mode: Union[PaginationMode, str]) -> str:
    """
    URL of listing page ``page`` (1-based) for a seed.

    >>> build_page_url("https://s.cl/tienda", 3, "path")
    'https://s.cl/tienda/page/3/'
    >>> build_page_url("https://s.cl/tienda?orderby=price", 3, "query")
    'https://s.cl/tienda?orderby=price&page=3'
    """
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    base = check_http_url(base)
    mode = PaginationMode(mode)

    if mode is PaginationMode.PATH:
        clean = base.rstrip("/") + "/"
        return clean if page == 1 else f"{clean}page/{page}/"

    parts = urlsplit(base)
    pairs = []
    replaced = False
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        if key == "page":
            if replaced:
                continue
            value = str(page)
            replaced = True
        pairs.append((key, value))
    if not replaced:
        pairs.append(("page", str(page)))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(pairs), parts.fragment))


def infer_max_pages_by_links(html: str, page_url: str) -> int:
    """
    Highest N among same-host ``/page/N/`` links on the page; 0 if none.
    """
    highest = 0
    for _, path in resolve_links(html, page_url):
        match = RE_PAGE_LINK.search(path)
        if match:
            highest = max(highest, int(match.group(1)))
    return highest


def infer_max_pages_by_total(html: str, per_page: int, pattern: Union[str, re.Pattern[str]]) -> int:
    """
    Page count from a "<N> productos" style banner divided by the page-1 yield.
    """
    if per_page <= 0:
        return 0
    if isinstance(pattern, str):
        pattern = re.compile(pattern, re.IGNORECASE)
    match = pattern.search(html)
    if not match:
        return 0
    total = int(match.group(1))
    if total <= 0:
        return 0
    return max(1, math.ceil(total / per_page))


def effective_page_cap(max_pages: Optional[int], hard_cap: int) -> int:
    return max(1, min(max_pages or hard_cap, hard_cap))
