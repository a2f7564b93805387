from __future__ import annotations

from typing import List, Optional

from .base import RawCandidate, extract_anchors


class HintAdapter:
    """Keeps links whose path contains the seed's href hint, e.g. "/carta/"."""

    name = "hint"
    mode = "hint"

    def extract(self, html: str, page_url: str, hint: Optional[str] = None) -> List[RawCandidate]:
        needle = (hint or "").strip().lower()
        if not needle:
            return []
        return extract_anchors(html, page_url, lambda path: needle in path.lower())
