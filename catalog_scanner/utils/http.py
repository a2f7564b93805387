from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Dict, Optional
from urllib.parse import urlsplit
from aiohttp import ClientSession, ClientTimeout
import aiohttp
import logging

logger = logging.getLogger(__name__)

ACCEPT_HTML = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


class FetchError(Exception):
    """A page could not be loaded even after retries."""

    def __init__(self, url: str, attempts: int, cause: Optional[BaseException] = None) -> None:
        self.url = url
        self.attempts = attempts
        self.cause = cause
        super().__init__(f"could not fetch {url} after {attempts} attempt(s): {cause!r}")


class HostRateLimiter:
    """
    Keeps consecutive requests to the same host at least ``delay_ms`` apart.
    Different hosts never wait on each other.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._clock = clock
        self._sleep = sleep
        self._last_dispatch: Dict[str, float] = {}

    async def wait(self, url: str, delay_ms: float) -> None:
        host = (urlsplit(url).hostname or "").lower()
        last = self._last_dispatch.get(host)
        if last is not None:
            remaining = last + delay_ms / 1000.0 - self._clock()
            if remaining > 0:
                await self._sleep(remaining)
        self._last_dispatch[host] = self._clock()


async def fetch_html(
    session: ClientSession,
    url: str,
    *,
    limiter: HostRateLimiter,
    delay_ms: float,
    timeout: float = 16.0,
    user_agent: Optional[str] = None,
    accept_language: Optional[str] = None,
    retries: int = 3,
    backoff_ms: float = 450,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> str:
    """
    GET a page and return its body text.

    ``retries`` is the total number of attempts. Every attempt goes through the
    limiter; failed attempts back off ``attempt * backoff_ms``. Raises
    FetchError once attempts are exhausted.
    """
    headers = {"Accept": ACCEPT_HTML}
    if user_agent:
        headers["User-Agent"] = user_agent
    if accept_language:
        headers["Accept-Language"] = accept_language

    last_exc: Optional[BaseException] = None
    for attempt in range(1, retries + 1):
        await limiter.wait(url, delay_ms)
        try:
            async with session.get(
                url,
                headers=headers,
                timeout=ClientTimeout(total=timeout),
                allow_redirects=True,
            ) as resp:
                resp.raise_for_status()
                return await resp.text(errors="replace")
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            last_exc = exc
            logger.debug("fetch_html attempt %s/%s failed for %s: %r", attempt, retries, url, exc)
            if attempt < retries:
                await sleep(attempt * backoff_ms / 1000.0)
    raise FetchError(url, retries, last_exc) from last_exc


def create_session() -> ClientSession:
    """
    Session for one scan. Cookies are never kept between requests.
    """
    # Caller closes it (await session.close()).
    connector = aiohttp.TCPConnector(limit=1)  # fetches are strictly sequential
    return aiohttp.ClientSession(connector=connector, cookie_jar=aiohttp.DummyCookieJar())
