"""Bounded-concurrency HTTP checks for external links.

Each unique URL is fetched once with a GET that follows redirects. At most
``concurrency`` requests are in flight at a time; each request is bounded by
its own timeout. Results come back in completion order and are cached by
the raw URL string.

Example usage::

    checker = ExternalChecker(concurrency=5, timeout=10.0)
    for url, result in await checker.check_all(["https://example.com"]):
        print(url, result.status, result.reason)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Iterable, List, Optional, Tuple

import httpx

from .records import CheckResult, LinkStatus

LOGGER = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 10
DEFAULT_TIMEOUT = 15.0
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; Link-Checker-Bot/1.0)"

TIMEOUT_REASON = "Timeout"


def classify_status(status_code: int) -> CheckResult:
    """Map the final HTTP status (after redirects) to a CheckResult."""
    if 200 <= status_code < 400:
        return CheckResult(status=LinkStatus.ok, http_status=status_code)
    return CheckResult(
        status=LinkStatus.broken,
        reason=f"HTTP Error: {status_code}",
        http_status=status_code,
    )


class ExternalChecker:
    """Check external URLs with a shared client and a concurrency cap."""

    def __init__(
        self,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.concurrency = max(1, concurrency)
        self.timeout = timeout
        self.user_agent = user_agent
        self._client = client
        self._semaphore = asyncio.Semaphore(self.concurrency)
        self._cache: Dict[str, CheckResult] = {}

    @property
    def cache(self) -> Dict[str, CheckResult]:
        return dict(self._cache)

    @asynccontextmanager
    async def _client_scope(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(
            headers={"User-Agent": self.user_agent},
            follow_redirects=True,
            timeout=self.timeout,
        ) as client:
            yield client

    async def _fetch_status(self, client: httpx.AsyncClient, url: str) -> int:
        # Only the status line matters, so the body is never read.
        async with client.stream(
            "GET",
            url,
            headers={"User-Agent": self.user_agent},
            follow_redirects=True,
            timeout=self.timeout,
        ) as response:
            return response.status_code

    async def _check_one(
        self, client: httpx.AsyncClient, url: str
    ) -> Tuple[str, CheckResult]:
        cached = self._cache.get(url)
        if cached is not None:
            return url, cached

        async with self._semaphore:
            try:
                status_code = await asyncio.wait_for(
                    self._fetch_status(client, url), timeout=self.timeout
                )
                result = classify_status(status_code)
            except (asyncio.TimeoutError, httpx.TimeoutException):
                result = CheckResult(status=LinkStatus.broken, reason=TIMEOUT_REASON)
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                result = CheckResult(
                    status=LinkStatus.broken,
                    reason=str(exc) or type(exc).__name__,
                )

        LOGGER.debug("Checked %s -> %s %s", url, result.status.value, result.reason)
        return url, result

    async def check(self, url: str) -> CheckResult:
        """Check a single URL, reusing a cached result when present."""
        async with self._client_scope() as client:
            _, result = await self._check_one(client, url)
        self._cache[url] = result
        return result

    async def check_all(self, urls: Iterable[str]) -> List[Tuple[str, CheckResult]]:
        """
        Check many URLs concurrently.

        Args:
            urls: URLs in discovery order; duplicates are checked once.

        Returns:
            ``(url, result)`` pairs in completion order.
        """
        unique = list(dict.fromkeys(urls))
        if not unique:
            return []

        completed: List[Tuple[str, CheckResult]] = []
        async with self._client_scope() as client:
            tasks = [asyncio.create_task(self._check_one(client, url)) for url in unique]
            for finished in asyncio.as_completed(tasks):
                url, result = await finished
                self._cache[url] = result
                completed.append((url, result))
        return completed


async def check_external_links(
    urls: Iterable[str],
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, CheckResult]:
    """Check *urls* and return their results keyed by URL."""
    checker = ExternalChecker(
        concurrency=concurrency,
        timeout=timeout,
        user_agent=user_agent,
        client=client,
    )
    return dict(await checker.check_all(urls))
