"""
Release Builder: publish log fetcher.
"""

from __future__ import annotations

from typing import Protocol

import httpx

from release_builder.errors import LogFetchError
from release_builder.utils.logging import logger


class LogFetcher(Protocol):
    async def fetch_text(self, url: str) -> str: ...


class HttpLogFetcher:
    """Downloads the raw text a build uploaded as its publish result."""

    def __init__(self, timeout: float = 30.0, transport: httpx.AsyncBaseTransport | None = None):
        self.timeout = timeout
        self._transport = transport

    async def fetch_text(self, url: str) -> str:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport, follow_redirects=True
            ) as client:
                resp = await client.get(url)
        except httpx.TransportError as exc:
            logger.error("  Publish log %s unreachable: %s", url, exc)
            raise LogFetchError(url) from exc
        if not resp.is_success:
            logger.error("  Publish log %s returned %d", url, resp.status_code)
            raise LogFetchError(url, resp.status_code)
        logger.info("  Fetched publish log %s (%d chars)", url, len(resp.text))
        return resp.text
