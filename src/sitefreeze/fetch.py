"""Page fetching: stream rendered routes from the live site.

The live site is the only renderer: every mapping is fetched over HTTP and
the response body is written verbatim.  Status codes are not checked, so an
error page body is frozen exactly as the server rendered it.  Only network
failures (connection errors, timeouts, protocol errors) fail a route.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator
from typing import Self

import httpx

from sitefreeze._errors import FetchError

DEFAULT_TIMEOUT = 30.0  # seconds


class PageFetcher:
    """HTTP client shared by all fetches of one run.

    Usage::

        async with PageFetcher(timeout=10) as fetcher:
            async for chunk in fetcher.stream("http://localhost:2368/"):
                ...

    Args:
        timeout: Deadline in seconds for each complete fetch.
        client: Pre-configured client (the fetcher does not close it).

    """

    __slots__ = ("_client", "_owns_client", "_timeout")

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> Self:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
            )
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def stream(self, url: str) -> AsyncIterator[bytes]:
        """Yield the response body of *url* chunk by chunk.

        The whole fetch, from connecting to the last body byte, must finish
        within the fetcher's timeout.  Time the caller spends between
        chunks counts too.

        Raises:
            FetchError: On any transport failure, including mid-body, or
                when the deadline passes.

        """
        if self._client is None:
            msg = "PageFetcher used outside 'async with'"
            raise RuntimeError(msg)
        deadline = asyncio.get_running_loop().time() + self._timeout
        try:
            async with contextlib.AsyncExitStack() as stack:
                async with asyncio.timeout_at(deadline):
                    response = await stack.enter_async_context(
                        self._client.stream("GET", url),
                    )
                chunks = response.aiter_bytes()
                while True:
                    async with asyncio.timeout_at(deadline):
                        chunk = await anext(chunks, None)
                    if chunk is None:
                        break
                    yield chunk
        except TimeoutError as exc:
            raise FetchError(url, "timed out") from exc
        except httpx.HTTPError as exc:
            raise FetchError(url, str(exc) or type(exc).__name__) from exc

    async def fetch(self, url: str) -> bytes:
        """Return the complete response body of *url*."""
        chunks = [chunk async for chunk in self.stream(url)]
        return b"".join(chunks)
