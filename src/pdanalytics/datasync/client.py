"""HTTP client side of the sync protocol."""

import asyncio
from typing import Any, Optional, Type
from urllib.parse import quote, urlencode

import aiohttp
from pydantic import ValidationError

from .types import Page, SYNC_PATH
from ..utils.errors import NetworkError
from ..utils.logging import get_logger


logger = get_logger("pdanalytics.sync.client")


def build_sync_url(base_url: str, table: str, last: str, skip: int, take: int) -> str:
    """``{base}/api/sync/{table}?last=..&skip=..&take=..``"""
    query = urlencode({"last": last, "skip": skip, "take": take})
    return f"{base_url.rstrip('/')}{SYNC_PATH}/{quote(table, safe='')}?{query}"


class SyncClient:
    """Fetches sync pages from peer instances.

    Owns one aiohttp session; use as an async context manager or call
    ``open``/``close`` explicitly.
    """

    def __init__(self, timeout: float = 30.0, headers: Optional[dict] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        self.timeout = timeout
        self.headers = headers or {"Accept": "application/json"}
        self._session = session
        self._owns_session = session is None

    async def open(self) -> None:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers=self.headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
            self._owns_session = True

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "SyncClient":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def fetch_page(self, url: str, page_type: Type[Page] = Page[Any]) -> Page:
        """
        GET one page and decode it as ``page_type``.

        A JSON body is decoded whatever the status code, so a peer that
        refuses the request with ``success: false`` surfaces as a page and
        not as a transport failure.

        Raises:
            NetworkError: connection problems, timeouts, non-JSON error
                responses and bodies that do not decode as a page
        """
        if self._session is None or self._session.closed:
            await self.open()

        try:
            async with self._session.get(url) as response:
                if response.content_type != "application/json":
                    text = await response.text()
                    if response.status >= 400:
                        raise NetworkError(f"HTTP {response.status} from {url}: {text[:200]}")
                    raise NetworkError(f"unexpected content type {response.content_type!r} from {url}")
                body = await response.json()
        except asyncio.TimeoutError as e:
            raise NetworkError(f"request to {url} timed out", cause=e) from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"request to {url} failed: {e}", cause=e) from e
        except ValueError as e:
            raise NetworkError(f"invalid JSON from {url}: {e}", cause=e) from e

        try:
            page = page_type.model_validate(body)
        except ValidationError as e:
            raise NetworkError(f"malformed sync page from {url}: {e}", cause=e) from e

        logger.debug(
            "sync_page_received",
            url=url,
            status=response.status,
            records=len(page.records or ()),
            total_count=page.total_count,
        )
        return page


__all__ = ['SyncClient', 'build_sync_url']
