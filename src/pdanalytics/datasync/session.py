"""
Replication of one table from one source.

The session resolves the local cursor once, then walks the peer's pages by
offset until the peer signals exhaustion:

1. cursor = syncer.last_entry(store)
2. GET {url}/api/sync/{table}?last={cursor}&skip={skip}&take={take}
3. retry transport failures up to ``max_attempts`` times for this page
4. ``success: false`` aborts without retry
5. no records: stop (``total_count`` 0 means already current)
6. append the page, ``skip += take``, repeat
"""

import asyncio
import time
from typing import Optional

from .client import SyncClient, build_sync_url
from .syncer import Syncer
from .types import DEFAULT_PAGE_SIZE, Page, SourceDescriptor, SyncOutcome, SyncReport
from ..utils.errors import (
    CursorResolutionError,
    DatabaseError,
    NetworkError,
    PersistenceError,
    SyncFetchError,
    SyncProtocolError,
)
from ..utils.logging import get_logger


logger = get_logger("pdanalytics.sync.session")

DEFAULT_MAX_ATTEMPTS = 3


class SyncSession:
    """Runs the pull protocol for a single (source, table) pair."""

    def __init__(
        self,
        source: SourceDescriptor,
        table: str,
        syncer: Syncer,
        client: SyncClient,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = 1.0,
    ):
        self.source = source
        self.table = table
        self.syncer = syncer
        self.client = client
        self.page_size = page_size
        self.max_attempts = max(1, max_attempts)
        self.retry_delay = retry_delay
        self.log = logger.bind(source=source.label, table=table)

    async def run(self) -> SyncReport:
        """
        Replicate the table into the source's local store.

        Raises:
            CursorResolutionError: the local cursor could not be read
            SyncFetchError: a page failed ``max_attempts`` times
            SyncProtocolError: the peer rejected the request
            PersistenceError: a fetched page could not be stored
        """
        started = time.monotonic()
        cursor = await self._resolve_cursor()
        skip = 0
        pages = 0
        transferred = 0
        inserted = 0

        while True:
            url = build_sync_url(self.source.url, self.table, cursor, skip, self.page_size)
            page = await self._fetch(url)

            if not page.success:
                raise SyncProtocolError(f"sync error, {page.message or 'no message from source'}")

            if page.is_exhausted:
                duration = time.monotonic() - started
                if page.is_current:
                    outcome = SyncOutcome.UP_TO_DATE
                    self.log.info(
                        "sync_up_to_date",
                        records=transferred,
                        pages=pages,
                        seconds=round(duration, 3),
                    )
                else:
                    outcome = SyncOutcome.COMPLETED
                    self.log.info(
                        "sync_completed",
                        url=self.source.url,
                        records=transferred,
                        total_count=page.total_count,
                        pages=pages,
                        seconds=round(duration, 3),
                    )
                return SyncReport(
                    source=self.source.label,
                    table=self.table,
                    outcome=outcome,
                    records=transferred,
                    inserted=inserted,
                    pages=pages,
                    duration=duration,
                )

            inserted += await self._append(page)
            pages += 1
            transferred += len(page.records)
            skip += self.page_size

    async def _resolve_cursor(self) -> str:
        try:
            cursor = await self.syncer.last_entry(self.source.store)
        except DatabaseError as e:
            raise CursorResolutionError(
                f"error in fetching sync history, {e.message}", cause=e
            ) from e
        self.log.debug("sync_cursor_resolved", cursor=cursor)
        return cursor

    async def _fetch(self, url: str) -> Page:
        last_error: Optional[NetworkError] = None

        for attempt in range(1, self.max_attempts + 1):
            self.log.info("sync_page_requested", url=url, attempt=attempt)
            try:
                return await self.syncer.collect(self.client, url)
            except NetworkError as e:
                last_error = e
                if attempt < self.max_attempts:
                    self.log.error(
                        "sync_page_failed_retrying",
                        url=url,
                        attempt=attempt,
                        error=e.message,
                    )
                    await asyncio.sleep(self.retry_delay)

        raise SyncFetchError(
            f"error in fetching data for {url}, {last_error.message}", cause=last_error
        ) from last_error

    async def _append(self, page: Page) -> int:
        try:
            inserted = await self.syncer.append(self.source.store, page.records)
        except DatabaseError as e:
            raise PersistenceError(
                f"error while appending {self.table} synced data, {e.message}", cause=e
            ) from e
        self.log.debug(
            "sync_page_persisted",
            received=len(page.records),
            inserted=inserted,
        )
        return inserted


__all__ = ['SyncSession', 'DEFAULT_MAX_ATTEMPTS']
