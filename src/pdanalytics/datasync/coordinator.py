"""
Sync coordinator for pdanalytics.

This module provides the component that replicates registered tables from
upstream instances:
- One sweep immediately at startup, then one every ``period`` minutes
- Strictly sequential sweeps over sources and tables in registration order
- Per-pair failure containment
- Retrieval entry point for the sync API
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .client import SyncClient
from .registry import SyncRegistry
from .session import SyncSession, DEFAULT_MAX_ATTEMPTS
from .syncer import Syncer
from .types import DEFAULT_PAGE_SIZE, Page, SourceDescriptor, SweepReport
from ..managers.base import BaseManager
from ..storage.store import SyncStore
from ..utils.errors import (
    PdAnalyticsError,
    SyncDisabledError,
    SyncNotInitializedError,
    TableNotRegisteredError,
    error_context,
)
from ..utils.logging import get_metrics_logger


class SyncCoordinator(BaseManager):
    """
    Drives periodic replication and answers peer retrieval requests.

    Tables and sources are registered before ``start``; starting freezes
    the registry.
    """

    def __init__(
        self,
        enabled: bool,
        period: int,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = 1.0,
        request_timeout: float = 30.0,
        client: Optional[SyncClient] = None,
        registry: Optional[SyncRegistry] = None,
    ):
        """
        Args:
            enabled: Whether this instance syncs and serves sync data
            period: Minutes between sweeps
            page_size: ``take`` used for every page request
            max_attempts: Fetch attempts per page
            retry_delay: Seconds to sleep between attempts
            request_timeout: Total timeout of one page request in seconds
            client: HTTP client (created on start when omitted)
            registry: Pre-populated registry
        """
        super().__init__("sync")
        self.enabled = enabled
        self.period = period
        self.page_size = page_size
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.registry = registry or SyncRegistry()
        self.client = client or SyncClient(timeout=request_timeout)
        self.metrics = get_metrics_logger()

        self._shutdown = asyncio.Event()
        self._scheduler_task: Optional[asyncio.Task] = None
        self._sweeping = False
        self.sweep_count = 0
        self.last_sweep: Optional[SweepReport] = None

    @property
    def period_seconds(self) -> float:
        return self.period * 60

    # Registration

    def add_syncer(self, table: str, syncer: Syncer) -> None:
        self.registry.bind(table, syncer)
        self.logger.debug("syncer_registered", table=table)

    def add_source(self, url: str, store: SyncStore, label: Optional[str] = None) -> SourceDescriptor:
        return self.registry.add_source(url, store, label)

    def syncer(self, table: str):
        """Return ``(syncer, found)`` for ``table``."""
        return self.registry.lookup(table)

    def registered_sources(self) -> List[str]:
        """Labels of every registered source, passive ones included."""
        if not self.is_initialized:
            raise SyncNotInitializedError()
        return [source.label for source in self.registry.sources()]

    # Lifecycle

    async def _initialize(self) -> None:
        self.logger.info(
            "sync_coordinator_configured",
            enabled=self.enabled,
            period_minutes=self.period,
            tables=self.registry.tables(),
            sources=len(self.registry.sources()),
        )

    async def _start(self) -> None:
        self.registry.freeze()
        self._shutdown.clear()
        if not self.enabled:
            self.logger.info("sync_disabled")
            return
        await self.client.open()
        self._scheduler_task = asyncio.create_task(self._run_scheduler())

    async def _stop(self) -> None:
        self._shutdown.set()
        if self._scheduler_task is not None:
            # The running sweep, if any, is allowed to finish.
            await self._scheduler_task
            self._scheduler_task = None
        await self.client.close()

    async def _health_check(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "sweeping": self._sweeping,
            "sweeps": self.sweep_count,
            "last_sweep": self.last_sweep.to_dict() if self.last_sweep else None,
        }

    async def _run_scheduler(self) -> None:
        self.logger.info("sync_scheduler_started", period_minutes=self.period)
        await self._scheduled_sweep()
        while not self._shutdown.is_set():
            try:
                await asyncio.wait_for(self._shutdown.wait(), timeout=self.period_seconds)
            except asyncio.TimeoutError:
                await self._scheduled_sweep()
        self.logger.info("stopping_sync_coordinator")

    async def _scheduled_sweep(self) -> None:
        # A failed sweep is logged; the next one still runs on schedule.
        try:
            await self.sweep()
        except Exception as e:
            self.logger.error("sync_sweep_failed", error=str(e), exc_info=True)

    # Sweeping

    async def sweep(self) -> SweepReport:
        """
        Sync every registered table from every active source once.

        Failures are logged and recorded per pair; they never stop the sweep.
        """
        report = SweepReport()
        self._sweeping = True
        started = time.monotonic()
        try:
            for source in self.registry.active_sources():
                for binding in self.registry.bindings():
                    await self._sync_pair(source, binding.table_name, binding.syncer, report)
        finally:
            self._sweeping = False
            report.finished_at = datetime.now(timezone.utc)
            self.sweep_count += 1
            self.last_sweep = report

        self.metrics.log_duration("sync.sweep", (time.monotonic() - started) * 1000)
        self.metrics.log_count("sync.sweep.records", report.records)
        self.logger.info(
            "sync_sweep_finished",
            records=report.records,
            synced=len(report.reports),
            failed=len(report.failures),
        )
        return report

    async def _sync_pair(self, source: SourceDescriptor, table: str, syncer: Syncer,
                         report: SweepReport) -> None:
        self.logger.info(
            "syncing_external_table",
            source=source.label,
            table=table,
            url=source.url,
        )
        session = SyncSession(
            source=source,
            table=table,
            syncer=syncer,
            client=self.client,
            page_size=self.page_size,
            max_attempts=self.max_attempts,
            retry_delay=self.retry_delay,
        )
        try:
            with error_context("sync", "sync_table", source=source.label, table=table):
                result = await session.run()
        except PdAnalyticsError as e:
            self.logger.error(
                "sync_session_failed",
                source=source.label,
                table=table,
                code=e.code,
                error=e.message,
            )
            report.add_failure(source.label, table, e)
            return

        report.add_report(result)
        self.metrics.log_duration(
            "sync.table", result.duration * 1000, tags={"source": source.label, "table": table}
        )

    # Serving

    async def retrieve(self, table: str, last: str, skip: int, take: int) -> Page:
        """
        Serve one page of ``table`` to a peer.

        Raises:
            SyncNotInitializedError: the coordinator is not initialized
            SyncDisabledError: data sharing is off on this instance
            TableNotRegisteredError: no syncer is bound to ``table``
        """
        self.logger.info("sync_request_received", table=table, last=last, skip=skip, take=take)
        if not self.is_initialized:
            raise SyncNotInitializedError()

        if not self.enabled:
            raise SyncDisabledError()

        syncer, found = self.registry.lookup(table)
        if not found:
            self.logger.info("sync_request_unknown_table", table=table)
            raise TableNotRegisteredError(table)

        return await syncer.retrieve(last, skip, take)


__all__ = ['SyncCoordinator']
