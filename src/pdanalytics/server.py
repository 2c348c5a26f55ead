"""
pdanalytics server - wires configuration, stores, the sync coordinator and
the HTTP sync API together.
"""

import asyncio
import signal
import sys
from typing import Any, Dict, List, Optional

from aiohttp import web

from . import __version__
from .datasync.api import setup_sync_routes
from .datasync.coordinator import SyncCoordinator
from .storage.store import SyncStore
from .tables import SCHEMAS, register_default_syncers
from .utils.config import PdAnalyticsConfig, load_config
from .utils.logging import setup_logging, get_logger


logger = get_logger("pdanalytics.server")


class PdAnalyticsServer:
    """Owns every long-lived component of one pdanalytics instance."""

    def __init__(self, config: PdAnalyticsConfig):
        self.config = config
        self.store: Optional[SyncStore] = None
        self.source_stores: List[SyncStore] = []
        self.coordinator: Optional[SyncCoordinator] = None
        self.app: Optional[web.Application] = None
        self._runner: Optional[web.AppRunner] = None
        self._stop_event = asyncio.Event()
        self.initialized = False

    async def initialize(self) -> None:
        """Open the stores, register tables and sources, build the web app."""
        if self.initialized:
            return

        logger.info("initializing_server", version=__version__)
        db = self.config.database
        db_options = dict(timeout=db.timeout, journal_mode=db.journal_mode, synchronous=db.synchronous)

        self.store = SyncStore.open(db.path, label="local", **db_options)
        await self.store.initialize(SCHEMAS)

        sync = self.config.sync
        self.coordinator = SyncCoordinator(
            enabled=sync.enabled,
            period=sync.period,
            page_size=sync.page_size,
            max_attempts=sync.max_attempts,
            retry_delay=sync.retry_delay,
            request_timeout=sync.request_timeout,
        )
        register_default_syncers(self.coordinator, self.store)

        for source in sync.sources:
            store = SyncStore.open(source.database, label=source.name, **db_options)
            await store.initialize(SCHEMAS)
            self.source_stores.append(store)
            self.coordinator.add_source(source.url, store, label=source.name)

        await self.coordinator.initialize()

        self.app = web.Application()
        setup_sync_routes(self.app, self.coordinator, max_take=sync.max_take)

        self.initialized = True
        logger.info("server_initialized", sources=len(self.source_stores))

    async def start(self) -> None:
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.config.web.host, self.config.web.port)
        await site.start()
        logger.info("http_server_started", host=self.config.web.host, port=self.config.web.port)

        await self.coordinator.start()

    async def shutdown(self) -> None:
        """Graceful shutdown of all components."""
        logger.info("shutting_down_server")

        if self.coordinator is not None:
            await self.coordinator.stop()
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        for store in self.source_stores:
            await store.close()
        if self.store is not None:
            await self.store.close()

        self.initialized = False
        logger.info("server_shutdown_complete")

    def request_stop(self) -> None:
        self._stop_event.set()

    async def run(self) -> None:
        """Run until SIGINT or SIGTERM."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.request_stop)
            except NotImplementedError:
                # Windows event loops have no signal handler support.
                pass

        try:
            await self.initialize()
            await self.start()
            await self._stop_event.wait()
            logger.info("received_stop_signal")
        except Exception as e:
            logger.error("server_error", error=str(e), exc_info=True)
            raise
        finally:
            await self.shutdown()


def parse_args(argv: Optional[List[str]] = None):
    import argparse

    parser = argparse.ArgumentParser(description="pdanalytics data sync server")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--config", type=str, action="append", help="Config file path")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    parser.add_argument("--host", type=str, help="Address for the HTTP server")
    parser.add_argument("--port", type=int, help="Port for the HTTP server")
    return parser.parse_args(argv)


def cli_overrides(args) -> Dict[str, Any]:
    """Translate command line flags into a config override dict."""
    overrides: Dict[str, Any] = {}
    if args.debug:
        overrides["debug"] = True
        overrides["logging"] = {"level": "DEBUG"}
    web_config = {}
    if args.host:
        web_config["host"] = args.host
    if args.port:
        web_config["port"] = args.port
    if web_config:
        overrides["web"] = web_config
    return overrides


def main(argv: Optional[List[str]] = None) -> None:
    """Run the pdanalytics server."""
    args = parse_args(argv)

    if args.version:
        print(f"pdanalytics v{__version__}")
        return

    config = load_config(config_paths=args.config, extra_config=cli_overrides(args))
    setup_logging(
        config.app_name,
        log_level=config.logging.level,
        log_dir=config.logging.directory,
        enable_json=config.logging.format == "json",
        enable_sentry=config.logging.enable_sentry,
        sentry_dsn=config.logging.sentry_dsn,
        max_size=config.logging.max_size,
        backup_count=config.logging.backup_count,
    )

    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())

    try:
        asyncio.run(PdAnalyticsServer(config).run())
    except KeyboardInterrupt:
        logger.info("server_stopped_by_user")
    except Exception as e:
        logger.error("server_error", error=str(e), exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
