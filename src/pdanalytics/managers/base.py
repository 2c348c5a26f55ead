"""
Lifecycle base class for long-running pdanalytics components.

A manager moves through ``initialize`` -> ``start`` -> ``stop``; subclasses
fill in the ``_initialize``/``_start``/``_stop`` hooks and report their own
status through ``_health_check``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from ..utils.errors import PdAnalyticsError
from ..utils.logging import get_logger


class ManagerState(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    ERROR = "error"


class ManagerError(PdAnalyticsError):
    """A lifecycle transition failed."""
    code = "MANAGER_ERROR"


class ManagerNotReadyError(ManagerError):
    """``start`` was called before a successful ``initialize``."""
    code = "MANAGER_NOT_READY"


class ManagerAlreadyRunningError(ManagerError):
    code = "MANAGER_ALREADY_RUNNING"


@dataclass
class HealthStatus:
    healthy: bool
    last_check: datetime
    details: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None


class BaseManager(ABC):
    """Shared state machine and logging for manager components."""

    def __init__(self, name: str):
        self.name = name
        self.logger = get_logger(f"pdanalytics.managers.{name}")
        self.state = ManagerState.UNINITIALIZED

    @property
    def is_initialized(self) -> bool:
        return self.state not in (ManagerState.UNINITIALIZED, ManagerState.INITIALIZING)

    @property
    def is_ready(self) -> bool:
        return self.state in (ManagerState.READY, ManagerState.RUNNING)

    @property
    def is_running(self) -> bool:
        return self.state == ManagerState.RUNNING

    async def initialize(self) -> None:
        if self.state != ManagerState.UNINITIALIZED:
            raise ManagerError(f"cannot initialize {self.name} from state {self.state.value}")

        self.state = ManagerState.INITIALIZING
        try:
            await self._initialize()
        except Exception as e:
            self.state = ManagerState.ERROR
            self.logger.error("initialization_failed", error=str(e), exc_info=True)
            raise ManagerError(f"failed to initialize {self.name}: {e}", cause=e) from e

        self.state = ManagerState.READY
        self.logger.info("manager_initialized")

    async def start(self) -> None:
        if self.is_running:
            raise ManagerAlreadyRunningError(f"manager {self.name} already running")
        if not self.is_ready:
            raise ManagerNotReadyError(f"manager {self.name} not ready")

        self.state = ManagerState.STARTING
        try:
            await self._start()
        except Exception as e:
            self.state = ManagerState.ERROR
            self.logger.error("start_failed", error=str(e), exc_info=True)
            raise ManagerError(f"failed to start {self.name}: {e}", cause=e) from e

        self.state = ManagerState.RUNNING
        self.logger.info("manager_started")

    async def stop(self) -> None:
        """Stop the manager; a no-op unless it is running."""
        if not self.is_running:
            self.logger.warning("stop_called_when_not_running", state=self.state.value)
            return

        self.state = ManagerState.STOPPING
        try:
            await self._stop()
        except Exception as e:
            self.state = ManagerState.ERROR
            self.logger.error("stop_failed", error=str(e), exc_info=True)
            raise ManagerError(f"failed to stop {self.name}: {e}", cause=e) from e

        self.state = ManagerState.STOPPED
        self.logger.info("manager_stopped")

    async def health_check(self) -> HealthStatus:
        now = datetime.now(timezone.utc)
        try:
            return HealthStatus(healthy=True, last_check=now, details=await self._health_check())
        except Exception as e:
            self.logger.error("health_check_failed", error=str(e))
            return HealthStatus(healthy=False, last_check=now, error=str(e))

    @abstractmethod
    async def _initialize(self) -> None:
        ...

    @abstractmethod
    async def _start(self) -> None:
        ...

    @abstractmethod
    async def _stop(self) -> None:
        ...

    @abstractmethod
    async def _health_check(self) -> Dict[str, Any]:
        ...


__all__ = [
    'BaseManager',
    'ManagerState',
    'ManagerError',
    'ManagerNotReadyError',
    'ManagerAlreadyRunningError',
    'HealthStatus',
]
