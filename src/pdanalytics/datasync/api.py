"""HTTP surface of the sync protocol."""

from typing import Any, Dict

from aiohttp import web

from .coordinator import SyncCoordinator
from .types import DEFAULT_PAGE_SIZE, SYNC_PATH
from ..utils.errors import (
    PdAnalyticsError,
    SyncDisabledError,
    SyncNotInitializedError,
    TableNotRegisteredError,
    ValidationError,
)
from ..utils.logging import get_logger


logger = get_logger("pdanalytics.sync.api")

ERROR_STATUS = {
    SyncDisabledError: 503,
    SyncNotInitializedError: 503,
    TableNotRegisteredError: 404,
    ValidationError: 400,
}


def error_response(error: PdAnalyticsError) -> web.Response:
    status = 500
    for error_type, code in ERROR_STATUS.items():
        if isinstance(error, error_type):
            status = code
            break
    return web.json_response({"success": False, "message": error.message}, status=status)


def _non_negative_int(request: web.Request, name: str, default: int) -> int:
    raw = request.query.get(name, "")
    if raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(name, raw, "must be an integer") from None
    if value < 0:
        raise ValidationError(name, raw, "must not be negative")
    return value


class SyncAPI:
    """Serves pages of registered tables to peer instances."""

    def __init__(self, coordinator: SyncCoordinator, max_take: int = DEFAULT_PAGE_SIZE):
        self.coordinator = coordinator
        self.max_take = max_take

    def setup_routes(self, app: web.Application) -> None:
        app.router.add_get(SYNC_PATH, self.handle_status)
        app.router.add_get(SYNC_PATH + "/{table}", self.handle_sync)

    async def handle_sync(self, request: web.Request) -> web.Response:
        table = request.match_info["table"]
        try:
            skip = _non_negative_int(request, "skip", 0)
            take = min(_non_negative_int(request, "take", self.max_take), self.max_take)
            page = await self.coordinator.retrieve(
                table, request.query.get("last", ""), skip, take
            )
        except PdAnalyticsError as e:
            logger.warning("sync_request_rejected", table=table, code=e.code, error=e.message)
            return error_response(e)

        return web.json_response(page.to_wire())

    async def handle_status(self, request: web.Request) -> web.Response:
        body: Dict[str, Any] = {
            "enabled": self.coordinator.enabled,
            "tables": self.coordinator.registry.tables(),
            "sources": [],
        }
        if self.coordinator.is_initialized:
            body["sources"] = self.coordinator.registered_sources()
        return web.json_response(body)


def setup_sync_routes(app: web.Application, coordinator: SyncCoordinator,
                      max_take: int = DEFAULT_PAGE_SIZE) -> SyncAPI:
    """Mount the sync endpoints on ``app``."""
    api = SyncAPI(coordinator, max_take=max_take)
    api.setup_routes(app)
    return api


__all__ = ['SyncAPI', 'setup_sync_routes', 'error_response']
