"""
Functional tests for the HTTP sync API.
"""

import pytest
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from pdanalytics.datasync.api import setup_sync_routes
from pdanalytics.datasync.coordinator import SyncCoordinator
from pdanalytics.tables import MempoolSyncer, register_default_syncers
from tests.fixtures.sync_fixtures import SyncFixtures


async def serve(coordinator, max_take=1000):
    app = web.Application()
    setup_sync_routes(app, coordinator, max_take=max_take)
    client = TestClient(TestServer(app))
    await client.start_server()
    return client


@pytest.fixture
async def api(coordinator, local_store, peer_store):
    register_default_syncers(coordinator, local_store)
    coordinator.add_source("", peer_store, label="archive")
    await coordinator.initialize()
    await MempoolSyncer(local_store).append(local_store, SyncFixtures.mempool_records(10))
    client = await serve(coordinator, max_take=5)
    yield client
    await client.close()


class TestSyncEndpoint:
    """Test GET /api/sync/{table}."""

    @pytest.mark.asyncio
    async def test_serves_page(self, api):
        resp = await api.get("/api/sync/mempool", params={"last": "2024-01-01T00:07:00Z", "skip": "0", "take": "5"})

        assert resp.status == 200
        body = await resp.json()
        assert body["success"] is True
        assert body["total_count"] == 2
        assert [r["time"] for r in body["records"]] == ["2024-01-01T00:08:00Z", "2024-01-01T00:09:00Z"]

    @pytest.mark.asyncio
    async def test_take_is_capped(self, api):
        resp = await api.get("/api/sync/mempool", params={"last": "", "skip": "0", "take": "1000"})

        body = await resp.json()
        assert len(body["records"]) == 5
        assert body["total_count"] == 10

    @pytest.mark.asyncio
    async def test_exhausted_page_has_null_records(self, api):
        resp = await api.get("/api/sync/mempool", params={"last": "", "skip": "10", "take": "5"})

        assert resp.status == 200
        assert await resp.json() == {"success": True, "records": None, "total_count": 10}

    @pytest.mark.asyncio
    async def test_empty_table_is_current(self, api):
        resp = await api.get("/api/sync/vote", params={"last": "", "skip": "0", "take": "5"})

        assert await resp.json() == {"success": True, "records": None, "total_count": 0}

    @pytest.mark.asyncio
    async def test_unknown_table(self, api):
        resp = await api.get("/api/sync/exchange", params={"last": "0", "skip": "0", "take": "5"})

        assert resp.status == 404
        assert await resp.json() == {"success": False, "message": "syncer not found for exchange"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params", [
        {"skip": "-1", "take": "5"},
        {"skip": "0", "take": "many"},
        {"skip": "1.5", "take": "5"},
    ])
    async def test_bad_paging(self, api, params):
        resp = await api.get("/api/sync/mempool", params=params)

        assert resp.status == 400
        body = await resp.json()
        assert body["success"] is False

    @pytest.mark.asyncio
    async def test_invalid_cursor(self, api):
        resp = await api.get("/api/sync/block", params={"last": "tip", "skip": "0", "take": "5"})

        assert resp.status == 200
        body = await resp.json()
        assert body["success"] is False
        assert "invalid cursor" in body["message"]

    @pytest.mark.asyncio
    async def test_disabled_instance(self, scripted_client, local_store):
        coordinator = SyncCoordinator(enabled=False, period=10, client=scripted_client)
        register_default_syncers(coordinator, local_store)
        await coordinator.initialize()
        client = await serve(coordinator)
        try:
            resp = await client.get("/api/sync/mempool", params={"last": "", "skip": "0", "take": "5"})
            assert resp.status == 503
            assert await resp.json() == {
                "success": False,
                "message": "data sharing is disabled on this instance",
            }
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_uninitialized_instance(self, coordinator, local_store):
        register_default_syncers(coordinator, local_store)
        client = await serve(coordinator)
        try:
            resp = await client.get("/api/sync/mempool")
            assert resp.status == 503
            assert (await resp.json())["message"] == "syncer not initialized"
        finally:
            await client.close()


class TestStatusEndpoint:
    """Test GET /api/sync."""

    @pytest.mark.asyncio
    async def test_summary(self, api):
        resp = await api.get("/api/sync")

        assert resp.status == 200
        assert await resp.json() == {
            "enabled": True,
            "tables": ["mempool", "vsp_tick", "block", "vote"],
            "sources": ["archive"],
        }
