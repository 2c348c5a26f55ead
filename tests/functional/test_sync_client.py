"""
Functional tests for the sync HTTP client against a real aiohttp server.
"""

import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from pdanalytics.datasync.client import SyncClient, build_sync_url
from pdanalytics.datasync.types import Page
from pdanalytics.tables import Block
from pdanalytics.utils.errors import NetworkError
from tests.fixtures.sync_fixtures import SyncFixtures


async def ok(request):
    return web.json_response(SyncFixtures.page(SyncFixtures.block_records(2), total_count=2))


async def refused(request):
    return web.json_response(SyncFixtures.failure("data sharing is disabled on this instance"), status=503)


async def html_error(request):
    return web.Response(text="<html>Bad Gateway</html>", status=502, content_type="text/html")


async def malformed(request):
    return web.json_response({"success": True, "records": "nope"})


async def proxy_error(request):
    return web.json_response({"error": "bad gateway"}, status=502)


async def slow(request):
    await asyncio.sleep(1)
    return web.json_response(SyncFixtures.page())


@pytest.fixture
async def peer():
    app = web.Application()
    app.router.add_get("/api/sync/ok", ok)
    app.router.add_get("/api/sync/refused", refused)
    app.router.add_get("/api/sync/html", html_error)
    app.router.add_get("/api/sync/malformed", malformed)
    app.router.add_get("/api/sync/proxy", proxy_error)
    app.router.add_get("/api/sync/slow", slow)
    server = TestServer(app)
    await server.start_server()
    yield server
    await server.close()


def url_for(server, table):
    return build_sync_url(str(server.make_url("/")), table, "0", 0, 1000)


class TestBuildSyncUrl:

    def test_query_and_trailing_slash(self):
        url = build_sync_url("http://peer.example/", "vote", "2024-01-01T00:00:00Z", 2000, 1000)
        assert url == (
            "http://peer.example/api/sync/vote"
            "?last=2024-01-01T00%3A00%3A00Z&skip=2000&take=1000"
        )

    def test_table_is_quoted(self):
        assert build_sync_url("http://a", "a/b", "0", 0, 1).startswith("http://a/api/sync/a%2Fb?")


class TestSyncClient:
    """Test page fetching over HTTP."""

    @pytest.mark.asyncio
    async def test_decodes_typed_page(self, peer):
        async with SyncClient() as client:
            page = await client.fetch_page(url_for(peer, "ok"), Page[Block])

        assert page.success
        assert page.total_count == 2
        assert [block.block_height for block in page.records] == [1, 2]

    @pytest.mark.asyncio
    async def test_json_error_body_is_a_page(self, peer):
        async with SyncClient() as client:
            page = await client.fetch_page(url_for(peer, "refused"))

        assert not page.success
        assert page.message == "data sharing is disabled on this instance"

    @pytest.mark.asyncio
    async def test_non_json_error_is_network_error(self, peer):
        async with SyncClient() as client:
            with pytest.raises(NetworkError) as exc_info:
                await client.fetch_page(url_for(peer, "html"))

        assert "HTTP 502" in exc_info.value.message
        assert exc_info.value.is_retryable

    @pytest.mark.asyncio
    async def test_unknown_route_is_network_error(self, peer):
        async with SyncClient() as client:
            with pytest.raises(NetworkError):
                await client.fetch_page(url_for(peer, "missing"))

    @pytest.mark.asyncio
    async def test_malformed_page(self, peer):
        async with SyncClient() as client:
            with pytest.raises(NetworkError) as exc_info:
                await client.fetch_page(url_for(peer, "malformed"))

        assert "malformed sync page" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_json_body_without_success_flag(self, peer):
        async with SyncClient() as client:
            with pytest.raises(NetworkError) as exc_info:
                await client.fetch_page(url_for(peer, "proxy"))

        assert "malformed sync page" in exc_info.value.message
        assert exc_info.value.is_retryable

    @pytest.mark.asyncio
    async def test_timeout(self, peer):
        async with SyncClient(timeout=0.1) as client:
            with pytest.raises(NetworkError) as exc_info:
                await client.fetch_page(url_for(peer, "slow"))

        assert "timed out" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_connection_refused(self, peer):
        url = url_for(peer, "ok")
        await peer.close()

        async with SyncClient() as client:
            with pytest.raises(NetworkError):
                await client.fetch_page(url)

    @pytest.mark.asyncio
    async def test_fetch_opens_session_lazily(self, peer):
        client = SyncClient()
        try:
            page = await client.fetch_page(url_for(peer, "ok"))
        finally:
            await client.close()

        assert len(page.records) == 2
