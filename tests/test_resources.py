"""Tests for ResourcePool."""

import httpx
import pytest

from reportflow.resources import ResourcePool


class TestResourcePool:
    @pytest.mark.asyncio
    async def test_clients_shared_per_key(self):
        """One client per key, reused across calls."""
        async with ResourcePool() as pool:
            assert pool.http_client() is pool.http_client("default")
            assert pool.http_client("other") is not pool.http_client()

    @pytest.mark.asyncio
    async def test_transport_used(self):
        """An injected transport serves every pooled client request."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"ok": True}))
        async with ResourcePool(http_transport=transport) as pool:
            response = await pool.http_client().get("https://example.invalid/x")
            assert response.json() == {"ok": True}

    @pytest.mark.asyncio
    async def test_engine_reused_and_closed(self):
        """aclose disposes engines and closes clients."""
        pool = ResourcePool()
        engine = pool.engine("sqlite://")
        assert pool.engine("sqlite://") is engine
        client = pool.http_client()

        await pool.aclose()

        assert pool.is_closed
        assert client.is_closed

    @pytest.mark.asyncio
    async def test_closed_client_replaced(self):
        """A client closed behind the pool's back is rebuilt."""
        async with ResourcePool() as pool:
            first = pool.http_client()
            await first.aclose()
            assert pool.http_client() is not first
