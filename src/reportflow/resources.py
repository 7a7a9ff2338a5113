"""
Process-wide connection pool.

Manifesto:
    HTTP clients and database engines are expensive to build and cheap to
    share. ``ResourcePool`` creates them lazily, keyed by connection
    identity, and is constructed once at bootstrap, passed through the
    runtime context and closed explicitly at shutdown. Nothing is held in
    module-level state.

    Two coroutines racing on the first access to a key may both build a
    client; the loser's client is kept until ``aclose``.

Architecture:
    ::

        ResourcePool(http_timeout_seconds=30.0, http_transport=None)
          ├── http_client(key="default") → httpx.AsyncClient
          ├── engine(url)                → sqlalchemy.Engine
          └── aclose()                   → close clients, dispose engines

        async with ResourcePool() as pool:
            client = pool.http_client()

Tags:
    resources, httpx, sqlalchemy, connection-pool, reportflow

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from typing import Any

import httpx
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from reportflow.core.logging import get_logger

logger = get_logger(__name__)


class ResourcePool:
    """Lazily created, explicitly closed shared clients."""

    def __init__(
        self,
        http_timeout_seconds: float = 30.0,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.http_timeout_seconds = http_timeout_seconds
        self.http_transport = http_transport
        self._clients: dict[str, httpx.AsyncClient] = {}
        self._orphans: list[httpx.AsyncClient] = []
        self._engines: dict[str, Engine] = {}
        self._closed = False

    def http_client(self, key: str = "default") -> httpx.AsyncClient:
        """Return the shared client for ``key``, creating it on first use."""
        client = self._clients.get(key)
        if client is None or client.is_closed:
            if client is not None:
                self._orphans.append(client)
            client = httpx.AsyncClient(
                timeout=self.http_timeout_seconds,
                follow_redirects=True,
                transport=self.http_transport,
            )
            self._clients[key] = client
            logger.debug("resources.http_client_created", key=key)
        return client

    def engine(self, url: str, **kwargs: Any) -> Engine:
        """Return the shared SQLAlchemy engine for ``url``."""
        engine = self._engines.get(url)
        if engine is None:
            engine = create_engine(url, **kwargs)
            self._engines[url] = engine
            logger.debug("resources.engine_created", dialect=engine.dialect.name)
        return engine

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def aclose(self) -> None:
        for client in [*self._clients.values(), *self._orphans]:
            await client.aclose()
        for engine in self._engines.values():
            engine.dispose()
        logger.debug(
            "resources.closed",
            http_clients=len(self._clients),
            engines=len(self._engines),
        )
        self._clients.clear()
        self._orphans.clear()
        self._engines.clear()
        self._closed = True

    async def __aenter__(self) -> ResourcePool:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()


__all__ = ["ResourcePool"]
