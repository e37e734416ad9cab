from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional, Protocol

from mcp import ClientSession
from mcp.client.sse import sse_client
from mcp.client.streamable_http import streamablehttp_client


class AsyncMCPTransport(Protocol):
    """Opens initialized MCP ``ClientSession`` connections.

    ``session(endpoint_url, headers)`` returns an async context manager that
    yields a session which has already completed ``initialize()``.
    """

    def session(self, endpoint_url: str, headers: Optional[Dict[str, str]] = None):  # -> AsyncContextManager[ClientSession]
        ...


class StreamableHttpMCPTransport(AsyncMCPTransport):
    """Streamable HTTP transport (the default for remote MCP servers)."""

    def session(self, endpoint_url: str, headers: Optional[Dict[str, str]] = None):
        @asynccontextmanager
        async def _cm() -> AsyncIterator[ClientSession]:
            async with streamablehttp_client(endpoint_url, headers=headers) as (read_stream, write_stream, _close_fn):
                async with ClientSession(read_stream, write_stream) as session:
                    await session.initialize()
                    yield session

        return _cm()


class SseMCPTransport(AsyncMCPTransport):
    """Legacy MCP-over-SSE transport."""

    def session(self, endpoint_url: str, headers: Optional[Dict[str, str]] = None):
        @asynccontextmanager
        async def _cm() -> AsyncIterator[ClientSession]:
            async with sse_client(endpoint_url, headers=headers) as (read_stream, write_stream):
                async with ClientSession(read_stream, write_stream) as session:
                    await session.initialize()
                    yield session

        return _cm()


TRANSPORTS: Dict[str, AsyncMCPTransport] = {
    "streamable-http": StreamableHttpMCPTransport(),
    "sse": SseMCPTransport(),
}
