from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

import pytest
from mcp import types

from toolgate_ai.mcp_client import (
    McpHub,
    McpServerConfig,
    ResourceReadError,
    ServerNotFoundError,
    ToolInvocationError,
)


class _FakeSession:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    async def list_tools(self) -> types.ListToolsResult:
        if self.fail:
            raise ConnectionError("refused")
        return types.ListToolsResult(
            tools=[
                types.Tool(name="search", description="Search docs", inputSchema={"type": "object"}),
                types.Tool(name="drop", inputSchema={"type": "object"}),
                types.Tool(name="debug", inputSchema={"type": "object"}),
            ]
        )

    async def list_resources(self) -> types.ListResourcesResult:
        return types.ListResourcesResult(
            resources=[types.Resource(uri="file:///readme.md", name="readme", mimeType="text/markdown")]
        )

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> types.CallToolResult:
        if self.fail:
            raise ConnectionError("refused")
        self.calls.append((name, arguments))
        return types.CallToolResult(content=[types.TextContent(type="text", text="ok")], isError=False)

    async def read_resource(self, uri: Any) -> types.ReadResourceResult:
        if self.fail:
            raise ConnectionError("refused")
        return types.ReadResourceResult(contents=[types.TextResourceContents(uri=uri, text="# Readme")])


class _FakeTransport:
    def __init__(self, session: _FakeSession) -> None:
        self._session = session
        self.opened: List[Tuple[str, Optional[Dict[str, str]]]] = []

    def session(self, endpoint_url: str, headers: Optional[Dict[str, str]] = None):
        @asynccontextmanager
        async def _cm() -> AsyncIterator[_FakeSession]:
            self.opened.append((endpoint_url, headers))
            yield self._session

        return _cm()


def _hub(session: _FakeSession, **cfg: Any) -> Tuple[McpHub, _FakeTransport]:
    transport = _FakeTransport(session)
    config = McpServerConfig(name="docs", endpoint_url="http://localhost:8000/mcp/", **cfg)
    return McpHub([config], transports={"streamable-http": transport, "sse": transport}), transport


def test_catalogue_starts_disconnected() -> None:
    hub, _ = _hub(_FakeSession())
    servers = hub.get_servers()
    assert [(s.name, s.status) for s in servers] == [("docs", "disconnected")]


@pytest.mark.asyncio
async def test_refresh_applies_tool_overrides() -> None:
    hub, transport = _hub(
        _FakeSession(), always_allow=["search"], never_allow=["drop"], disabled_tools=["debug"], auth_token="Bearer t"
    )

    servers = await hub.refresh()

    server = servers[0]
    assert server.status == "connected"
    tools = {t.name: t for t in server.tools}
    assert tools["search"].always_allow is True
    assert tools["drop"].always_allow is False
    assert tools["debug"].always_allow is None
    assert tools["debug"].enabled_for_prompt is False
    assert server.resources[0].uri == "file:///readme.md"
    assert transport.opened[0] == ("http://localhost:8000/mcp", {"Authorization": "Bearer t"})


@pytest.mark.asyncio
async def test_refresh_keeps_unreachable_servers_disconnected() -> None:
    hub, _ = _hub(_FakeSession(fail=True))
    servers = await hub.refresh()
    assert servers[0].status == "disconnected"
    assert servers[0].tools == []


@pytest.mark.asyncio
async def test_disabled_servers_are_not_contacted() -> None:
    hub, transport = _hub(_FakeSession(), disabled=True)
    servers = await hub.refresh()
    assert transport.opened == []
    assert servers[0].disabled


@pytest.mark.asyncio
async def test_catalogue_is_a_copy() -> None:
    hub, _ = _hub(_FakeSession())
    await hub.refresh()
    hub.get_servers()[0].tools.clear()
    assert len(hub.get_servers()[0].tools) == 3


@pytest.mark.asyncio
async def test_call_tool() -> None:
    session = _FakeSession()
    hub, _ = _hub(session)

    result = await hub.call_tool("docs", "search", {"query": "install"})

    assert result.content[0].text == "ok"  # type: ignore[union-attr]
    assert session.calls == [("search", {"query": "install"})]


@pytest.mark.asyncio
async def test_call_tool_without_arguments_sends_empty_object() -> None:
    session = _FakeSession()
    hub, _ = _hub(session)
    await hub.call_tool("docs", "search")
    assert session.calls == [("search", {})]


@pytest.mark.asyncio
async def test_unknown_server() -> None:
    hub, _ = _hub(_FakeSession())
    with pytest.raises(ServerNotFoundError) as info:
        await hub.call_tool("wiki", "search")
    assert info.value.available == ["docs"]


@pytest.mark.asyncio
async def test_failures_are_wrapped() -> None:
    hub, _ = _hub(_FakeSession(fail=True))

    with pytest.raises(ToolInvocationError):
        await hub.call_tool("docs", "search")
    with pytest.raises(ResourceReadError):
        await hub.read_resource("docs", "file:///readme.md")


@pytest.mark.asyncio
async def test_read_resource() -> None:
    hub, _ = _hub(_FakeSession())
    result = await hub.read_resource("docs", "file:///readme.md")
    assert result.contents[0].text == "# Readme"  # type: ignore[union-attr]
