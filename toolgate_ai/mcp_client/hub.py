"""MCP server hub.

``McpHub`` owns the catalogue of configured MCP servers and talks to them
through the official ``mcp`` client. A short-lived ``ClientSession`` is
opened per request, which keeps the hub stateless apart from the catalogue.

The catalogue (``get_servers``) is what the MCP decision rule and the MCP
tools consult: server status, tools with their ``alwaysAllow`` /
``enabledForPrompt`` overrides, and resources. ``refresh`` repopulates it
from the live servers.

Typical usage::

    hub = McpHub([McpServerConfig(name="docs", endpoint_url="http://localhost:8000/mcp/")])
    await hub.refresh()
    result = await hub.call_tool("docs", "search", {"query": "install"})
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Literal, Mapping, Optional, Protocol

from mcp import ClientSession, types
from pydantic import Field

from toolgate_ai.agent_core.schemas.base import BaseSchema
from toolgate_ai.agent_core.schemas.domain import McpResource, McpServer, McpTool
from toolgate_ai.core.logging_config import get_logger

from .errors import ResourceReadError, ServerNotFoundError, ToolInvocationError
from .transport import TRANSPORTS, AsyncMCPTransport

logger = get_logger(__name__)


class McpServerConfig(BaseSchema):
    name: str = Field(..., min_length=1, max_length=128, description="Name the agent uses for the server")
    endpoint_url: str = Field(..., min_length=1, description="Endpoint URL of the MCP server")
    transport: Literal["streamable-http", "sse"] = Field(default="streamable-http")
    auth_token: Optional[str] = Field(None, description="Sent as the Authorization header when set")
    disabled: bool = Field(default=False)
    always_allow: List[str] = Field(
        default_factory=list, alias="alwaysAllow", description="Tools marked alwaysAllow=true"
    )
    never_allow: List[str] = Field(
        default_factory=list, alias="neverAllow", description="Tools marked alwaysAllow=false"
    )
    disabled_tools: List[str] = Field(
        default_factory=list, alias="disabledTools", description="Tools hidden from the agent (enabledForPrompt=false)"
    )


class McpServerHub(Protocol):
    """What the MCP tools need from a hub."""

    def get_servers(self) -> List[McpServer]: ...

    async def call_tool(
        self, server_name: str, tool_name: str, arguments: Optional[Dict[str, Any]] = None
    ) -> types.CallToolResult: ...

    async def read_resource(self, server_name: str, uri: str) -> types.ReadResourceResult: ...


class McpHub(McpServerHub):
    """Catalogue of MCP servers plus request helpers over ``mcp.ClientSession``."""

    def __init__(
        self,
        servers: List[McpServerConfig],
        *,
        transports: Optional[Mapping[str, AsyncMCPTransport]] = None,
    ) -> None:
        self._configs: Dict[str, McpServerConfig] = {cfg.name: cfg for cfg in servers}
        self._transports: Mapping[str, AsyncMCPTransport] = transports or TRANSPORTS
        self._catalogue: Dict[str, McpServer] = {
            cfg.name: McpServer(name=cfg.name, status="disconnected", disabled=cfg.disabled) for cfg in servers
        }

    def get_servers(self) -> List[McpServer]:
        return [server.model_copy(deep=True) for server in self._catalogue.values()]

    def _get_config(self, server_name: str) -> McpServerConfig:
        cfg = self._configs.get(server_name)
        if cfg is None:
            raise ServerNotFoundError(server_name, available=self._configs.keys())
        return cfg

    @asynccontextmanager
    async def _open_session(self, server_name: str) -> AsyncIterator[ClientSession]:
        cfg = self._get_config(server_name)
        headers = {"Authorization": cfg.auth_token} if cfg.auth_token else None
        transport = self._transports[cfg.transport]
        async with transport.session(cfg.endpoint_url.rstrip("/"), headers) as session:
            yield session

    def _to_catalogue_tool(self, cfg: McpServerConfig, tool: types.Tool) -> McpTool:
        always_allow: Optional[bool] = None
        if tool.name in cfg.always_allow:
            always_allow = True
        elif tool.name in cfg.never_allow:
            always_allow = False
        return McpTool(
            name=tool.name,
            description=tool.description,
            input_schema=tool.inputSchema,
            always_allow=always_allow,
            enabled_for_prompt=False if tool.name in cfg.disabled_tools else None,
        )

    async def refresh(self) -> List[McpServer]:
        """Reload tools and resources of every enabled server.

        A server that cannot be reached is kept with status ``disconnected``.
        """
        for name, cfg in self._configs.items():
            if cfg.disabled:
                continue
            try:
                async with self._open_session(name) as session:
                    tools_resp = await session.list_tools()
                    resources_resp = await session.list_resources()
            except Exception as e:
                logger.error(f"Failed to refresh MCP server '{name}': {e}")
                self._catalogue[name] = McpServer(name=name, status="disconnected", disabled=cfg.disabled)
                continue

            self._catalogue[name] = McpServer(
                name=name,
                status="connected",
                tools=[self._to_catalogue_tool(cfg, tool) for tool in tools_resp.tools],
                resources=[
                    McpResource(uri=str(res.uri), name=res.name, mime_type=res.mimeType)
                    for res in resources_resp.resources
                ],
            )
            logger.debug(f"Refreshed MCP server '{name}': {len(tools_resp.tools)} tools")
        return self.get_servers()

    async def call_tool(
        self, server_name: str, tool_name: str, arguments: Optional[Dict[str, Any]] = None
    ) -> types.CallToolResult:
        """
        Invoke a tool on a configured server.

        Raises:
            ServerNotFoundError: No server with that name is configured.
            ToolInvocationError: The session or the call failed.
        """
        self._get_config(server_name)
        try:
            async with self._open_session(server_name) as session:
                logger.debug(
                    f"McpHub.call_tool: server={server_name} tool={tool_name} args_keys={list((arguments or {}).keys())}"
                )
                return await session.call_tool(tool_name, arguments or {})
        except Exception as e:
            raise ToolInvocationError(server_name, tool_name, str(e)) from e

    async def read_resource(self, server_name: str, uri: str) -> types.ReadResourceResult:
        """
        Read a resource from a configured server.

        Raises:
            ServerNotFoundError: No server with that name is configured.
            ResourceReadError: The session or the read failed.
        """
        self._get_config(server_name)
        try:
            async with self._open_session(server_name) as session:
                return await session.read_resource(uri)
        except Exception as e:
            raise ResourceReadError(server_name, uri, str(e)) from e
