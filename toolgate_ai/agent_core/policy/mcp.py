from __future__ import annotations

from typing import Iterable, Optional

from ..schemas.domain import McpServer
from .payloads import UseMcpToolRequest


def find_mcp_server(servers: Optional[Iterable[McpServer]], server_name: str) -> Optional[McpServer]:
    for server in servers or []:
        if server.name == server_name:
            return server
    return None


def is_mcp_tool_always_allowed(request: UseMcpToolRequest, servers: Optional[Iterable[McpServer]]) -> bool:
    """
    Per-tool override check for MCP tool calls.

    Tools are allowed by default: only an explicit ``alwaysAllow: false`` on a
    known tool of a known server disables auto-approval for that tool. Unknown
    servers and tools without an override count as allowed.
    """
    server = find_mcp_server(servers, request.server_name)
    if server is None:
        return True
    tool = server.find_tool(request.tool_name)
    if tool is None:
        return True
    return tool.always_allow is not False
