from __future__ import annotations

from typing import Iterable


class McpClientError(Exception):
    pass


class ServerNotFoundError(McpClientError):
    def __init__(self, server_name: str, available: Iterable[str] = ()) -> None:
        self.server_name = server_name
        self.available = list(available)
        super().__init__(f"MCP server not found: '{server_name}'")


class ToolInvocationError(McpClientError):
    def __init__(self, server_name: str, tool_name: str, message: str) -> None:
        super().__init__(f"Tool invocation failed for '{tool_name}' on '{server_name}': {message}")


class ResourceReadError(McpClientError):
    def __init__(self, server_name: str, uri: str, message: str) -> None:
        super().__init__(f"Reading resource '{uri}' from '{server_name}' failed: {message}")
