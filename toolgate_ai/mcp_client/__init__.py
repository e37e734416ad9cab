from .content import ProcessedContent, process_resource_contents, process_tool_content
from .errors import McpClientError, ResourceReadError, ServerNotFoundError, ToolInvocationError
from .hub import McpHub, McpServerConfig, McpServerHub

__all__ = [
    "McpHub",
    "McpServerConfig",
    "McpServerHub",
    "ProcessedContent",
    "process_tool_content",
    "process_resource_contents",
    "McpClientError",
    "ServerNotFoundError",
    "ToolInvocationError",
    "ResourceReadError",
]
