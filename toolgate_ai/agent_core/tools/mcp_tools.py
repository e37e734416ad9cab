"""MCP tools: use_mcp_tool and access_mcp_resource.

Both validate the request against the hub's server catalogue before asking
for approval, so the agent gets a list of real alternatives instead of a
failed round trip when it names a server or tool that does not exist.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from toolgate_ai.core.config import settings
from toolgate_ai.core.logging_config import get_logger
from toolgate_ai.mcp_client.content import ProcessedContent, process_resource_contents, process_tool_content
from toolgate_ai.mcp_client.hub import McpServerHub

from ..policy.mcp import find_mcp_server
from ..schemas.base import BaseSchema
from ..schemas.domain import AskKind, McpServer, ToolName, ToolUse
from . import responses
from .base import BaseTool, ToolCallbacks, json_payload, remove_closing_tag

if TYPE_CHECKING:
    from ..runtime.models import TaskSession

logger = get_logger(__name__)


def _hub_or_error(session: TaskSession, callbacks: ToolCallbacks, tool_name: str) -> Optional[McpServerHub]:
    hub = session.deps.mcp_hub
    if hub is None:
        session.record_tool_error(tool_name)
        callbacks.push_tool_result(responses.tool_error("No MCP servers are configured."))
    return hub


async def _server_or_error(
    session: TaskSession,
    callbacks: ToolCallbacks,
    hub: McpServerHub,
    tool_name: str,
    server_name: str,
) -> Optional[McpServer]:
    servers = hub.get_servers()
    server = find_mcp_server(servers, server_name)
    if server is None:
        available = [s.name for s in servers]
        session.record_mistake(tool_name)
        await callbacks.say("error", f"MCP server '{server_name}' not found. Available servers: {', '.join(available)}")
        callbacks.push_tool_result(responses.unknown_mcp_server_error(server_name, available))
    return server


def _with_warnings(processed: ProcessedContent) -> str:
    text = processed.text
    if processed.errors:
        logger.warning(f"MCP image processing warnings: {processed.errors}")
        warnings = "\n".join(f"Warning: {error}" for error in processed.errors)
        text = f"{text}\n\n{warnings}" if text else warnings
    return text


def _image_info(images: List[str]) -> str:
    if not images:
        return ""
    return f"\n\n{len(images)} image{'s' if len(images) > 1 else ''} included in response"


class UseMcpToolParams(BaseSchema):
    server_name: Optional[str] = None
    tool_name: Optional[str] = None
    arguments: Optional[Union[str, Dict[str, Any]]] = None


class UseMcpToolTool(BaseTool[UseMcpToolParams]):
    name = ToolName.use_mcp_tool
    params_model = UseMcpToolParams
    required_params = ("server_name", "tool_name")
    optional_params = ("arguments",)
    usage = "for '{tool_name}' on '{server_name}'"

    async def handle_partial(self, session: TaskSession, tool_use: ToolUse, callbacks: ToolCallbacks) -> None:
        payload = json.dumps(
            {
                "type": "use_mcp_tool",
                "serverName": remove_closing_tag("server_name", tool_use.params.get("server_name"), tool_use.partial),
                "toolName": remove_closing_tag("tool_name", tool_use.params.get("tool_name"), tool_use.partial),
                "arguments": remove_closing_tag("arguments", tool_use.params.get("arguments"), tool_use.partial),
            }
        )
        await callbacks.ask(AskKind.use_mcp_server, payload, partial=True)

    def _parse_arguments(self, arguments: Union[str, Dict[str, Any], None]) -> Optional[Dict[str, Any]]:
        if arguments is None or isinstance(arguments, dict):
            return arguments
        if not arguments.strip():
            return None
        parsed = json.loads(arguments)
        if not isinstance(parsed, dict):
            raise ValueError("MCP tool arguments must be a JSON object")
        return parsed

    async def _validate_tool(
        self,
        session: TaskSession,
        callbacks: ToolCallbacks,
        server: McpServer,
        tool_name: str,
    ) -> bool:
        tool = server.find_tool(tool_name)
        if tool is not None and tool.enabled_for_prompt is not False:
            return True

        if tool is None:
            available = [t.name for t in server.tools]
            message = f"Tool '{tool_name}' does not exist on server '{server.name}'"
        else:
            available = [t.name for t in server.tools if t.enabled_for_prompt is not False]
            message = f"Tool '{tool_name}' on server '{server.name}' is disabled"
        session.record_mistake(self.tool_name)
        await callbacks.say("error", f"{message}. Available tools: {', '.join(available) or 'No tools available'}")
        callbacks.push_tool_result(responses.unknown_mcp_tool_error(server.name, tool_name, available))
        return False

    async def execute(self, params: UseMcpToolParams, session: TaskSession, callbacks: ToolCallbacks) -> None:
        try:
            arguments = self._parse_arguments(params.arguments)
        except ValueError:
            session.record_mistake(self.tool_name)
            await callbacks.say("error", f"Invalid JSON argument used with {params.tool_name}")
            callbacks.push_tool_result(responses.invalid_mcp_tool_argument_error(params.server_name, params.tool_name))
            return

        hub = _hub_or_error(session, callbacks, self.tool_name)
        if hub is None:
            return
        server = await _server_or_error(session, callbacks, hub, self.tool_name, params.server_name)
        if server is None:
            return
        if not await self._validate_tool(session, callbacks, server, params.tool_name):
            return

        session.consecutive_mistake_count = 0
        payload = json_payload(
            type="use_mcp_tool",
            serverName=params.server_name,
            toolName=params.tool_name,
            arguments=json.dumps(arguments) if arguments is not None else None,
        )
        if not await callbacks.ask_approval(AskKind.use_mcp_server, payload):
            return

        await callbacks.say("mcp_server_request_started")
        result = await hub.call_tool(params.server_name, params.tool_name, arguments)

        limits = settings.mcp_images
        processed = process_tool_content(
            result.content,
            max_images=limits.max_images_per_response,
            max_size_mb=limits.max_image_size_mb,
        )
        text = _with_warnings(processed)
        pretty = "(No response)"
        if text or processed.images:
            pretty = ("Error:\n" if result.isError else "") + text + _image_info(processed.images)

        await callbacks.say("mcp_server_response", pretty, processed.images or None)
        callbacks.push_tool_result(responses.tool_result(pretty, processed.images))


class AccessMcpResourceParams(BaseSchema):
    server_name: Optional[str] = None
    uri: Optional[str] = None


class AccessMcpResourceTool(BaseTool[AccessMcpResourceParams]):
    name = ToolName.access_mcp_resource
    params_model = AccessMcpResourceParams
    required_params = ("server_name", "uri")
    usage = "for '{uri}' on '{server_name}'"

    async def handle_partial(self, session: TaskSession, tool_use: ToolUse, callbacks: ToolCallbacks) -> None:
        payload = json.dumps(
            {
                "type": "access_mcp_resource",
                "serverName": remove_closing_tag("server_name", tool_use.params.get("server_name"), tool_use.partial),
                "uri": remove_closing_tag("uri", tool_use.params.get("uri"), tool_use.partial),
            }
        )
        await callbacks.ask(AskKind.use_mcp_server, payload, partial=True)

    async def execute(self, params: AccessMcpResourceParams, session: TaskSession, callbacks: ToolCallbacks) -> None:
        hub = _hub_or_error(session, callbacks, self.tool_name)
        if hub is None:
            return
        if await _server_or_error(session, callbacks, hub, self.tool_name, params.server_name) is None:
            return

        session.consecutive_mistake_count = 0
        payload = json_payload(type="access_mcp_resource", serverName=params.server_name, uri=params.uri)
        if not await callbacks.ask_approval(AskKind.use_mcp_server, payload):
            return

        await callbacks.say("mcp_server_request_started")
        result = await hub.read_resource(params.server_name, params.uri)

        limits = settings.mcp_images
        processed = process_resource_contents(
            result.contents,
            max_images=limits.max_images_per_response,
            max_size_mb=limits.max_image_size_mb,
        )
        text = _with_warnings(processed) or "(Empty response)"
        await callbacks.say("mcp_server_response", text, processed.images or None)
        callbacks.push_tool_result(responses.tool_result(text + _image_info(processed.images), processed.images))
