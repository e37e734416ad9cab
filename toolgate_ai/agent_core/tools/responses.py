"""Text of the tool results fed back to the agent.

Every path through the dispatcher ends in exactly one of these results, so
the agent always learns what happened to its call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Union


@dataclass(frozen=True)
class ToolResult:
    """A tool result with image attachments (data URLs)."""

    text: str
    images: List[str] = field(default_factory=list)


ToolResultContent = Union[str, ToolResult]


def result_text(content: ToolResultContent) -> str:
    return content.text if isinstance(content, ToolResult) else content


def tool_result(text: str, images: Iterable[str] = ()) -> ToolResultContent:
    image_list = list(images)
    if image_list:
        return ToolResult(text=text, images=image_list)
    return text


def tool_error(message: str) -> str:
    return f"The tool execution failed with the following error:\n<error>\n{message}\n</error>"


def tool_denied() -> str:
    return "The user denied this operation."


def tool_denied_with_feedback(feedback: str) -> str:
    return f"The user denied this operation and provided the following feedback:\n<feedback>\n{feedback}\n</feedback>"


def tool_approved_with_feedback(feedback: str) -> str:
    return f"The user approved this operation and provided the following context:\n<feedback>\n{feedback}\n</feedback>"


def tool_auto_denied(reason: str) -> str:
    return f"This operation was denied automatically by the approval settings: {reason}"


def missing_param_error(tool_name: str, param_name: str) -> str:
    return tool_error(
        f"Missing value for required parameter '{param_name}' of tool '{tool_name}'. "
        "Please retry with a complete response."
    )


def parse_error(tool_name: str, message: str) -> str:
    return f"<error>Failed to parse {tool_name} parameters: {message}</error>"


def _available(items: Iterable[str], empty: str) -> str:
    listed = list(items)
    return ", ".join(listed) if listed else empty


def unknown_tool_error(tool_name: str, available: Iterable[str]) -> str:
    return tool_error(f"Unknown tool '{tool_name}'. Available tools: {_available(available, 'none')}")


def unknown_mcp_server_error(server_name: str, available: Iterable[str]) -> str:
    return tool_error(
        f"Server '{server_name}' is not configured. Available servers: {_available(available, 'No servers available')}"
    )


def unknown_mcp_tool_error(server_name: str, tool_name: str, available: Iterable[str]) -> str:
    return tool_error(
        f"Tool '{tool_name}' does not exist on server '{server_name}'. "
        f"Available tools: {_available(available, 'No tools available')}"
    )


def invalid_mcp_tool_argument_error(server_name: str, tool_name: str) -> str:
    return tool_error(
        f"Invalid JSON argument used with {server_name} for {tool_name}. "
        "Please retry with a properly formatted JSON argument."
    )


def repetition_limit_error(guidance: str) -> str:
    return tool_error(guidance)
