"""Parser for native (function-calling) tool calls.

A native tool call arrives as ``(id, name, arguments_json)``. It is turned
into a ``ToolUse`` that carries:

- ``native_args``: the structured arguments, built only when the tool's
  required arguments are all present; otherwise ``None`` so the tool falls
  back to its legacy parameter parsing;
- ``params``: legacy string parameters synthesized for display and loop
  detection (non-strings JSON-encoded, unknown names dropped).

Names prefixed with ``mcp_`` are dynamic MCP tools exposed one per server
tool; they are rewritten into a ``use_mcp_tool`` call.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Tuple

from toolgate_ai.core.logging_config import get_logger

from ..schemas.domain import TOOL_NAMES, TOOL_PARAM_NAMES, ToolName, ToolUse

logger = get_logger(__name__)

DYNAMIC_MCP_PREFIX = "mcp_"

# tool -> (required arguments, optional arguments) of its native schema
NATIVE_ARG_SPECS: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    ToolName.read_file.value: (("path",), ()),
    ToolName.write_to_file.value: (("path", "content", "line_count"), ()),
    ToolName.list_files.value: (("path",), ("recursive",)),
    ToolName.search_files.value: (("path", "regex"), ("file_pattern",)),
    ToolName.execute_command.value: (("command",), ("cwd",)),
    ToolName.use_mcp_tool.value: (("server_name", "tool_name"), ("arguments",)),
    ToolName.access_mcp_resource.value: (("server_name", "uri"), ()),
    ToolName.ask_followup_question.value: (("question", "follow_up"), ()),
    ToolName.attempt_completion.value: (("result",), ()),
    ToolName.switch_mode.value: (("mode_slug", "reason"), ()),
    ToolName.new_task.value: (("mode", "message"), ("todos",)),
    ToolName.update_todo_list.value: (("todos",), ()),
    ToolName.browser_action.value: (("action",), ("url", "coordinate", "size", "text")),
    ToolName.fetch_instructions.value: (("task",), ()),
}


def _to_param_string(value: Any) -> str:
    return value if isinstance(value, str) else json.dumps(value)


def _legacy_params(tool_name: str, args: Dict[str, Any]) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for key, value in args.items():
        if key not in TOOL_PARAM_NAMES:
            logger.debug(f"Dropping unknown parameter '{key}' for tool '{tool_name}'")
            continue
        if value is None:
            continue
        params[key] = _to_param_string(value)
    return params


def _native_args(tool_name: str, args: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    spec = NATIVE_ARG_SPECS.get(tool_name)
    if spec is None:
        return None
    required, optional = spec
    if any(args.get(key) is None for key in required):
        return None
    native = {key: args[key] for key in required}
    native.update({key: args[key] for key in optional if args.get(key) is not None})
    return native


def _load_arguments(arguments: Optional[str]) -> Optional[Dict[str, Any]]:
    try:
        args = json.loads(arguments or "{}")
    except (TypeError, ValueError) as e:
        logger.error(f"Failed to parse native tool call arguments: {e}")
        return None
    if not isinstance(args, dict):
        logger.error(f"Native tool call arguments must be a JSON object, got {type(args).__name__}")
        return None
    return args


def _parse_dynamic_mcp_tool(call_id: Optional[str], name: str, arguments: Optional[str]) -> Optional[ToolUse]:
    args = _load_arguments(arguments)
    if args is None:
        return None

    server_name = args.get("server_name")
    tool_name = args.get("tool_name")
    if not server_name or not tool_name:
        logger.error(f"Dynamic MCP tool '{name}' is missing server_name or tool_name")
        return None

    tool_input = args.get("toolInputProps")
    params = {"server_name": server_name, "tool_name": tool_name}
    if tool_input:
        params["arguments"] = json.dumps(tool_input)

    return ToolUse(
        name=ToolName.use_mcp_tool.value,
        params=params,
        partial=False,
        native_args={"server_name": server_name, "tool_name": tool_name, "arguments": tool_input},
        id=call_id,
    )


def parse_native_tool_call(call_id: Optional[str], name: str, arguments: Optional[str]) -> Optional[ToolUse]:
    """
    Convert a native function call into a complete ``ToolUse``.

    Args:
        call_id: Execution id of the call, kept on the tool use for correlation.
        name: Function name chosen by the model.
        arguments: JSON object string of the call's arguments.

    Returns:
        The tool use, or ``None`` for unknown tool names and invalid arguments.
    """
    if name.startswith(DYNAMIC_MCP_PREFIX):
        return _parse_dynamic_mcp_tool(call_id, name, arguments)

    if name not in TOOL_NAMES:
        logger.error(f"Invalid native tool name: {name}")
        return None

    args = _load_arguments(arguments)
    if args is None:
        return None

    native = _native_args(name, args)
    if native is None:
        logger.debug(f"No native args built for {name}; falling back to legacy params")

    return ToolUse(
        name=name,
        params=_legacy_params(name, args),
        partial=False,
        native_args=native,
        id=call_id,
    )
