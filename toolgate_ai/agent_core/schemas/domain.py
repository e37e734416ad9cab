from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import Field

from .base import BaseSchema


class ToolName(str, Enum):
    read_file = "read_file"
    write_to_file = "write_to_file"
    list_files = "list_files"
    search_files = "search_files"
    execute_command = "execute_command"
    use_mcp_tool = "use_mcp_tool"
    access_mcp_resource = "access_mcp_resource"
    ask_followup_question = "ask_followup_question"
    attempt_completion = "attempt_completion"
    switch_mode = "switch_mode"
    new_task = "new_task"
    update_todo_list = "update_todo_list"
    browser_action = "browser_action"
    fetch_instructions = "fetch_instructions"


TOOL_NAMES: frozenset[str] = frozenset(t.value for t in ToolName)

# Every parameter name the legacy XML protocol may carry.
TOOL_PARAM_NAMES: frozenset[str] = frozenset(
    {
        "path",
        "content",
        "line_count",
        "recursive",
        "regex",
        "file_pattern",
        "command",
        "cwd",
        "server_name",
        "tool_name",
        "arguments",
        "uri",
        "question",
        "follow_up",
        "result",
        "mode_slug",
        "reason",
        "mode",
        "message",
        "todos",
        "action",
        "url",
        "coordinate",
        "size",
        "text",
        "task",
    }
)


class ToolProtocol(str, Enum):
    xml = "xml"
    native = "native"


class AskKind(str, Enum):
    """Kinds of prompts sent over the human-approval channel."""

    followup = "followup"
    command = "command"
    command_output = "command_output"
    completion_result = "completion_result"
    tool = "tool"
    api_req_failed = "api_req_failed"
    resume_task = "resume_task"
    resume_completed_task = "resume_completed_task"
    mistake_limit_reached = "mistake_limit_reached"
    browser_action_launch = "browser_action_launch"
    use_mcp_server = "use_mcp_server"
    auto_approval_max_req_reached = "auto_approval_max_req_reached"


NON_BLOCKING_ASKS: frozenset[AskKind] = frozenset({AskKind.command_output})


def is_non_blocking_ask(kind: AskKind) -> bool:
    """Non-blocking asks are observational and never wait on the human."""
    return kind in NON_BLOCKING_ASKS


class AskResponse(str, Enum):
    yes_button_clicked = "yesButtonClicked"
    no_button_clicked = "noButtonClicked"
    message_response = "messageResponse"


class ApprovalResponse(BaseSchema):
    """What the human (or a synthesized fallback) answered to an ask."""

    response: AskResponse
    text: Optional[str] = None
    images: List[str] = Field(default_factory=list)


class TodoStatus(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"


class TodoItem(BaseSchema):
    id: str
    content: str
    status: TodoStatus = TodoStatus.pending


def has_open_todos(todos: Optional[List[TodoItem]]) -> bool:
    """True when at least one item is not completed."""
    return any(item.status != TodoStatus.completed for item in todos or [])


class TextContent(BaseSchema):
    type: Literal["text"] = "text"
    content: str = ""
    partial: bool = False


class ToolUse(BaseSchema):
    """One agent-requested action, either still streaming or complete.

    ``params`` holds the legacy string-keyed values; ``native_args`` holds the
    structured arguments of the native function-calling protocol. Well-formed
    input carries one or the other as the source of truth.
    """

    type: Literal["tool_use"] = "tool_use"
    name: str
    params: Dict[str, str] = Field(default_factory=dict)
    partial: bool = False
    native_args: Optional[Dict[str, Any]] = Field(default=None, alias="nativeArgs")
    id: Optional[str] = None


AssistantMessageContent = Union[TextContent, ToolUse]


class McpTool(BaseSchema):
    name: str
    description: Optional[str] = None
    input_schema: Optional[Dict[str, Any]] = Field(default=None, alias="inputSchema")
    always_allow: Optional[bool] = Field(default=None, alias="alwaysAllow")
    enabled_for_prompt: Optional[bool] = Field(default=None, alias="enabledForPrompt")


class McpResource(BaseSchema):
    uri: str
    name: Optional[str] = None
    mime_type: Optional[str] = Field(default=None, alias="mimeType")


class McpServer(BaseSchema):
    name: str
    status: str = "connected"
    disabled: bool = False
    tools: List[McpTool] = Field(default_factory=list)
    resources: List[McpResource] = Field(default_factory=list)

    def find_tool(self, tool_name: str) -> Optional[McpTool]:
        for tool in self.tools:
            if tool.name == tool_name:
                return tool
        return None
