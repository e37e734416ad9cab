"""Tool implementations and the registry that maps tool names to them.

Every tool subclasses ``BaseTool`` and runs through ``BaseTool.handle``:
partial preview, parameter resolution, missing-parameter check, then
``execute``. Tools reach the human only through ``ToolCallbacks`` and the
workspace only through the backends in ``TaskSession.deps``.
"""

from .base import BaseTool, ToolCallbacks, json_payload, remove_closing_tag
from .browser import BrowserAction, BrowserActionTool
from .execute_command import ExecuteCommandTool
from .fetch_instructions import FetchInstructionsTool
from .file_tools import ListFilesTool, ReadFileTool, SearchFilesTool, WriteToFileTool
from .mcp_tools import AccessMcpResourceTool, UseMcpToolTool
from .protected import ProtectedFileChecker
from .registry import ToolRegistry, default_registry
from .responses import ToolResult, ToolResultContent, result_text
from .workflow import (
    AskFollowupQuestionTool,
    AttemptCompletionTool,
    NewTaskTool,
    SwitchModeTool,
    UpdateTodoListTool,
)

__all__ = [
    "AccessMcpResourceTool",
    "AskFollowupQuestionTool",
    "AttemptCompletionTool",
    "BaseTool",
    "BrowserAction",
    "BrowserActionTool",
    "ExecuteCommandTool",
    "FetchInstructionsTool",
    "ListFilesTool",
    "NewTaskTool",
    "ProtectedFileChecker",
    "ReadFileTool",
    "SearchFilesTool",
    "SwitchModeTool",
    "ToolCallbacks",
    "ToolRegistry",
    "ToolResult",
    "ToolResultContent",
    "UpdateTodoListTool",
    "UseMcpToolTool",
    "WriteToFileTool",
    "default_registry",
    "json_payload",
    "remove_closing_tag",
    "result_text",
]
