from __future__ import annotations

"""Tool registry.

The registry maps a ``ToolName`` to the tool implementation that executes
it. It is an explicit value: build one per process or session (usually with
``default_registry``) and hand it to the ``ToolDispatcher``.
"""

from typing import Dict, Iterable, List, Optional, Union

from toolgate_ai.core.logging_config import get_logger

from ..errors import UnknownToolError
from ..schemas.domain import ToolName
from .base import BaseTool
from .browser import BrowserActionTool
from .execute_command import ExecuteCommandTool
from .fetch_instructions import FetchInstructionsTool
from .file_tools import ListFilesTool, ReadFileTool, SearchFilesTool, WriteToFileTool
from .mcp_tools import AccessMcpResourceTool, UseMcpToolTool
from .workflow import AskFollowupQuestionTool, AttemptCompletionTool, NewTaskTool, SwitchModeTool, UpdateTodoListTool

logger = get_logger(__name__)


class ToolRegistry:
    """
    In-memory mapping of tool names to implementations.

    Notes:
        - ``register`` overwrites any existing mapping for the tool name.
        - ``get`` raises ``UnknownToolError`` if the tool is missing; ``find``
          returns ``None`` instead.
    """

    def __init__(self, tools: Iterable[BaseTool] = ()) -> None:
        self._tools: Dict[str, BaseTool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: BaseTool) -> None:
        """
        Register a tool implementation.

        Args:
            tool: The tool instance to register. Its ``name`` is the lookup key.
        """
        self._tools[tool.tool_name] = tool
        logger.debug(f"Registered tool: {tool.tool_name}")

    def find(self, name: Union[str, ToolName]) -> Optional[BaseTool]:
        return self._tools.get(ToolName(name).value if isinstance(name, ToolName) else name)

    def get(self, name: Union[str, ToolName]) -> BaseTool:
        """
        Retrieve a registered tool by name.

        Raises:
            UnknownToolError: If no tool is registered with the given name.
        """
        tool = self.find(name)
        if tool is None:
            raise UnknownToolError(str(getattr(name, "value", name)), self.names())
        return tool

    def has(self, name: Union[str, ToolName]) -> bool:
        return self.find(name) is not None

    def names(self) -> List[str]:
        return sorted(self._tools)


def default_registry() -> ToolRegistry:
    """Registry holding one instance of every built-in tool."""
    return ToolRegistry(
        [
            ReadFileTool(),
            WriteToFileTool(),
            ListFilesTool(),
            SearchFilesTool(),
            ExecuteCommandTool(),
            UseMcpToolTool(),
            AccessMcpResourceTool(),
            AskFollowupQuestionTool(),
            AttemptCompletionTool(),
            SwitchModeTool(),
            NewTaskTool(),
            UpdateTodoListTool(),
            BrowserActionTool(),
            FetchInstructionsTool(),
        ]
    )
