from __future__ import annotations

from typing import Iterable, Optional


class ToolgateError(Exception):
    """Base class for errors raised by the tool orchestration core."""


class ToolParameterError(ToolgateError):
    """Legacy tool parameters could not be parsed into the tool's typed parameters."""

    def __init__(self, tool_name: str, message: str, param_name: Optional[str] = None) -> None:
        self.tool_name = tool_name
        self.param_name = param_name
        super().__init__(message)


class UnknownToolError(ToolgateError):
    """No tool is registered under the requested name."""

    def __init__(self, tool_name: str, available: Iterable[str] = ()) -> None:
        self.tool_name = tool_name
        self.available = sorted(available)
        super().__init__(f"Unknown tool '{tool_name}'. Available tools: {', '.join(self.available) or 'none'}")
