"""Tool-call protocol adapter.

Two protocols deliver tool calls: XML tags embedded in the assistant text
(``parse_assistant_message``) and structured native function calls
(``parse_native_tool_call``). Both produce ``ToolUse`` blocks;
``invocation_of`` then picks the variant a tool's parameters are resolved from.
"""

from .invocation import Invocation, LegacyInvocation, NativeInvocation, invocation_of
from .native_parser import parse_native_tool_call
from .xml_parser import parse_assistant_message

__all__ = [
    "Invocation",
    "LegacyInvocation",
    "NativeInvocation",
    "invocation_of",
    "parse_native_tool_call",
    "parse_assistant_message",
]
