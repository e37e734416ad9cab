from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Union

from ..schemas.domain import ToolProtocol, ToolUse


@dataclass(frozen=True)
class LegacyInvocation:
    """Tool call from the XML protocol: flat string parameters, parsed per tool."""

    tool_name: str
    params: Dict[str, str] = field(default_factory=dict)
    protocol: ToolProtocol = ToolProtocol.xml


@dataclass(frozen=True)
class NativeInvocation:
    """Tool call from native function calling: structured arguments, already schema-shaped."""

    tool_name: str
    args: Dict[str, Any] = field(default_factory=dict)
    protocol: ToolProtocol = ToolProtocol.native


Invocation = Union[LegacyInvocation, NativeInvocation]


def invocation_of(tool_use: ToolUse) -> Invocation:
    """Native arguments win when present; otherwise the legacy string parameters are used."""
    if tool_use.native_args is not None:
        return NativeInvocation(tool_name=tool_use.name, args=dict(tool_use.native_args))
    return LegacyInvocation(tool_name=tool_use.name, params=dict(tool_use.params))
