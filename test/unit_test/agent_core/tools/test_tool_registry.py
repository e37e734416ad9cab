from __future__ import annotations

import pytest

from toolgate_ai.agent_core.errors import UnknownToolError
from toolgate_ai.agent_core.schemas.domain import ToolName
from toolgate_ai.agent_core.tools import ReadFileTool, ToolRegistry, default_registry


def test_lookup_by_name_or_enum() -> None:
    registry = default_registry()
    assert isinstance(registry.get("read_file"), ReadFileTool)
    assert registry.get(ToolName.read_file) is registry.get("read_file")
    assert registry.has(ToolName.browser_action)


def test_unknown_tool() -> None:
    registry = ToolRegistry([ReadFileTool()])

    assert registry.find("write_to_file") is None
    with pytest.raises(UnknownToolError) as info:
        registry.get("write_to_file")
    assert info.value.available == ["read_file"]


def test_register_overwrites() -> None:
    first, second = ReadFileTool(), ReadFileTool()
    registry = ToolRegistry([first])
    registry.register(second)

    assert registry.get("read_file") is second
    assert registry.names() == ["read_file"]
