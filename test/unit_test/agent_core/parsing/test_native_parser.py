from __future__ import annotations

import json

import pytest

from toolgate_ai.agent_core.parsing import parse_native_tool_call


def test_complete_arguments_build_native_args() -> None:
    tool = parse_native_tool_call("call_1", "read_file", json.dumps({"path": "src/app.py"}))

    assert tool is not None
    assert tool.id == "call_1"
    assert not tool.partial
    assert tool.native_args == {"path": "src/app.py"}
    assert tool.params == {"path": "src/app.py"}


def test_non_string_values_are_json_encoded_in_params() -> None:
    tool = parse_native_tool_call(None, "list_files", json.dumps({"path": ".", "recursive": True}))

    assert tool is not None
    assert tool.params == {"path": ".", "recursive": "true"}
    assert tool.native_args == {"path": ".", "recursive": True}


def test_missing_required_argument_falls_back_to_legacy() -> None:
    tool = parse_native_tool_call(None, "search_files", json.dumps({"path": "src"}))

    assert tool is not None
    assert tool.native_args is None
    assert tool.params == {"path": "src"}


def test_unknown_arguments_are_dropped_from_params() -> None:
    tool = parse_native_tool_call(None, "execute_command", json.dumps({"command": "ls", "shell": "zsh"}))

    assert tool is not None
    assert tool.params == {"command": "ls"}


@pytest.mark.parametrize("arguments", ["not json", "[1, 2]"])
def test_invalid_arguments_give_none(arguments: str) -> None:
    assert parse_native_tool_call(None, "read_file", arguments) is None


def test_unknown_tool_gives_none() -> None:
    assert parse_native_tool_call(None, "teleport", "{}") is None


def test_dynamic_mcp_tool_becomes_use_mcp_tool() -> None:
    args = {"server_name": "docs", "tool_name": "search", "toolInputProps": {"query": "auth"}}

    tool = parse_native_tool_call("call_9", "mcp_docs_search", json.dumps(args))

    assert tool is not None
    assert tool.name == "use_mcp_tool"
    assert tool.params["server_name"] == "docs"
    assert json.loads(tool.params["arguments"]) == {"query": "auth"}
    assert tool.native_args == {"server_name": "docs", "tool_name": "search", "arguments": {"query": "auth"}}


def test_dynamic_mcp_tool_without_server_gives_none() -> None:
    assert parse_native_tool_call(None, "mcp_docs_search", json.dumps({"tool_name": "search"})) is None
