from __future__ import annotations

import json

import pytest

from toolgate_ai.agent_core.policy.payloads import (
    AccessMcpResourceRequest,
    ToolAction,
    UseMcpToolRequest,
    decode_follow_up,
    decode_mcp_server_use,
    decode_tool_message,
)


def test_decode_tool_message_with_camel_case_flags() -> None:
    msg = decode_tool_message(
        json.dumps({"tool": "editedExistingFile", "path": "a.py", "isOutsideWorkspace": True, "isProtected": True})
    )
    assert msg is not None
    assert msg.tool == ToolAction.edited_existing_file
    assert msg.is_write and not msg.is_read_only
    assert msg.is_outside_workspace and msg.is_protected


def test_unknown_tool_action_decodes_to_unknown() -> None:
    msg = decode_tool_message(json.dumps({"tool": "brandNewThing"}))
    assert msg is not None
    assert msg.tool == ToolAction.unknown
    assert not msg.is_read_only and not msg.is_write


@pytest.mark.parametrize("text", [None, "", "nope", "[1, 2]", json.dumps({"path": "a"})])
def test_decode_tool_message_rejects_malformed_input(text: str) -> None:
    assert decode_tool_message(text) is None


def test_decode_mcp_tool_request() -> None:
    req = decode_mcp_server_use(
        json.dumps({"type": "use_mcp_tool", "serverName": "docs", "toolName": "search", "arguments": "{}"})
    )
    assert isinstance(req, UseMcpToolRequest)
    assert (req.server_name, req.tool_name) == ("docs", "search")


def test_decode_mcp_resource_request() -> None:
    req = decode_mcp_server_use(json.dumps({"type": "access_mcp_resource", "serverName": "docs", "uri": "docs://x"}))
    assert isinstance(req, AccessMcpResourceRequest)
    assert req.uri == "docs://x"


@pytest.mark.parametrize(
    "payload",
    [
        {"type": "use_mcp_tool", "serverName": "docs"},
        {"type": "unknown", "serverName": "docs"},
        {"serverName": "docs", "toolName": "search"},
    ],
)
def test_decode_mcp_server_use_rejects_incomplete_payloads(payload: dict) -> None:
    assert decode_mcp_server_use(json.dumps(payload)) is None


def test_decode_follow_up_mixed_suggestions() -> None:
    data = decode_follow_up(json.dumps({"question": "Q?", "suggest": ["a", {"answer": "b", "mode": "code"}]}))
    assert data is not None
    assert [s.answer for s in data.suggest] == ["a", "b"]
    assert data.suggest[1].mode == "code"


def test_decode_follow_up_empty_payload_has_no_suggestions() -> None:
    data = decode_follow_up("")
    assert data is not None and data.suggest == []


def test_decode_follow_up_malformed() -> None:
    assert decode_follow_up("{") is None
    assert decode_follow_up(json.dumps({"suggest": [{"mode": "code"}]})) is None
