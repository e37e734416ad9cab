from __future__ import annotations

from typing import Any, Dict

import pytest

from toolgate_ai.agent_core.runtime.repetition import (
    RepetitionState,
    ToolRepetitionDetector,
    serialize_tool_use,
)
from toolgate_ai.agent_core.schemas.domain import AskKind, ToolUse


def _use(name: str = "read_file", native: Any = None, **params: str) -> ToolUse:
    return ToolUse(name=name, params=params or {"path": "a.py"}, native_args=native)


def test_identical_calls_trip_after_the_ceiling() -> None:
    d = ToolRepetitionDetector(limit=3)
    state = RepetitionState()

    for _ in range(3):
        assert d.check(state, _use()).allow_execution

    blocked = d.check(state, _use())
    assert not blocked.allow_execution
    assert blocked.ask == AskKind.mistake_limit_reached
    assert "read_file" in (blocked.guidance or "")


def test_state_is_reset_after_tripping() -> None:
    d = ToolRepetitionDetector(limit=2)
    state = RepetitionState()
    for _ in range(3):
        d.check(state, _use())

    assert state.previous_signature is None
    assert state.consecutive_count == 0
    assert d.check(state, _use()).allow_execution


def test_different_call_resets_the_counter() -> None:
    d = ToolRepetitionDetector(limit=2)
    state = RepetitionState()
    d.check(state, _use(path="a.py"))
    d.check(state, _use(path="a.py"))

    assert d.check(state, _use(path="b.py")).allow_execution
    assert state.consecutive_count == 0


def test_changed_signature_after_block_is_allowed() -> None:
    d = ToolRepetitionDetector(limit=1)
    state = RepetitionState()
    d.check(state, _use())
    assert not d.check(state, _use()).allow_execution
    assert d.check(state, _use(path="other.py")).allow_execution


def test_zero_limit_never_trips() -> None:
    d = ToolRepetitionDetector(limit=0)
    state = RepetitionState()
    assert all(d.check(state, _use()).allow_execution for _ in range(50))


def test_excluded_tools_are_not_counted() -> None:
    d = ToolRepetitionDetector(limit=1, excluded_tools=["read_file"])
    state = RepetitionState()
    assert all(d.check(state, _use()).allow_execution for _ in range(5))
    assert state.previous_signature is None


@pytest.mark.parametrize("action", ["scroll_down", "scroll_up"])
def test_browser_scroll_is_not_counted(action: str) -> None:
    d = ToolRepetitionDetector(limit=1)
    state = RepetitionState()
    scroll = ToolUse(name="browser_action", params={"action": action})
    assert all(d.check(state, scroll).allow_execution for _ in range(5))


def test_browser_scroll_from_native_args() -> None:
    d = ToolRepetitionDetector(limit=1)
    state = RepetitionState()
    scroll = ToolUse(name="browser_action", native_args={"action": "scroll_down"})
    assert all(d.check(state, scroll).allow_execution for _ in range(5))


def test_mcp_tools_get_the_elevated_ceiling() -> None:
    d = ToolRepetitionDetector(limit=3, mcp_limit=50)
    assert d.limit_for("use_mcp_tool") == 50
    assert d.limit_for("access_mcp_resource") == 50
    assert d.limit_for("read_file") == 3


def test_per_tool_override() -> None:
    d = ToolRepetitionDetector(limit=3, tool_limits={"use_mcp_tool": 5, "list_files": 10})
    assert d.limit_for("use_mcp_tool") == 5
    assert d.limit_for("list_files") == 10
    assert d.limit_for("access_mcp_resource") == d.tool_limits["access_mcp_resource"]


def _mcp_use() -> ToolUse:
    return ToolUse(name="use_mcp_tool", params={"server_name": "s", "tool_name": "next_page"})


def test_mcp_progress_resets_counter() -> None:
    d = ToolRepetitionDetector(limit=3, mcp_limit=2)
    state = RepetitionState()
    page = 0
    for _ in range(10):
        result = d.check(state, _mcp_use())
        assert result.allow_execution
        page += 1
        d.update_last_response(state, f"page {page}")


def test_mcp_without_progress_trips() -> None:
    d = ToolRepetitionDetector(limit=3, mcp_limit=2)
    state = RepetitionState()
    results = []
    for _ in range(3):
        results.append(d.check(state, _mcp_use()))
        d.update_last_response(state, "same")
    assert [r.allow_execution for r in results] == [True, True, False]
    assert "false positive" in (results[-1].guidance or "")


def test_mcp_progress_with_explicit_response() -> None:
    d = ToolRepetitionDetector(mcp_limit=1)
    state = RepetitionState()
    d.check(state, _mcp_use(), response="first")
    assert d.check(state, _mcp_use(), response="second").allow_execution
    assert state.consecutive_count == 0


def test_response_history_is_bounded() -> None:
    state = RepetitionState(history_size=3)
    for i in range(5):
        state.record_response(str(i))
    assert list(state.response_history) == ["2", "3", "4"]
    assert state.last_response == "4"


def test_serialization_is_order_independent() -> None:
    a = ToolUse(name="search_files", params={"path": "src", "regex": "x"})
    b = ToolUse(name="search_files", params={"regex": "x", "path": "src"})
    assert serialize_tool_use(a) == serialize_tool_use(b)


def test_native_args_are_part_of_the_signature() -> None:
    base: Dict[str, str] = {"path": "a.py"}
    plain = ToolUse(name="read_file", params=base)
    native = ToolUse(name="read_file", params=base, native_args={"path": "b.py"})
    empty_native = ToolUse(name="read_file", params=base, native_args={})
    assert serialize_tool_use(plain) != serialize_tool_use(native)
    assert serialize_tool_use(plain) == serialize_tool_use(empty_native)


def test_defaults_come_from_settings() -> None:
    d = ToolRepetitionDetector()
    assert d.limit == 3
    assert d.limit_for("use_mcp_tool") == 50
