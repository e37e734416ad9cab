from __future__ import annotations

from typing import Any

import pytest

from toolgate_ai.agent_core.schemas.domain import AskKind, ToolUse
from toolgate_ai.agent_core.tools.execute_command import truncate_output


def test_truncate_output_keeps_head_and_tail() -> None:
    text = "a" * 10 + "b" * 10
    out = truncate_output(text, 10)
    assert out.startswith("aaaaa\n")
    assert out.endswith("\nbbbbb")
    assert "[...10 characters omitted...]" in out


@pytest.mark.parametrize("limit", [0, 100])
def test_truncate_output_no_op(limit: int) -> None:
    assert truncate_output("short", limit) == "short"


@pytest.mark.asyncio
async def test_command_runs_after_approval(harness: Any, workspace: str) -> None:
    result = await harness.dispatcher.dispatch(
        ToolUse(name="execute_command", params={"command": "echo hello &amp;&amp; ls"}), harness.session
    )

    assert harness.channel.complete_asks() == [(AskKind.command, "echo hello && ls", False)]
    assert harness.runner.runs == [("echo hello && ls", workspace)]
    assert "Exit code: 0" in result
    assert result.endswith("Output:\nhello\n")
    assert harness.channel.said("command_output") == ["hello\n"]


@pytest.mark.asyncio
async def test_command_cwd_is_resolved(harness: Any, workspace: str) -> None:
    await harness.dispatcher.dispatch(
        ToolUse(name="execute_command", params={"command": "make", "cwd": "build"}), harness.session
    )
    assert harness.runner.runs == [("make", f"{workspace}/build")]


@pytest.mark.asyncio
async def test_non_zero_exit_code_is_reported(harness: Any) -> None:
    harness.runner.exit_code = 2
    harness.runner.output = ""

    result = await harness.dispatcher.dispatch(ToolUse(name="execute_command", params={"command": "false"}), harness.session)

    assert "Exit code: 2" in result
    assert result.endswith("(no output)")


@pytest.mark.asyncio
async def test_runner_error_becomes_a_tool_error(harness: Any) -> None:
    harness.runner.error = "Command timed out after 600s"

    result = await harness.dispatcher.dispatch(ToolUse(name="execute_command", params={"command": "sleep 9999"}), harness.session)

    assert "<error>\nCommand timed out after 600s\n</error>" in result
    assert harness.session.tool_errors["execute_command"] == 1


@pytest.mark.asyncio
async def test_partial_command_previews_only(harness: Any) -> None:
    use = ToolUse(name="execute_command", params={"command": "npm run te</comm"}, partial=True)

    await harness.dispatcher.dispatch(use, harness.session)

    assert harness.channel.asks == [(AskKind.command, "npm run te", True)]
    assert harness.runner.runs == []
