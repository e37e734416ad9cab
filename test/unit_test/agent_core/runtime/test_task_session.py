from __future__ import annotations

from typing import Any

from toolgate_ai.agent_core.policy.paths import WorkspaceScope
from toolgate_ai.agent_core.runtime.models import TaskSession, ToolDeps


def _session(fs: Any, runner: Any, **kwargs: Any) -> TaskSession:
    return TaskSession(task_id="t", cwd="/workspace/project", deps=ToolDeps(fs=fs, commands=runner), **kwargs)


def test_mistakes_count_as_tool_errors(fs: Any, runner: Any) -> None:
    session = _session(fs, runner)

    session.record_mistake("read_file")
    session.record_mistake("read_file")
    session.record_tool_error("write_to_file")

    assert session.consecutive_mistake_count == 2
    assert session.tool_errors == {"read_file": 2, "write_to_file": 1}


def test_paths_resolve_against_cwd(fs: Any, runner: Any) -> None:
    session = _session(fs, runner, workspace=WorkspaceScope(["/workspace/project"]))

    assert session.resolve_path("src/../a.py") == "/workspace/project/a.py"
    assert session.resolve_path("/etc/hosts") == "/etc/hosts"
    assert not session.is_outside_workspace(session.resolve_path("a.py"))
    assert session.is_outside_workspace("/etc/hosts")


def test_no_workspace_roots_means_everything_is_outside(fs: Any, runner: Any) -> None:
    assert _session(fs, runner).is_outside_workspace("/workspace/project/a.py")


def test_defaults(fs: Any, runner: Any) -> None:
    session = _session(fs, runner)

    assert session.mode == "code"
    assert session.todo_list is None
    assert not session.did_reject_tool and not session.completed
    assert session.repetition.response_history.maxlen == 10
    assert session.deps.instructions == {} and session.deps.mcp_hub is None
