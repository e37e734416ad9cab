from __future__ import annotations

"""Session state and dependency bundle for tool dispatch.

- ``ToolDeps`` collects the I/O backends the tool implementations wrap.
- ``TaskSession`` is the mutable state of one agent run: working directory,
  workspace roots, mode, todo list, mistake counter, rejection flag, and the
  run-scoped repetition and auto-approval tallies.

A session belongs to exactly one agent run and is processed by one agent
turn at a time.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional

from toolgate_ai.core.config import settings

from ...mcp_client.hub import McpServerHub
from ..backends.base import BrowserSession, CommandRunner, FileSystemBackend
from ..policy.limits import LimiterState
from ..policy.paths import WorkspaceScope, resolve_in_cwd
from ..schemas.domain import TodoItem
from .repetition import RepetitionState

# (mode, message, todos) -> id of the spawned subtask
SubtaskSpawner = Callable[[str, str, Optional[List[TodoItem]]], Awaitable[str]]


@dataclass(frozen=True)
class ToolDeps:
    """Dependency bundle for the tool implementations.

    Only ``fs`` and ``commands`` are always needed; the others are optional
    and the tools that need them report an error when they are missing.
    """

    fs: FileSystemBackend
    commands: CommandRunner
    mcp_hub: Optional[McpServerHub] = None
    browser: Optional[BrowserSession] = None
    spawn_subtask: Optional[SubtaskSpawner] = None
    instructions: Dict[str, str] = field(default_factory=dict)
    modes: Dict[str, str] = field(default_factory=dict)


@dataclass
class TaskSession:
    task_id: str
    cwd: str
    deps: ToolDeps
    workspace: WorkspaceScope = field(default_factory=WorkspaceScope)
    mode: str = "code"
    todo_list: Optional[List[TodoItem]] = None
    consecutive_mistake_count: int = 0
    did_reject_tool: bool = False
    repetition: RepetitionState = field(
        default_factory=lambda: RepetitionState(history_size=settings.repetition.response_history_size)
    )
    limiter: LimiterState = field(default_factory=LimiterState)
    tool_errors: Counter = field(default_factory=Counter)
    tool_usage: Counter = field(default_factory=Counter)
    completed: bool = False
    completion_result: Optional[str] = None

    def record_tool_usage(self, tool_name: str) -> None:
        self.tool_usage[tool_name] += 1

    def record_tool_error(self, tool_name: str) -> None:
        self.tool_errors[tool_name] += 1

    def record_mistake(self, tool_name: str) -> None:
        """A recoverable agent mistake: bad or missing parameters, unknown names."""
        self.consecutive_mistake_count += 1
        self.record_tool_error(tool_name)

    def resolve_path(self, rel_path: str) -> str:
        return resolve_in_cwd(self.cwd, rel_path)

    def is_outside_workspace(self, abs_path: str) -> bool:
        return self.workspace.is_outside_workspace(abs_path)
