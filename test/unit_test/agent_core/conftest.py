from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
from mcp import types

from toolgate_ai.agent_core.backends.models import (
    BrowserActionOutput,
    CommandRunOutput,
    FileReadOutput,
    FileWriteOutput,
    ListFilesOutput,
    SearchFilesOutput,
    SearchMatch,
)
from toolgate_ai.agent_core.policy.models import AutoApprovalSettings
from toolgate_ai.agent_core.policy.paths import WorkspaceScope
from toolgate_ai.agent_core.policy.provider import StaticSettingsProvider
from toolgate_ai.agent_core.runtime.approval import ApprovalGate
from toolgate_ai.agent_core.runtime.dispatch import ToolDispatcher
from toolgate_ai.agent_core.runtime.models import TaskSession, ToolDeps
from toolgate_ai.agent_core.schemas.domain import ApprovalResponse, AskKind, AskResponse, McpServer
from toolgate_ai.agent_core.tools.registry import default_registry

WORKSPACE = "/workspace/project"


@dataclass
class FakeChannel:
    """Human channel answering from a queue (default: yes)."""

    answers: List[ApprovalResponse] = field(default_factory=list)
    default: ApprovalResponse = field(
        default_factory=lambda: ApprovalResponse(response=AskResponse.yes_button_clicked)
    )
    delay: float = 0.0
    asks: List[Tuple[AskKind, Optional[str], bool]] = field(default_factory=list)
    says: List[Tuple[str, str, Optional[List[str]], bool]] = field(default_factory=list)

    async def ask(self, kind: AskKind, text: Optional[str] = None, partial: bool = False) -> Optional[ApprovalResponse]:
        self.asks.append((AskKind(kind), text, partial))
        if partial:
            return None
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.answers.pop(0) if self.answers else self.default

    async def say(self, kind: str, text: str = "", images: Optional[List[str]] = None, partial: bool = False) -> None:
        self.says.append((kind, text, images, partial))

    def complete_asks(self) -> List[Tuple[AskKind, Optional[str], bool]]:
        return [a for a in self.asks if not a[2]]

    def said(self, kind: str) -> List[str]:
        return [text for k, text, _, _ in self.says if k == kind]


@dataclass
class FakeFileSystem:
    files: Dict[str, str] = field(default_factory=dict)
    writes: List[Tuple[str, str]] = field(default_factory=list)
    raise_on_read: Optional[Exception] = None

    async def read_text(self, path: str) -> FileReadOutput:
        if self.raise_on_read is not None:
            raise self.raise_on_read
        if path not in self.files:
            return FileReadOutput(success=False, path=path, error=f"File not found: {path}")
        content = self.files[path]
        return FileReadOutput(success=True, path=path, content=content, total_lines=len(content.splitlines()))

    async def write_text(self, path: str, content: str) -> FileWriteOutput:
        created = path not in self.files
        self.files[path] = content
        self.writes.append((path, content))
        return FileWriteOutput(success=True, path=path, created=created, bytes_written=len(content))

    async def exists(self, path: str) -> bool:
        return path in self.files

    async def list_dir(self, path: str, *, recursive: bool = False) -> ListFilesOutput:
        prefix = path.rstrip("/") + "/"
        entries = sorted(os.path.relpath(p, path) for p in self.files if p.startswith(prefix))
        if not recursive:
            entries = [e for e in entries if "/" not in e]
        return ListFilesOutput(success=True, path=path, entries=entries)

    async def search(self, path: str, regex: str, file_pattern: Optional[str] = None) -> SearchFilesOutput:
        matches = []
        for file_path, content in sorted(self.files.items()):
            for lineno, line in enumerate(content.splitlines(), start=1):
                if regex in line:
                    matches.append(SearchMatch(file=os.path.relpath(file_path, path), line=lineno, text=line))
        return SearchFilesOutput(success=True, path=path, matches=matches)


@dataclass
class FakeCommandRunner:
    output: str = "hello\n"
    exit_code: int = 0
    error: Optional[str] = None
    runs: List[Tuple[str, str]] = field(default_factory=list)

    async def run(self, command: str, cwd: str) -> CommandRunOutput:
        self.runs.append((command, cwd))
        return CommandRunOutput(
            success=self.error is None and self.exit_code == 0,
            command=command,
            cwd=cwd,
            exit_code=None if self.error else self.exit_code,
            output="" if self.error else self.output,
            error=self.error,
        )


@dataclass
class FakeBrowser:
    actions: List[Tuple[str, Any]] = field(default_factory=list)
    screenshot: Optional[str] = "data:image/png;base64,iVBORw0KGgo="

    def _out(self, name: str, arg: Any) -> BrowserActionOutput:
        self.actions.append((name, arg))
        return BrowserActionOutput(success=True, screenshot=self.screenshot, logs=f"{name} ok", current_url="http://localhost:3000")

    async def launch(self, url: str) -> BrowserActionOutput:
        return self._out("launch", url)

    async def click(self, coordinate: Tuple[int, int]) -> BrowserActionOutput:
        return self._out("click", coordinate)

    async def hover(self, coordinate: Tuple[int, int]) -> BrowserActionOutput:
        return self._out("hover", coordinate)

    async def type(self, text: str) -> BrowserActionOutput:
        return self._out("type", text)

    async def scroll(self, direction: str) -> BrowserActionOutput:
        return self._out("scroll", direction)

    async def resize(self, size: Tuple[int, int]) -> BrowserActionOutput:
        return self._out("resize", size)

    async def close(self) -> BrowserActionOutput:
        return self._out("close", None)


@dataclass
class FakeMcpHub:
    servers: List[McpServer] = field(default_factory=list)
    tool_result: types.CallToolResult = field(
        default_factory=lambda: types.CallToolResult(content=[types.TextContent(type="text", text="42")], isError=False)
    )
    resource_result: types.ReadResourceResult = field(
        default_factory=lambda: types.ReadResourceResult(
            contents=[types.TextResourceContents(uri="file:///docs/readme.md", text="# Readme", mimeType="text/markdown")]
        )
    )
    calls: List[Tuple[str, str, Optional[Dict[str, Any]]]] = field(default_factory=list)
    reads: List[Tuple[str, str]] = field(default_factory=list)

    def get_servers(self) -> List[McpServer]:
        return [s.model_copy(deep=True) for s in self.servers]

    async def call_tool(
        self, server_name: str, tool_name: str, arguments: Optional[Dict[str, Any]] = None
    ) -> types.CallToolResult:
        self.calls.append((server_name, tool_name, arguments))
        return self.tool_result

    async def read_resource(self, server_name: str, uri: str) -> types.ReadResourceResult:
        self.reads.append((server_name, uri))
        return self.resource_result


@dataclass
class Harness:
    """A session plus a dispatcher wired to fake backends."""

    channel: FakeChannel
    fs: FakeFileSystem
    runner: FakeCommandRunner
    session: TaskSession
    dispatcher: ToolDispatcher


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def fs() -> FakeFileSystem:
    return FakeFileSystem()


@pytest.fixture
def runner() -> FakeCommandRunner:
    return FakeCommandRunner()


@pytest.fixture
def browser() -> FakeBrowser:
    return FakeBrowser()


@pytest.fixture
def mcp_hub() -> FakeMcpHub:
    return FakeMcpHub(
        servers=[
            McpServer.model_validate(
                {
                    "name": "docs",
                    "tools": [
                        {"name": "search"},
                        {"name": "delete_all", "alwaysAllow": False},
                        {"name": "hidden", "enabledForPrompt": False},
                    ],
                }
            )
        ]
    )


@pytest.fixture
def make_harness(
    channel: FakeChannel, fs: FakeFileSystem, runner: FakeCommandRunner
) -> Callable[..., Harness]:
    def _make(approval: Optional[AutoApprovalSettings] = None, **deps: Any) -> Harness:
        session = TaskSession(
            task_id="task-1",
            cwd=WORKSPACE,
            deps=ToolDeps(fs=fs, commands=runner, **deps),
            workspace=WorkspaceScope([WORKSPACE]),
        )
        gate = ApprovalGate(StaticSettingsProvider(settings=approval), channel)
        dispatcher = ToolDispatcher(default_registry(), gate)
        return Harness(channel=channel, fs=fs, runner=runner, session=session, dispatcher=dispatcher)

    return _make


@pytest.fixture
def harness(make_harness: Callable[..., Harness]) -> Harness:
    return make_harness()


@pytest.fixture
def workspace() -> str:
    return WORKSPACE
