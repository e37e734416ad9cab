"""File tools: read_file, write_to_file, list_files and search_files.

Every file tool resolves its path against the session's working directory,
marks whether the target lies outside the workspace, and asks for approval
with a ``tool`` prompt before touching the backend. The approval payload is
what the auto-approval rules for read-only and write actions look at.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, List, Optional

from pydantic import Field

from toolgate_ai.core.logging_config import get_logger

from ..policy.payloads import ToolAction
from ..schemas.base import BaseSchema
from ..schemas.domain import AskKind, ToolName, ToolUse
from . import responses
from .base import BaseTool, ToolCallbacks, json_payload, remove_closing_tag
from .protected import ProtectedFileChecker

if TYPE_CHECKING:
    from ..runtime.models import TaskSession

logger = get_logger(__name__)


def readable_path(cwd: str, abs_path: str) -> str:
    """Path relative to ``cwd`` when below it, otherwise absolute."""
    relative = os.path.relpath(abs_path, cwd)
    if relative == os.pardir or relative.startswith(os.pardir + os.sep):
        return abs_path
    return relative.replace(os.sep, "/")


def _number_lines(content: str) -> str:
    lines = content.splitlines()
    width = len(str(len(lines))) if lines else 1
    return "\n".join(f"{str(i).rjust(width)} | {line}" for i, line in enumerate(lines, start=1))


def strip_code_fences(content: str) -> str:
    """Drop a markdown code fence the model wrapped around file content."""
    lines = content.split("\n")
    if lines and lines[0].strip().startswith("```"):
        lines = lines[1:]
    if lines and lines[-1].strip() == "```":
        lines = lines[:-1]
    return "\n".join(lines)


class ReadFileParams(BaseSchema):
    path: Optional[str] = None


class ReadFileTool(BaseTool[ReadFileParams]):
    name = ToolName.read_file
    params_model = ReadFileParams
    required_params = ("path",)
    usage = "for '{path}'"

    def _payload(self, session: TaskSession, path: str) -> str:
        abs_path = session.resolve_path(path)
        return json_payload(
            tool=ToolAction.read_file.value,
            path=readable_path(session.cwd, abs_path),
            content=abs_path,
            isOutsideWorkspace=session.is_outside_workspace(abs_path),
        )

    async def handle_partial(self, session: TaskSession, tool_use: ToolUse, callbacks: ToolCallbacks) -> None:
        path = remove_closing_tag("path", tool_use.params.get("path"), tool_use.partial)
        if path:
            await callbacks.ask(AskKind.tool, self._payload(session, path), partial=True)

    async def execute(self, params: ReadFileParams, session: TaskSession, callbacks: ToolCallbacks) -> None:
        abs_path = session.resolve_path(params.path)
        if not await callbacks.ask_approval(AskKind.tool, self._payload(session, params.path)):
            return

        output = await session.deps.fs.read_text(abs_path)
        rel_path = readable_path(session.cwd, abs_path)
        if not output.success:
            session.record_tool_error(self.tool_name)
            await callbacks.say("error", output.error or "")
            callbacks.push_tool_result(responses.tool_error(output.error or f"Could not read {rel_path}"))
            return

        total = output.total_lines or 0
        body = _number_lines(output.content or "")
        callbacks.push_tool_result(
            f"<file><path>{rel_path}</path>\n<content lines=\"1-{total}\">\n{body}\n</content>\n</file>"
        )


class WriteToFileParams(BaseSchema):
    path: Optional[str] = None
    content: Optional[str] = None
    line_count: Optional[int] = None


class WriteToFileTool(BaseTool[WriteToFileParams]):
    name = ToolName.write_to_file
    params_model = WriteToFileParams
    required_params = ("path", "content")
    optional_params = ("line_count",)
    usage = "for '{path}'"

    async def _payload(self, session: TaskSession, path: str, content: Optional[str]) -> tuple[str, bool]:
        abs_path = session.resolve_path(path)
        exists = await session.deps.fs.exists(abs_path)
        is_protected = ProtectedFileChecker(session.cwd).is_protected(abs_path)
        payload = json_payload(
            tool=(ToolAction.edited_existing_file if exists else ToolAction.new_file_created).value,
            path=readable_path(session.cwd, abs_path),
            content=content,
            isOutsideWorkspace=session.is_outside_workspace(abs_path),
            isProtected=is_protected,
        )
        return payload, is_protected

    async def handle_partial(self, session: TaskSession, tool_use: ToolUse, callbacks: ToolCallbacks) -> None:
        path = remove_closing_tag("path", tool_use.params.get("path"), tool_use.partial)
        if not path:
            return
        content = remove_closing_tag("content", tool_use.params.get("content"), tool_use.partial)
        payload, _ = await self._payload(session, path, strip_code_fences(content))
        await callbacks.ask(AskKind.tool, payload, partial=True)

    async def execute(self, params: WriteToFileParams, session: TaskSession, callbacks: ToolCallbacks) -> None:
        content = strip_code_fences(params.content or "")
        payload, is_protected = await self._payload(session, params.path, content)
        if not await callbacks.ask_approval(AskKind.tool, payload, is_protected=is_protected):
            return

        abs_path = session.resolve_path(params.path)
        output = await session.deps.fs.write_text(abs_path, content)
        rel_path = readable_path(session.cwd, abs_path)
        if not output.success:
            session.record_tool_error(self.tool_name)
            callbacks.push_tool_result(responses.tool_error(output.error or f"Could not write {rel_path}"))
            return

        verb = "created" if output.created else "saved"
        callbacks.push_tool_result(f"The content was successfully {verb} to {rel_path}.")


class ListFilesParams(BaseSchema):
    path: Optional[str] = None
    recursive: bool = False


class ListFilesTool(BaseTool[ListFilesParams]):
    name = ToolName.list_files
    params_model = ListFilesParams
    required_params = ("path",)
    optional_params = ("recursive",)
    usage = "for '{path}'"

    def _payload(self, session: TaskSession, path: str, recursive: bool) -> str:
        abs_path = session.resolve_path(path)
        action = ToolAction.list_files_recursive if recursive else ToolAction.list_files_top_level
        return json_payload(
            tool=action.value,
            path=readable_path(session.cwd, abs_path),
            isOutsideWorkspace=session.is_outside_workspace(abs_path),
        )

    async def execute(self, params: ListFilesParams, session: TaskSession, callbacks: ToolCallbacks) -> None:
        if not await callbacks.ask_approval(AskKind.tool, self._payload(session, params.path, params.recursive)):
            return

        output = await session.deps.fs.list_dir(session.resolve_path(params.path), recursive=params.recursive)
        if not output.success:
            session.record_tool_error(self.tool_name)
            callbacks.push_tool_result(responses.tool_error(output.error or "Could not list files"))
            return

        if not output.entries:
            callbacks.push_tool_result("No files found.")
            return
        text = "\n".join(output.entries)
        if output.truncated:
            text += "\n\n(File list truncated. Use list_files on specific subdirectories if you need to explore further.)"
        callbacks.push_tool_result(text)


class SearchFilesParams(BaseSchema):
    path: Optional[str] = None
    regex: Optional[str] = None
    file_pattern: Optional[str] = Field(default=None)


class SearchFilesTool(BaseTool[SearchFilesParams]):
    name = ToolName.search_files
    params_model = SearchFilesParams
    required_params = ("path", "regex")
    optional_params = ("file_pattern",)
    usage = "for '{regex}' in '{path}'"

    def _payload(self, session: TaskSession, params: SearchFilesParams) -> str:
        abs_path = session.resolve_path(params.path)
        return json_payload(
            tool=ToolAction.search_files.value,
            path=readable_path(session.cwd, abs_path),
            regex=params.regex,
            filePattern=params.file_pattern,
            isOutsideWorkspace=session.is_outside_workspace(abs_path),
        )

    async def execute(self, params: SearchFilesParams, session: TaskSession, callbacks: ToolCallbacks) -> None:
        if not await callbacks.ask_approval(AskKind.tool, self._payload(session, params)):
            return

        output = await session.deps.fs.search(session.resolve_path(params.path), params.regex, params.file_pattern)
        if not output.success:
            session.record_tool_error(self.tool_name)
            callbacks.push_tool_result(responses.tool_error(output.error or "Search failed"))
            return

        if not output.matches:
            callbacks.push_tool_result("Found 0 results.")
            return

        lines: List[str] = [f"Found {len(output.matches)} result{'s' if len(output.matches) != 1 else ''}."]
        current_file: Optional[str] = None
        for match in output.matches:
            if match.file != current_file:
                current_file = match.file
                lines.append(f"\n# {match.file}")
            lines.append(f"{match.line:4} | {match.text}")
        if output.truncated:
            lines.append("\n(Results truncated. Narrow the search with a more specific regex or file_pattern.)")
        callbacks.push_tool_result("\n".join(lines))
