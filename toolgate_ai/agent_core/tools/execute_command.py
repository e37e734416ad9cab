from __future__ import annotations

import html
from typing import TYPE_CHECKING, Optional

from toolgate_ai.core.config import settings
from toolgate_ai.core.logging_config import get_logger

from ..schemas.base import BaseSchema
from ..schemas.domain import AskKind, ToolName, ToolUse
from . import responses
from .base import BaseTool, ToolCallbacks, remove_closing_tag

if TYPE_CHECKING:
    from ..runtime.models import TaskSession

logger = get_logger(__name__)


def truncate_output(output: str, limit: int) -> str:
    """Keep the head and tail of ``output`` within ``limit`` characters (0 = unlimited)."""
    if limit <= 0 or len(output) <= limit:
        return output
    head = limit // 2
    tail = limit - head
    omitted = len(output) - limit
    return f"{output[:head]}\n[...{omitted} characters omitted...]\n{output[-tail:]}"


class ExecuteCommandParams(BaseSchema):
    command: Optional[str] = None
    cwd: Optional[str] = None


class ExecuteCommandTool(BaseTool[ExecuteCommandParams]):
    """Runs a shell command after the ``command`` approval prompt."""

    name = ToolName.execute_command
    params_model = ExecuteCommandParams
    required_params = ("command",)
    optional_params = ("cwd",)
    usage = "for '{command}'"

    async def handle_partial(self, session: TaskSession, tool_use: ToolUse, callbacks: ToolCallbacks) -> None:
        command = remove_closing_tag("command", tool_use.params.get("command"), tool_use.partial)
        await callbacks.ask(AskKind.command, command, partial=True)

    async def execute(self, params: ExecuteCommandParams, session: TaskSession, callbacks: ToolCallbacks) -> None:
        command = html.unescape(params.command or "")
        if not await callbacks.ask_approval(AskKind.command, command):
            return

        cwd = session.resolve_path(params.cwd) if params.cwd else session.cwd
        output = await session.deps.commands.run(command, cwd)
        if output.error:
            session.record_tool_error(self.tool_name)
            callbacks.push_tool_result(responses.tool_error(output.error))
            return

        text = truncate_output(output.output, settings.command_output_character_limit)
        if text:
            await callbacks.say("command_output", text)

        status = f"Exit code: {output.exit_code}"
        body = text if text else "(no output)"
        callbacks.push_tool_result(f"Command executed in terminal within working directory '{cwd}'. {status}\nOutput:\n{body}")
