from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ..policy.payloads import ToolAction
from ..schemas.base import BaseSchema
from ..schemas.domain import AskKind, ToolName, ToolUse
from . import responses
from .base import BaseTool, ToolCallbacks, json_payload, remove_closing_tag

if TYPE_CHECKING:
    from ..runtime.models import TaskSession


class FetchInstructionsParams(BaseSchema):
    task: Optional[str] = None


class FetchInstructionsTool(BaseTool[FetchInstructionsParams]):
    """Returns the host-provided instructions for a task such as ``create_mode``."""

    name = ToolName.fetch_instructions
    params_model = FetchInstructionsParams
    required_params = ("task",)
    usage = "for '{task}'"

    async def handle_partial(self, session: TaskSession, tool_use: ToolUse, callbacks: ToolCallbacks) -> None:
        task = remove_closing_tag("task", tool_use.params.get("task"), tool_use.partial)
        await callbacks.ask(AskKind.tool, json_payload(tool=ToolAction.fetch_instructions.value, content=task), partial=True)

    async def execute(self, params: FetchInstructionsParams, session: TaskSession, callbacks: ToolCallbacks) -> None:
        payload = json_payload(tool=ToolAction.fetch_instructions.value, content=params.task)
        if not await callbacks.ask_approval(AskKind.tool, payload):
            return

        content = session.deps.instructions.get(params.task or "")
        if not content:
            session.record_tool_error(self.tool_name)
            available = ", ".join(sorted(session.deps.instructions)) or "none"
            callbacks.push_tool_result(
                responses.tool_error(f"Invalid instructions request: {params.task}. Available tasks: {available}")
            )
            return
        callbacks.push_tool_result(content)
