"""Workflow tools: follow-up questions, completion, mode switches, subtasks and todo lists.

These tools act on the session and the human channel rather than on the
workspace. Their approval prompts are ``tool`` asks whose action
(``switchMode``, ``newTask``, ``updateTodoList``) selects the matching
auto-approval flag.
"""

from __future__ import annotations

import html
import json
import re
from typing import TYPE_CHECKING, List, Optional

from toolgate_ai.core.logging_config import get_logger

from ..policy.payloads import FollowUpData, Suggestion, ToolAction
from ..schemas.base import BaseSchema
from ..schemas.domain import AskKind, AskResponse, TodoItem, ToolName, ToolUse
from . import responses
from .base import BaseTool, ToolCallbacks, json_payload, remove_closing_tag
from .todo import parse_markdown_checklist

if TYPE_CHECKING:
    from ..runtime.models import TaskSession

logger = get_logger(__name__)

_SUGGEST = re.compile(r"<suggest(?:\s+mode=\"([^\"]*)\")?\s*>(.*?)</suggest>", re.DOTALL)


def parse_suggestions(follow_up: Optional[str]) -> List[Suggestion]:
    """
    Parse the ``follow_up`` parameter into suggestions.

    Accepts either ``<suggest>`` elements (optionally with a ``mode``
    attribute) or a JSON list of strings / ``{"answer", "mode"}`` objects.

    Raises:
        ValueError: The value looks like JSON but is not a list.
    """
    if not follow_up or not follow_up.strip():
        return []
    text = follow_up.strip()
    if text.startswith("["):
        items = json.loads(text)
        if not isinstance(items, list):
            raise ValueError("follow_up must be a list of suggestions")
        return FollowUpData(suggest=items).suggest
    return [
        Suggestion(answer=answer.strip(), mode=mode or None)
        for mode, answer in _SUGGEST.findall(text)
        if answer.strip()
    ]


def _feedback_result(text: Optional[str], images: List[str]) -> responses.ToolResultContent:
    return responses.tool_result(f"<feedback>\n{text or ''}\n</feedback>", images)


class AskFollowupQuestionParams(BaseSchema):
    question: Optional[str] = None
    follow_up: Optional[str] = None


class AskFollowupQuestionTool(BaseTool[AskFollowupQuestionParams]):
    name = ToolName.ask_followup_question
    params_model = AskFollowupQuestionParams
    required_params = ("question",)
    optional_params = ("follow_up",)
    usage = "for '{question}'"

    async def handle_partial(self, session: TaskSession, tool_use: ToolUse, callbacks: ToolCallbacks) -> None:
        question = remove_closing_tag("question", tool_use.params.get("question"), tool_use.partial)
        await callbacks.ask(AskKind.followup, json.dumps({"question": question, "suggest": []}), partial=True)

    async def execute(self, params: AskFollowupQuestionParams, session: TaskSession, callbacks: ToolCallbacks) -> None:
        try:
            suggestions = parse_suggestions(params.follow_up)
        except ValueError as e:
            session.record_mistake(self.tool_name)
            await callbacks.say("error", f"Failed to parse follow_up suggestions: {e}")
            callbacks.push_tool_result(responses.tool_error(f"Invalid follow_up value: {e}"))
            return

        data = FollowUpData(question=params.question, suggest=suggestions)
        answer = await callbacks.ask(AskKind.followup, data.model_dump_json(exclude_none=True))
        text = answer.text if answer is not None else None
        images = answer.images if answer is not None else []
        await callbacks.say("user_feedback", text or "", images or None)
        callbacks.push_tool_result(responses.tool_result(f"<answer>\n{text or ''}\n</answer>", images))


class AttemptCompletionParams(BaseSchema):
    result: Optional[str] = None


class AttemptCompletionTool(BaseTool[AttemptCompletionParams]):
    """Presents the final result; the human either accepts it or replies with feedback."""

    name = ToolName.attempt_completion
    params_model = AttemptCompletionParams
    required_params = ("result",)

    async def handle_partial(self, session: TaskSession, tool_use: ToolUse, callbacks: ToolCallbacks) -> None:
        result = remove_closing_tag("result", tool_use.params.get("result"), tool_use.partial)
        await callbacks.say("completion_result", result, partial=True)

    async def execute(self, params: AttemptCompletionParams, session: TaskSession, callbacks: ToolCallbacks) -> None:
        await callbacks.say("completion_result", params.result or "")
        session.completed = True
        session.completion_result = params.result

        answer = await callbacks.ask(AskKind.completion_result, "")
        if answer is None or answer.response == AskResponse.yes_button_clicked:
            logger.info(f"Task {session.task_id} completed")
            callbacks.push_tool_result("")
            return

        # Any reply other than accepting the result reopens the task.
        session.completed = False
        await callbacks.say("user_feedback", answer.text or "", answer.images or None)
        callbacks.push_tool_result(_feedback_result(answer.text, answer.images))


class SwitchModeParams(BaseSchema):
    mode_slug: Optional[str] = None
    reason: Optional[str] = None


class SwitchModeTool(BaseTool[SwitchModeParams]):
    name = ToolName.switch_mode
    params_model = SwitchModeParams
    required_params = ("mode_slug",)
    optional_params = ("reason",)
    usage = "to '{mode_slug}'"

    async def handle_partial(self, session: TaskSession, tool_use: ToolUse, callbacks: ToolCallbacks) -> None:
        payload = json_payload(
            tool=ToolAction.switch_mode.value,
            mode=remove_closing_tag("mode_slug", tool_use.params.get("mode_slug"), tool_use.partial),
            reason=remove_closing_tag("reason", tool_use.params.get("reason"), tool_use.partial),
        )
        await callbacks.ask(AskKind.tool, payload, partial=True)

    async def execute(self, params: SwitchModeParams, session: TaskSession, callbacks: ToolCallbacks) -> None:
        modes = session.deps.modes
        if modes and params.mode_slug not in modes:
            session.record_tool_error(self.tool_name)
            callbacks.push_tool_result(responses.tool_error(f"Invalid mode: {params.mode_slug}"))
            return
        if params.mode_slug == session.mode:
            session.record_tool_error(self.tool_name)
            callbacks.push_tool_result(responses.tool_error(f"Already in {params.mode_slug} mode."))
            return

        payload = json_payload(tool=ToolAction.switch_mode.value, mode=params.mode_slug, reason=params.reason)
        if not await callbacks.ask_approval(AskKind.tool, payload):
            return

        previous = session.mode
        session.mode = params.mode_slug
        logger.info(f"Task {session.task_id} switched mode: {previous} -> {params.mode_slug}")
        because = f" because: {params.reason}" if params.reason else ""
        callbacks.push_tool_result(f"Successfully switched from {previous} mode to {params.mode_slug} mode{because}.")


class NewTaskParams(BaseSchema):
    mode: Optional[str] = None
    message: Optional[str] = None
    todos: Optional[str] = None


class NewTaskTool(BaseTool[NewTaskParams]):
    name = ToolName.new_task
    params_model = NewTaskParams
    required_params = ("mode", "message")
    optional_params = ("todos",)
    usage = "in '{mode}'"

    async def handle_partial(self, session: TaskSession, tool_use: ToolUse, callbacks: ToolCallbacks) -> None:
        payload = json_payload(
            tool=ToolAction.new_task.value,
            mode=remove_closing_tag("mode", tool_use.params.get("mode"), tool_use.partial),
            content=remove_closing_tag("message", tool_use.params.get("message"), tool_use.partial),
        )
        await callbacks.ask(AskKind.tool, payload, partial=True)

    async def execute(self, params: NewTaskParams, session: TaskSession, callbacks: ToolCallbacks) -> None:
        spawn = session.deps.spawn_subtask
        if spawn is None:
            session.record_tool_error(self.tool_name)
            callbacks.push_tool_result(responses.tool_error("Subtasks are not supported in this session."))
            return
        modes = session.deps.modes
        if modes and params.mode not in modes:
            session.record_tool_error(self.tool_name)
            callbacks.push_tool_result(responses.tool_error(f"Invalid mode: {params.mode}"))
            return

        message = html.unescape(params.message or "")
        todos: Optional[List[TodoItem]] = parse_markdown_checklist(params.todos) if params.todos else None
        payload = json_payload(
            tool=ToolAction.new_task.value,
            mode=params.mode,
            content=message,
            todos=[item.model_dump(mode="json") for item in todos] if todos else None,
        )
        if not await callbacks.ask_approval(AskKind.tool, payload):
            return

        subtask_id = await spawn(params.mode, message, todos)
        logger.info(f"Task {session.task_id} spawned subtask {subtask_id} in {params.mode} mode")
        callbacks.push_tool_result(f"Successfully created new task in {params.mode} mode with message: {message}")


class UpdateTodoListParams(BaseSchema):
    todos: Optional[str] = None


class UpdateTodoListTool(BaseTool[UpdateTodoListParams]):
    name = ToolName.update_todo_list
    params_model = UpdateTodoListParams
    required_params = ("todos",)

    async def execute(self, params: UpdateTodoListParams, session: TaskSession, callbacks: ToolCallbacks) -> None:
        todos = parse_markdown_checklist(params.todos or "")
        payload = json_payload(
            tool=ToolAction.update_todo_list.value,
            todos=[item.model_dump(mode="json") for item in todos],
        )
        if not await callbacks.ask_approval(AskKind.tool, payload):
            return

        session.todo_list = todos
        logger.debug(f"Task {session.task_id} todo list updated: {len(todos)} item(s)")
        callbacks.push_tool_result("Todo list updated successfully.")
