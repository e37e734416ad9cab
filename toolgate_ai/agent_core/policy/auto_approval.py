"""Auto-approval decisions for agent actions.

``check_auto_approval`` is the single policy authority consulted before an
action is shown to the human. It is a pure function of its inputs: the
settings snapshot, the ask kind, the serialized payload and the context
flags. It never executes the action and never raises; anything it cannot
interpret becomes ``ask``.

Evaluation order
----------------

1. Non-blocking asks are approved unconditionally.
2. A missing settings snapshot or a disabled master switch yields ``ask``.
3. The ask kind selects the category rule:

   - ``followup``: may return a ``timeout`` decision that auto-answers with
     the first suggestion.
   - ``browser_action_launch``: browser flag.
   - ``use_mcp_server``: MCP flag, plus the per-tool ``alwaysAllow`` override
     for tool calls.
   - ``command``: execute flag, then the allow/deny command matcher.
   - ``tool``: payload decoded into a ``ToolMessage`` and dispatched on its
     action (todo list, mode switch, instruction fetch, subtasks, then the
     todo-execution override, then the read-only and write rules).
"""

from __future__ import annotations

from typing import Optional

from toolgate_ai.core.logging_config import get_logger

from ..schemas.domain import ApprovalResponse, AskKind, AskResponse, has_open_todos, is_non_blocking_ask
from .commands import CommandDecision, classify_command
from .mcp import is_mcp_tool_always_allowed
from .models import (
    APPROVE,
    ASK,
    DENY,
    ApprovalContext,
    AutoApprovalSettings,
    DecisionResult,
    TimeoutDecision,
)
from .paths import is_in_allowed_directories
from .payloads import (
    AccessMcpResourceRequest,
    ToolAction,
    ToolMessage,
    UseMcpToolRequest,
    decode_follow_up,
    decode_mcp_server_use,
    decode_tool_message,
)

logger = get_logger(__name__)

_NO_CONTEXT = ApprovalContext()


def _flag(enabled: bool) -> DecisionResult:
    return APPROVE if enabled else ASK


def _check_followup(settings: AutoApprovalSettings, text: Optional[str]) -> DecisionResult:
    if not settings.always_allow_followup_questions:
        return ASK

    data = decode_follow_up(text)
    if data is None or not data.suggest:
        return ASK

    timeout_ms = settings.followup_auto_approve_timeout_ms
    if timeout_ms is None or timeout_ms <= 0:
        return ASK

    answer = data.suggest[0].answer

    def _fallback() -> ApprovalResponse:
        return ApprovalResponse(response=AskResponse.message_response, text=answer)

    return TimeoutDecision(timeout_ms=timeout_ms, fallback=_fallback)


def _check_mcp(settings: AutoApprovalSettings, text: Optional[str]) -> DecisionResult:
    request = decode_mcp_server_use(text)
    if request is None:
        return ASK

    if isinstance(request, UseMcpToolRequest):
        return _flag(settings.always_allow_mcp and is_mcp_tool_always_allowed(request, settings.mcp_servers))
    if isinstance(request, AccessMcpResourceRequest):
        return _flag(settings.always_allow_mcp)
    return ASK


def _check_command(settings: AutoApprovalSettings, text: Optional[str]) -> DecisionResult:
    if not text or not settings.always_allow_execute:
        return ASK

    decision = classify_command(text, settings.allowed_commands, settings.denied_commands)
    if decision == CommandDecision.auto_approve:
        return APPROVE
    if decision == CommandDecision.auto_deny:
        return DENY
    return ASK


def _check_location(
    tool: ToolMessage,
    *,
    allowed_directories: list[str],
    allow_outside_workspace: bool,
) -> DecisionResult:
    if not tool.is_outside_workspace:
        return APPROVE
    if tool.path and is_in_allowed_directories(tool.path, allowed_directories):
        return APPROVE
    return _flag(allow_outside_workspace)


def _check_tool(settings: AutoApprovalSettings, text: Optional[str], context: ApprovalContext) -> DecisionResult:
    tool = decode_tool_message(text)
    if tool is None:
        return ASK

    action = tool.tool
    if action == ToolAction.update_todo_list:
        return _flag(settings.always_allow_update_todo_list)

    if action == ToolAction.fetch_instructions:
        if tool.content == "create_mode":
            return _flag(settings.always_allow_mode_switch)
        if tool.content == "create_mcp_server":
            return _flag(settings.always_allow_mcp)
        return ASK

    if action == ToolAction.switch_mode:
        return _flag(settings.always_allow_mode_switch)

    if action in (ToolAction.new_task, ToolAction.finish_task):
        return _flag(settings.always_allow_subtasks)

    if not (tool.is_read_only or tool.is_write):
        return ASK

    is_protected = context.is_protected or tool.is_protected

    # Todo-execution override: subordinate to protected-file and outside-workspace checks.
    if (
        settings.always_allow_during_todo_execution
        and has_open_todos(context.todo_list)
        and not is_protected
        and not tool.is_outside_workspace
    ):
        return APPROVE

    if tool.is_read_only:
        if not settings.always_allow_read_only:
            return ASK
        return _check_location(
            tool,
            allowed_directories=settings.allowed_read_directories,
            allow_outside_workspace=settings.always_allow_read_only_outside_workspace,
        )

    if not settings.always_allow_write:
        return ASK
    if is_protected and not settings.always_allow_write_protected:
        return ASK
    return _check_location(
        tool,
        allowed_directories=settings.allowed_write_directories,
        allow_outside_workspace=settings.always_allow_write_outside_workspace,
    )


def _evaluate(
    settings: Optional[AutoApprovalSettings],
    ask: AskKind,
    text: Optional[str],
    context: ApprovalContext,
) -> DecisionResult:
    if is_non_blocking_ask(ask):
        return APPROVE

    if settings is None or not settings.auto_approval_enabled:
        return ASK

    if ask == AskKind.followup:
        return _check_followup(settings, text)
    if ask == AskKind.browser_action_launch:
        return _flag(settings.always_allow_browser)
    if ask == AskKind.use_mcp_server:
        return _check_mcp(settings, text)
    if ask == AskKind.command:
        return _check_command(settings, text)
    if ask == AskKind.tool:
        return _check_tool(settings, text, context)
    return ASK


def check_auto_approval(
    settings: Optional[AutoApprovalSettings],
    ask: AskKind,
    text: Optional[str] = None,
    context: Optional[ApprovalContext] = None,
) -> DecisionResult:
    """
    Decide whether an action runs automatically, is denied, or needs the human.

    Args:
        settings: Read-only snapshot of the auto-approval settings (None = absent).
        ask: Kind of approval prompt the action would raise.
        text: Serialized payload of the prompt (JSON for ``tool``, ``use_mcp_server``
            and ``followup``; the raw command line for ``command``).
        context: Protected-file flag and todo list of the current task.

    Returns:
        One of ``ApproveDecision``, ``DenyDecision``, ``AskDecision`` or
        ``TimeoutDecision``. Never raises.
    """
    try:
        decision = _evaluate(settings, AskKind(ask), text, context or _NO_CONTEXT)
    except Exception as e:
        logger.warning(f"Auto-approval evaluation failed for ask={ask!r}: {e}. Falling back to ask.")
        return ASK

    logger.debug(f"Auto-approval decision for ask={AskKind(ask).value}: {decision.decision.value}")
    return decision
