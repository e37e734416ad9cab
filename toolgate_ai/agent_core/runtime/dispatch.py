from __future__ import annotations

"""Tool dispatch.

``ToolDispatcher.dispatch`` takes one ``ToolUse`` block emitted by the
protocol adapter and drives it to exactly one tool result:

1. Unknown tool names produce an error result listing the available tools.
2. Partial (still streaming) blocks only update the preview.
3. The repetition detector may block the call; the human is then asked with
   ``mistake_limit_reached`` and an error result is pushed.
4. The tool runs through ``BaseTool.handle``. Its approval prompts go through
   the ``ApprovalGate`` (decision engine first, human second). Exceptions
   raised by the tool are turned into an error result by ``handle_error``.
5. The pushed result text is recorded in the repetition state.

The dispatcher never retries; a failed call is reported back to the agent,
which decides what to do next.
"""

from typing import List, Optional

from toolgate_ai.core.logging_config import get_logger

from ..parsing.invocation import invocation_of
from ..schemas.domain import ApprovalResponse, AskKind, ToolProtocol, ToolUse
from ..tools import responses
from ..tools.registry import ToolRegistry
from ..tools.responses import ToolResult, ToolResultContent
from .approval import ApprovalGate
from .models import TaskSession
from .repetition import ToolRepetitionDetector

logger = get_logger(__name__)


class DispatchCallbacks:
    """``ToolCallbacks`` for one tool call.

    Holds the single result of the call. A second ``push_tool_result`` is
    logged and dropped. Feedback the human attaches to an approval is held
    and appended to the tool's own result.
    """

    def __init__(self, session: TaskSession, gate: ApprovalGate, tool_use: ToolUse) -> None:
        self.protocol: ToolProtocol = invocation_of(tool_use).protocol
        self._session = session
        self._gate = gate
        self._tool_name = tool_use.name
        self._result: Optional[ToolResultContent] = None
        self._pushed = False
        self._feedback: Optional[ApprovalResponse] = None

    @property
    def pushed(self) -> bool:
        return self._pushed

    @property
    def result(self) -> Optional[ToolResultContent]:
        return self._result

    def push_tool_result(self, content: ToolResultContent) -> None:
        if self._pushed:
            logger.warning(f"Duplicate tool result for {self._tool_name} ignored")
            return
        if self._feedback is not None:
            content = self._with_feedback(content, self._feedback)
            self._feedback = None
        self._result = content
        self._pushed = True

    @staticmethod
    def _with_feedback(content: ToolResultContent, feedback: ApprovalResponse) -> ToolResultContent:
        text = responses.result_text(content)
        note = responses.tool_approved_with_feedback(feedback.text or "")
        images: List[str] = list(content.images) if isinstance(content, ToolResult) else []
        images.extend(feedback.images)
        return responses.tool_result(f"{text}\n\n{note}" if text else note, images)

    async def ask(self, kind: AskKind, text: Optional[str] = None, partial: bool = False) -> Optional[ApprovalResponse]:
        if partial:
            await self._gate.channel.ask(kind, text, True)
            return None
        outcome = await self._gate.request(self._session, kind, text)
        return outcome.response

    async def say(self, kind: str, text: str = "", images: Optional[List[str]] = None, partial: bool = False) -> None:
        await self._gate.channel.say(kind, text, images, partial)

    async def ask_approval(self, kind: AskKind, text: Optional[str] = None, *, is_protected: bool = False) -> bool:
        outcome = await self._gate.request(self._session, kind, text, is_protected=is_protected)
        answer = outcome.response

        if outcome.approved:
            if answer.text:
                await self.say("user_feedback", answer.text, answer.images or None)
                self._feedback = answer
            return True

        self._session.did_reject_tool = True
        if outcome.automatic:
            self.push_tool_result(responses.tool_auto_denied(f"'{AskKind(kind).value}' requests are not allowed"))
        elif answer.text:
            await self.say("user_feedback", answer.text, answer.images or None)
            self.push_tool_result(
                responses.tool_result(responses.tool_denied_with_feedback(answer.text), answer.images)
            )
        else:
            self.push_tool_result(responses.tool_denied())
        return False

    async def handle_error(self, action: str, error: BaseException) -> None:
        logger.error(f"Error {action}: {error}")
        self._session.record_tool_error(self._tool_name)
        message = f"Error {action}: {error}"
        await self.say("error", message)
        self.push_tool_result(responses.tool_error(message))


class ToolDispatcher:
    """
    Routes tool calls to their implementations.

    Args:
        registry: Tool implementations by name.
        gate: Approval gate wrapping the decision engine and the human channel.
        detector: Repetition detector; defaults to one configured from settings.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        gate: ApprovalGate,
        detector: Optional[ToolRepetitionDetector] = None,
    ) -> None:
        self._registry = registry
        self._gate = gate
        self._detector = detector or ToolRepetitionDetector()

    async def dispatch(self, tool_use: ToolUse, session: TaskSession) -> Optional[ToolResultContent]:
        """
        Drive one tool call to its result.

        Args:
            tool_use: The block emitted by the protocol adapter.
            session: State of the agent run the call belongs to.

        Returns:
            The single tool result of a complete call, or ``None`` for a
            partial block.
        """
        callbacks = DispatchCallbacks(session, self._gate, tool_use)
        tool = self._registry.find(tool_use.name)

        if tool is None:
            if tool_use.partial:
                return None
            logger.warning(f"Task {session.task_id}: unknown tool '{tool_use.name}'")
            session.record_mistake(tool_use.name)
            await callbacks.say("error", f"Unknown tool: {tool_use.name}")
            callbacks.push_tool_result(responses.unknown_tool_error(tool_use.name, self._registry.names()))
            return callbacks.result

        if tool_use.partial:
            await tool.handle(session, tool_use, callbacks)
            return None

        session.record_tool_usage(tool.tool_name)
        logger.debug(f"Task {session.task_id}: dispatching {tool.describe(tool_use)}")

        check = self._detector.check(session.repetition, tool_use)
        if not check.allow_execution:
            guidance = check.guidance or ""
            await callbacks.ask(check.ask or AskKind.mistake_limit_reached, guidance)
            callbacks.push_tool_result(responses.repetition_limit_error(guidance))
            return callbacks.result

        try:
            await tool.handle(session, tool_use, callbacks)
        except Exception as e:
            await callbacks.handle_error(f"executing {tool.tool_name}", e)

        if not callbacks.pushed:
            logger.error(f"Task {session.task_id}: {tool.tool_name} finished without a result")
            callbacks.push_tool_result(responses.tool_error(f"{tool.tool_name} finished without a result."))

        self._detector.update_last_response(session.repetition, responses.result_text(callbacks.result))
        return callbacks.result
