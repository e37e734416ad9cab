from __future__ import annotations

"""Human-approval round trip.

``ApprovalGate`` sits between the tools and the human-approval channel. For
every complete ask it consults the decision engine first:

- ``approve``: answered "yes" without involving the human (subject to the
  auto-approval request ceiling);
- ``deny``: answered "no" without involving the human;
- ``ask``: forwarded to the human, who may take as long as they like;
- ``timeout``: forwarded to the human with a bounded wait; when the wait
  expires the decision's fallback answer is used.

The bounded wait of a ``timeout`` decision is the only timeout in the
orchestration core.
"""

import asyncio
from dataclasses import dataclass
from typing import List, Optional, Protocol

from toolgate_ai.core.logging_config import get_logger

from ..policy.auto_approval import check_auto_approval
from ..policy.limits import AutoApprovalLimiter
from ..policy.models import ApprovalContext, DecisionKind, TimeoutDecision
from ..policy.provider import SettingsProvider
from ..schemas.domain import ApprovalResponse, AskKind, AskResponse
from .models import TaskSession

logger = get_logger(__name__)

YES = ApprovalResponse(response=AskResponse.yes_button_clicked)
NO = ApprovalResponse(response=AskResponse.no_button_clicked)


class HumanApprovalChannel(Protocol):
    """Async request/response channel to the human.

    ``ask`` with ``partial=True`` only updates the preview and returns ``None``;
    a complete ask waits for the answer.
    """

    async def ask(self, kind: AskKind, text: Optional[str] = None, partial: bool = False) -> Optional[ApprovalResponse]: ...

    async def say(
        self, kind: str, text: str = "", images: Optional[List[str]] = None, partial: bool = False
    ) -> None: ...


@dataclass(frozen=True)
class GateOutcome:
    """Answer to an ask plus how it was reached.

    Attributes:
        response: The human's answer, or the answer synthesized for them.
        decision: What the decision engine returned for the ask.
        automatic: True when no human answer was used.
    """

    response: ApprovalResponse
    decision: DecisionKind
    automatic: bool

    @property
    def approved(self) -> bool:
        return self.response.response == AskResponse.yes_button_clicked


class ApprovalGate:
    """Runs the decision engine in front of the human-approval channel."""

    def __init__(
        self,
        settings_provider: SettingsProvider,
        channel: HumanApprovalChannel,
        limiter: Optional[AutoApprovalLimiter] = None,
    ) -> None:
        self._settings_provider = settings_provider
        self._channel = channel
        self._limiter = limiter or AutoApprovalLimiter()

    @property
    def channel(self) -> HumanApprovalChannel:
        return self._channel

    def _context(self, session: TaskSession, is_protected: bool) -> ApprovalContext:
        todos = session.todo_list
        if todos is None:
            todos = self._settings_provider.get_todo_list(session.task_id)
        return ApprovalContext(is_protected=is_protected, todo_list=todos)

    async def _ask_human(self, kind: AskKind, text: Optional[str]) -> ApprovalResponse:
        response = await self._channel.ask(kind, text, False)
        return response if response is not None else NO

    async def request(
        self,
        session: TaskSession,
        kind: AskKind,
        text: Optional[str] = None,
        *,
        is_protected: bool = False,
    ) -> GateOutcome:
        """
        Resolve one complete ask.

        Args:
            session: The agent run the ask belongs to.
            kind: Kind of the ask.
            text: Serialized payload shown with the ask.
            is_protected: The target is a write-protected file.

        Returns:
            The answer and how it was reached.
        """
        settings = self._settings_provider.get_settings()
        decision = check_auto_approval(settings, kind, text, self._context(session, is_protected))
        logger.debug(f"Task {session.task_id}: ask={AskKind(kind).value} decision={decision.decision.value}")

        if decision.decision == DecisionKind.approve:
            if settings is not None and not await self._within_limits(session, settings):
                return GateOutcome(response=NO, decision=DecisionKind.ask, automatic=False)
            return GateOutcome(response=YES, decision=DecisionKind.approve, automatic=True)

        if decision.decision == DecisionKind.deny:
            logger.warning(f"Task {session.task_id}: {AskKind(kind).value} denied by auto-approval settings")
            return GateOutcome(response=NO, decision=DecisionKind.deny, automatic=True)

        if isinstance(decision, TimeoutDecision):
            try:
                response = await asyncio.wait_for(self._ask_human(kind, text), timeout=decision.timeout_ms / 1000)
            except asyncio.TimeoutError:
                logger.debug(f"Task {session.task_id}: no answer within {decision.timeout_ms}ms, using fallback")
                return GateOutcome(response=decision.fallback(), decision=DecisionKind.timeout, automatic=True)
            session.limiter.reset()
            return GateOutcome(response=response, decision=DecisionKind.timeout, automatic=False)

        response = await self._ask_human(kind, text)
        session.limiter.reset()
        return GateOutcome(response=response, decision=DecisionKind.ask, automatic=False)

    async def _within_limits(self, session: TaskSession, settings) -> bool:
        check = await self._limiter.check(session.limiter, settings, self._ask_human)
        return check.should_proceed
