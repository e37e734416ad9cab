"""Ceilings on consecutive auto-approved requests and their accumulated cost.

Auto-approval lets an agent run unattended. ``allowed_max_requests`` and
``allowed_max_cost`` bound how far it may go before the human is asked to
confirm again. The counters live in a caller-owned ``LimiterState`` so each
agent run keeps its own tally.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from toolgate_ai.core.logging_config import get_logger

from ..schemas.domain import ApprovalResponse, AskKind, AskResponse
from .models import AutoApprovalSettings

logger = get_logger(__name__)

AskHuman = Callable[[AskKind, str], Awaitable[ApprovalResponse]]


class LimitType(str, Enum):
    requests = "requests"
    cost = "cost"


@dataclass
class LimiterState:
    """Running tally for one agent run."""

    request_count: int = 0
    total_cost: float = 0.0

    def reset(self) -> None:
        self.request_count = 0
        self.total_cost = 0.0


@dataclass(frozen=True)
class LimitCheck:
    should_proceed: bool
    requires_approval: bool = False
    limit_type: Optional[LimitType] = None
    count: float = 0


class AutoApprovalLimiter:
    """Counts auto-approved requests and cost, and asks the human past a ceiling."""

    def evaluate(self, state: LimiterState, settings: AutoApprovalSettings, cost: float = 0.0) -> LimitCheck:
        """
        Record one request and check both ceilings without asking anyone.

        Args:
            state: Tally of the current run; mutated in place.
            settings: Snapshot carrying the ceilings (``None`` ceilings never trip).
            cost: Cost of the request being recorded.

        Returns:
            ``LimitCheck`` with ``requires_approval`` set when a ceiling is exceeded.
        """
        state.request_count += 1
        state.total_cost += max(cost, 0.0)

        max_requests = settings.allowed_max_requests
        if max_requests is not None and state.request_count > max_requests:
            return LimitCheck(
                should_proceed=False,
                requires_approval=True,
                limit_type=LimitType.requests,
                count=max_requests,
            )

        max_cost = settings.allowed_max_cost
        if max_cost is not None and state.total_cost > max_cost:
            return LimitCheck(
                should_proceed=False,
                requires_approval=True,
                limit_type=LimitType.cost,
                count=max_cost,
            )

        return LimitCheck(should_proceed=True)

    async def check(
        self,
        state: LimiterState,
        settings: AutoApprovalSettings,
        ask: AskHuman,
        cost: float = 0.0,
    ) -> LimitCheck:
        """Record one request; when a ceiling trips, ask the human whether to continue.

        A "yes" resets the tally and lets the run proceed. Any other answer stops it.
        """
        result = self.evaluate(state, settings, cost)
        if not result.requires_approval:
            return result

        logger.warning(
            f"Auto-approval {result.limit_type.value} limit reached "
            f"(limit={result.count}, requests={state.request_count}, cost={state.total_cost:.4f})"
        )
        payload = json.dumps({"count": result.count, "type": result.limit_type.value})
        answer = await ask(AskKind.auto_approval_max_req_reached, payload)
        if answer.response == AskResponse.yes_button_clicked:
            state.reset()
            return LimitCheck(should_proceed=True, limit_type=result.limit_type, count=result.count)
        return result
