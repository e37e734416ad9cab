"""Loop detection for consecutive identical tool calls.

An agent that keeps issuing the same call with the same arguments is stuck.
``ToolRepetitionDetector`` compares each call's canonical signature with the
previous one and halts the run once the identical-call count reaches the
tool's ceiling.

The mutable tally lives in ``RepetitionState``, which the agent-run
controller owns and passes in; the detector itself only holds configuration
and can be shared between runs.

MCP calls get a much higher ceiling and a progress check: when their latest
response differs from the previous one (or the recent history is not
uniform) the counter is reset even for an identical call, since paging
through a stream legitimately repeats the same request.
"""

from __future__ import annotations

import json
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, FrozenSet, Iterable, Mapping, Optional

from toolgate_ai.core.config import RepetitionConfig, settings
from toolgate_ai.core.logging_config import get_logger

from ..schemas.domain import AskKind, ToolName, ToolUse

logger = get_logger(__name__)

MCP_STREAMING_TOOLS: FrozenSet[str] = frozenset({ToolName.use_mcp_tool.value, ToolName.access_mcp_resource.value})
BROWSER_SCROLL_ACTIONS: FrozenSet[str] = frozenset({"scroll_down", "scroll_up"})


@dataclass
class RepetitionState:
    """Per-run repetition tally. Create one per agent run; never share across runs."""

    history_size: int = 10
    previous_signature: Optional[str] = None
    consecutive_count: int = 0
    last_response: Optional[str] = None
    response_history: Deque[str] = field(init=False)

    def __post_init__(self) -> None:
        self.response_history = deque(maxlen=self.history_size)

    def record_response(self, response: str) -> None:
        self.last_response = response
        self.response_history.append(response)

    def clear_responses(self) -> None:
        self.response_history.clear()
        self.last_response = None

    def reset(self) -> None:
        self.previous_signature = None
        self.consecutive_count = 0
        self.clear_responses()


@dataclass(frozen=True)
class RepetitionCheck:
    """Outcome of a repetition check.

    Attributes:
        allow_execution: False when the call must not run.
        ask: Ask kind to raise with the human when blocked.
        guidance: Operator guidance text shown with the ask.
    """

    allow_execution: bool
    ask: Optional[AskKind] = None
    guidance: Optional[str] = None


ALLOWED = RepetitionCheck(allow_execution=True)


def serialize_tool_use(tool_use: ToolUse) -> str:
    """Canonical signature of a call: name, params and non-empty native args with sorted keys."""
    payload: Dict[str, Any] = {"name": tool_use.name, "params": tool_use.params}
    if tool_use.native_args:
        payload["nativeArgs"] = tool_use.native_args
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)


class ToolRepetitionDetector:
    """
    Detects consecutive identical tool calls within one agent run.

    Args:
        limit: Default ceiling for identical consecutive calls (0 = unlimited).
        tool_limits: Per-tool ceilings; merged over the MCP defaults.
        excluded_tools: Tool names never counted.
        mcp_limit: Ceiling for ``use_mcp_tool`` and ``access_mcp_resource``.
    """

    def __init__(
        self,
        limit: Optional[int] = None,
        tool_limits: Optional[Mapping[str, int]] = None,
        excluded_tools: Optional[Iterable[str]] = None,
        mcp_limit: Optional[int] = None,
    ) -> None:
        config: RepetitionConfig = settings.repetition
        self.limit = config.default_limit if limit is None else limit
        mcp = config.mcp_limit if mcp_limit is None else mcp_limit
        self.tool_limits: Dict[str, int] = {name: mcp for name in MCP_STREAMING_TOOLS}
        self.tool_limits.update(tool_limits or {})
        self.excluded_tools: FrozenSet[str] = frozenset(excluded_tools or ())

    def limit_for(self, tool_name: str) -> int:
        return self.tool_limits.get(tool_name, self.limit)

    def check(self, state: RepetitionState, tool_use: ToolUse, response: Optional[str] = None) -> RepetitionCheck:
        """
        Count ``tool_use`` against the run's tally and decide whether it may run.

        Args:
            state: The run's repetition state; mutated in place.
            tool_use: The complete tool call about to be dispatched.
            response: Latest response of the previous execution, for MCP progress detection.

        Returns:
            ``RepetitionCheck``; when blocked, ``ask`` is ``mistake_limit_reached``
            and the state has been reset so the run can recover.
        """
        if tool_use.name in self.excluded_tools:
            return ALLOWED
        if self._is_browser_scroll(tool_use):
            return ALLOWED

        is_mcp = tool_use.name in MCP_STREAMING_TOOLS
        if is_mcp and self._is_showing_progress(state, response):
            state.consecutive_count = 0
            return ALLOWED

        signature = serialize_tool_use(tool_use)
        if state.previous_signature == signature:
            state.consecutive_count += 1
        else:
            state.consecutive_count = 0
            state.previous_signature = signature
            state.clear_responses()

        if response:
            state.record_response(response)

        limit = self.limit_for(tool_use.name)
        if limit > 0 and state.consecutive_count >= limit:
            guidance = (
                f"The agent called '{tool_use.name}' with identical arguments {limit + 1} times in a row "
                "and appears to be stuck in a loop."
            )
            if is_mcp:
                guidance += (
                    " This may be a false positive if the tool is legitimately reading streaming data. "
                    "Consider increasing the repetition limit for MCP tools in settings."
                )
            logger.warning(f"Tool repetition limit reached for '{tool_use.name}' (limit={limit})")
            state.reset()
            return RepetitionCheck(allow_execution=False, ask=AskKind.mistake_limit_reached, guidance=guidance)

        return ALLOWED

    def update_last_response(self, state: RepetitionState, response: str) -> None:
        """Record the response of the call that just ran."""
        state.record_response(response)

    @staticmethod
    def _is_browser_scroll(tool_use: ToolUse) -> bool:
        if tool_use.name != ToolName.browser_action.value:
            return False
        action = tool_use.params.get("action")
        if action is None and tool_use.native_args:
            action = tool_use.native_args.get("action")
        return action in BROWSER_SCROLL_ACTIONS

    @staticmethod
    def _is_showing_progress(state: RepetitionState, response: Optional[str]) -> bool:
        # Without an explicit response, fall back to what update_last_response recorded.
        if response is None:
            history = state.response_history
            return len(history) > 1 and history[-1] != history[-2]
        if not response or not state.last_response:
            return False
        if response != state.last_response:
            return True
        if len(state.response_history) > 1:
            return len(set(state.response_history)) > 1
        return False
