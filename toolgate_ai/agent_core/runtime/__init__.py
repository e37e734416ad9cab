"""Runtime of the tool-call orchestration core.

 The runtime takes the ``ToolUse`` blocks produced by the protocol adapter and
 drives each one to exactly one tool result:

 - ``ToolDispatcher`` looks the tool up, runs the repetition check and hands
   the call to the tool implementation.
 - ``ApprovalGate`` answers the tool's approval prompts, consulting the
   auto-approval decision engine before the human.
 - ``TaskSession`` carries the per-run state (mode, todo list, mistake
   counter, repetition and auto-approval tallies).

 The main entry point is ``ToolDispatcher``.
 """

from .approval import ApprovalGate, GateOutcome, HumanApprovalChannel
from .dispatch import DispatchCallbacks, ToolDispatcher
from .models import TaskSession, ToolDeps
from .repetition import RepetitionCheck, RepetitionState, ToolRepetitionDetector

__all__ = [
    "ApprovalGate",
    "DispatchCallbacks",
    "GateOutcome",
    "HumanApprovalChannel",
    "RepetitionCheck",
    "RepetitionState",
    "TaskSession",
    "ToolDeps",
    "ToolDispatcher",
    "ToolRepetitionDetector",
]
