"""Auto-approval policy for agent actions.

Every action an agent wants to take is classified here before it runs: approve
it automatically, deny it outright, ask the human, or ask with a bounded wait
and a synthesized fallback answer.

Components
----------

- ``classify_command``: allow/deny pattern matching of shell commands, deny
  first.
- ``WorkspaceScope`` and ``is_in_allowed_directories``: workspace boundary and
  allowed-directory checks for file paths.
- ``check_auto_approval``: the decision engine. Pure; never raises.
- ``AutoApprovalLimiter``: ceilings on consecutive auto-approved requests and
  their cost.
- ``SettingsProvider``: read-only source of the settings snapshot.
"""

from .auto_approval import check_auto_approval
from .commands import CommandDecision, classify_command
from .limits import AutoApprovalLimiter, LimiterState, LimitType
from .models import (
    APPROVE,
    ASK,
    DENY,
    ApprovalContext,
    ApproveDecision,
    AskDecision,
    AutoApprovalSettings,
    DecisionKind,
    DecisionResult,
    DenyDecision,
    TimeoutDecision,
)
from .paths import WorkspaceScope, is_in_allowed_directories, is_outside_workspace
from .provider import SettingsProvider, StaticSettingsProvider

__all__ = [
    "check_auto_approval",
    "classify_command",
    "CommandDecision",
    "AutoApprovalLimiter",
    "LimiterState",
    "LimitType",
    "AutoApprovalSettings",
    "ApprovalContext",
    "DecisionKind",
    "DecisionResult",
    "ApproveDecision",
    "DenyDecision",
    "AskDecision",
    "TimeoutDecision",
    "APPROVE",
    "DENY",
    "ASK",
    "WorkspaceScope",
    "is_in_allowed_directories",
    "is_outside_workspace",
    "SettingsProvider",
    "StaticSettingsProvider",
]
