from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Literal, Optional, Union

from pydantic import Field

from ..schemas.base import BaseSchema
from ..schemas.domain import ApprovalResponse, McpServer, TodoItem


class AutoApprovalSettings(BaseSchema):
    """
    Flat auto-approval configuration owned by the host session.

    The core reads a snapshot of this record once per decision and never mutates
    it. Field aliases match the keys used by the settings UI so a host can pass
    its state dictionary straight to ``model_validate``.
    """

    auto_approval_enabled: bool = Field(default=False, alias="autoApprovalEnabled")

    always_allow_read_only: bool = Field(default=False, alias="alwaysAllowReadOnly")
    always_allow_read_only_outside_workspace: bool = Field(
        default=False, alias="alwaysAllowReadOnlyOutsideWorkspace"
    )
    allowed_read_directories: List[str] = Field(default_factory=list, alias="allowedReadDirectories")

    always_allow_write: bool = Field(default=False, alias="alwaysAllowWrite")
    always_allow_write_outside_workspace: bool = Field(default=False, alias="alwaysAllowWriteOutsideWorkspace")
    allowed_write_directories: List[str] = Field(default_factory=list, alias="allowedWriteDirectories")
    always_allow_write_protected: bool = Field(default=False, alias="alwaysAllowWriteProtected")

    always_allow_browser: bool = Field(default=False, alias="alwaysAllowBrowser")
    always_approve_resubmit: bool = Field(
        default=False,
        alias="alwaysApproveResubmit",
        description="Consumed by the host's API retry path; the decision engine does not read it.",
    )
    always_allow_mcp: bool = Field(default=False, alias="alwaysAllowMcp")
    always_allow_mode_switch: bool = Field(default=False, alias="alwaysAllowModeSwitch")
    always_allow_subtasks: bool = Field(default=False, alias="alwaysAllowSubtasks")

    always_allow_execute: bool = Field(default=False, alias="alwaysAllowExecute")
    allowed_commands: List[str] = Field(default_factory=list, alias="allowedCommands")
    denied_commands: List[str] = Field(default_factory=list, alias="deniedCommands")

    always_allow_followup_questions: bool = Field(default=False, alias="alwaysAllowFollowupQuestions")
    followup_auto_approve_timeout_ms: Optional[int] = Field(default=None, alias="followupAutoApproveTimeoutMs")

    always_allow_update_todo_list: bool = Field(default=False, alias="alwaysAllowUpdateTodoList")
    always_allow_during_todo_execution: bool = Field(default=False, alias="alwaysAllowDuringTodoExecution")

    mcp_servers: List[McpServer] = Field(default_factory=list, alias="mcpServers")

    allowed_max_requests: Optional[int] = Field(default=None, ge=0, alias="allowedMaxRequests")
    allowed_max_cost: Optional[float] = Field(default=None, ge=0, alias="allowedMaxCost")


@dataclass(frozen=True)
class ApprovalContext:
    """
    Contextual flags evaluated alongside the settings snapshot.

    Attributes:
        is_protected: The target file is write-protected (config/ignore files).
        todo_list: Current todo list of the task; only used for the todo-execution override.
    """

    is_protected: bool = False
    todo_list: Optional[List[TodoItem]] = None


class DecisionKind(str, Enum):
    approve = "approve"
    deny = "deny"
    ask = "ask"
    timeout = "timeout"


@dataclass(frozen=True)
class ApproveDecision:
    decision: Literal[DecisionKind.approve] = DecisionKind.approve


@dataclass(frozen=True)
class DenyDecision:
    decision: Literal[DecisionKind.deny] = DecisionKind.deny


@dataclass(frozen=True)
class AskDecision:
    decision: Literal[DecisionKind.ask] = DecisionKind.ask


@dataclass(frozen=True)
class TimeoutDecision:
    """
    Bounded wait for the human; ``fallback`` synthesizes the answer on expiry.

    Attributes:
        timeout_ms: How long to wait for a human response.
        fallback: Zero-argument callable returning the synthesized response.
    """

    timeout_ms: int
    fallback: Callable[[], ApprovalResponse] = field(compare=False)
    decision: Literal[DecisionKind.timeout] = DecisionKind.timeout


DecisionResult = Union[ApproveDecision, DenyDecision, AskDecision, TimeoutDecision]

APPROVE = ApproveDecision()
DENY = DenyDecision()
ASK = AskDecision()
