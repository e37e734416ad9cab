"""Decoding of approval-prompt payloads.

Approval prompts travel as JSON strings in the UI message protocol. The
decision engine decodes them once here into closed types and then matches on
those types, instead of sniffing string keys throughout the policy code.

Every decoder returns ``None`` for malformed input; the caller treats ``None``
as "ask the human".
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import Field, TypeAdapter, ValidationError, field_validator

from toolgate_ai.core.logging_config import get_logger

from ..schemas.base import BaseSchema

logger = get_logger(__name__)


class ToolAction(str, Enum):
    read_file = "readFile"
    list_files_top_level = "listFilesTopLevel"
    list_files_recursive = "listFilesRecursive"
    list_code_definition_names = "listCodeDefinitionNames"
    search_files = "searchFiles"
    codebase_search = "codebaseSearch"
    run_slash_command = "runSlashCommand"

    edited_existing_file = "editedExistingFile"
    applied_diff = "appliedDiff"
    new_file_created = "newFileCreated"
    search_and_replace = "searchAndReplace"
    insert_content = "insertContent"
    generate_image = "generateImage"

    update_todo_list = "updateTodoList"
    switch_mode = "switchMode"
    new_task = "newTask"
    finish_task = "finishTask"
    fetch_instructions = "fetchInstructions"

    unknown = "unknown"


READ_ONLY_ACTIONS: frozenset[ToolAction] = frozenset(
    {
        ToolAction.read_file,
        ToolAction.list_files_top_level,
        ToolAction.list_files_recursive,
        ToolAction.list_code_definition_names,
        ToolAction.search_files,
        ToolAction.codebase_search,
        ToolAction.run_slash_command,
    }
)

WRITE_ACTIONS: frozenset[ToolAction] = frozenset(
    {
        ToolAction.edited_existing_file,
        ToolAction.applied_diff,
        ToolAction.new_file_created,
        ToolAction.search_and_replace,
        ToolAction.insert_content,
        ToolAction.generate_image,
    }
)


class ToolMessage(BaseSchema):
    """Payload of a ``tool`` ask."""

    tool: ToolAction
    path: Optional[str] = None
    content: Optional[Any] = None
    mode: Optional[str] = None
    reason: Optional[str] = None
    is_outside_workspace: bool = Field(default=False, alias="isOutsideWorkspace")
    is_protected: bool = Field(default=False, alias="isProtected")

    @field_validator("tool", mode="before")
    @classmethod
    def _unknown_tool(cls, value: Any) -> Any:
        if isinstance(value, ToolAction):
            return value
        try:
            return ToolAction(value)
        except ValueError:
            return ToolAction.unknown

    @property
    def is_read_only(self) -> bool:
        return self.tool in READ_ONLY_ACTIONS

    @property
    def is_write(self) -> bool:
        return self.tool in WRITE_ACTIONS


class UseMcpToolRequest(BaseSchema):
    type: Literal["use_mcp_tool"] = "use_mcp_tool"
    server_name: str = Field(alias="serverName")
    tool_name: str = Field(alias="toolName")
    arguments: Optional[str] = None


class AccessMcpResourceRequest(BaseSchema):
    type: Literal["access_mcp_resource"] = "access_mcp_resource"
    server_name: str = Field(alias="serverName")
    uri: str


McpServerUse = Annotated[Union[UseMcpToolRequest, AccessMcpResourceRequest], Field(discriminator="type")]

_mcp_server_use_adapter: TypeAdapter[Any] = TypeAdapter(McpServerUse)


class Suggestion(BaseSchema):
    answer: str
    mode: Optional[str] = None


class FollowUpData(BaseSchema):
    question: Optional[str] = None
    suggest: List[Suggestion] = Field(default_factory=list)

    @field_validator("suggest", mode="before")
    @classmethod
    def _plain_string_suggestions(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [{"answer": item} if isinstance(item, str) else item for item in value]
        return value


def _load_json_object(text: Optional[str]) -> Optional[dict]:
    if not text:
        return None
    try:
        data = json.loads(text)
    except (TypeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def decode_tool_message(text: Optional[str]) -> Optional[ToolMessage]:
    """Decode a ``tool`` ask payload; ``None`` when missing or malformed."""
    data = _load_json_object(text)
    if data is None or "tool" not in data:
        return None
    try:
        return ToolMessage.model_validate(data)
    except ValidationError as e:
        logger.debug(f"Failed to decode tool message: {e}")
        return None


def decode_mcp_server_use(text: Optional[str]) -> Optional[Union[UseMcpToolRequest, AccessMcpResourceRequest]]:
    """Decode a ``use_mcp_server`` ask payload; ``None`` when missing or malformed."""
    data = _load_json_object(text)
    if data is None:
        return None
    try:
        return _mcp_server_use_adapter.validate_python(data)
    except ValidationError as e:
        logger.debug(f"Failed to decode MCP server use: {e}")
        return None


def decode_follow_up(text: Optional[str]) -> Optional[FollowUpData]:
    """Decode a ``followup`` ask payload. An empty payload decodes to no suggestions."""
    data = _load_json_object(text or "{}")
    if data is None:
        return None
    try:
        return FollowUpData.model_validate(data)
    except ValidationError as e:
        logger.debug(f"Failed to decode follow-up data: {e}")
        return None
