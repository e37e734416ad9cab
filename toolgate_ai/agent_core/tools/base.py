from __future__ import annotations

"""Tool base class and the callbacks tools run with.

Each tool declares its parameters once, as a pydantic model plus the names
of the required and optional parameters, and implements ``execute`` on the
typed model. ``BaseTool.handle`` owns the lifecycle shared by all tools:

1. partial (still streaming) calls go to ``handle_partial`` and never cause
   a side effect;
2. the parameters are resolved from the native arguments when present,
   otherwise parsed from the legacy string parameters;
3. a parse failure becomes an ``<error>`` tool result and stops the call;
4. missing required parameters become a missing-parameter tool result and
   count as an agent mistake;
5. ``execute`` runs with the typed parameters.

Errors raised by ``execute`` propagate to the dispatcher, which forwards them
to ``ToolCallbacks.handle_error``.
"""

import json
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Generic, List, Mapping, Optional, Protocol, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from toolgate_ai.core.logging_config import get_logger

from ..errors import ToolParameterError
from ..parsing.invocation import Invocation, LegacyInvocation, invocation_of
from ..schemas.domain import ApprovalResponse, AskKind, ToolName, ToolProtocol, ToolUse
from . import responses
from .responses import ToolResultContent

if TYPE_CHECKING:
    from ..runtime.models import TaskSession

logger = get_logger(__name__)

ParamsT = TypeVar("ParamsT", bound=BaseModel)


class ToolCallbacks(Protocol):
    """Channel between a running tool and the dispatcher."""

    protocol: ToolProtocol

    async def ask_approval(self, kind: AskKind, text: Optional[str] = None, *, is_protected: bool = False) -> bool:
        """Ask for approval; on refusal a denied result has already been pushed."""
        ...

    async def ask(self, kind: AskKind, text: Optional[str] = None, partial: bool = False) -> Optional[ApprovalResponse]:
        """Ask and return the answer (``None`` for partial previews)."""
        ...

    async def say(self, kind: str, text: str = "", images: Optional[List[str]] = None, partial: bool = False) -> None: ...

    async def handle_error(self, action: str, error: BaseException) -> None: ...

    def push_tool_result(self, content: ToolResultContent) -> None: ...


def remove_closing_tag(tag: str, text: Optional[str], partial: bool) -> str:
    """Strip a half-streamed closing tag (``</pa``, ``<``) from the end of a partial value."""
    if not partial:
        return text or ""
    if not text:
        return ""
    optional_chars = "".join(f"(?:{re.escape(ch)})?" for ch in tag)
    return re.sub(rf"\s?</?{optional_chars}$", "", text)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class BaseTool(ABC, Generic[ParamsT]):
    """
    Base class of all tool implementations.

    Subclasses set ``name``, ``params_model``, ``required_params`` and
    ``optional_params``, and implement ``execute``. Override ``parse_legacy``
    when a legacy string value needs more than pydantic coercion.
    """

    name: ClassVar[ToolName]
    params_model: ClassVar[Type[BaseModel]]
    required_params: ClassVar[Tuple[str, ...]] = ()
    optional_params: ClassVar[Tuple[str, ...]] = ()
    usage: ClassVar[str] = ""

    @property
    def tool_name(self) -> str:
        return self.name.value

    def parse_legacy(self, params: Mapping[str, str]) -> ParamsT:
        """Build typed parameters from XML-protocol string values.

        Raises:
            ToolParameterError: A value cannot be converted to its declared type.
        """
        known = self.required_params + self.optional_params
        data = {key: params[key] for key in known if key in params}
        return self._validate(data)

    def parse_native(self, args: Mapping[str, Any]) -> ParamsT:
        return self._validate(dict(args))

    def _validate(self, data: Dict[str, Any]) -> ParamsT:
        try:
            return self.params_model.model_validate(data)  # type: ignore[return-value]
        except ValidationError as e:
            first = e.errors()[0] if e.errors() else {}
            loc = ".".join(str(part) for part in first.get("loc", ())) or None
            message = f"{loc}: {first.get('msg')}" if loc else str(e)
            raise ToolParameterError(self.tool_name, message, param_name=loc) from e

    def resolve_params(self, invocation: Invocation) -> ParamsT:
        if isinstance(invocation, LegacyInvocation):
            return self.parse_legacy(invocation.params)
        return self.parse_native(invocation.args)

    def missing_params(self, params: ParamsT) -> List[str]:
        return [name for name in self.required_params if _is_blank(getattr(params, name, None))]

    def describe(self, tool_use: ToolUse) -> str:
        """One-line usage summary, e.g. ``[read_file for 'src/app.py']``."""
        if not self.usage:
            return f"[{self.tool_name}]"
        values: Dict[str, Any] = dict(tool_use.params)
        values.update({k: v for k, v in (tool_use.native_args or {}).items() if v is not None})
        fields = {name: values.get(name, "") for name in self.required_params + self.optional_params}
        return f"[{self.tool_name} {self.usage.format(**fields)}]"

    async def handle_partial(self, session: TaskSession, tool_use: ToolUse, callbacks: ToolCallbacks) -> None:
        """Render a streaming preview. Must not cause side effects."""
        return None

    @abstractmethod
    async def execute(self, params: ParamsT, session: TaskSession, callbacks: ToolCallbacks) -> None:
        """Perform the tool's action and push exactly one result."""

    async def handle(self, session: TaskSession, tool_use: ToolUse, callbacks: ToolCallbacks) -> None:
        """Run one tool call through partial handling, parameter resolution and execution."""
        logger.debug(
            f"Tool handler invoked: {self.tool_name} partial={tool_use.partial} "
            f"native={tool_use.native_args is not None} protocol={callbacks.protocol.value}"
        )

        if tool_use.partial:
            try:
                await self.handle_partial(session, tool_use, callbacks)
            except Exception as e:
                logger.error(f"Error in handle_partial for {self.tool_name}: {e}")
                await callbacks.handle_error(f"handling partial {self.tool_name}", e)
            return

        try:
            params = self.resolve_params(invocation_of(tool_use))
        except ToolParameterError as e:
            logger.error(f"Failed to parse {self.tool_name} parameters: {e}")
            session.record_mistake(self.tool_name)
            callbacks.push_tool_result(responses.parse_error(self.tool_name, str(e)))
            return

        missing = self.missing_params(params)
        if missing:
            logger.warning(f"Missing required parameter '{missing[0]}' for {self.tool_name}")
            session.record_mistake(self.tool_name)
            await callbacks.say("error", f"Missing value for required parameter '{missing[0]}' of {self.tool_name}")
            callbacks.push_tool_result(responses.missing_param_error(self.tool_name, missing[0]))
            return

        session.consecutive_mistake_count = 0
        await self.execute(params, session, callbacks)


def json_payload(**fields: Any) -> str:
    """Serialize an approval-prompt payload, dropping ``None`` fields."""
    return json.dumps({key: value for key, value in fields.items() if value is not None})
