from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple

from toolgate_ai.core.logging_config import get_logger

from ..backends.models import BrowserActionOutput
from ..schemas.base import BaseSchema
from ..schemas.domain import AskKind, ToolName, ToolUse
from . import responses
from .base import BaseTool, ToolCallbacks, remove_closing_tag

if TYPE_CHECKING:
    from ..runtime.models import TaskSession

logger = get_logger(__name__)


class BrowserAction(str, Enum):
    launch = "launch"
    click = "click"
    hover = "hover"
    type = "type"
    scroll_down = "scroll_down"
    scroll_up = "scroll_up"
    resize = "resize"
    close = "close"


def parse_pair(value: Optional[str]) -> Optional[Tuple[int, int]]:
    """Parse ``"x,y"`` (or ``"WxH"``-style ``"w,h"``) into an int pair; ``None`` if malformed."""
    if not value:
        return None
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 2:
        return None
    try:
        return int(parts[0]), int(parts[1])
    except ValueError:
        return None


class BrowserActionParams(BaseSchema):
    action: Optional[BrowserAction] = None
    url: Optional[str] = None
    coordinate: Optional[str] = None
    size: Optional[str] = None
    text: Optional[str] = None


class BrowserActionTool(BaseTool[BrowserActionParams]):
    """Drives the session's browser. Only ``launch`` needs approval; later actions act on the approved page."""

    name = ToolName.browser_action
    params_model = BrowserActionParams
    required_params = ("action",)
    optional_params = ("url", "coordinate", "size", "text")
    usage = "for '{action}'"

    async def handle_partial(self, session: TaskSession, tool_use: ToolUse, callbacks: ToolCallbacks) -> None:
        if tool_use.params.get("action") == BrowserAction.launch.value:
            url = remove_closing_tag("url", tool_use.params.get("url"), tool_use.partial)
            await callbacks.ask(AskKind.browser_action_launch, url, partial=True)

    def _missing_for_action(self, params: BrowserActionParams) -> Optional[str]:
        action = params.action
        if action == BrowserAction.launch and not params.url:
            return "url"
        if action in (BrowserAction.click, BrowserAction.hover) and parse_pair(params.coordinate) is None:
            return "coordinate"
        if action == BrowserAction.type and not params.text:
            return "text"
        if action == BrowserAction.resize and parse_pair(params.size) is None:
            return "size"
        return None

    async def _perform(self, params: BrowserActionParams, session: TaskSession) -> BrowserActionOutput:
        browser = session.deps.browser
        action = params.action
        if action == BrowserAction.launch:
            return await browser.launch(params.url)
        if action == BrowserAction.click:
            return await browser.click(parse_pair(params.coordinate))
        if action == BrowserAction.hover:
            return await browser.hover(parse_pair(params.coordinate))
        if action == BrowserAction.type:
            return await browser.type(params.text)
        if action in (BrowserAction.scroll_down, BrowserAction.scroll_up):
            return await browser.scroll("down" if action == BrowserAction.scroll_down else "up")
        if action == BrowserAction.resize:
            return await browser.resize(parse_pair(params.size))
        return await browser.close()

    async def execute(self, params: BrowserActionParams, session: TaskSession, callbacks: ToolCallbacks) -> None:
        if session.deps.browser is None:
            session.record_tool_error(self.tool_name)
            callbacks.push_tool_result(responses.tool_error("Browser actions are not available in this session."))
            return

        missing = self._missing_for_action(params)
        if missing:
            session.record_mistake(self.tool_name)
            await callbacks.say("error", f"Missing value for required parameter '{missing}' of {self.tool_name}")
            callbacks.push_tool_result(responses.missing_param_error(self.tool_name, missing))
            return

        if params.action == BrowserAction.launch:
            if not await callbacks.ask_approval(AskKind.browser_action_launch, params.url):
                return

        output = await self._perform(params, session)
        if not output.success:
            session.record_tool_error(self.tool_name)
            callbacks.push_tool_result(responses.tool_error(output.error or f"Browser action {params.action.value} failed"))
            return

        if params.action == BrowserAction.close:
            callbacks.push_tool_result("The browser has been closed. You may now proceed to using other tools.")
            return

        images: List[str] = [output.screenshot] if output.screenshot else []
        await callbacks.say("browser_action_result", output.logs, images or None)
        lines = [f"The browser action '{params.action.value}' has been executed."]
        if output.current_url:
            lines.append(f"Current URL: {output.current_url}")
        lines.append(f"Console logs:\n{output.logs or '(No new logs)'}")
        callbacks.push_tool_result(responses.tool_result("\n".join(lines), images))
