"""Parser for the XML tool-call protocol.

The model emits tool calls inline with its prose::

    Some explanation.
    <function_calls>
      <invoke name="read_file">
        <parameter name="path">src/app.py</parameter>
      </invoke>
    </function_calls>

``parse_assistant_message`` turns such a (possibly still streaming) message
into ordered ``TextContent`` and ``ToolUse`` blocks. Blocks still open at the
end of the input are returned with ``partial=True``.

Rules:

- unknown tool names and unknown parameter names are skipped;
- the ``content`` parameter keeps its whitespace, minus one leading and one
  trailing newline; every other value is stripped;
- a ``<parameter name="`` inside a value opens a nested level, so the outer
  value only ends at its own ``</parameter>``;
- for ``write_to_file`` the ``content`` value spans from the first
  ``<parameter name="content">`` to the last ``</parameter>`` of the call.
"""

from __future__ import annotations

import re
from typing import List, Optional

from ..schemas.domain import TOOL_NAMES, TOOL_PARAM_NAMES, AssistantMessageContent, TextContent, ToolName, ToolUse

FUNCTION_CALLS_OPEN = "<function_calls>"
FUNCTION_CALLS_CLOSE = "</function_calls>"
INVOKE_CLOSE = "</invoke>"
PARAM_OPEN_PREFIX = '<parameter name="'
PARAM_CLOSE = "</parameter>"

_INVOKE_OPEN = re.compile(r'<invoke name="([^"]+)">')
_PARAM_OPEN = re.compile(r'<parameter name="([^"]+)">')


def _clean_value(param_name: str, value: str) -> str:
    if param_name == "content":
        if value.startswith("\n"):
            value = value[1:]
        if value.endswith("\n"):
            value = value[:-1]
        return value
    return value.strip()


def _find_param_end(message: str, start: int) -> int:
    """Index of the ``</parameter>`` closing the value starting at ``start`` (-1 if unclosed)."""
    depth = 0
    pos = start
    while True:
        close = message.find(PARAM_CLOSE, pos)
        nested = message.find(PARAM_OPEN_PREFIX, pos)
        if close == -1:
            return -1
        if nested != -1 and nested < close:
            depth += 1
            pos = nested + len(PARAM_OPEN_PREFIX)
            continue
        if depth == 0:
            return close
        depth -= 1
        pos = close + len(PARAM_CLOSE)


def _write_to_file_content(body: str) -> Optional[str]:
    open_tag = '<parameter name="content">'
    start = body.find(open_tag)
    end = body.rfind(PARAM_CLOSE)
    if start == -1 or end == -1 or end <= start:
        return None
    return _clean_value("content", body[start + len(open_tag) : end])


def _append_text(blocks: List[AssistantMessageContent], text: str, partial: bool) -> None:
    text = text.strip()
    if text:
        blocks.append(TextContent(content=text, partial=partial))


class _InvokeParser:
    """Parses one ``<invoke>`` body starting right after its opening tag."""

    def __init__(self, message: str, name: str, start: int) -> None:
        self.message = message
        self.tool_use = ToolUse(name=name, partial=True)
        self.start = start

    def parse(self) -> int:
        """Fill the tool use; return the index after ``</invoke>`` or -1 at end of input."""
        message = self.message
        pos = self.start
        while True:
            close = message.find(INVOKE_CLOSE, pos)
            match = _PARAM_OPEN.search(message, pos)
            if match is None or (close != -1 and close < match.start()):
                if close == -1:
                    return -1
                self._finish(close)
                return close + len(INVOKE_CLOSE)

            param_name = match.group(1)
            value_start = match.end()
            if param_name not in TOOL_PARAM_NAMES:
                pos = value_start
                continue

            value_end = _find_param_end(message, value_start)
            if value_end == -1:
                self.tool_use.params[param_name] = _clean_value(param_name, message[value_start:])
                return -1
            self.tool_use.params[param_name] = _clean_value(param_name, message[value_start:value_end])
            pos = value_end + len(PARAM_CLOSE)

    def _finish(self, close: int) -> None:
        if self.tool_use.name == ToolName.write_to_file.value:
            content = _write_to_file_content(self.message[self.start : close])
            if content is not None:
                self.tool_use.params["content"] = content
        self.tool_use.partial = False


def parse_assistant_message(message: str) -> List[AssistantMessageContent]:
    """
    Split an assistant message into text and tool-use blocks.

    Args:
        message: Raw assistant output, complete or streamed so far.

    Returns:
        Blocks in the order they appear. Unclosed trailing blocks are partial.
    """
    blocks: List[AssistantMessageContent] = []
    pos = 0
    length = len(message)

    while pos < length:
        calls_start = message.find(FUNCTION_CALLS_OPEN, pos)
        if calls_start == -1:
            _append_text(blocks, message[pos:], partial=True)
            break
        _append_text(blocks, message[pos:calls_start], partial=False)
        pos = calls_start + len(FUNCTION_CALLS_OPEN)

        # Inside <function_calls>: consume invokes until the block closes.
        while pos < length:
            calls_end = message.find(FUNCTION_CALLS_CLOSE, pos)
            match = _INVOKE_OPEN.search(message, pos)
            if match is None or (calls_end != -1 and calls_end < match.start()):
                pos = length if calls_end == -1 else calls_end + len(FUNCTION_CALLS_CLOSE)
                break

            name = match.group(1)
            if name not in TOOL_NAMES:
                pos = match.end()
                continue

            parser = _InvokeParser(message, name, match.end())
            end = parser.parse()
            blocks.append(parser.tool_use)
            if end == -1:
                return blocks
            pos = end

    return blocks
