"""Markdown checklist <-> todo list conversion.

The agent sends its todo list as a markdown checklist::

    [x] Analyze requirements
    [-] Implement parser
    [ ] Write tests

``[x]`` is completed, ``[-]`` or ``[~]`` in progress and ``[ ]`` pending. A
leading ``-`` or ``*`` bullet is allowed. Lines that are not checklist items
are ignored.
"""

from __future__ import annotations

import hashlib
import re
from typing import List

from ..schemas.domain import TodoItem, TodoStatus

_ITEM = re.compile(r"^(?:[-*]\s*)?\[\s*([ xX\-~]?)\s*\]\s+(.+)$")

_STATUS_MARKS = {
    "x": TodoStatus.completed,
    "-": TodoStatus.in_progress,
    "~": TodoStatus.in_progress,
    "": TodoStatus.pending,
}

_MARK_OF = {
    TodoStatus.completed: "x",
    TodoStatus.in_progress: "-",
    TodoStatus.pending: " ",
}


def todo_id(content: str, status: TodoStatus) -> str:
    return hashlib.md5(f"{content}{status.value}".encode("utf-8")).hexdigest()


def parse_markdown_checklist(markdown: str) -> List[TodoItem]:
    items: List[TodoItem] = []
    for raw_line in markdown.splitlines():
        match = _ITEM.match(raw_line.strip())
        if match is None:
            continue
        mark, content = match.group(1).strip().lower(), match.group(2).strip()
        status = _STATUS_MARKS.get(mark, TodoStatus.pending)
        items.append(TodoItem(id=todo_id(content, status), content=content, status=status))
    return items


def to_markdown_checklist(todos: List[TodoItem]) -> str:
    return "\n".join(f"[{_MARK_OF[item.status]}] {item.content}" for item in todos)
