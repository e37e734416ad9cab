from __future__ import annotations

from toolgate_ai.agent_core.schemas.domain import TodoStatus
from toolgate_ai.agent_core.tools.todo import parse_markdown_checklist, to_markdown_checklist, todo_id


def test_parse_all_marks() -> None:
    items = parse_markdown_checklist(
        """
        [x] Analyze requirements
        - [-] Implement parser
        * [~] Wire it up
        [ ] Write tests
        not an item
        """
    )

    assert [(i.content, i.status) for i in items] == [
        ("Analyze requirements", TodoStatus.completed),
        ("Implement parser", TodoStatus.in_progress),
        ("Wire it up", TodoStatus.in_progress),
        ("Write tests", TodoStatus.pending),
    ]


def test_ids_are_stable() -> None:
    first = parse_markdown_checklist("[ ] a")[0]
    again = parse_markdown_checklist("[ ] a")[0]
    assert first.id == again.id == todo_id("a", TodoStatus.pending)
    assert parse_markdown_checklist("[x] a")[0].id != first.id


def test_uppercase_mark_and_empty_box() -> None:
    items = parse_markdown_checklist("[X] done\n[] open")
    assert [i.status for i in items] == [TodoStatus.completed, TodoStatus.pending]


def test_render_checklist() -> None:
    items = parse_markdown_checklist("[x] a\n[-] b\n[ ] c")
    assert to_markdown_checklist(items) == "[x] a\n[-] b\n[ ] c"
