from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol

from ..schemas.domain import TodoItem
from .models import AutoApprovalSettings


class SettingsProvider(Protocol):
    """Read-only access to the host's auto-approval settings and task todo lists.

    The core never writes through this interface; the host owns mutation.
    """

    def get_settings(self) -> Optional[AutoApprovalSettings]: ...

    def get_todo_list(self, task_id: str) -> Optional[List[TodoItem]]: ...


@dataclass(frozen=True)
class StaticSettingsProvider(SettingsProvider):
    """SettingsProvider backed by in-memory values.

    Returned settings and todo lists are deep-copied so a decision always
    works on a snapshot.
    """

    settings: Optional[AutoApprovalSettings] = None
    todo_lists: Dict[str, List[TodoItem]] = field(default_factory=dict)

    def get_settings(self) -> Optional[AutoApprovalSettings]:
        if self.settings is None:
            return None
        return self.settings.model_copy(deep=True)

    def get_todo_list(self, task_id: str) -> Optional[List[TodoItem]]:
        todos = self.todo_lists.get(task_id)
        if todos is None:
            return None
        return [item.model_copy(deep=True) for item in todos]
