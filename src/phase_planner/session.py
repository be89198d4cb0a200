from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Mapping

from . import editing, scheduling
from .history import HistoryManager
from .project_models import Backup, Project, WorkItem
from .reindex import reindex

log = logging.getLogger(__name__)


class Session:
    """
    Application context for one active project.

    Every edit runs to completion (change, reindex, record) before the next one
    is accepted. Edits that resolve to a no-op are not recorded. Undo and redo
    move through history without recording.
    """

    def __init__(self, project: Project | None = None) -> None:
        self.project: Project | None = None
        self.history = HistoryManager()
        self.switch_project(project)

    @property
    def items(self) -> list[WorkItem]:
        return self.project.items if self.project is not None else []

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def switch_project(self, project: Project | None) -> None:
        """Activate ``project``; prior history is discarded and its items are reindexed."""
        if project is not None:
            project.items = reindex(project.items)
        self.project = project
        self.history.reset(project.items if project is not None else None)

    def restore_backup(self, backup: Backup) -> Project:
        """Replace the active project with a backup copy; the restore itself cannot be undone."""
        restored = copy.deepcopy(backup.project)
        if self.project is not None and self.project.id != restored.id:
            log.warning("Restoring backup of project %s over active project %s", restored.id, self.project.id)
        self.switch_project(restored)
        return restored

    def apply_edit(self, item_id: str, updates: Mapping[str, Any]) -> list[WorkItem]:
        return self._commit(scheduling.apply_edit, item_id, updates)

    def insert_task_after(self, index: int, **seed: Any) -> list[WorkItem]:
        return self._commit(editing.insert_task_after, index, **seed)

    def append_phase(self, **seed: Any) -> list[WorkItem]:
        return self._commit(editing.append_phase, **seed)

    def delete_item(self, item_id: str) -> list[WorkItem]:
        return self._commit(editing.delete_item, item_id)

    def move_item(self, from_index: int, to_index: int) -> list[WorkItem]:
        return self._commit(editing.move_item, from_index, to_index)

    def undo(self) -> bool:
        return self._restore(self.history.undo())

    def redo(self) -> bool:
        return self._restore(self.history.redo())

    def _commit(self, operation: Callable[..., list[WorkItem]], *args: Any, **kwargs: Any) -> list[WorkItem]:
        if self.project is None:
            log.debug("Ignoring %s: no active project", operation.__name__)
            return []
        before = self.project.items
        after = operation(before, *args, **kwargs)
        if after is before:
            return before
        self.project.items = after
        self.history.record(after)
        return after

    def _restore(self, snapshot: list[WorkItem] | None) -> bool:
        if snapshot is None or self.project is None:
            return False
        self.project.items = snapshot
        return True
