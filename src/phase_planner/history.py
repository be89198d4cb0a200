from __future__ import annotations

import copy
import logging
from typing import Sequence

from .project_models import WorkItem

log = logging.getLogger(__name__)

HISTORY_CAPACITY = 11
"""Current state plus ten prior states, i.e. ten levels of undo."""

Snapshot = list[WorkItem]


class HistoryManager:
    """
    Bounded linear undo/redo buffer of full-sequence snapshots.

    Snapshots are deep copies: later changes to a live sequence never show up in
    a recorded one, and returned sequences are copies too. Recording after an
    undo discards the redo tail.
    """

    def __init__(self) -> None:
        self._snapshots: list[Snapshot] = []
        self._cursor = -1

    @property
    def cursor(self) -> int:
        return self._cursor

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return 0 <= self._cursor < len(self._snapshots) - 1

    def reset(self, sequence: Sequence[WorkItem] | None) -> None:
        """Start over with ``sequence`` as the only snapshot; ``None`` empties the buffer."""
        if sequence is None:
            self._snapshots = []
            self._cursor = -1
            return
        self._snapshots = [copy.deepcopy(list(sequence))]
        self._cursor = 0

    def clear(self) -> None:
        self.reset(None)

    def record(self, sequence: Sequence[WorkItem]) -> None:
        kept = self._snapshots[: self._cursor + 1]
        kept.append(copy.deepcopy(list(sequence)))
        self._snapshots = kept[-HISTORY_CAPACITY:]
        self._cursor = len(self._snapshots) - 1
        log.debug("Recorded snapshot %s/%s", self._cursor + 1, len(self._snapshots))

    def undo(self) -> Snapshot | None:
        """Step back one snapshot; None when already at the oldest one."""
        if self._cursor <= 0:
            return None
        self._cursor -= 1
        return self.current()

    def redo(self) -> Snapshot | None:
        """Step forward one snapshot; None when already at the newest one."""
        if self._cursor >= len(self._snapshots) - 1:
            return None
        self._cursor += 1
        return self.current()

    def current(self) -> Snapshot | None:
        if self._cursor < 0:
            return None
        return copy.deepcopy(self._snapshots[self._cursor])

    def snapshots(self) -> list[Snapshot]:
        return [copy.deepcopy(snapshot) for snapshot in self._snapshots]
