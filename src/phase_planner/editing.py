"""Structural edits: insert, append, delete and reorder rows. Each result is reindexed."""

from __future__ import annotations

import logging
import uuid
from typing import Sequence

from . import dates
from .dates import end_from_start, parse_date, to_iso
from .project_models import WorkItem, clamp_work_days
from .reindex import reindex

log = logging.getLogger(__name__)


def new_item_id() -> str:
    return str(uuid.uuid4())


def insert_task_after(
    sequence: Sequence[WorkItem],
    index: int,
    description: str = "New Task",
    start: str | None = None,
    work_days: int = 1,
) -> list[WorkItem]:
    """Insert a new FS task right after ``sequence[index]``, seeded from that row's end date."""
    if not 0 <= index < len(sequence):
        log.debug("insert_task_after: index %s out of range", index)
        return sequence  # type: ignore[return-value]

    anchor = sequence[index]
    days = clamp_work_days(work_days)
    seed_start = start if start is not None else anchor.end
    task = WorkItem(
        id=new_item_id(),
        kind="task",
        phase_number=anchor.phase_number,
        task_number=f"{anchor.phase_number}.new",
        description=description,
        accountable="",
        work_days=days,
        start=seed_start,
        end=end_from_start(seed_start, days),
        progress=0,
        mode="FS",
        color=anchor.color,
    )
    items = list(sequence)
    items.insert(index + 1, task)
    return reindex(items)


def append_phase(
    sequence: Sequence[WorkItem],
    description: str = "New Phase",
    start: str | None = None,
) -> list[WorkItem]:
    """Append a one-day phase starting where the last row ends (today for an empty plan)."""
    if start is None:
        last = sequence[-1] if sequence else None
        start = last.end if last is not None and parse_date(last.end) else to_iso(dates.today())
    phase = WorkItem(
        id=new_item_id(),
        kind="phase",
        phase_number=0,
        task_number=None,
        description=description,
        accountable="",
        work_days=1,
        start=start,
        end=start,
        progress=0,
        mode="FS",
    )
    return reindex([*sequence, phase])


def delete_item(sequence: Sequence[WorkItem], item_id: str) -> list[WorkItem]:
    """Remove a task, or a phase together with every row sharing its phase number."""
    target = next((item for item in sequence if item.id == item_id), None)
    if target is None:
        log.debug("delete_item: no item with id %s", item_id)
        return sequence  # type: ignore[return-value]

    if target.is_phase:
        remaining = [
            item for item in sequence if item.id != target.id and item.phase_number != target.phase_number
        ]
    else:
        remaining = [item for item in sequence if item.id != target.id]
    return reindex(remaining)


def move_item(sequence: Sequence[WorkItem], from_index: int, to_index: int) -> list[WorkItem]:
    """
    Reorder rows.

    A task moves alone to ``to_index``. A phase drags its whole block (itself
    and every row with its phase number) and lands before the target row when
    moving up or after it when moving down.
    """

    size = len(sequence)
    if from_index == to_index or not (0 <= from_index < size and 0 <= to_index < size):
        log.debug("move_item: ignoring move %s -> %s (size %s)", from_index, to_index, size)
        return sequence  # type: ignore[return-value]

    source = sequence[from_index]
    if source.is_task:
        items = list(sequence)
        moved = items.pop(from_index)
        items.insert(to_index, moved)
        return reindex(items)

    block = [item for item in sequence if item.phase_number == source.phase_number]
    others = [item for item in sequence if item.phase_number != source.phase_number]
    target = sequence[to_index]
    position = next((pos for pos, item in enumerate(others) if item.id == target.id), None)
    if position is None:
        # Target sits inside the moving block.
        position = len(others)
    elif from_index < to_index:
        position += 1
    others[position:position] = block
    return reindex(others)
