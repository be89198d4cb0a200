from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping, Sequence

from .dates import add_days, end_from_start, parse_date, start_from_end, work_days_between
from .project_models import ITEM_KINDS, LINK_MODES, WorkItem, clamp_progress, clamp_work_days
from .reindex import reindex

log = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(
    {
        "phase_number",
        "task_number",
        "kind",
        "description",
        "accountable",
        "work_days",
        "start",
        "end",
        "progress",
        "mode",
    }
)


def apply_edit(sequence: Sequence[WorkItem], item_id: str, updates: Mapping[str, Any]) -> list[WorkItem]:
    """
    Apply a partial update to one item, cascade its dates forward and reindex.

    - Unknown ``item_id``, or an update that changes no field, is a silent
      no-op: the input sequence is returned as is.
    - Date priority: ``work_days`` recomputes end, else ``end`` recomputes
      work_days, else ``start`` recomputes end.
    - Every later task is re-dated from its predecessor's link mode in a single
      left-to-right pass, so chains ripple to the end of the sequence.
    """

    index = _find_index(sequence, item_id)
    if index is None:
        log.debug("apply_edit: no item with id %s", item_id)
        return sequence  # type: ignore[return-value]

    resolved = _resolve_item(sequence[index], updates)
    if resolved == sequence[index]:
        log.debug("apply_edit: update for %s changes nothing", item_id)
        return sequence  # type: ignore[return-value]

    items = list(sequence)
    items[index] = resolved
    swept = propagate_from(items, index)
    return reindex(swept)


def propagate_from(items: list[WorkItem], index: int) -> list[WorkItem]:
    """Sweep from ``index`` to the end, re-dating each task from the item before it."""
    result = list(items)
    for i in range(index, len(result) - 1):
        current = result[i]
        following = result[i + 1]
        if not following.is_task:
            continue
        start, end = linked_dates(current, following)
        if start != following.start or end != following.end:
            result[i + 1] = replace(following, start=start, end=end)
    return result


def linked_dates(current: WorkItem, following: WorkItem) -> tuple[str, str]:
    """Return ``following``'s (start, end) as dictated by ``current.mode``."""
    work_days = following.work_days
    if current.mode == "SS":
        start = current.start
        return start, end_from_start(start, work_days)
    if current.mode == "SF":
        end = current.start
        return start_from_end(end, work_days), end
    if current.mode == "FF":
        end = current.end
        return start_from_end(end, work_days), end
    # FS
    start = add_days(current.end, 1)
    return start, end_from_start(start, work_days)


def _resolve_item(item: WorkItem, updates: Mapping[str, Any]) -> WorkItem:
    changes: dict[str, Any] = {}
    for key, value in updates.items():
        if key not in EDITABLE_FIELDS:
            log.warning("Ignoring unknown field %r in update for item %s", key, item.id)
            continue
        if value is None:
            continue
        changes[key] = value

    if "progress" in changes:
        changes["progress"] = clamp_progress(changes["progress"])
    if "work_days" in changes:
        changes["work_days"] = clamp_work_days(changes["work_days"])
    if "kind" in changes and changes["kind"] not in ITEM_KINDS:
        log.warning("Ignoring invalid kind %r for item %s", changes["kind"], item.id)
        del changes["kind"]
    if "mode" in changes and changes["mode"] not in LINK_MODES:
        log.warning("Ignoring invalid link mode %r for item %s", changes["mode"], item.id)
        del changes["mode"]
    for key in ("start", "end", "description", "accountable"):
        if key in changes:
            changes[key] = str(changes[key])

    updated = replace(item, **changes)

    if "work_days" in changes:
        return replace(updated, end=end_from_start(updated.start, updated.work_days))
    if "end" in changes:
        work_days = work_days_between(updated.start, updated.end)
        if parse_date(updated.start) is None:
            return replace(updated, work_days=work_days)
        # An end before the start collapses to a one-day span anchored on start.
        return replace(updated, work_days=work_days, end=end_from_start(updated.start, work_days))
    if "start" in changes:
        return replace(updated, end=end_from_start(updated.start, updated.work_days))
    return updated


def _find_index(sequence: Sequence[WorkItem], item_id: str) -> int | None:
    for idx, item in enumerate(sequence):
        if item.id == item_id:
            return idx
    return None
