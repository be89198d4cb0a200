from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from .dates import parse_date, to_iso, work_days_between
from .project_models import PHASE_COLORS, WorkItem


def reindex(sequence: Sequence[WorkItem]) -> list[WorkItem]:
    """
    Rebuild numbering, colours and phase spans from sequence order.

    - Phases are numbered 1..n in order and cycle through ``PHASE_COLORS``.
    - Tasks take the number of the closest preceding phase (1 when there is
      none) and an ordinal that restarts after every phase.
    - A phase with child tasks spans min(child.start)..max(child.end); a phase
      without children keeps its stored dates.

    The input is not modified and running it twice gives the same result.
    """

    numbered: list[WorkItem] = []
    phase_counter = 0
    task_counter = 0
    color = PHASE_COLORS[0]

    for item in sequence:
        if item.is_phase:
            phase_counter += 1
            task_counter = 0
            color = PHASE_COLORS[(phase_counter - 1) % len(PHASE_COLORS)]
            numbered.append(replace(item, phase_number=phase_counter, task_number=None, color=color))
        else:
            task_counter += 1
            owner = phase_counter or 1
            numbered.append(replace(item, phase_number=owner, task_number=f"{owner}.{task_counter}", color=color))

    spans = _child_spans(numbered)
    result: list[WorkItem] = []
    for item in numbered:
        span = spans.get(item.phase_number) if item.is_phase else None
        if span is None:
            result.append(item)
            continue
        start, end = span
        result.append(replace(item, start=start, end=end, work_days=work_days_between(start, end)))
    return result


def _child_spans(items: list[WorkItem]) -> dict[int, tuple[str, str]]:
    """Earliest start and latest end of the tasks grouped under each phase number."""
    starts: dict[int, list] = {}
    ends: dict[int, list] = {}
    for item in items:
        if not item.is_task:
            continue
        start = parse_date(item.start)
        end = parse_date(item.end)
        if start is not None:
            starts.setdefault(item.phase_number, []).append(start)
        if end is not None:
            ends.setdefault(item.phase_number, []).append(end)

    spans: dict[int, tuple[str, str]] = {}
    for phase_number in starts.keys() & ends.keys():
        spans[phase_number] = (to_iso(min(starts[phase_number])), to_iso(max(ends[phase_number])))
    return spans
