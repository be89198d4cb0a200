from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import List, Sequence

from .dates import format_date, parse_date
from .project_models import ItemKind, WorkItem

TASK_OPACITY = 0.6


@dataclass
class FlatRenderRow:
    """
    Flattened view of one item used by renderers.

    Only the fields relevant to drawing are kept: positional order,
    indentation level, item kind, label, colour and parsed date boundaries.
    """

    order: int
    indent: int
    kind: ItemKind
    item_id: str
    label: str
    name: str
    color: str
    alpha: float
    progress: int
    start_date: dt.date | None = None
    finish_date: dt.date | None = None

    @property
    def date_label(self) -> str:
        return f"{format_date(self.start_date)} - {format_date(self.finish_date)}"


def to_render_rows(items: Sequence[WorkItem]) -> list[FlatRenderRow]:
    """
    Convert a reindexed sequence into render rows.

    Phases sit at indent 0 and are drawn opaque; tasks sit at indent 1 and
    share their phase colour at reduced opacity.
    """

    rows: List[FlatRenderRow] = []
    for order, item in enumerate(items):
        if item.is_phase:
            label = str(item.phase_number)
        else:
            label = item.task_number or ""
        rows.append(
            FlatRenderRow(
                order=order,
                indent=0 if item.is_phase else 1,
                kind=item.kind,
                item_id=item.id,
                label=label,
                name=item.description,
                color=item.color,
                alpha=1.0 if item.is_phase else TASK_OPACITY,
                progress=item.progress,
                start_date=parse_date(item.start),
                finish_date=parse_date(item.end),
            )
        )
    return rows
