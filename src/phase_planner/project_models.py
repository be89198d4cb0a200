from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass, field
from typing import Literal


ItemKind = Literal["phase", "task"]
"""Allowed item kinds: phase (aggregate heading) and task (schedulable leaf)."""

LinkMode = Literal["FS", "SS", "SF", "FF"]
"""Dependency link between an item and the item right after it in the sequence."""

ITEM_KINDS: tuple[str, ...] = ("phase", "task")
LINK_MODES: tuple[str, ...] = ("FS", "SS", "SF", "FF")

PHASE_COLORS: tuple[str, ...] = (
    "#3498db",  # blue
    "#2ecc71",  # green
    "#f1c40f",  # yellow
    "#9b59b6",  # purple
    "#e74c3c",  # red
    "#e67e22",  # orange
)


@dataclass
class WorkItem:
    """
    One row of a project sequence.

    Phases own the tasks that follow them until the next phase. Their dates are
    recomputed from those tasks; ``task_number`` is None for phases.
    """

    id: str
    kind: ItemKind
    phase_number: int = 1
    task_number: str | None = None
    description: str = ""
    accountable: str = ""
    work_days: int = 1
    start: str = ""
    end: str = ""
    progress: int = 0
    mode: LinkMode = "FS"
    color: str = PHASE_COLORS[0]

    @property
    def is_phase(self) -> bool:
        return self.kind == "phase"

    @property
    def is_task(self) -> bool:
        return self.kind == "task"


@dataclass
class Project:
    """Root container owning the item sequence of one plan."""

    id: str
    name: str
    accountable: str = ""
    start: str = ""
    end: str = ""
    work_days: int = 1
    items: list[WorkItem] = field(default_factory=list)
    created_at: int = 0


@dataclass
class Backup:
    """Point-in-time copy of a project."""

    timestamp: str
    project: Project


@dataclass(frozen=True)
class DateWindow:
    """Visible timeline window, both bounds inclusive."""

    start: dt.date
    end: dt.date


def clamp_progress(value: object) -> int:
    """Coerce progress into [0, 100]; non-numeric input becomes 0."""
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0
    if math.isnan(number):
        return 0
    if math.isinf(number):
        return 100 if number > 0 else 0
    return int(min(100, max(0, round(number))))


def clamp_work_days(value: object) -> int:
    """Coerce a day count to an integer >= 1."""
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 1
    if not math.isfinite(number):
        return 1
    return max(1, int(number))
