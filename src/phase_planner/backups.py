from __future__ import annotations

import copy
import datetime as dt
from typing import Sequence

from .project_models import Backup, Project

MAX_BACKUPS = 10


def make_backup(project: Project, now: dt.datetime | None = None) -> Backup:
    """Capture a detached copy of ``project`` stamped with ``now`` (UTC by default)."""
    stamp = now or dt.datetime.now(dt.timezone.utc)
    return Backup(timestamp=stamp.isoformat(), project=copy.deepcopy(project))


def add_backup(backups: Sequence[Backup], backup: Backup) -> list[Backup]:
    """Newest first, keeping at most ``MAX_BACKUPS`` entries."""
    return [backup, *backups][:MAX_BACKUPS]
