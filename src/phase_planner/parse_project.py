from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .project_models import (
    ITEM_KINDS,
    LINK_MODES,
    PHASE_COLORS,
    Backup,
    Project,
    WorkItem,
    clamp_progress,
    clamp_work_days,
)


class ProjectValidationError(Exception):
    """Raised when a project file is structurally invalid (bad types, unknown fields, duplicate ids)."""


_PROJECT_KEYS = {"id", "name", "accountable", "start", "end", "work_days", "created_at"}
_ITEM_KEYS = {
    "id",
    "kind",
    "phase_number",
    "task_number",
    "description",
    "accountable",
    "work_days",
    "start",
    "end",
    "progress",
    "mode",
    "color",
}


@dataclass(frozen=True)
class _Path:
    """Helper to produce readable YAML path strings like items[3].mode."""

    parts: tuple[str, ...] = ()

    def child(self, segment: str) -> "_Path":
        return _Path(self.parts + (segment,))

    def __str__(self) -> str:  # pragma: no cover - trivial
        return ".".join(self.parts) if self.parts else "root"


def load_project(path: str | Path) -> Project:
    """Load a Project from a YAML file at the given path (no reindexing)."""

    with open(path, "r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)

    return project_from_dict(raw)


def dump_project(project: Project, path: str | Path) -> None:
    with open(path, "w", encoding="utf-8") as fh:
        yaml.safe_dump(project_to_dict(project), fh, sort_keys=False, allow_unicode=True)


def load_backups(path: str | Path) -> list[Backup]:
    """Load the backup list stored next to a project; a missing file means no backups."""

    if not Path(path).exists():
        return []
    with open(path, "r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        return []
    root = _Path()
    if not isinstance(raw, dict) or not isinstance(raw.get("backups"), list):
        raise ProjectValidationError(f"{root}: expected mapping with a 'backups' list")

    backups: list[Backup] = []
    for idx, entry in enumerate(raw["backups"]):
        entry_path = root.child(f"backups[{idx}]")
        if not isinstance(entry, dict):
            raise ProjectValidationError(f"{entry_path}: expected mapping for backup")
        _assert_allowed_keys(entry, {"timestamp", "project", "items"}, entry_path)
        timestamp = _require_value(entry, "timestamp", entry_path)
        if isinstance(timestamp, _dt.datetime):
            timestamp = timestamp.isoformat()
        if not isinstance(timestamp, str):
            raise ProjectValidationError(f"{entry_path.child('timestamp')}: expected string")
        project = _parse_document(entry, entry_path)
        backups.append(Backup(timestamp=timestamp, project=project))
    return backups


def dump_backups(backups: list[Backup], path: str | Path) -> None:
    document = {
        "backups": [{"timestamp": backup.timestamp, **project_to_dict(backup.project)} for backup in backups]
    }
    with open(path, "w", encoding="utf-8") as fh:
        yaml.safe_dump(document, fh, sort_keys=False, allow_unicode=True)


def project_to_dict(project: Project) -> dict[str, Any]:
    return {
        "project": {
            "id": project.id,
            "name": project.name,
            "accountable": project.accountable,
            "start": project.start,
            "end": project.end,
            "work_days": project.work_days,
            "created_at": project.created_at,
        },
        "items": [_item_to_dict(item) for item in project.items],
    }


def project_from_dict(data: Any) -> Project:
    root = _Path()
    if not isinstance(data, dict):
        raise ProjectValidationError(f"{root}: expected mapping at top level")
    _assert_allowed_keys(data, {"project", "items"}, root)
    return _parse_document(data, root)


def _parse_document(data: dict[str, Any], path: _Path) -> Project:
    project_raw = data.get("project")
    if not isinstance(project_raw, dict):
        raise ProjectValidationError(f"{path}: missing required mapping 'project'")
    project_path = path.child("project")
    _assert_allowed_keys(project_raw, _PROJECT_KEYS, project_path)

    items_raw = data.get("items")
    if items_raw is None:
        raise ProjectValidationError(f"{path}: missing required field 'items'")
    if not isinstance(items_raw, list):
        raise ProjectValidationError(f"{path}.items: expected list")

    ids: set[str] = set()
    items: list[WorkItem] = []
    for idx, item_raw in enumerate(items_raw):
        items.append(_parse_item(item_raw, path.child(f"items[{idx}]"), ids))

    return Project(
        id=_require_str(project_raw, "id", project_path),
        name=_require_str(project_raw, "name", project_path),
        accountable=_optional_str(project_raw, "accountable", project_path),
        start=_optional_date(project_raw, "start", project_path),
        end=_optional_date(project_raw, "end", project_path),
        work_days=clamp_work_days(_optional_int(project_raw, "work_days", project_path, default=1)),
        items=items,
        created_at=_optional_int(project_raw, "created_at", project_path, default=0),
    )


def _parse_item(data: Any, path: _Path, ids: set[str]) -> WorkItem:
    if not isinstance(data, dict):
        raise ProjectValidationError(f"{path}: expected mapping for item")
    _assert_allowed_keys(data, _ITEM_KEYS, path)

    item_id = _require_str(data, "id", path)
    if item_id in ids:
        raise ProjectValidationError(f"{path.child('id')}: duplicate id '{item_id}'")
    ids.add(item_id)

    kind = _require_value(data, "kind", path)
    if kind not in ITEM_KINDS:
        raise ProjectValidationError(f"{path.child('kind')}: expected one of {list(ITEM_KINDS)}")

    mode = data.get("mode", "FS")
    if mode not in LINK_MODES:
        raise ProjectValidationError(f"{path.child('mode')}: expected one of {list(LINK_MODES)}")

    task_number = data.get("task_number")
    if task_number is not None and not isinstance(task_number, str):
        raise ProjectValidationError(f"{path.child('task_number')}: expected string or null")

    return WorkItem(
        id=item_id,
        kind=kind,
        phase_number=_optional_int(data, "phase_number", path, default=1),
        task_number=task_number,
        description=_optional_str(data, "description", path),
        accountable=_optional_str(data, "accountable", path),
        work_days=clamp_work_days(_optional_int(data, "work_days", path, default=1)),
        start=_optional_date(data, "start", path),
        end=_optional_date(data, "end", path),
        progress=clamp_progress(data.get("progress", 0)),
        mode=mode,
        color=_optional_str(data, "color", path) if "color" in data else PHASE_COLORS[0],
    )


def _item_to_dict(item: WorkItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "kind": item.kind,
        "phase_number": item.phase_number,
        "task_number": item.task_number,
        "description": item.description,
        "accountable": item.accountable,
        "work_days": item.work_days,
        "start": item.start,
        "end": item.end,
        "progress": item.progress,
        "mode": item.mode,
        "color": item.color,
    }


def _assert_allowed_keys(data: dict[str, Any], allowed: set[str], path: _Path) -> None:
    extras = sorted(set(data.keys()) - allowed)
    if extras:
        raise ProjectValidationError(f"{path}: unexpected fields {extras}")


def _require_str(data: dict[str, Any], key: str, path: _Path) -> str:
    value = _require_value(data, key, path)
    if not isinstance(value, str) or not value.strip():
        raise ProjectValidationError(f"{path.child(key)}: expected non-empty string")
    return value


def _require_value(data: dict[str, Any], key: str, path: _Path) -> Any:
    if key not in data:
        raise ProjectValidationError(f"{path}: missing required field '{key}'")
    return data[key]


def _optional_str(data: dict[str, Any], key: str, path: _Path) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ProjectValidationError(f"{path.child(key)}: expected string")
    return value


def _optional_int(data: dict[str, Any], key: str, path: _Path, default: int) -> int:
    value = data.get(key, default)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        raise ProjectValidationError(f"{path.child(key)}: expected integer")
    return value


def _optional_date(data: dict[str, Any], key: str, path: _Path) -> str:
    """Dates stay strings; unquoted YAML dates come back as date objects and are turned into ISO text."""
    value = data.get(key)
    if value is None:
        return ""
    if isinstance(value, _dt.datetime):
        return value.date().isoformat()
    if isinstance(value, _dt.date):
        return value.isoformat()
    if not isinstance(value, str):
        raise ProjectValidationError(f"{path.child(key)}: expected YYYY-MM-DD string")
    return value
