import pytest
import yaml

from phase_planner.parse_project import (
    ProjectValidationError,
    dump_backups,
    dump_project,
    load_backups,
    load_project,
    project_from_dict,
)
from phase_planner.project_models import Backup, Project, WorkItem


def _project():
    return Project(
        id="proj-1",
        name="Launch",
        accountable="Sam",
        start="2025-01-01",
        end="2025-01-10",
        work_days=10,
        created_at=1735689600000,
        items=[
            WorkItem(id="P1", kind="phase", phase_number=1, task_number=None, description="Build", start="2025-01-01", end="2025-01-03", work_days=3, color="#3498db"),
            WorkItem(id="T1", kind="task", phase_number=1, task_number="1.1", description="Code", accountable="Ana", start="2025-01-01", end="2025-01-03", work_days=3, progress=40, mode="SF", color="#3498db"),
            WorkItem(id="T2", kind="task", phase_number=1, task_number="1.10", start="not-a-date", end="", work_days=1, mode="FF", color=""),
        ],
    )


def test_project_round_trips_losslessly(tmp_path):
    path = tmp_path / "plan.yaml"
    project = _project()

    dump_project(project, path)

    assert load_project(path) == project


def test_unquoted_yaml_dates_become_iso_strings():
    raw = yaml.safe_load(
        """
project: {id: p, name: Demo, start: 2025-01-01}
items:
  - {id: a, kind: task, start: 2025-02-03, end: 2025-02-04, work_days: 2}
"""
    )

    project = project_from_dict(raw)

    assert project.start == "2025-01-01"
    assert project.items[0].start == "2025-02-03"
    assert project.items[0].mode == "FS"


def test_numeric_fields_are_clamped_on_load():
    project = project_from_dict(
        {
            "project": {"id": "p", "name": "Demo"},
            "items": [{"id": "a", "kind": "task", "work_days": 0, "progress": 250}],
        }
    )

    assert project.items[0].work_days == 1
    assert project.items[0].progress == 100


@pytest.mark.parametrize(
    "items, message",
    [
        ([{"id": "a", "kind": "milestone"}], "items[0].kind"),
        ([{"id": "a", "kind": "task", "mode": "XX"}], "items[0].mode"),
        ([{"id": "a", "kind": "task", "work_days": "three"}], "items[0].work_days"),
        ([{"id": "a", "kind": "task"}, {"id": "a", "kind": "task"}], "duplicate id"),
        ([{"id": "a", "kind": "task", "colour": "red"}], "unexpected fields"),
        ("nope", "expected list"),
    ],
)
def test_invalid_items_raise_validation_error(items, message):
    with pytest.raises(ProjectValidationError, match=message.replace("[", r"\[").replace("]", r"\]")):
        project_from_dict({"project": {"id": "p", "name": "Demo"}, "items": items})


def test_missing_sections_raise_validation_error():
    with pytest.raises(ProjectValidationError):
        project_from_dict(["not", "a", "mapping"])
    with pytest.raises(ProjectValidationError):
        project_from_dict({"items": []})
    with pytest.raises(ProjectValidationError):
        project_from_dict({"project": {"id": "p", "name": "Demo"}})


def test_backups_round_trip(tmp_path):
    path = tmp_path / "plan.backups.yaml"
    backups = [Backup(timestamp="2025-01-01T10:00:00+00:00", project=_project())]

    dump_backups(backups, path)

    assert load_backups(path) == backups
    assert load_backups(tmp_path / "missing.yaml") == []
