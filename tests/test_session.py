import datetime as dt

from phase_planner.backups import MAX_BACKUPS, add_backup, make_backup
from phase_planner.project_models import Project, WorkItem
from phase_planner.reindex import reindex
from phase_planner.session import Session


def _project(project_id="proj-1"):
    items = reindex(
        [
            WorkItem(id="P1", kind="phase", start="2025-01-01", end="2025-01-01"),
            WorkItem(id="A", kind="task", start="2025-01-01", end="2025-01-03", work_days=3),
            WorkItem(id="B", kind="task", start="2025-01-04", end="2025-01-04", work_days=1),
        ]
    )
    return Project(id=project_id, name="Launch", items=items)


def test_session_starts_with_single_snapshot():
    session = Session(_project())

    assert len(session.history) == 1
    assert not session.can_undo
    assert not session.can_redo


def test_session_without_project_ignores_edits():
    session = Session()

    assert session.history.cursor == -1
    assert session.apply_edit("A", {"work_days": 2}) == []
    assert session.undo() is False


def test_edits_are_recorded_and_undoable():
    session = Session(_project())

    session.apply_edit("A", {"work_days": 5})
    assert session.items[2].start == "2025-01-06"

    session.append_phase(description="QA")
    assert len(session.items) == 4

    assert session.undo() is True
    assert len(session.items) == 3
    assert session.undo() is True
    assert session.items[2].start == "2025-01-04"
    assert session.undo() is False

    assert session.redo() is True
    assert session.redo() is True
    assert [item.description for item in session.items][-1] == "QA"
    assert session.redo() is False


def test_undo_does_not_record():
    session = Session(_project())
    session.apply_edit("A", {"progress": 50})
    session.apply_edit("A", {"progress": 75})

    session.undo()

    assert len(session.history) == 3
    assert session.history.cursor == 1
    assert session.items[1].progress == 50


def test_noop_edits_are_not_recorded():
    session = Session(_project())

    session.apply_edit("missing", {"work_days": 4})
    session.delete_item("missing")
    session.move_item(1, 1)
    session.insert_task_after(50)

    assert len(session.history) == 1


def test_ten_step_undo_depth():
    session = Session(_project())
    for value in range(1, 16):
        session.apply_edit("A", {"progress": value})

    steps = 0
    while session.undo():
        steps += 1

    assert steps == 10
    assert session.items[1].progress == 5


def test_mutating_live_items_does_not_change_history():
    session = Session(_project())
    session.apply_edit("A", {"description": "Plan"})

    session.items[1].description = "tampered"
    session.undo()
    session.redo()

    assert session.items[1].description == "Plan"


def test_switch_project_resets_history():
    session = Session(_project())
    session.apply_edit("A", {"work_days": 2})

    other = _project("proj-2")
    session.switch_project(other)

    assert session.project is other
    assert len(session.history) == 1
    assert not session.can_undo


def test_restore_backup_replaces_items_and_resets_history():
    project = _project()
    backup = make_backup(project, now=dt.datetime(2025, 1, 1, 12, 0, tzinfo=dt.timezone.utc))
    session = Session(project)
    session.delete_item("A")
    session.delete_item("B")

    restored = session.restore_backup(backup)

    assert [item.id for item in restored.items] == ["P1", "A", "B"]
    assert len(session.history) == 1
    assert session.undo() is False
    restored.items[1].description = "changed"
    assert backup.project.items[1].description == ""


def test_backups_keep_newest_ten():
    project = _project()
    backups = []
    for hour in range(12):
        stamp = dt.datetime(2025, 1, 1, hour, tzinfo=dt.timezone.utc)
        backups = add_backup(backups, make_backup(project, now=stamp))

    assert len(backups) == MAX_BACKUPS
    assert backups[0].timestamp == "2025-01-01T11:00:00+00:00"
    assert backups[-1].timestamp == "2025-01-01T02:00:00+00:00"


def test_activation_reindexes_unnumbered_items():
    items = [
        WorkItem(id="P1", kind="phase", start="2025-01-01", end="2025-01-01"),
        WorkItem(id="A", kind="task", start="2025-01-01", end="2025-01-02", work_days=2),
        WorkItem(id="P2", kind="phase", start="2025-01-03", end="2025-01-03"),
        WorkItem(id="B", kind="task", start="2025-01-03", end="2025-01-03"),
    ]
    session = Session(Project(id="p", name="Raw", items=items))

    assert [item.phase_number for item in session.items] == [1, 1, 2, 2]

    session.delete_item("P2")

    assert [item.id for item in session.items] == ["P1", "A"]


def test_empty_edit_is_not_recorded():
    session = Session(_project())

    session.apply_edit("A", {})
    session.apply_edit("A", {"description": None})

    assert len(session.history) == 1
