from phase_planner.project_models import PHASE_COLORS, WorkItem
from phase_planner.reindex import reindex


def _phase(item_id, start="2025-01-01", end="2025-01-01", work_days=1):
    return WorkItem(id=item_id, kind="phase", start=start, end=end, work_days=work_days)


def _task(item_id, start, end, work_days, mode="FS"):
    return WorkItem(id=item_id, kind="task", start=start, end=end, work_days=work_days, mode=mode)


def test_numbers_restart_per_phase():
    items = [
        _phase("p1"),
        _task("a", "2025-01-01", "2025-01-02", 2),
        _task("b", "2025-01-03", "2025-01-03", 1),
        _phase("p2"),
        _task("c", "2025-01-04", "2025-01-04", 1),
    ]

    result = reindex(items)

    assert [item.phase_number for item in result] == [1, 1, 1, 2, 2]
    assert [item.task_number for item in result] == [None, "1.1", "1.2", None, "2.1"]


def test_colours_cycle_through_palette_and_tasks_inherit():
    items = []
    for idx in range(len(PHASE_COLORS) + 1):
        items.append(_phase(f"p{idx}"))
        items.append(_task(f"t{idx}", "2025-01-01", "2025-01-01", 1))

    result = reindex(items)

    phases = [item for item in result if item.is_phase]
    assert [p.color for p in phases[: len(PHASE_COLORS)]] == list(PHASE_COLORS)
    assert phases[-1].color == PHASE_COLORS[0]
    for phase, task in zip(result[::2], result[1::2]):
        assert task.color == phase.color


def test_phase_span_aggregates_children():
    items = [
        _phase("p1", "2030-01-01", "2030-01-01"),
        _task("a", "2025-01-05", "2025-01-07", 3),
        _task("b", "2025-01-02", "2025-01-03", 2),
        _task("c", "2025-01-06", "2025-01-12", 7),
    ]

    phase = reindex(items)[0]

    assert phase.start == "2025-01-02"
    assert phase.end == "2025-01-12"
    assert phase.work_days == 11


def test_childless_phase_keeps_stored_dates():
    items = [_phase("p1", "2025-03-01", "2025-03-04", 4), _phase("p2")]

    result = reindex(items)

    assert (result[0].start, result[0].end, result[0].work_days) == ("2025-03-01", "2025-03-04", 4)


def test_tasks_before_first_phase_fall_back_to_phase_one():
    items = [_task("orphan", "2025-01-01", "2025-01-01", 1), _phase("p1")]

    result = reindex(items)

    assert result[0].phase_number == 1
    assert result[0].task_number == "1.1"
    assert result[0].color == PHASE_COLORS[0]


def test_reindex_is_idempotent_and_pure():
    items = [
        _task("orphan", "2025-01-01", "2025-01-01", 1),
        _phase("p1"),
        _task("a", "2025-02-01", "2025-02-03", 3),
        _phase("p2", "2025-05-01", "2025-05-02", 2),
        _phase("p3"),
        _task("b", "bad-date", "2025-02-10", 1),
        _task("c", "2025-02-04", "2025-02-06", 3),
    ]
    original = [WorkItem(**vars(item)) for item in items]

    once = reindex(items)

    assert reindex(once) == once
    assert items == original
    assert len(once) == len(items)
    assert [item.id for item in once] == [item.id for item in items]
