from __future__ import annotations

import argparse
import logging
import sys
import webbrowser
from pathlib import Path
from typing import Any

import yaml

from .backups import add_backup, make_backup
from .dates import format_date
from .parse_project import ProjectValidationError, dump_backups, dump_project, load_backups, load_project
from .project_models import ITEM_KINDS, LINK_MODES, Project
from .render_gantt import render_gantt
from .session import Session

log = logging.getLogger(__name__)


def _parse_date(value: str):
    import datetime as dt

    try:
        return dt.date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD") from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="phase-planner",
        description="Phase/task planner with dependency-driven dates",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("project", help="Path to project YAML")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("show", help="Print the item table")

    edit = sub.add_parser("edit", help="Edit one item and cascade dates")
    edit.add_argument("item_id")
    edit.add_argument("--description")
    edit.add_argument("--accountable")
    edit.add_argument("--work-days", dest="work_days", type=int)
    edit.add_argument("--start", type=_parse_date)
    edit.add_argument("--end", type=_parse_date)
    edit.add_argument("--progress", type=float)
    edit.add_argument("--mode", choices=LINK_MODES)
    edit.add_argument("--kind", choices=ITEM_KINDS)

    insert = sub.add_parser("insert-task", help="Insert a task after the row at INDEX")
    insert.add_argument("index", type=int)
    insert.add_argument("--description", default="New Task")

    phase = sub.add_parser("add-phase", help="Append a phase")
    phase.add_argument("--description", default="New Phase")

    delete = sub.add_parser("delete", help="Delete a task, or a phase with its tasks")
    delete.add_argument("item_id")

    move = sub.add_parser("move", help="Move the row at FROM to TO")
    move.add_argument("from_index", type=int)
    move.add_argument("to_index", type=int)

    replay = sub.add_parser("replay", help="Apply a YAML script of operations (undo/redo allowed)")
    replay.add_argument("script")

    render = sub.add_parser("render", help="Render an SVG timeline")
    render.add_argument("--out", default="output/timeline.svg", help="Output SVG path")
    render.add_argument("--min-date", type=_parse_date, help="Override inferred window start (YYYY-MM-DD)")
    render.add_argument("--max-date", type=_parse_date, help="Override inferred window end (YYYY-MM-DD)")
    render.add_argument(
        "--view",
        dest="view",
        action="store_true",
        default=True,
        help="Best-effort open the output file after rendering",
    )
    render.add_argument(
        "--no-view",
        dest="view",
        action="store_false",
        help="Do not open the output file after rendering",
    )

    sub.add_parser("backup", help="Store a backup of the project next to it")

    restore = sub.add_parser("restore", help="Restore a stored backup (0 is the newest)")
    restore.add_argument("--index", type=int, default=0)
    return parser


def backups_path(project_path: Path) -> Path:
    return project_path.with_name(f"{project_path.stem}.backups.yaml")


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    project_path = Path(args.project)

    try:
        project = load_project(project_path)
    except (yaml.YAMLError, ProjectValidationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except FileNotFoundError:
        print(f"Error: project file not found: {project_path}", file=sys.stderr)
        return 1
    except Exception as exc:  # Unexpected
        print(f"Unexpected error while loading project: {exc}", file=sys.stderr)
        return 1

    try:
        return _run_command(args, project, project_path)
    except (yaml.YAMLError, ProjectValidationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except Exception as exc:
        log.exception("Command %s failed", args.command)
        print(f"Unexpected error while running {args.command}: {exc}", file=sys.stderr)
        return 1


def _run_command(args: argparse.Namespace, project: Project, project_path: Path) -> int:
    if args.command == "show":
        print(format_table(project))
        return 0

    if args.command == "render":
        render_gantt(
            project.items,
            out_path=args.out,
            title=project.name,
            min_date=args.min_date,
            max_date=args.max_date,
        )
        if args.view:
            try:
                webbrowser.open(Path(args.out).resolve().as_uri())
            except Exception:
                pass
        return 0

    if args.command == "backup":
        path = backups_path(project_path)
        dump_backups(add_backup(load_backups(path), make_backup(project)), path)
        return 0

    session = Session(project)

    if args.command == "restore":
        backups = load_backups(backups_path(project_path))
        if not 0 <= args.index < len(backups):
            print(f"Error: no backup at index {args.index} ({len(backups)} stored)", file=sys.stderr)
            return 2
        session.restore_backup(backups[args.index])
    elif args.command == "edit":
        updates = _edit_updates(args)
        if not updates:
            print("Error: nothing to edit", file=sys.stderr)
            return 2
        if not _apply(session, "edit", {"id": args.item_id, **updates}):
            return 2
    elif args.command == "insert-task":
        if not _apply(session, "insert_task", {"index": args.index, "description": args.description}):
            return 2
    elif args.command == "add-phase":
        _apply(session, "add_phase", {"description": args.description})
    elif args.command == "delete":
        if not _apply(session, "delete", {"id": args.item_id}):
            return 2
    elif args.command == "move":
        if not _apply(session, "move", {"from": args.from_index, "to": args.to_index}):
            return 2
    elif args.command == "replay":
        with open(args.script, "r", encoding="utf-8") as fh:
            script = yaml.safe_load(fh) or []
        if not isinstance(script, list):
            raise ProjectValidationError(f"{args.script}: expected a list of operations")
        for step_no, step in enumerate(script):
            if not isinstance(step, dict) or "op" not in step:
                raise ProjectValidationError(f"{args.script}[{step_no}]: expected mapping with 'op'")
            params = {key: value for key, value in step.items() if key != "op"}
            if not _apply(session, step["op"], params):
                log.warning("Step %s (%s) changed nothing", step_no, step["op"])

    dump_project(session.project or project, project_path)
    return 0


def _apply(session: Session, op: str, params: dict[str, Any]) -> bool:
    """Run one named operation; return False when it left the sequence untouched."""
    if op == "undo":
        return session.undo()
    if op == "redo":
        return session.redo()

    before = session.items
    if op == "edit":
        updates = {key: value for key, value in params.items() if key != "id"}
        after = session.apply_edit(str(params.get("id")), updates)
    elif op == "insert_task":
        seed = {key: params[key] for key in ("description", "start", "work_days") if key in params}
        after = session.insert_task_after(int(params.get("index", -1)), **seed)
    elif op == "add_phase":
        seed = {key: params[key] for key in ("description", "start") if key in params}
        after = session.append_phase(**seed)
    elif op == "delete":
        after = session.delete_item(str(params.get("id")))
    elif op == "move":
        after = session.move_item(int(params.get("from", -1)), int(params.get("to", -1)))
    else:
        raise ProjectValidationError(f"unknown operation '{op}'")

    if after is before:
        print(f"Warning: {op} had no effect", file=sys.stderr)
        return False
    return True


def _edit_updates(args: argparse.Namespace) -> dict[str, Any]:
    updates: dict[str, Any] = {}
    for key in ("description", "accountable", "work_days", "progress", "mode", "kind"):
        value = getattr(args, key)
        if value is not None:
            updates[key] = value
    for key in ("start", "end"):
        value = getattr(args, key)
        if value is not None:
            updates[key] = value.isoformat()
    return updates


def format_table(project: Project) -> str:
    header = f"{'#':<6} {'Description':<28} {'Who':<14} {'Days':>5} {'Start':<10} {'End':<10} {'Done':>5} {'Link':<4} Id"
    lines = [project.name, header, "-" * len(header)]
    for item in project.items:
        number = str(item.phase_number) if item.is_phase else f"  {item.task_number}"
        lines.append(
            f"{number:<6} {item.description[:28]:<28} {item.accountable[:14]:<14} {item.work_days:>5} "
            f"{format_date(item.start):<10} {format_date(item.end):<10} {item.progress:>4}% {item.mode:<4} {item.id}"
        )
    return "\n".join(lines)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
