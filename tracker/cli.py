#!/usr/bin/env python3
"""
Project tracker: command-line front end

Usage:
    project-tracker projects                          # list projects
    project-tracker new "Trip" --due 2026-12-01       # create a project
    project-tracker add Trip "Book flights"           # add to To Do
    project-tracker add Trip "Pack" --lane in-progress
    project-tracker move Trip done "Book flights" --index 0
    project-tracker remove Trip "Pack"
    project-tracker show Trip
    project-tracker delete Trip

Projects are referenced by id, exact name, or a unique id prefix.
"""

import sys
import logging
import argparse
from datetime import date
from pathlib import Path
from typing import List, Optional

from .config import Config, ConfigError
from .gateway import KeyValueGateway, GatewayError
from .schema import Lane, Project, due_summary
from .store import ProjectStore

logger = logging.getLogger(__name__)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date {value!r} (expected YYYY-MM-DD)")


def _parse_lane(value: str) -> Lane:
    try:
        return Lane.from_str(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def resolve_project(store: ProjectStore, ref: str) -> Optional[Project]:
    """Find a project by id, exact name, or unique id prefix."""
    project = store.get(ref)
    if project:
        return project
    for p in store.projects:
        if p.name == ref:
            return p
    matches = [p for p in store.projects if p.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0]
    return None


def _require_name(value: str, what: str) -> Optional[str]:
    name = value.strip()
    if not name:
        print(f"A {what} name is required.", file=sys.stderr)
        return None
    return name


# ── Commands ───────────────────────────────────────────────────────────────

def cmd_projects(store: ProjectStore, args, cfg: Config) -> int:
    projects = store.projects
    if not projects:
        print("No projects yet.")
        return 0
    for p in projects:
        print(f"{p.id[:8]}  {p.name}  [{p.status.value}]  {due_summary(p.due_date)}")
    return 0


def cmd_new(store: ProjectStore, args, cfg: Config) -> int:
    name = _require_name(args.name, "project")
    if name is None:
        return 1
    project = store.create_project(name, args.due)
    print(f"Created project {project.name} ({project.id})")
    return 0


def cmd_delete(store: ProjectStore, args, cfg: Config) -> int:
    project = resolve_project(store, args.project)
    if project is None:
        print(f"Project {args.project!r} not found.")
        return 0
    store.delete_project(project.id)
    print(f"Deleted project {project.name}")
    return 0


def cmd_show(store: ProjectStore, args, cfg: Config) -> int:
    project = _find(store, args.project)
    if project is None:
        return 1
    board = store.open_board(project.id)
    print(f"{project.name}  [{board.status.value}]")
    if project.due_date:
        print(f"Due {project.due_date.strftime(cfg.date_format)}: {due_summary(project.due_date)}")
    else:
        print(due_summary(None))
    for lane in Lane:
        tasks = board.lane(lane)
        print(f"\n{lane.title} ({len(tasks)})")
        if not tasks:
            print("  (empty)")
        for task in tasks:
            print(f"  - {task}")
    return 0


def cmd_add(store: ProjectStore, args, cfg: Config) -> int:
    project = _find(store, args.project)
    if project is None:
        return 1
    name = _require_name(args.task, "task")
    if name is None:
        return 1
    board = store.open_board(project.id)
    stored = board.add_task(name, args.lane)
    print(f'Added "{stored}" to {args.lane.title}')
    return 0 if board.persisted else 2


def cmd_move(store: ProjectStore, args, cfg: Config) -> int:
    project = _find(store, args.project)
    if project is None:
        return 1
    board = store.open_board(project.id)
    board.move_tasks(args.tasks, args.lane, args.index)
    print(f"Moved {len(args.tasks)} task(s) to {args.lane.title} [{board.status.value}]")
    return 0 if board.persisted else 2


def cmd_remove(store: ProjectStore, args, cfg: Config) -> int:
    project = _find(store, args.project)
    if project is None:
        return 1
    board = store.open_board(project.id)
    if board.remove_task(args.task):
        print(f'Removed "{args.task}"')
    else:
        print(f'Task "{args.task}" not found.')
    return 0 if board.persisted else 2


def _find(store: ProjectStore, ref: str) -> Optional[Project]:
    project = resolve_project(store, ref)
    if project is None:
        print(f"Project {ref!r} not found.", file=sys.stderr)
    return project


# ── Entry point ────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="project-tracker",
        description="Personal project tracker: Kanban boards with To Do / In Progress / Done",
    )
    ap.add_argument("--db", default=None, help="Path to the SQLite database")
    ap.add_argument("--config", default=None, help="Path to config.yaml")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("projects", help="List projects")
    p.set_defaults(func=cmd_projects)

    p = sub.add_parser("new", help="Create a project")
    p.add_argument("name")
    p.add_argument("--due", type=_parse_date, default=None, help="Due date (YYYY-MM-DD)")
    p.set_defaults(func=cmd_new)

    p = sub.add_parser("delete", help="Delete a project")
    p.add_argument("project")
    p.set_defaults(func=cmd_delete)

    p = sub.add_parser("show", help="Show a project board")
    p.add_argument("project")
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("add", help="Add a task to a lane")
    p.add_argument("project")
    p.add_argument("task")
    p.add_argument("--lane", type=_parse_lane, default=Lane.TODO,
                   help="todo | in-progress | done (default: todo)")
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("move", help="Move tasks to a lane")
    p.add_argument("project")
    p.add_argument("lane", type=_parse_lane)
    p.add_argument("tasks", nargs="+")
    p.add_argument("--index", type=int, default=None,
                   help="Insert position in the target lane (default: end)")
    p.set_defaults(func=cmd_move)

    p = sub.add_parser("remove", help="Remove a task")
    p.add_argument("project")
    p.add_argument("task")
    p.set_defaults(func=cmd_remove)

    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = Config.load(args.config)
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1
    if args.db:
        cfg.db_path = str(Path(args.db).expanduser())

    logging.basicConfig(
        level=getattr(logging, str(cfg.log_level).upper(), logging.INFO),
        format="%(asctime)s [tracker] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    try:
        store = ProjectStore(KeyValueGateway(cfg.db_path))
    except GatewayError as e:
        logger.error(f"Cannot open store: {e}")
        return 1
    return args.func(store, args, cfg)


if __name__ == "__main__":
    sys.exit(main())
