#!/usr/bin/env python3
"""
agmd - list scheduled to-dos from markdown task lists.

A task is scheduled by an agmd: link anywhere in its text:

    - [ ] Buy milk [due](agmd:2025-12-01)
    - [ ] Write report [window](agmd:start=2025-11-30;due=2025-12-20)

Usage:
    todos.py [QUERY] [--done] [--root DIR] [--today YYYY-MM-DD] [--json]
    todos.py --all
    todos.py -1..3

QUERY is a day offset from today (0, -1, +3) or a range of offsets
(-1..3, ..3, -1.., ..). Default: today.

Configuration via environment variables:
- AGMD_ROOT: Directory to scan (default: current directory)
- AGMD_IGNORE_FILE: Project ignore file name (default: .agmdignore)
- AGMD_HYPERLINKS: auto, always or never (default: auto)
- AGMD_LOG_LEVEL: Logging level (default: WARNING)
"""

import argparse
import json
import logging
import os
import sys
from datetime import date, datetime
from pathlib import Path

_SCRIPT_DIR = Path(__file__).parent.resolve()
sys.path.insert(0, str(_SCRIPT_DIR))
if str(_SCRIPT_DIR / "lib") not in sys.path:
    sys.path.insert(0, str(_SCRIPT_DIR / "lib"))

from agmd.extractor import TaskRecord
from agmd.query import DEFAULT_QUERY, RANGE_RE, DateQuery, intersects, parse_query
from markdown_files import get_root, load_markdown_files

logger = logging.getLogger(__name__)

AGMD_SCHEMA_VERSION = "v1"
HYPERLINK_MODES = ("auto", "always", "never")


def hyperlink(uri: str, label: str) -> str:
    """Wrap ``label`` in an OSC 8 terminal hyperlink."""
    return f"\x1b]8;;{uri}\x1b\\{label}\x1b]8;;\x1b\\"


def _default_link_mode() -> str:
    mode = os.getenv("AGMD_HYPERLINKS", "auto").strip().lower()
    return mode if mode in HYPERLINK_MODES else "auto"


def _log_level() -> int:
    level = logging.getLevelName(os.getenv("AGMD_LOG_LEVEL", "WARNING").strip().upper())
    return level if isinstance(level, int) else logging.WARNING


def _links_enabled(mode: str) -> bool:
    if mode == "always":
        return True
    if mode == "never":
        return False
    return sys.stdout.isatty()


def select_tasks(
    tasks: list[TaskRecord],
    query: DateQuery,
    today: date,
    show_done: bool = False,
) -> list[TaskRecord]:
    """Keep tasks active within ``query``.

    Tasks whose annotation could not be parsed are always kept so a typo
    never hides a task.
    """
    selected = []
    for task in tasks:
        if task.checked and not show_done:
            continue
        if task.schedule is None or intersects(query, task.schedule, today):
            selected.append(task)
    return selected


def _task_payload(task: TaskRecord) -> dict:
    schedule = task.schedule
    return {
        "checked": task.checked,
        "text": task.text,
        "annotation": task.annotation,
        "start": schedule.start.isoformat() if schedule and schedule.start else None,
        "due": schedule.due.isoformat() if schedule and schedule.due else None,
        "malformed": task.malformed,
    }


def _parse_today(raw: str | None) -> date:
    if not raw:
        return datetime.now().date()
    try:
        return datetime.strptime(raw, "%Y-%m-%d").date()
    except ValueError as exc:
        raise ValueError(f"Invalid --today date {raw!r}. Use YYYY-MM-DD.") from exc


def list_todos(args):
    """Print scheduled tasks matching the query, grouped by file."""
    try:
        query = parse_query(args.query) if args.query is not None else DEFAULT_QUERY
        today = _parse_today(args.today)
    except ValueError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        sys.exit(2)

    entries = load_markdown_files(get_root(args.root))

    groups: list[tuple[Path, list[TaskRecord]]] = []
    for path, tasks in entries.items():
        for task in tasks:
            if task.malformed:
                logger.warning(f"{path}: unrecognised schedule 'agmd:{task.annotation}' on {task.text!r}")
        selected = tasks if args.all else select_tasks(tasks, query, today, args.done)
        if selected:
            groups.append((path, selected))

    if args.json:
        payload = {
            "schema_version": AGMD_SCHEMA_VERSION,
            "command": "all" if args.all else "list",
            "today": today.isoformat(),
            "query": None if args.all else str(query),
            "files": [
                {"path": str(path), "tasks": [_task_payload(t) for t in tasks]}
                for path, tasks in groups
            ],
        }
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    links = _links_enabled(args.links)
    for path, tasks in groups:
        label = str(path)
        if links:
            label = hyperlink(path.absolute().as_uri(), label)
        print(f"==== {label} ====")
        for task in tasks:
            print(task)


def main(argv=None):
    parser = argparse.ArgumentParser(description="List scheduled to-dos from markdown task lists")
    parser.add_argument(
        "query",
        nargs="?",
        help="Day offset or range of offsets from today: 0, -1, +3, -1..3, ..3, -1.., .. (default: 0)",
    )
    parser.add_argument("-a", "--all", action="store_true", help="Show every scheduled task, unfiltered")
    parser.add_argument("-d", "--done", action="store_true", help="Include completed tasks")
    parser.add_argument("--root", help="Directory to scan (default: $AGMD_ROOT or current directory)")
    parser.add_argument("--today", help="Reference date (YYYY-MM-DD), default: today")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    parser.add_argument(
        "--links",
        choices=HYPERLINK_MODES,
        default=_default_link_mode(),
        help="Terminal hyperlinks on file headers",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    # argparse reads "-1..3" as an unknown option, so take it back as the query
    args, extra = parser.parse_known_args(argv)
    if len(extra) == 1 and args.query is None and RANGE_RE.fullmatch(extra[0]):
        args.query = extra[0]
    elif extra:
        parser.error(f"unrecognized arguments: {' '.join(extra)}")

    logging.basicConfig(level=logging.DEBUG if args.verbose else _log_level(), format="%(levelname)s: %(message)s")

    list_todos(args)


if __name__ == "__main__":
    main()
