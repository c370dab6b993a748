"""Scheduling annotation grammar.

The annotation is whatever follows ``agmd:`` in a link destination:

- agmd:2025-11-30
- agmd:start=2025-11-30;due=2025-12-20
- agmd:due=2025-12-30
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

# A date not written as the value of a key= component
BARE_DATE_RE = re.compile(r"(?<!=)(\d{4})-(\d{2})-(\d{2})")
COMPONENT_RE = re.compile(r"(\w+)=(\d{4})-(\d{2})-(\d{2})")


@dataclass(frozen=True)
class ScheduleInterval:
    """Inclusive window a task is active in.

    ``start`` and ``due`` are independent; ``start > due`` is an empty
    window, not an error.
    """

    start: date | None = None
    due: date | None = None

    @property
    def is_open(self) -> bool:
        return self.start is None and self.due is None

    @property
    def is_empty(self) -> bool:
        return self.start is not None and self.due is not None and self.start > self.due


def _make_date(year: str, month: str, day: str) -> date | None:
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def parse_annotation(raw: str) -> ScheduleInterval | None:
    """Parse an annotation body into a ScheduleInterval.

    Returns None when the body is malformed. Key=value parsing is
    all-or-nothing: one bad component discards the whole annotation.
    """
    bare = BARE_DATE_RE.search(raw)
    if bare:
        day = _make_date(*bare.groups())
        if day is None:
            return None
        return ScheduleInterval(start=day, due=day)

    start = None
    due = None
    for component in raw.split(";"):
        component = component.strip()
        if not component:
            continue
        match = COMPONENT_RE.fullmatch(component)
        if not match:
            return None
        key = match.group(1)
        value = _make_date(*match.group(2, 3, 4))
        if value is None:
            return None
        if key == "start":
            start = value
        elif key == "due":
            due = value

    return ScheduleInterval(start=start, due=due)


def format_annotation(interval: ScheduleInterval) -> str:
    """Render an interval as the canonical annotation body."""
    start, due = interval.start, interval.due
    if start is not None and start == due:
        return start.isoformat()
    parts = []
    if start is not None:
        parts.append(f"start={start.isoformat()}")
    if due is not None:
        parts.append(f"due={due.isoformat()}")
    return ";".join(parts)
