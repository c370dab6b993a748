"""Relative date queries and the schedule intersection test."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Union

from agmd.syntax import ScheduleInterval

OFFSET_RE = re.compile(r"[+-]?[0-9]+")
RANGE_RE = re.compile(r"(?P<start>[+-]?[0-9]+)?\.\.(?P<end>[+-]?[0-9]+)?")


class QueryError(ValueError):
    """Raised when a query string matches neither accepted shape."""


@dataclass(frozen=True)
class SingleDay:
    """A single day, ``offset`` days from today."""

    offset: int = 0

    def __str__(self) -> str:
        return _format_offset(self.offset)


@dataclass(frozen=True)
class DayRange:
    """Inclusive range of day offsets; either side may be open."""

    start: int | None = None
    end: int | None = None

    def __str__(self) -> str:
        left = "" if self.start is None else _format_offset(self.start)
        right = "" if self.end is None else _format_offset(self.end)
        return f"{left}..{right}"


DateQuery = Union[SingleDay, DayRange]

DEFAULT_QUERY = SingleDay(0)


def _format_offset(offset: int) -> str:
    return f"+{offset}" if offset > 0 else str(offset)


def parse_query(raw: str) -> DateQuery:
    """Parse ``0``, ``-1``, ``+3``, ``-1..3``, ``..3``, ``-1..`` or ``..``.

    The whole string must match; there is no prefix matching.
    """
    if OFFSET_RE.fullmatch(raw):
        return SingleDay(int(raw))

    match = RANGE_RE.fullmatch(raw)
    if match:
        start = match.group("start")
        end = match.group("end")
        return DayRange(
            start=int(start) if start is not None else None,
            end=int(end) if end is not None else None,
        )

    raise QueryError(
        f"Invalid date query {raw!r}. "
        "Use a day offset (0, -1, +3) or a range (-1..3, ..3, -1.., ..)."
    )


def resolve_offset(today: date, offset: int) -> date:
    """Return ``today + offset`` days, clamped to the supported date range."""
    try:
        return today + timedelta(days=offset)
    except OverflowError:
        return date.max if offset > 0 else date.min


def intersects(query: DateQuery, schedule: ScheduleInterval, today: date) -> bool:
    """Return True if the query window overlaps the schedule window.

    Absent bounds are unconstrained on their side. A schedule whose start
    falls after its due date is empty and overlaps nothing.
    """
    if schedule.is_empty:
        return False

    if isinstance(query, SingleDay):
        lower = upper = resolve_offset(today, query.offset)
    else:
        lower = None if query.start is None else resolve_offset(today, query.start)
        upper = None if query.end is None else resolve_offset(today, query.end)

    if schedule.is_open or (lower is None and upper is None):
        return True
    if upper is not None and schedule.start is not None and upper < schedule.start:
        return False
    if lower is not None and schedule.due is not None and schedule.due < lower:
        return False
    return True
