"""Task extraction from markdown events.

SAX style: a flat event stream is folded back into nested list items with
an explicit stack. Two kinds of frame live on the stack:

- ItemFrame: an open list item collecting its marker, annotation and text.
- AnnotationLinkFrame: pushed while inside an ``agmd:`` link. On top of the
  stack it masks the link label so it never reaches the item text.

Only the top frame receives events, so text of a nested item never leaks
into its parent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Union

from agmd.events import Event, ItemEnd, ItemStart, LinkEnd, LinkStart, TaskListMarker, Text, iter_events
from agmd.syntax import ScheduleInterval, format_annotation, parse_annotation

logger = logging.getLogger(__name__)

ANNOTATION_MARKER = "agmd:"


class EventStreamError(RuntimeError):
    """The tokenizer produced an unbalanced or out-of-place event."""


@dataclass(frozen=True)
class TaskRecord:
    checked: bool
    text: str
    annotation: str
    schedule: ScheduleInterval | None

    @property
    def malformed(self) -> bool:
        return self.schedule is None

    def __str__(self) -> str:
        box = "x" if self.checked else " "
        body = self.annotation if self.schedule is None else format_annotation(self.schedule)
        return f"- [{box}] {self.text} <{ANNOTATION_MARKER}{body}>"


@dataclass
class ItemFrame:
    slot: int
    checked: bool | None = None
    annotation: str | None = None
    text: list[str] = field(default_factory=list)


@dataclass
class AnnotationLinkFrame:
    pass


Frame = Union[ItemFrame, AnnotationLinkFrame]


def _describe(frame: Frame | None) -> str:
    if frame is None:
        return "no open item"
    if isinstance(frame, AnnotationLinkFrame):
        return "an annotation link"
    return "an item"


def extract_tasks(events: Iterable[Event]) -> list[TaskRecord]:
    """Collect scheduled task items from a markdown event stream.

    Items are returned in source order, a parent before its children.
    Items without an annotation link, and annotated items without a
    task-list marker, are skipped.

    Raises:
        EventStreamError: if the stream is unbalanced.
    """
    # One slot per item, filled when the item closes; None for skipped items.
    slots: list[TaskRecord | None] = []
    stack: list[Frame] = []

    for event in events:
        top = stack[-1] if stack else None

        if isinstance(event, ItemStart):
            stack.append(ItemFrame(slot=len(slots)))
            slots.append(None)

        elif isinstance(event, ItemEnd):
            if not isinstance(top, ItemFrame):
                raise EventStreamError(f"end of item while inside {_describe(top)}")
            stack.pop()
            if top.annotation is None:
                continue
            if top.checked is None:
                logger.debug("Skipping scheduled list item without a task marker")
                continue
            slots[top.slot] = TaskRecord(
                checked=top.checked,
                text="".join(top.text).strip(),
                annotation=top.annotation,
                schedule=parse_annotation(top.annotation),
            )

        elif isinstance(event, TaskListMarker):
            if not isinstance(top, ItemFrame):
                raise EventStreamError(f"task list marker inside {_describe(top)}")
            top.checked = event.checked

        elif isinstance(event, LinkStart):
            if isinstance(top, ItemFrame) and ANNOTATION_MARKER in event.destination:
                if top.annotation is None:
                    top.annotation = event.destination.split(ANNOTATION_MARKER, 1)[1]
                stack.append(AnnotationLinkFrame())

        elif isinstance(event, LinkEnd):
            if isinstance(top, AnnotationLinkFrame):
                stack.pop()

        elif isinstance(event, Text):
            if isinstance(top, ItemFrame):
                top.text.append(event.content)

    if stack:
        raise EventStreamError(f"event stream ended with {len(stack)} open frame(s)")

    return [record for record in slots if record is not None]


def parse_markdown(text: str) -> list[TaskRecord]:
    """Extract scheduled tasks from a markdown document."""
    return extract_tasks(iter_events(text))
