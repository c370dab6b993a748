"""Markdown structural events.

The extractor only understands a handful of event kinds; everything else
the tokenizer produces is passed through as ``Other`` and ignored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator, Union

from markdown_it import MarkdownIt
from markdown_it.token import Token

TASK_MARKER_RE = re.compile(r"\[([ xX])\]\s+")


@dataclass(frozen=True)
class ItemStart:
    pass


@dataclass(frozen=True)
class ItemEnd:
    pass


@dataclass(frozen=True)
class LinkStart:
    destination: str


@dataclass(frozen=True)
class LinkEnd:
    pass


@dataclass(frozen=True)
class Text:
    content: str


@dataclass(frozen=True)
class TaskListMarker:
    checked: bool


@dataclass(frozen=True)
class Other:
    kind: str
    content: str = ""


Event = Union[ItemStart, ItemEnd, LinkStart, LinkEnd, Text, TaskListMarker, Other]


class _VerbatimLinks(MarkdownIt):
    """Parser that keeps link destinations exactly as written."""

    def normalizeLink(self, url: str) -> str:
        return url


def make_parser() -> MarkdownIt:
    return _VerbatimLinks("commonmark").enable(["table", "strikethrough"])


_PARSER = make_parser()


def _inline_events(children: list[Token], task_candidate: bool) -> Iterator[Event]:
    for index, child in enumerate(children):
        if child.type == "text":
            content = child.content
            if task_candidate and index == 0:
                marker = TASK_MARKER_RE.match(content)
                if marker:
                    yield TaskListMarker(marker.group(1) in "xX")
                    content = content[marker.end():]
            if content:
                yield Text(content)
        elif child.type == "link_open":
            yield LinkStart(str(child.attrGet("href") or ""))
        elif child.type == "link_close":
            yield LinkEnd()
        else:
            yield Other(child.type, child.content)


def events_from_tokens(tokens: Iterable[Token]) -> Iterator[Event]:
    """Translate a markdown-it token stream into extractor events.

    A task-list marker is recognised at the start of the first paragraph
    of a list item, the way GitHub-flavoured markdown does it.
    """
    # 0: none, 1: saw list_item_open, 2: saw its first paragraph_open
    pending = 0
    for token in tokens:
        if token.type == "list_item_open":
            pending = 1
            yield ItemStart()
            continue
        if token.type == "list_item_close":
            pending = 0
            yield ItemEnd()
            continue
        if token.type == "paragraph_open" and pending == 1:
            pending = 2
            yield Other(token.type)
            continue
        if token.type == "inline":
            yield from _inline_events(token.children or [], task_candidate=pending == 2)
        else:
            yield Other(token.type, token.content)
        pending = 0


def iter_events(text: str) -> Iterator[Event]:
    """Tokenize markdown text into extractor events."""
    return events_from_tokens(_PARSER.parse(text))
