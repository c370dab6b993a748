#!/usr/bin/env python3
"""
Markdown document discovery for agmd.

Walks a directory tree, selects markdown files and extracts scheduled tasks
from each one. Hidden entries are skipped and gitignore-style ignore files
are honoured in every directory.

Configuration via environment variables:
- AGMD_ROOT: Directory to scan (default: current directory)
- AGMD_IGNORE_FILE: Name of the project ignore file (default: .agmdignore).
  Earlier releases read .utfqignore; set AGMD_IGNORE_FILE=.utfqignore to keep
  using an existing one.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Iterator

import pathspec

_SCRIPT_DIR = Path(__file__).parent.resolve()
if str(_SCRIPT_DIR / "lib") not in sys.path:
    sys.path.insert(0, str(_SCRIPT_DIR / "lib"))

from agmd.extractor import TaskRecord, parse_markdown

logger = logging.getLogger(__name__)

DEFAULT_IGNORE_FILE = ".agmdignore"
STANDARD_IGNORE_FILES = (".gitignore", ".ignore")

# Same suffixes ripgrep's "md" file type selects
MARKDOWN_SUFFIXES = {".md", ".markdown", ".mdown", ".mdwn", ".mkd", ".mkdn", ".mdx"}


def get_root(root: str | Path | None = None) -> Path:
    """Resolve the scan root from the argument, AGMD_ROOT or the cwd."""
    if root:
        return Path(root).expanduser()
    return Path(os.getenv("AGMD_ROOT", ".")).expanduser()


def get_ignore_filename() -> str:
    name = os.getenv("AGMD_IGNORE_FILE", "").strip()
    return name or DEFAULT_IGNORE_FILE


def _load_ignore_spec(directory: Path, filenames: tuple[str, ...]) -> pathspec.PathSpec | None:
    """Read all ignore files present in ``directory`` into one spec."""
    lines: list[str] = []
    for name in filenames:
        ignore_path = directory / name
        if not ignore_path.is_file():
            continue
        try:
            lines.extend(ignore_path.read_text(encoding="utf-8").splitlines())
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read ignore file {ignore_path}: {e}")
    if not lines:
        return None
    return pathspec.GitIgnoreSpec.from_lines(lines)


def _is_ignored(path: Path, is_dir: bool, specs: list[tuple[Path, pathspec.PathSpec]]) -> bool:
    """Ask the ignore files deepest first; the first one with a matching
    pattern (ignore or !negation) decides."""
    for base, spec in sorted(specs, key=lambda item: len(item[0].parts), reverse=True):
        try:
            rel = path.relative_to(base).as_posix()
        except ValueError:
            continue
        if is_dir:
            rel += "/"
        result = spec.check_file(rel)
        if result.include is not None:
            return result.include
    return False


def is_markdown_file(path: Path) -> bool:
    return path.suffix.lower() in MARKDOWN_SUFFIXES


def iter_markdown_files(root: Path, ignore_filename: str | None = None) -> Iterator[Path]:
    """Yield markdown files under ``root`` in sorted, depth-first order."""
    filenames = STANDARD_IGNORE_FILES + (ignore_filename or get_ignore_filename(),)
    specs: dict[Path, pathspec.PathSpec] = {}

    for current, dirnames, files in os.walk(root):
        current_dir = Path(current)
        spec = _load_ignore_spec(current_dir, filenames)
        if spec is not None:
            specs[current_dir] = spec

        # Only ignore files from this directory and its ancestors apply
        active = [(base, s) for base, s in specs.items() if base == current_dir or base in current_dir.parents]

        dirnames[:] = sorted(
            d for d in dirnames
            if not d.startswith(".") and not _is_ignored(current_dir / d, True, active)
        )
        for name in sorted(files):
            path = current_dir / name
            if name.startswith(".") or not is_markdown_file(path):
                continue
            if _is_ignored(path, False, active):
                logger.debug(f"Ignoring {path}")
                continue
            yield path


def load_markdown_files(root: str | Path | None = None) -> dict[Path, list[TaskRecord]]:
    """Extract scheduled tasks from every markdown file under ``root``.

    Unreadable files are skipped with a warning.
    """
    entries: dict[Path, list[TaskRecord]] = {}
    for path in iter_markdown_files(get_root(root)):
        try:
            content = path.read_text(encoding="utf-8")
        except (PermissionError, UnicodeDecodeError, OSError) as e:
            logger.warning(f"Failed to read {path}: {e}")
            continue
        entries[path] = parse_markdown(content)
    return entries
