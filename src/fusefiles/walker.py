"""
Depth-first selection walk over the input roots.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Set

from .core import EntryKind, InputSpec, InvalidRootError, RunReport
from .ignore import IgnoreRuleStore


@dataclass(frozen=True)
class SelectedEntry:
    """A file or directory that survived every active filter.

    ``path`` is the root as the user gave it joined with ``relative``; ``depth``
    is 0 for the root itself.
    """

    path: Path
    relative: str
    kind: EntryKind
    depth: int
    explicit: bool = False

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE


@dataclass
class _Frame:
    path: Path
    relative: str
    depth: int
    entries: Iterator[os.DirEntry]
    real: Optional[Path] = None


def matches_extension(name: str, extensions: Sequence[str]) -> bool:
    if not extensions:
        return True
    suffix = os.path.splitext(name)[1]
    if not suffix:
        return False
    return any(suffix[1:] == (ext[1:] if ext.startswith(".") else ext) for ext in extensions)


def is_hidden(name: str) -> bool:
    return name.startswith(".")


def _list_dir(directory: Path) -> List[os.DirEntry]:
    with os.scandir(directory) as it:
        return sorted(it, key=lambda e: e.name)


def check_roots(paths: Sequence[Path]) -> None:
    for root in paths:
        if not root.exists():
            raise InvalidRootError(f"Path does not exist: {root}")
        if not (root.is_dir() or root.is_file()):
            raise InvalidRootError(f"Not a regular file or directory: {root}")


def walk(spec: InputSpec, report: Optional[RunReport] = None) -> Iterator[SelectedEntry]:
    """Yield selected entries for every root, in the order they are visited.

    All roots are validated before anything is yielded; a missing root raises
    :class:`InvalidRootError`.
    """
    report = report if report is not None else RunReport()
    roots = [Path(p) for p in spec.paths]
    check_roots(roots)
    for root in roots:
        if root.is_dir():
            yield from _walk_directory(root, spec, report)
        elif matches_extension(root.name, spec.extensions):
            # explicit files skip hidden and ignore policy
            yield SelectedEntry(root, root.name, EntryKind.FILE, 0, explicit=True)


def _walk_directory(root: Path, spec: InputSpec, report: RunReport) -> Iterator[SelectedEntry]:
    store = IgnoreRuleStore(
        root,
        use_gitignore=not spec.ignore_gitignore,
        global_patterns=spec.ignore_patterns,
        files_only=spec.ignore_files_only,
        report=report,
    )
    try:
        entries = _list_dir(root)
    except OSError as e:
        raise InvalidRootError(f"Could not read directory '{root}': {e}") from e

    real = root.resolve() if spec.follow_symlinks else None
    active: Set[Path] = {real} if real is not None else set()

    yield SelectedEntry(root, "", EntryKind.DIRECTORY, 0, explicit=True)
    store.push_scope("")
    stack = [_Frame(root, "", 0, iter(entries), real)]

    while stack:
        frame = stack[-1]
        child = next(frame.entries, None)
        if child is None:
            store.pop_scope(frame.relative)
            stack.pop()
            if frame.real is not None:
                active.discard(frame.real)
            continue

        name = child.name
        path = frame.path / name
        rel = f"{frame.relative}/{name}" if frame.relative else name
        depth = frame.depth + 1

        if not spec.include_hidden and is_hidden(name):
            continue

        target: Optional[Path] = None
        if child.is_symlink():
            if not spec.follow_symlinks:
                report.note(f"Skipping symlink {path}")
                continue
            try:
                target = path.resolve(strict=True)
            except (OSError, RuntimeError):
                report.note(f"Skipping broken symlink {path}")
                continue
            is_dir = target.is_dir()
        else:
            is_dir = child.is_dir(follow_symlinks=False)

        if is_dir:
            if store.is_ignored(rel, EntryKind.DIRECTORY):
                continue
            real = None
            if spec.follow_symlinks:
                real = target if target is not None else path.resolve()
                if real in active:
                    report.note(f"Skipping {path}: already being walked as {real}")
                    continue
            try:
                children = _list_dir(path)
            except OSError as e:
                report.warn(f"Could not read directory {path}: {e}")
                continue
            yield SelectedEntry(path, rel, EntryKind.DIRECTORY, depth)
            store.push_scope(rel)
            if real is not None:
                active.add(real)
            stack.append(_Frame(path, rel, depth, iter(children), real))
            continue

        is_file = target.is_file() if target is not None else child.is_file(follow_symlinks=False)
        if not is_file:
            report.note(f"Skipping special file {path}")
            continue
        if store.is_ignored(rel, EntryKind.FILE):
            continue
        if not matches_extension(name, spec.extensions):
            continue
        yield SelectedEntry(path, rel, EntryKind.FILE, depth)
