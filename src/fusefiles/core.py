"""
Shared data model for fusefiles: exceptions, run options and the run report.
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import List, Optional, Tuple, Union


# Exceptions
class FuseError(Exception):
    """Base exception for fusefiles errors."""


class InvalidRootError(FuseError):
    """Raised when an explicit input path is missing or unreadable."""


class ConfigFileError(FuseError):
    """Raised when the extra-patterns config file cannot be used."""


class PatternError(FuseError):
    """Raised when a user-supplied ignore pattern cannot be compiled."""


class OutputError(FuseError):
    """Raised when the output sink cannot be created or written."""


class FileReadError(FuseError):
    """Raised when an explicitly named file cannot be read."""


class EntryKind(enum.Enum):
    FILE = "file"
    DIRECTORY = "directory"


class TocMode(enum.Enum):
    """Which nodes the table-of-contents tree shows."""

    FULL = "full"
    DIRS_ONLY = "dirs-only"
    FILES_AND_DIRS = "files-and-dirs"


class OutputFormat(enum.Enum):
    DEFAULT = "default"
    MARKDOWN = "markdown"
    XML = "xml"


@dataclass(frozen=True)
class InputSpec:
    """Everything one run needs to know; never mutated once built.

    ``paths`` keeps the order the user gave. ``extensions`` is an allow-list
    (leading dots optional, empty means every extension passes) and
    ``ignore_patterns`` are gitignore-style globs applied relative to each
    directory root.
    """

    paths: Tuple[Path, ...]
    extensions: Tuple[str, ...] = ()
    ignore_patterns: Tuple[str, ...] = ()
    include_hidden: bool = False
    ignore_files_only: bool = False
    ignore_gitignore: bool = False
    follow_symlinks: bool = False
    line_numbers: bool = False
    absolute_paths: bool = False
    toc_mode: Optional[TocMode] = None
    output_format: OutputFormat = OutputFormat.DEFAULT


def printable(path: Union[str, PurePath]) -> str:
    """Path text safe to write as UTF-8; undecodable name bytes become U+FFFD."""
    return os.fsencode(path).decode("utf-8", "replace")


@dataclass
class RunReport:
    """Recoverable problems and informational events collected during a run."""

    warnings: List[str] = field(default_factory=list)
    notices: List[str] = field(default_factory=list)
    files_emitted: int = 0
    files_skipped: int = 0

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def note(self, message: str) -> None:
        self.notices.append(message)
