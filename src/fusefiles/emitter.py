"""
Reads selected files and hands their text to the output formatter.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from .core import FileReadError, InputSpec, RunReport, printable
from .walker import SelectedEntry

BINARY_SAMPLE_SIZE = 1024


@dataclass(frozen=True)
class EmittedFile:
    """One file unit for the formatter; ``content`` is None when skipped."""

    path: str
    content: Optional[str]
    numbered: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.content is None

    @property
    def text(self) -> str:
        if self.numbered is not None:
            return self.numbered
        return self.content or ""


def is_binary(data: bytes) -> bool:
    """NUL bytes, or more than 10% control bytes in the leading sample."""
    sample = data[:BINARY_SAMPLE_SIZE]
    if not sample:
        return False
    if b"\0" in sample:
        return True
    suspicious = sum(1 for b in sample if 0x01 <= b <= 0x08 or b == 0x0B or 0x0E <= b <= 0x1F)
    return suspicious * 100 // len(sample) > 10


def add_line_numbers(content: str) -> str:
    lines = content.splitlines()
    width = len(str(len(lines)))
    return "\n".join(f"{i:>{width}}  {line}" for i, line in enumerate(lines, 1))


def display_path(entry: SelectedEntry, absolute: bool) -> str:
    return printable(entry.path.absolute() if absolute else entry.path)


def emit_files(
    entries: Iterable[SelectedEntry],
    spec: InputSpec,
    report: Optional[RunReport] = None,
) -> Iterator[EmittedFile]:
    report = report if report is not None else RunReport()
    for entry in entries:
        if not entry.is_file:
            continue
        shown = display_path(entry, spec.absolute_paths)
        try:
            with entry.path.open("rb") as fh:
                raw = fh.read()
        except OSError as e:
            if entry.explicit:
                raise FileReadError(f"Could not read {entry.path}: {e}") from e
            report.warn(f"Could not read {entry.path}: {e}")
            report.files_skipped += 1
            yield EmittedFile(shown, None)
            continue

        text: Optional[str] = None
        if not is_binary(raw):
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError:
                text = None
        if text is None:
            report.warn(f"Skipping binary file {entry.path}")
            report.files_skipped += 1
            yield EmittedFile(shown, None)
            continue

        report.files_emitted += 1
        numbered = add_line_numbers(text) if spec.line_numbers else None
        yield EmittedFile(shown, text, numbered)
