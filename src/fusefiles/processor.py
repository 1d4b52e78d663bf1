"""
Run orchestration: walk, optional tree, file bodies, formatter, sink.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional, TextIO

from .core import InputSpec, OutputError, RunReport
from .emitter import emit_files
from .formats import get_formatter
from .tree import render_tree
from .walker import walk


def build_output(spec: InputSpec, report: Optional[RunReport] = None) -> str:
    """Produce the whole document for ``spec``.

    Fatal problems raise before any text is produced; recoverable ones end up
    on ``report``.
    """
    report = report if report is not None else RunReport()
    entries = list(walk(spec, report))
    formatter = get_formatter(spec.output_format)

    pieces: List[str] = []
    start = formatter.start()
    if start:
        pieces.append(start)

    if spec.toc_mode is not None:
        toc = render_tree(entries, spec.toc_mode)
        if toc:
            pieces.append(formatter.table_of_contents(toc))
            pieces.append("")

    for unit in emit_files(entries, spec, report):
        rendered = formatter.render(unit)
        if rendered:
            pieces.append(rendered)

    end = formatter.end()
    if end:
        pieces.append(end)
    return "\n".join(pieces)


def write_output(text: str, out_path: Optional[Path] = None, stream: Optional[TextIO] = None) -> None:
    """Write ``text`` to ``out_path``, or to ``stream`` (stdout) when no path is given."""
    if text and not text.endswith("\n"):
        text += "\n"

    if out_path is None:
        (stream or sys.stdout).write(text)
        return

    try:
        out_path = out_path.resolve()
    except (OSError, RuntimeError) as e:
        raise OutputError(f"Could not resolve output path '{out_path}': {e}")

    if not out_path.parent.exists():
        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputError(f"Could not create directory '{out_path.parent}': {e}")

    try:
        with out_path.open("w", encoding="utf-8", newline="\n") as out_fh:
            out_fh.write(text)
    except OSError as e:
        raise OutputError(f"Could not write output file '{out_path}': {e}")
