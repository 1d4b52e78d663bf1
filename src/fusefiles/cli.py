"""
CLI entrypoint for fusefiles.
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from colorama import Fore, Style, just_fix_windows_console

from . import __version__
from .core import (
    FuseError,
    InputSpec,
    OutputFormat,
    RunReport,
    TocMode,
)
from .ignore import compile_patterns, load_extra_patterns
from .processor import build_output, write_output

EXAMPLES = """\
examples:
  fuse src/                                   all files in src/
  fuse src/ test/ -e ts                       only .ts files in src/ and test/
  fuse src/ --toc-files --ignore "__tests__"  files in src/ except __tests__, with a tree
  fuse . --ignore "*.log" --ignore "test_*"   skip logs and files starting with test_
  fuse . -o output.txt                        save to a file instead of printing

pattern usage:
  --ignore "test_*"       matches test_utils.py, test_data.json
  --ignore "*.log"        matches debug.log, error.log
  --ignore "build/"       matches directories named build only
  --ignore "__init__.py"  matches any file or folder named exactly __init__.py"""


def _echo(msg: str, color: str = "", stream: Optional[TextIO] = None) -> None:
    stream = stream or sys.stderr
    text = f"[fuse] {msg}"
    if color and stream.isatty():
        text = color + text + Style.RESET_ALL
    print(text, file=stream)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="fuse",
        description="Turn many files into a single file, useful for LLM prompting.",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("paths", nargs="*", type=Path, metavar="PATHS",
                   help="Files or directories to include (read from stdin when omitted)")

    inp = p.add_argument_group("input control")
    inp.add_argument("-e", "--extension", dest="extensions", action="append", default=[],
                     metavar="EXT", help="Only include these extensions (e.g. -e py -e js)")
    inp.add_argument("--include-hidden", action="store_true",
                     help="Include hidden files (starting with .)")
    inp.add_argument("--ignore-files-only", action="store_true",
                     help="Make --ignore patterns skip files only, not directories")
    inp.add_argument("--ignore-gitignore", action="store_true",
                     help="Don't use .gitignore rules")
    inp.add_argument("--ignore", dest="ignore_patterns", action="append", default=[],
                     metavar="PATTERN", help="Skip files matching pattern (*.log, test_*, __pycache__)")
    inp.add_argument("--config", type=Path,
                     help="Path to a file with extra ignore patterns (one per line)")
    inp.add_argument("--follow-symlinks", action="store_true",
                     help="Descend into symlinked directories and read symlinked files")

    out = p.add_argument_group("output format")
    out.add_argument("-c", "--cxml", action="store_true", help="Output in Claude XML format")
    out.add_argument("-m", "--markdown", action="store_true", help="Output as Markdown code blocks")
    out.add_argument("-n", "--line-numbers", action="store_true", help="Add line numbers")
    out.add_argument("--absolute-paths", action="store_true",
                     help="Show absolute paths instead of paths as given")
    out.add_argument("-o", "--output", type=Path, metavar="FILE",
                     help="Save to file instead of printing")
    out.add_argument("--toc", action="store_true",
                     help="Include a table of contents tree (files and directories)")
    out.add_argument("--toc-dirs-only", action="store_true",
                     help="Table of contents shows directories only")
    out.add_argument("--toc-files", action="store_true",
                     help="Table of contents shows files and every directory, even empty ones")

    other = p.add_argument_group("other")
    other.add_argument("-0", "--null", action="store_true",
                       help="Read null-separated paths from stdin")
    other.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    other.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    return p


def read_paths_from_stdin(null_separator: bool, stream: Optional[TextIO] = None) -> List[str]:
    """Paths piped on stdin; nothing when stdin is an interactive terminal."""
    stream = stream or sys.stdin
    if stream is None or stream.isatty():
        return []
    data = stream.read()
    parts = data.split("\0") if null_separator else data.splitlines()
    return [p.strip() for p in parts if p.strip()]


def _toc_mode(ns: argparse.Namespace) -> Optional[TocMode]:
    if ns.toc_files:
        return TocMode.FILES_AND_DIRS
    if ns.toc_dirs_only:
        return TocMode.DIRS_ONLY
    if ns.toc:
        return TocMode.FULL
    return None


def _output_format(ns: argparse.Namespace) -> OutputFormat:
    if ns.cxml:
        return OutputFormat.XML
    if ns.markdown:
        return OutputFormat.MARKDOWN
    return OutputFormat.DEFAULT


def _fail(msg: str) -> None:
    text = f"Error: {msg}"
    if sys.stderr.isatty():
        text = Fore.RED + text + Style.RESET_ALL
    print(text, file=sys.stderr)
    sys.exit(1)


def main(argv: Optional[List[str]] = None) -> None:
    just_fix_windows_console()
    try:
        args = sys.argv[1:] if argv is None else list(argv)
        parser = _build_parser()
        if not args:
            parser.print_help()
            return
        ns = parser.parse_args(args)

        if ns.toc_dirs_only and ns.toc_files:
            _fail("Cannot specify both --toc-dirs-only and --toc-files")

        paths = list(ns.paths)
        if not paths:
            paths = [Path(p) for p in read_paths_from_stdin(ns.null)]
        if not paths:
            parser.print_usage(sys.stderr)
            sys.exit(1)

        patterns = list(ns.ignore_patterns)
        if ns.config:
            patterns.extend(load_extra_patterns(ns.config))
            if ns.verbose:
                _echo(f"Loaded extra patterns from {ns.config}")
        compile_patterns(patterns)

        spec = InputSpec(
            paths=tuple(paths),
            extensions=tuple(ns.extensions),
            ignore_patterns=tuple(patterns),
            include_hidden=ns.include_hidden,
            ignore_files_only=ns.ignore_files_only,
            ignore_gitignore=ns.ignore_gitignore,
            follow_symlinks=ns.follow_symlinks,
            line_numbers=ns.line_numbers,
            absolute_paths=ns.absolute_paths,
            toc_mode=_toc_mode(ns),
            output_format=_output_format(ns),
        )

        if ns.verbose:
            _echo(f"Scanning {len(paths)} path(s) …")
        report = RunReport()
        text = build_output(spec, report)
        write_output(text, ns.output)

        if ns.verbose:
            for notice in report.notices:
                _echo(f"- {notice}")
            where = ns.output or "stdout"
            _echo(
                f"Done → {where}. {report.files_emitted} files written, "
                f"{report.files_skipped} skipped.",
                Fore.GREEN,
            )
        for warning in report.warnings:
            _echo(f"! {warning}", Fore.YELLOW)

    except FuseError as e:
        _fail(str(e))
    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
