"""
Output formatters: plain separators, Markdown fences and XML documents.
"""

from __future__ import annotations

from pathlib import PurePath
from typing import Dict, Type

from .core import OutputFormat
from .emitter import EmittedFile

_LANG_MAP: Dict[str, str] = {
    ".py": "python",
    ".c": "c",
    ".cpp": "cpp",
    ".java": "java",
    ".js": "javascript",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".jsx": "jsx",
    ".json": "json",
    ".xml": "xml",
    ".yml": "yaml",
    ".yaml": "yaml",
    ".toml": "toml",
    ".css": "css",
    ".scss": "scss",
    ".html": "html",
    ".md": "markdown",
    ".sh": "bash",
    ".rb": "ruby",
    ".go": "go",
}


def _lang_from_ext(path: str) -> str:
    return _LANG_MAP.get(PurePath(path).suffix.lower(), "")


def fence_for(content: str) -> str:
    """Shortest backtick fence (at least three) that does not occur in ``content``."""
    fence = "```"
    while fence in content:
        fence += "`"
    return fence


class Formatter:
    """Renders the pieces of one output document.

    Skipped units render to an empty string and are dropped by the caller.
    """

    def start(self) -> str:
        return ""

    def table_of_contents(self, tree: str) -> str:
        return tree

    def render(self, unit: EmittedFile) -> str:
        raise NotImplementedError

    def end(self) -> str:
        return ""


class DefaultFormatter(Formatter):
    def render(self, unit: EmittedFile) -> str:
        if unit.skipped:
            return ""
        return f"{unit.path}\n---\n{unit.text}\n\n---"


class MarkdownFormatter(Formatter):
    def table_of_contents(self, tree: str) -> str:
        return f"# Table of Contents\n\n```\n{tree}\n```"

    def render(self, unit: EmittedFile) -> str:
        if unit.skipped:
            return ""
        fence = fence_for(unit.text)
        return f"{unit.path}\n{fence}{_lang_from_ext(unit.path)}\n{unit.text}\n{fence}"


class XmlFormatter(Formatter):
    def __init__(self) -> None:
        self.index = 1

    def start(self) -> str:
        return "<documents>"

    def table_of_contents(self, tree: str) -> str:
        return f"<table_of_contents>\n{tree}\n</table_of_contents>"

    def render(self, unit: EmittedFile) -> str:
        if unit.skipped:
            return ""
        out = (
            f'<document index="{self.index}">\n'
            f"<source>{unit.path}</source>\n"
            f"<document_content>\n{unit.text}\n</document_content>\n"
            f"</document>"
        )
        self.index += 1
        return out

    def end(self) -> str:
        return "</documents>"


_FORMATTERS: Dict[OutputFormat, Type[Formatter]] = {
    OutputFormat.DEFAULT: DefaultFormatter,
    OutputFormat.MARKDOWN: MarkdownFormatter,
    OutputFormat.XML: XmlFormatter,
}


def get_formatter(fmt: OutputFormat) -> Formatter:
    return _FORMATTERS[fmt]()
