"""
Table-of-contents tree built from the walk order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List

from .core import TocMode, printable
from .walker import SelectedEntry


@dataclass
class TreeNode:
    name: str
    is_file: bool
    children: List["TreeNode"] = field(default_factory=list)
    file_count: int = 0

    @property
    def label(self) -> str:
        if self.is_file or self.name.endswith("/"):
            return self.name
        return self.name + "/"


def build_tree(entries: Iterable[SelectedEntry]) -> List[TreeNode]:
    """Nest the entries; one top-level node per root, children in walk order."""
    roots: List[TreeNode] = []
    stack: List[TreeNode] = []
    for entry in entries:
        if entry.depth == 0:
            node = TreeNode(printable(entry.path), entry.is_file)
            roots.append(node)
            stack = [node]
        else:
            node = TreeNode(printable(entry.path.name), entry.is_file)
            del stack[entry.depth:]
            stack[-1].children.append(node)
            if not entry.is_file:
                stack.append(node)
        if entry.is_file:
            for ancestor in stack:
                ancestor.file_count += 1
    return roots


def render_tree(entries: Iterable[SelectedEntry], mode: TocMode) -> str:
    """
    Render the entries with ``├──``, ``└──`` and ``│   `` connectors.

    • FULL shows files and every directory holding at least one file.
    • DIRS_ONLY shows those directories without the files.
    • FILES_AND_DIRS also keeps directories with nothing selected below them.
    """
    show_files = mode is not TocMode.DIRS_ONLY
    keep_empty = mode is TocMode.FILES_AND_DIRS
    lines: List[str] = []

    def _visible(node: TreeNode) -> bool:
        if node.is_file:
            return show_files
        return keep_empty or node.file_count > 0

    def _walk(node: TreeNode, prefix: str) -> None:
        items = [child for child in node.children if _visible(child)]
        for idx, child in enumerate(items):
            last = idx == len(items) - 1
            connector = "└── " if last else "├── "
            lines.append(f"{prefix}{connector}{child.label}")
            if not child.is_file:
                _walk(child, prefix + ("    " if last else "│   "))

    for root in build_tree(entries):
        if root.is_file and not show_files:
            continue
        lines.append(root.label)
        _walk(root, "")
    return "\n".join(lines)
