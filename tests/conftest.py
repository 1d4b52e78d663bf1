"""Shared fixtures: build small directory trees under ``tmp_path``."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Dict, Union

import pytest

from fusefiles import ignore
from fusefiles.core import InputSpec

Content = Union[str, bytes, None]


def _build(base: Path, layout: Dict[str, Content]) -> Path:
    """Create ``layout`` under ``base``; keys ending in "/" (or None values) are dirs."""
    for rel, content in layout.items():
        target = base / rel
        if rel.endswith("/") or content is None:
            target.mkdir(parents=True, exist_ok=True)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content, encoding="utf-8")
    return base


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[..., Path]:
    def factory(layout: Dict[str, Content], name: str = "proj") -> Path:
        return _build(tmp_path / name, layout)

    return factory


@pytest.fixture
def spec_for() -> Callable[..., InputSpec]:
    def factory(*paths: Path, **options) -> InputSpec:
        return InputSpec(paths=tuple(paths), **options)

    return factory


@pytest.fixture(autouse=True)
def isolated_git_excludes(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's own global excludes file out of every walk."""
    monkeypatch.setattr(ignore, "_git_excludes_setting", lambda repo: None)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))


@pytest.hookimpl(hookwrapper=True)
def pytest_sessionfinish(session, exitstatus):
    """Let pytest's recursive tmp-dir cleanup remove the very deep test tree."""
    previous = sys.getrecursionlimit()
    sys.setrecursionlimit(max(previous, 10000))
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)
