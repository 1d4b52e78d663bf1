from __future__ import annotations

import os
from pathlib import Path

import pytest

from fusefiles import ignore, walker
from fusefiles.core import EntryKind, InvalidRootError, PatternError, RunReport
from fusefiles.walker import matches_extension, walk


def _rels(entries):
    return [e.relative for e in entries]


def _files(entries):
    return [e.relative for e in entries if e.is_file]


def test_depth_first_sorted_per_directory(make_tree, spec_for):
    root = make_tree({"d.txt": "", "b/c.txt": "", "a.txt": "", "b/a/z.txt": ""})
    entries = list(walk(spec_for(root)))
    assert _rels(entries) == ["", "a.txt", "b", "b/a", "b/a/z.txt", "b/c.txt", "d.txt"]
    assert [e.depth for e in entries] == [0, 1, 1, 2, 3, 2, 1]
    assert entries[0].kind is EntryKind.DIRECTORY and entries[0].explicit
    assert entries[4].path == root / "b" / "a" / "z.txt"


def test_hidden_entries_need_include_hidden(make_tree, spec_for):
    root = make_tree({".env": "", ".cache/x.txt": "", "main.py": ""})
    assert _files(walk(spec_for(root))) == ["main.py"]
    assert _files(walk(spec_for(root, include_hidden=True))) == [".cache/x.txt", ".env", "main.py"]


def test_extension_filter_independent_of_ignore_rules(make_tree, spec_for):
    root = make_tree({"a.rs": "", "b.py": "", "c.txt": ""})
    assert _files(walk(spec_for(root, extensions=("rs",)))) == ["a.rs"]
    assert _files(walk(spec_for(root, extensions=(".rs",), ignore_patterns=("*.py",)))) == ["a.rs"]
    assert _files(walk(spec_for(root, extensions=("rs",), ignore_gitignore=True))) == ["a.rs"]


def test_matches_extension():
    assert matches_extension("a.py", [])
    assert matches_extension("a.py", ["py"])
    assert matches_extension("a.py", [".py"])
    assert not matches_extension("a.pyc", ["py"])
    assert not matches_extension("Makefile", ["py"])
    assert not matches_extension(".bashrc", ["bashrc"])


def test_gitignore_precedence(make_tree, spec_for):
    root = make_tree({".gitignore": "*.log\n!keep.log\n", "keep.log": "", "other.log": ""})
    assert _files(walk(spec_for(root))) == ["keep.log"]


def test_gitignore_scope_locality(make_tree, spec_for):
    root = make_tree({
        "dirA/.gitignore": "*.txt\n",
        "dirA/a.txt": "",
        "dirB/b.txt": "",
    })
    assert _files(walk(spec_for(root))) == ["dirB/b.txt"]


def test_nested_gitignore_and_ignore_gitignore_flag(make_tree, spec_for):
    root = make_tree({
        ".gitignore": "ignored.txt\n",
        "ignored.txt": "",
        "included.txt": "",
        "nested_include/included2.txt": "",
        "nested_ignore/.gitignore": "nested_ignore.txt\n",
        "nested_ignore/nested_ignore.txt": "",
        "nested_ignore/actually_include.txt": "",
    })
    assert _files(walk(spec_for(root))) == [
        "included.txt",
        "nested_ignore/actually_include.txt",
        "nested_include/included2.txt",
    ]
    assert _files(walk(spec_for(root, ignore_gitignore=True))) == [
        "ignored.txt",
        "included.txt",
        "nested_ignore/actually_include.txt",
        "nested_ignore/nested_ignore.txt",
        "nested_include/included2.txt",
    ]


def test_dot_ignore_files_are_honoured(make_tree, spec_for):
    root = make_tree({
        ".gitignore": "*.txt\n",
        ".ignore": "!keep.txt\n",
        "keep.txt": "",
        "drop.txt": "",
        "main.py": "",
        "scratch/.ignore": "*\n",
        "scratch/notes.py": "",
    })
    assert _files(walk(spec_for(root))) == ["keep.txt", "main.py"]
    assert _files(walk(spec_for(root, ignore_gitignore=True))) == [
        "drop.txt",
        "keep.txt",
        "main.py",
        "scratch/notes.py",
    ]


def test_global_excludes_apply_inside_a_work_tree(make_tree, spec_for, tmp_path, monkeypatch):
    excludes = tmp_path / "xdg" / "git" / "ignore"
    excludes.parent.mkdir(parents=True)
    excludes.write_text("*.tmp\n", encoding="utf-8")
    repo = make_tree({".git/": None, "main.py": "", "notes.tmp": ""}, name="repo")
    plain = make_tree({"main.py": "", "notes.tmp": ""}, name="plain")

    assert _files(walk(spec_for(repo))) == ["main.py"]
    assert _files(walk(spec_for(repo, ignore_gitignore=True))) == ["main.py", "notes.tmp"]
    assert _files(walk(spec_for(plain))) == ["main.py", "notes.tmp"]

    configured = tmp_path / "configured-excludes"
    configured.write_text("main.py\n", encoding="utf-8")
    monkeypatch.setattr(ignore, "_git_excludes_setting", lambda top: str(configured))
    assert _files(walk(spec_for(repo))) == ["notes.tmp"]


def test_ignored_directories_are_pruned(make_tree, spec_for):
    root = make_tree({".gitignore": "build/\n!build/keep.txt\n", "build/keep.txt": "", "src/a.py": ""})
    entries = list(walk(spec_for(root)))
    assert _rels(entries) == ["", "src", "src/a.py"]


def test_custom_patterns_and_files_only(make_tree, spec_for):
    root = make_tree({"tests/test_a.py": "", "tests/helpers.py": "", "test_b.py": "", "app.py": ""})
    assert _files(walk(spec_for(root, ignore_patterns=("test*",)))) == ["app.py"]
    assert _files(walk(spec_for(root, ignore_patterns=("test*",), ignore_files_only=True))) == [
        "app.py",
        "tests/helpers.py",
    ]


def test_invalid_custom_pattern_is_fatal(make_tree, spec_for, monkeypatch):
    def _reject(pattern):
        raise ValueError("bad")

    root = make_tree({"a.txt": ""})
    monkeypatch.setattr(ignore.GitWildMatchPattern, "pattern_to_regex", staticmethod(_reject))
    with pytest.raises(PatternError):
        list(walk(spec_for(root, ignore_patterns=("[",))))


def test_explicit_file_bypasses_hidden_and_ignore_rules(make_tree, spec_for):
    root = make_tree({".gitignore": "private/\n", "private/.token": "t"})
    hidden = root / "private" / ".token"
    entries = list(walk(spec_for(hidden, ignore_patterns=(".token",))))
    assert [(e.path, e.explicit, e.depth) for e in entries] == [(hidden, True, 0)]


def test_explicit_file_still_obeys_extension_filter(make_tree, spec_for):
    root = make_tree({"notes.md": ""})
    assert list(walk(spec_for(root / "notes.md", extensions=("py",)))) == []


def test_roots_keep_user_order(make_tree, spec_for):
    root = make_tree({"one/a.txt": "", "two/b.txt": "", "single.txt": ""})
    entries = list(walk(spec_for(root / "two", root / "single.txt", root / "one")))
    assert [e.path for e in entries if e.is_file] == [
        root / "two" / "b.txt",
        root / "single.txt",
        root / "one" / "a.txt",
    ]


def test_missing_root_is_fatal_before_anything_is_yielded(make_tree, spec_for):
    root = make_tree({"a.txt": ""})
    it = walk(spec_for(root, root / "missing"))
    with pytest.raises(InvalidRootError, match="does not exist"):
        next(it)


def test_unlistable_subdirectory_is_skipped_with_warning(make_tree, spec_for, monkeypatch):
    root = make_tree({"locked/secret.txt": "", "open/a.txt": ""})
    real_list_dir = walker._list_dir

    def _list_dir(directory):
        if Path(directory).name == "locked":
            raise PermissionError(13, "Permission denied")
        return real_list_dir(directory)

    monkeypatch.setattr(walker, "_list_dir", _list_dir)
    report = RunReport()
    entries = list(walk(spec_for(root), report))
    assert _rels(entries) == ["", "open", "open/a.txt"]
    assert len(report.warnings) == 1 and "locked" in report.warnings[0]


def test_unlistable_root_is_fatal(make_tree, spec_for, monkeypatch):
    root = make_tree({"a.txt": ""})

    def _list_dir(directory):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(walker, "_list_dir", _list_dir)
    with pytest.raises(InvalidRootError):
        list(walk(spec_for(root)))


def _symlink(target: Path, link: Path, is_dir: bool) -> None:
    try:
        os.symlink(target, link, target_is_directory=is_dir)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported here")


def test_symlinks_are_skipped_by_default(make_tree, spec_for, tmp_path):
    outside = make_tree({"x.txt": "x"}, name="outside")
    root = make_tree({"a.txt": ""})
    _symlink(outside, root / "linked_dir", True)
    _symlink(outside / "x.txt", root / "linked.txt", False)

    report = RunReport()
    assert _rels(walk(spec_for(root), report)) == ["", "a.txt"]
    assert len(report.notices) == 2
    assert report.warnings == []


def test_follow_symlinks_descends_and_stops_on_cycles(make_tree, spec_for):
    outside = make_tree({"x.txt": "x"}, name="outside")
    root = make_tree({"a.txt": "", "sub/": None})
    _symlink(outside, root / "linked_dir", True)
    _symlink(root, root / "sub" / "loop", True)

    report = RunReport()
    entries = list(walk(spec_for(root, follow_symlinks=True), report))
    assert _rels(entries) == ["", "a.txt", "linked_dir", "linked_dir/x.txt", "sub"]
    assert any("loop" in n for n in report.notices)


def test_symlink_root_is_followed(make_tree, spec_for):
    target = make_tree({"x.txt": ""}, name="target")
    link = target.parent / "link"
    _symlink(target, link, True)
    assert _files(walk(spec_for(link))) == ["x.txt"]


def test_very_deep_tree_does_not_recurse(tmp_path, spec_for):
    root = tmp_path / "deep"
    current = root
    current.mkdir()
    for _ in range(1200):
        current = current / "d"
        current.mkdir()
    (current / "leaf.txt").write_text("leaf", encoding="utf-8")

    files = [e for e in walk(spec_for(root)) if e.is_file]
    assert len(files) == 1
    assert files[0].depth == 1201


def test_end_to_end_selection(make_tree, spec_for):
    root = make_tree({
        ".gitignore": "build/\n",
        "src/a.py": "print('a')\n",
        "build/out.bin": b"\x00\x01",
        ".secret": "s",
    })
    assert _files(walk(spec_for(root))) == ["src/a.py"]

    with_hidden = _files(walk(spec_for(root, include_hidden=True)))
    assert ".secret" in with_hidden
    assert "src/a.py" in with_hidden
    assert not any(f.startswith("build/") for f in with_hidden)


def test_walk_is_deterministic(make_tree, spec_for):
    root = make_tree({"b/x.txt": "", "a/y.txt": "", ".gitignore": "*.tmp\n", "c.tmp": ""})
    assert list(walk(spec_for(root))) == list(walk(spec_for(root)))
