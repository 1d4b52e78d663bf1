"""
Gitignore-style pattern matching and the scoped ignore-rule store.

Patterns are translated with pathspec's ``gitwildmatch`` implementation and
matched against paths relative to the directory that defined them. The
:class:`IgnoreRuleStore` keeps one scope per directory on the walk stack, so a
``.gitignore`` only ever influences its own subtree.
"""

from __future__ import annotations

import enum
import os
import re
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Iterable, List, Optional, Pattern, Sequence, Union

from pathspec.patterns.gitwildmatch import GitWildMatchPattern

from .core import ConfigFileError, EntryKind, PatternError, RunReport

GITIGNORE_NAME = ".gitignore"
# read after .gitignore in the same directory, so its rules win
DOT_IGNORE_NAME = ".ignore"
GLOBAL_SCOPE = "global"
GIT_TIMEOUT_SECONDS = 5.0

# Windows and macOS volumes are case-insensitive by default.
CASE_INSENSITIVE = sys.platform in ("win32", "darwin")

# pathspec marks "the match continued below a directory" with this group.
_DIR_MARK = "ps_d"


class RuleTarget(enum.Enum):
    FILES = "files"
    DIRECTORIES = "directories"
    BOTH = "both"


@dataclass(frozen=True)
class IgnoreRule:
    pattern: str
    regex: Pattern[str]
    scope: str
    target: RuleTarget
    negated: bool

    def matches(self, rel: str, is_dir: bool) -> bool:
        """Match ``rel`` (POSIX, relative to :attr:`scope`) against this rule."""
        if is_dir:
            if self.target is RuleTarget.FILES:
                return False
            rel += "/"
        match = self.regex.match(rel)
        if match is None:
            return False
        if self.target is RuleTarget.FILES:
            # a files-only rule must hit the file itself, not a parent directory
            return match.groupdict().get(_DIR_MARK) is None
        return True


def compile_pattern(
    line: str,
    scope: str = GLOBAL_SCOPE,
    files_only: bool = False,
) -> Optional[IgnoreRule]:
    """Compile one gitignore line; ``None`` for blanks and comments.

    Raises :class:`PatternError` when the line is not a valid pattern.
    """
    text = line.rstrip("\r\n")
    if not text.strip() or text.lstrip().startswith("#"):
        return None
    try:
        regex, include = GitWildMatchPattern.pattern_to_regex(text)
    except ValueError as e:
        raise PatternError(f"Invalid pattern '{text}': {e}") from e
    if regex is None:
        return None

    flags = re.IGNORECASE if CASE_INSENSITIVE else 0
    if files_only:
        target = RuleTarget.FILES
    elif text.rstrip().endswith("/"):
        target = RuleTarget.DIRECTORIES
    else:
        target = RuleTarget.BOTH
    return IgnoreRule(
        pattern=text.strip(),
        regex=re.compile(regex, flags),
        scope=scope,
        target=target,
        negated=not include,
    )


def compile_patterns(
    lines: Iterable[str],
    scope: str = GLOBAL_SCOPE,
    files_only: bool = False,
) -> List[IgnoreRule]:
    rules: List[IgnoreRule] = []
    for line in lines:
        rule = compile_pattern(line, scope, files_only)
        if rule is not None:
            rules.append(rule)
    return rules


def load_extra_patterns(config_path: Path) -> List[str]:
    """Read extra ignore patterns, one per line, skipping blanks and comments."""
    if not config_path.exists():
        raise ConfigFileError(f"Config file '{config_path}' does not exist")
    if not config_path.is_file():
        raise ConfigFileError(f"'{config_path}' is not a file")
    try:
        with config_path.open("r", encoding="utf-8") as fh:
            return [
                ln.strip()
                for ln in fh
                if ln.strip() and not ln.lstrip().startswith("#")
            ]
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigFileError(f"Could not read config file '{config_path}': {e}")


def _git_excludes_setting(repo: Path) -> Optional[str]:
    """``core.excludesFile`` as git reports it for ``repo``, if set."""
    try:
        proc = subprocess.run(
            ["git", "-C", str(repo), "config", "--get", "core.excludesFile"],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=GIT_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    if proc.returncode != 0:
        return None
    return proc.stdout.strip() or None


def global_excludes_file(repo: Path) -> Optional[Path]:
    """The user's global excludes file: ``core.excludesFile``, else git's XDG default."""
    setting = _git_excludes_setting(repo)
    if setting:
        return Path(setting).expanduser()
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "git" / "ignore"
    try:
        return Path.home() / ".config" / "git" / "ignore"
    except RuntimeError:
        return None


def _posix(path: Union[str, PurePath]) -> str:
    rel = PurePath(path).as_posix()
    return "" if rel == "." else rel


@dataclass
class _Scope:
    """Rules from one ignore file plus how to re-base walk paths onto it.

    ``base`` is the walk-relative directory the scope covers ("" for the walk
    root). ``prefix`` is prepended after stripping ``base`` and is only set for
    scopes that live above the walk root.
    """

    directory: str
    base: str
    prefix: str = ""
    rules: List[IgnoreRule] = field(default_factory=list)

    def relative(self, rel: str) -> Optional[str]:
        if self.base:
            if not rel.startswith(self.base + "/"):
                return None
            rel = rel[len(self.base) + 1:]
        return self.prefix + rel


def _last_match(rules: Sequence[IgnoreRule], rel: str, is_dir: bool) -> Optional[bool]:
    for rule in reversed(rules):
        if rule.matches(rel, is_dir):
            return not rule.negated
    return None


class IgnoreRuleStore:
    """Stack of ``.gitignore`` and ``.ignore`` scopes for one directory walk.

    Paths handed to :meth:`push_scope`, :meth:`pop_scope` and
    :meth:`is_ignored` are relative to ``root`` ("" is the root itself).
    """

    def __init__(
        self,
        root: Path,
        *,
        use_gitignore: bool = True,
        global_patterns: Sequence[str] = (),
        files_only: bool = False,
        report: Optional[RunReport] = None,
    ) -> None:
        self.root = root
        self.use_gitignore = use_gitignore
        self.report = report if report is not None else RunReport()
        self.global_rules = compile_patterns(global_patterns, GLOBAL_SCOPE, files_only)
        self._outer: List[_Scope] = []
        self._scopes: List[_Scope] = []
        if use_gitignore:
            self._seed_outer_scopes()

    @property
    def depth(self) -> int:
        return len(self._scopes)

    def active_rules(self) -> List[IgnoreRule]:
        return [rule for scope in self._outer + self._scopes for rule in scope.rules]

    def push_scope(self, directory: Union[str, PurePath]) -> None:
        rel = _posix(directory)
        scope = _Scope(directory=rel, base=rel)
        if self.use_gitignore:
            here = self.root / rel
            scope.rules = (
                self._read_rules(here / GITIGNORE_NAME, rel)
                + self._read_rules(here / DOT_IGNORE_NAME, rel)
            )
        self._scopes.append(scope)

    def pop_scope(self, directory: Union[str, PurePath]) -> None:
        rel = _posix(directory)
        if not self._scopes or self._scopes[-1].directory != rel:
            raise RuntimeError(f"Scope '{rel}' is not the innermost active scope")
        self._scopes.pop()

    def is_ignored(self, path: Union[str, PurePath], kind: EntryKind) -> bool:
        rel = _posix(path)
        is_dir = kind is EntryKind.DIRECTORY
        for scope in reversed(self._outer + self._scopes):
            scoped = scope.relative(rel)
            if scoped is None:
                continue
            verdict = _last_match(scope.rules, scoped, is_dir)
            if verdict is not None:
                if verdict:
                    return True
                break
        return bool(_last_match(self.global_rules, rel, is_dir))

    def _read_rules(self, ignore_file: Path, scope: str) -> List[IgnoreRule]:
        if not ignore_file.is_file():
            return []
        try:
            with ignore_file.open("r", encoding="utf-8") as fh:
                lines = fh.readlines()
        except (OSError, UnicodeDecodeError) as e:
            self.report.warn(f"Could not read {ignore_file}: {e}")
            return []
        rules: List[IgnoreRule] = []
        for lineno, line in enumerate(lines, 1):
            try:
                rule = compile_pattern(line, scope or ".")
            except PatternError as e:
                self.report.warn(f"{ignore_file}:{lineno}: {e}")
                continue
            if rule is not None:
                rules.append(rule)
        return rules

    def _seed_outer_scopes(self) -> None:
        """Load global excludes, info/exclude and ancestor .gitignore files of the work tree."""
        try:
            root = self.root.resolve()
        except (OSError, RuntimeError):
            return
        top = next((d for d in (root, *root.parents) if (d / ".git").exists()), None)
        if top is None:
            return

        exclude = top / ".git" / "info" / "exclude"
        tail = root.relative_to(top).as_posix()
        prefix = "" if tail == "." else tail + "/"

        # lowest precedence first: global excludes, then info/exclude
        excludes = global_excludes_file(top)
        if excludes is not None and excludes.is_file():
            self._outer.append(
                _Scope(str(excludes), base="", prefix=prefix,
                       rules=self._read_rules(excludes, str(top)))
            )
        if exclude.is_file():
            self._outer.append(
                _Scope(str(exclude), base="", prefix=prefix,
                       rules=self._read_rules(exclude, str(top)))
            )

        # the walk root's own .gitignore is pushed by the walk itself
        for ancestor in reversed(root.parents):
            if ancestor != top and top not in ancestor.parents:
                continue
            tail = root.relative_to(ancestor).as_posix()
            self._outer.append(
                _Scope(str(ancestor), base="", prefix=tail + "/",
                       rules=self._read_rules(ancestor / GITIGNORE_NAME, str(ancestor)))
            )
