"""Workspace boundary and allowed-directory checks.

``WorkspaceScope`` answers "is this path outside the workspace?" for a
possibly multi-root workspace. A path is inside when it equals, or sits
under, any root. With no roots configured every path is outside.

``is_in_allowed_directories`` applies the user's allowed-directory patterns:

- a leading ``~`` expands to the home directory;
- relative patterns resolve against the current working directory;
- a pattern without wildcards is a directory prefix;
- a pattern whose last segment holds wildcards and whose parent does not is a
  file-name pattern scoped to that parent directory;
- any other wildcard pattern is matched against the file's ancestor
  directories and the file itself, with gitignore semantics: ``*`` and ``?``
  stay within one path segment and ``**`` spans zero or more segments.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Iterable, List, Optional, Sequence

import pathspec

_WILDCARDS = ("*", "?")


def _normalize(path: str) -> str:
    return os.path.normcase(os.path.abspath(os.path.expanduser(path) if path.startswith("~") else path))


def _is_under(path: str, root: str) -> bool:
    if path == root:
        return True
    prefix = root if root.endswith(os.sep) else root + os.sep
    return path.startswith(prefix)


class WorkspaceScope:
    """The set of workspace roots of the host session."""

    def __init__(self, roots: Optional[Iterable[str]] = None) -> None:
        self._roots: List[str] = [_normalize(str(r)) for r in roots or []]

    @property
    def roots(self) -> List[str]:
        return list(self._roots)

    def is_outside_workspace(self, path: str) -> bool:
        """True when ``path`` is under none of the roots (always True with no roots)."""
        if not self._roots:
            return True
        absolute = _normalize(str(path))
        return not any(_is_under(absolute, root) for root in self._roots)


def is_outside_workspace(path: str, roots: Sequence[str]) -> bool:
    return WorkspaceScope(roots).is_outside_workspace(path)


@lru_cache(maxsize=256)
def _compile(pattern: str) -> pathspec.PathSpec:
    return pathspec.PathSpec.from_lines("gitwildmatch", [pattern])


def _to_posix(path: str) -> str:
    return path.replace(os.sep, "/") if os.sep != "/" else path


def match_wildcard(text: str, pattern: str) -> bool:
    """
    Gitignore-style wildcard match of a path or name.

    ``*`` and ``?`` stay within one segment, ``**`` spans zero or more
    segments, and a pattern naming a directory also matches what is under it.
    """
    return _compile(_to_posix(pattern)).match_file(_to_posix(text).lstrip("/"))


def _has_wildcard(text: str) -> bool:
    return any(w in text for w in _WILDCARDS)


def _resolve_pattern(pattern: str) -> str:
    expanded = os.path.expanduser(pattern) if pattern.startswith("~") else pattern
    absolute = expanded if os.path.isabs(expanded) else os.path.join(os.getcwd(), expanded)
    return os.path.normcase(os.path.normpath(absolute))


def _matches_pattern(file_path: str, pattern: str) -> bool:
    absolute_pattern = _resolve_pattern(pattern)

    if not _has_wildcard(absolute_pattern):
        root = absolute_pattern.rstrip(os.sep) or os.sep
        if root == os.sep:
            return True
        return _is_under(file_path, root)

    base_name = os.path.basename(absolute_pattern)
    dir_name = os.path.dirname(absolute_pattern)
    if _has_wildcard(base_name) and not _has_wildcard(dir_name):
        return os.path.dirname(file_path) == dir_name and match_wildcard(os.path.basename(file_path), base_name)

    check = os.path.dirname(file_path)
    while True:
        if match_wildcard(check, absolute_pattern):
            return True
        parent = os.path.dirname(check)
        if parent == check:
            break
        check = parent
    return match_wildcard(file_path, absolute_pattern)


def is_in_allowed_directories(file_path: str, patterns: Optional[Iterable[str]]) -> bool:
    """
    Check whether ``file_path`` falls under any allowed-directory pattern.

    Args:
        file_path: Path of the file the agent wants to touch.
        patterns: Allowed directory patterns from the settings.

    Returns:
        True when any pattern matches; False when none match or none are configured.
    """
    pattern_list = [p for p in patterns or [] if p and p.strip()]
    if not pattern_list:
        return False
    absolute = _normalize(str(file_path))
    return any(_matches_pattern(absolute, p.strip()) for p in pattern_list)


def resolve_in_cwd(cwd: str, rel_path: str) -> str:
    """Absolute, normalized form of a tool path relative to the task's cwd."""
    return os.path.abspath(os.path.join(cwd, os.path.expanduser(rel_path)))
