from __future__ import annotations

import os
from typing import Iterable, Tuple

import pathspec

# Agent configuration and ignore files; writing them needs the protected-write flag.
PROTECTED_PATTERNS: Tuple[str, ...] = (
    ".rooignore",
    ".roomodes",
    ".roorules*",
    ".clinerules*",
    ".roo/**",
    ".vscode/**",
    ".rooprotected",
    "AGENTS.md",
    "AGENT.md",
)


class ProtectedFileChecker:
    """Decides whether a path inside the workspace is write-protected."""

    def __init__(self, cwd: str, patterns: Iterable[str] = PROTECTED_PATTERNS) -> None:
        self.cwd = os.path.abspath(cwd)
        self.patterns = tuple(patterns)
        self._spec = pathspec.PathSpec.from_lines("gitwildmatch", self.patterns)

    def is_protected(self, file_path: str) -> bool:
        absolute = os.path.abspath(os.path.join(self.cwd, file_path))
        relative = os.path.relpath(absolute, self.cwd)
        if relative == os.pardir or relative.startswith(os.pardir + os.sep):
            return False
        return self._spec.match_file(relative.replace(os.sep, "/"))
