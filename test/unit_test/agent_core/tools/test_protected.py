from __future__ import annotations

import pytest

from toolgate_ai.agent_core.tools.protected import ProtectedFileChecker

CWD = "/workspace/project"


@pytest.mark.parametrize(
    "path",
    [
        ".roomodes",
        ".rooignore",
        ".roorules-code",
        ".clinerules",
        ".roo/rules/general.md",
        ".vscode/settings.json",
        "AGENTS.md",
        "docs/AGENTS.md",
        f"{CWD}/.rooprotected",
    ],
)
def test_protected_paths(path: str) -> None:
    assert ProtectedFileChecker(CWD).is_protected(path)


@pytest.mark.parametrize("path", ["src/app.py", "README.md", "roo/notes.md", "/etc/.roomodes", "../.roomodes"])
def test_unprotected_paths(path: str) -> None:
    assert not ProtectedFileChecker(CWD).is_protected(path)


def test_custom_patterns() -> None:
    checker = ProtectedFileChecker(CWD, patterns=["secrets/**"])
    assert checker.is_protected("secrets/key.pem")
    assert not checker.is_protected(".roomodes")


def test_nested_double_star_pattern_matches_zero_directories() -> None:
    checker = ProtectedFileChecker(CWD, patterns=["config/**/secrets.json"])
    assert checker.is_protected("config/secrets.json")
    assert checker.is_protected("config/prod/eu/secrets.json")
    assert not checker.is_protected("secrets.json")
