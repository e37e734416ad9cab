"""Shell command allow/deny matching.

A command is compared against two pattern lists supplied by the settings:

- ``"*"`` matches every command.
- A pattern containing glob characters (``*``, ``?``, ``[``) is matched with
  ``fnmatch`` against the whole command and against its leading token.
- Any other pattern is a case-insensitive prefix of the command, so both
  ``"git"`` and ``"git status"`` are valid patterns.

Deny patterns are evaluated first and win outright. Chained commands
(``&&``, ``||``, ``;``, ``|`` and newlines) are split and every sub-command
is classified. Bodies of command substitutions (``$(...)``, backticks and
``<(...)`` / ``>(...)``) count as sub-commands too. One denied sub-command
denies the whole line, and the line is auto-approved only when every
sub-command is allowed.
"""

from __future__ import annotations

import fnmatch
import re
from enum import Enum
from typing import Iterable, List, Sequence

from toolgate_ai.core.logging_config import get_logger

logger = get_logger(__name__)

_CHAIN_SPLIT = re.compile(r"\s*(?:&&|\|\||;|\||\n)\s*")
_GLOB_CHARS = ("*", "?", "[")


class CommandDecision(str, Enum):
    auto_approve = "auto_approve"
    auto_deny = "auto_deny"
    ask = "ask"


def split_command_chain(command: str) -> List[str]:
    """Split a shell line on chaining operators; quoting is not interpreted."""
    return [part for part in (p.strip() for p in _CHAIN_SPLIT.split(command)) if part]


def _substitution_bodies(command: str) -> List[str]:
    """Return the bodies of the outermost ``$(...)``, ``<(...)``, ``>(...)`` and backtick spans."""
    bodies: List[str] = []
    i = 0
    n = len(command)
    while i < n:
        ch = command[i]
        if ch == "`":
            end = command.find("`", i + 1)
            if end == -1:
                end = n
            bodies.append(command[i + 1 : end])
            i = end + 1
            continue
        if ch in "$<>" and command.startswith("(", i + 1):
            depth = 0
            j = i + 1
            while j < n:
                if command[j] == "(":
                    depth += 1
                elif command[j] == ")":
                    depth -= 1
                    if depth == 0:
                        break
                j += 1
            bodies.append(command[i + 2 : j])
            i = j + 1
            continue
        i += 1
    return bodies


def expand_sub_commands(command: str) -> List[str]:
    """
    Every command a shell line would run: the chained sub-commands plus the
    contents of command substitutions, recursively. An unterminated
    substitution runs to the end of the line.
    """
    parts = split_command_chain(command)
    for body in _substitution_bodies(command):
        parts.extend(expand_sub_commands(body))
    return parts


def leading_token(command: str) -> str:
    """Return the executable token of a single command ("" for blank input)."""
    parts = command.strip().split(None, 1)
    return parts[0] if parts else ""


def _normalize_patterns(patterns: Iterable[str]) -> List[str]:
    return [p.strip().lower() for p in patterns if p and p.strip()]


def matches_pattern(command: str, pattern: str) -> bool:
    """Check one command (already split from any chain) against one pattern."""
    cmd = command.strip().lower()
    pat = pattern.strip().lower()
    if not cmd or not pat:
        return False
    if pat == "*":
        return True
    if any(ch in pat for ch in _GLOB_CHARS):
        return fnmatch.fnmatchcase(cmd, pat) or fnmatch.fnmatchcase(leading_token(cmd), pat)
    return cmd.startswith(pat)


def _matches_any(command: str, patterns: Sequence[str]) -> bool:
    return any(matches_pattern(command, p) for p in patterns)


def classify_command(command: str, allowed: Iterable[str], denied: Iterable[str]) -> CommandDecision:
    """
    Classify a shell command against allow/deny pattern lists.

    Args:
        command: The full command line requested by the agent.
        allowed: Patterns that auto-approve a matching command.
        denied: Patterns that auto-deny a matching command; they take precedence.

    Returns:
        ``auto_deny`` when any sub-command matches a deny pattern, ``auto_approve``
        when every sub-command matches an allow pattern, otherwise ``ask``.
        Empty commands and empty pattern lists always yield ``ask``.
    """
    if not command or not command.strip():
        return CommandDecision.ask

    allow = _normalize_patterns(allowed)
    deny = _normalize_patterns(denied)
    if not allow and not deny:
        return CommandDecision.ask

    sub_commands = expand_sub_commands(command)
    if not sub_commands:
        return CommandDecision.ask

    if any(_matches_any(sub, deny) for sub in sub_commands):
        logger.debug(f"Command denied by pattern: {command!r}")
        return CommandDecision.auto_deny

    if allow and all(_matches_any(sub, allow) for sub in sub_commands):
        return CommandDecision.auto_approve

    return CommandDecision.ask
