"""Local filesystem and subprocess backends.

These run in-process against the real disk and shell. Expected failures are
reported on the output models; only unexpected exceptions escape.
"""

import asyncio
import fnmatch
import os
import re
import time
from pathlib import Path
from typing import List, Optional

from toolgate_ai.core.logging_config import get_logger

from .models import (
    CommandRunOutput,
    FileReadOutput,
    FileWriteOutput,
    ListFilesOutput,
    SearchFilesOutput,
    SearchMatch,
)

logger = get_logger(__name__)

DEFAULT_LIST_LIMIT = 200
DEFAULT_SEARCH_LIMIT = 300
IGNORED_DIRS = frozenset({".git", "node_modules", "__pycache__", ".venv", "venv", ".mypy_cache", ".pytest_cache"})


class LocalFileSystem:
    """FileSystemBackend backed by the local disk."""

    def __init__(
        self,
        *,
        encoding: str = "utf-8",
        list_limit: int = DEFAULT_LIST_LIMIT,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> None:
        self.encoding = encoding
        self.list_limit = list_limit
        self.search_limit = search_limit

    async def read_text(self, path: str) -> FileReadOutput:
        file_path = Path(path)
        if not file_path.exists():
            return FileReadOutput(success=False, path=str(file_path), error=f"File not found: {file_path}")
        if not file_path.is_file():
            return FileReadOutput(success=False, path=str(file_path), error=f"Path is not a file: {file_path}")

        try:
            content = file_path.read_text(encoding=self.encoding)
        except UnicodeDecodeError as e:
            error_msg = f"Encoding error reading {file_path}: {str(e)}"
            logger.error(error_msg)
            return FileReadOutput(success=False, path=str(file_path), error=error_msg)

        logger.debug(f"Read file: {file_path} ({len(content)} chars)")
        return FileReadOutput(
            success=True,
            path=str(file_path),
            content=content,
            total_lines=len(content.splitlines()),
        )

    async def write_text(self, path: str, content: str) -> FileWriteOutput:
        file_path = Path(path)
        created = not file_path.exists()
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            bytes_written = file_path.write_text(content, encoding=self.encoding)
        except PermissionError as e:
            error_msg = f"Permission denied writing to {file_path}: {str(e)}"
            logger.error(error_msg)
            return FileWriteOutput(success=False, path=str(file_path), error=error_msg)

        logger.info(f"Wrote file: {file_path} ({bytes_written} chars)")
        return FileWriteOutput(success=True, path=str(file_path), created=created, bytes_written=bytes_written)

    async def exists(self, path: str) -> bool:
        return Path(path).exists()

    async def list_dir(self, path: str, *, recursive: bool = False) -> ListFilesOutput:
        root = Path(path)
        if not root.is_dir():
            return ListFilesOutput(success=False, path=str(root), error=f"Directory not found: {root}")

        entries: List[str] = []
        truncated = False
        if recursive:
            for dirpath, dirnames, filenames in os.walk(root):
                dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRS)
                rel_dir = os.path.relpath(dirpath, root)
                for name in [d + "/" for d in dirnames] + sorted(filenames):
                    entries.append(name if rel_dir == "." else os.path.join(rel_dir, name))
                if len(entries) >= self.list_limit:
                    truncated = True
                    break
        else:
            for child in sorted(root.iterdir(), key=lambda p: p.name):
                entries.append(child.name + "/" if child.is_dir() else child.name)

        if len(entries) > self.list_limit:
            entries = entries[: self.list_limit]
            truncated = True
        return ListFilesOutput(success=True, path=str(root), entries=entries, truncated=truncated)

    async def search(self, path: str, regex: str, file_pattern: Optional[str] = None) -> SearchFilesOutput:
        root = Path(path)
        if not root.is_dir():
            return SearchFilesOutput(success=False, path=str(root), error=f"Directory not found: {root}")
        try:
            pattern = re.compile(regex)
        except re.error as e:
            return SearchFilesOutput(success=False, path=str(root), error=f"Invalid regex '{regex}': {e}")

        matches: List[SearchMatch] = []
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRS)
            for name in sorted(filenames):
                if file_pattern and not fnmatch.fnmatch(name, file_pattern):
                    continue
                file_path = Path(dirpath) / name
                try:
                    lines = file_path.read_text(encoding=self.encoding).splitlines()
                except (UnicodeDecodeError, OSError):
                    continue
                rel = os.path.relpath(file_path, root)
                for lineno, line in enumerate(lines, start=1):
                    if pattern.search(line):
                        matches.append(SearchMatch(file=rel, line=lineno, text=line))
                        if len(matches) >= self.search_limit:
                            return SearchFilesOutput(success=True, path=str(root), matches=matches, truncated=True)
        return SearchFilesOutput(success=True, path=str(root), matches=matches)


class LocalCommandRunner:
    """CommandRunner that spawns a local shell."""

    def __init__(self, *, timeout: Optional[float] = None) -> None:
        self.timeout = timeout

    async def run(self, command: str, cwd: str) -> CommandRunOutput:
        start_time = time.time()
        if not os.path.isdir(cwd):
            error_msg = f"Working directory not found: {cwd}"
            logger.error(error_msg)
            return CommandRunOutput(success=False, command=command, cwd=cwd, error=error_msg)

        logger.info(f"Executing command: {command} (cwd={cwd})")
        process = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            cwd=cwd,
        )
        try:
            stdout_bytes, _ = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            duration = time.time() - start_time
            error_msg = f"Command execution timeout after {self.timeout} seconds"
            logger.error(error_msg)
            return CommandRunOutput(
                success=False, command=command, cwd=cwd, error=error_msg, duration_seconds=duration
            )

        output = stdout_bytes.decode("utf-8", errors="replace") if stdout_bytes else ""
        exit_code = process.returncode
        duration = time.time() - start_time
        logger.info(f"Command completed with exit code {exit_code} (duration: {duration:.2f}s, output: {len(output)} chars)")
        return CommandRunOutput(
            success=exit_code == 0,
            command=command,
            cwd=cwd,
            exit_code=exit_code,
            output=output,
            duration_seconds=duration,
        )
