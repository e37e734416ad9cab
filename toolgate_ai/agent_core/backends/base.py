from __future__ import annotations

from typing import Optional, Protocol, Tuple

from .models import (
    BrowserActionOutput,
    CommandRunOutput,
    FileReadOutput,
    FileWriteOutput,
    ListFilesOutput,
    SearchFilesOutput,
)


class FileSystemBackend(Protocol):
    """File access used by the file tools. Paths are absolute."""

    async def read_text(self, path: str) -> FileReadOutput: ...

    async def write_text(self, path: str, content: str) -> FileWriteOutput: ...

    async def exists(self, path: str) -> bool: ...

    async def list_dir(self, path: str, *, recursive: bool = False) -> ListFilesOutput: ...

    async def search(self, path: str, regex: str, file_pattern: Optional[str] = None) -> SearchFilesOutput: ...


class CommandRunner(Protocol):
    """Runs shell commands for ``execute_command``."""

    async def run(self, command: str, cwd: str) -> CommandRunOutput: ...


class BrowserSession(Protocol):
    """Remote-controlled browser for ``browser_action``."""

    async def launch(self, url: str) -> BrowserActionOutput: ...

    async def click(self, coordinate: Tuple[int, int]) -> BrowserActionOutput: ...

    async def hover(self, coordinate: Tuple[int, int]) -> BrowserActionOutput: ...

    async def type(self, text: str) -> BrowserActionOutput: ...

    async def scroll(self, direction: str) -> BrowserActionOutput: ...

    async def resize(self, size: Tuple[int, int]) -> BrowserActionOutput: ...

    async def close(self) -> BrowserActionOutput: ...
