"""I/O backends wrapped by the tool implementations."""

from .base import BrowserSession, CommandRunner, FileSystemBackend
from .local import LocalCommandRunner, LocalFileSystem

__all__ = [
    "FileSystemBackend",
    "CommandRunner",
    "BrowserSession",
    "LocalFileSystem",
    "LocalCommandRunner",
]
