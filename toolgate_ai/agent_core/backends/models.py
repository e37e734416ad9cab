"""Result schemas returned by the tool I/O backends.

Backends report expected failures (missing file, bad regex, non-zero exit)
through ``success=False`` and ``error`` instead of raising, so a tool can turn
them into an error tool result. Unexpected exceptions still propagate.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class FileReadOutput(BaseModel):
    """Output schema for a file read."""

    success: bool = Field(..., description="Whether the operation succeeded")
    path: str = Field(..., description="Absolute path of the file read")
    content: Optional[str] = Field(None, description="File content if successful")
    total_lines: Optional[int] = Field(None, description="Number of lines in the file")
    error: Optional[str] = Field(None, description="Error message if failed")


class FileWriteOutput(BaseModel):
    """Output schema for a file write."""

    success: bool = Field(..., description="Whether the operation succeeded")
    path: str = Field(..., description="Absolute path of the file written")
    created: bool = Field(default=False, description="The file did not exist before the write")
    bytes_written: Optional[int] = Field(None, description="Number of characters written")
    error: Optional[str] = Field(None, description="Error message if failed")


class ListFilesOutput(BaseModel):
    """Output schema for a directory listing."""

    success: bool = Field(..., description="Whether the operation succeeded")
    path: str = Field(..., description="Absolute path of the listed directory")
    entries: List[str] = Field(default_factory=list, description="Relative paths; directories end with '/'")
    truncated: bool = Field(default=False, description="The listing hit the entry limit")
    error: Optional[str] = Field(None, description="Error message if failed")


class SearchMatch(BaseModel):
    file: str = Field(..., description="Path relative to the searched directory")
    line: int = Field(..., description="1-based line number")
    text: str = Field(..., description="The matching line")


class SearchFilesOutput(BaseModel):
    """Output schema for a regex search."""

    success: bool = Field(..., description="Whether the operation succeeded")
    path: str = Field(..., description="Absolute path of the searched directory")
    matches: List[SearchMatch] = Field(default_factory=list)
    truncated: bool = Field(default=False, description="The search hit the match limit")
    error: Optional[str] = Field(None, description="Error message if failed")


class CommandRunOutput(BaseModel):
    """Output schema for a shell command."""

    success: bool = Field(..., description="Whether the command exited with status 0")
    command: str = Field(..., description="Command that was executed")
    cwd: str = Field(..., description="Working directory of the command")
    exit_code: Optional[int] = Field(None, description="Command exit code")
    output: str = Field(default="", description="Combined stdout and stderr")
    error: Optional[str] = Field(None, description="Error message if the command could not run")
    duration_seconds: Optional[float] = Field(None, description="Execution duration in seconds")


class BrowserActionOutput(BaseModel):
    """Output schema for one browser action."""

    success: bool = Field(..., description="Whether the action succeeded")
    screenshot: Optional[str] = Field(None, description="Screenshot as a data URL")
    logs: str = Field(default="", description="Console logs captured during the action")
    current_url: Optional[str] = Field(None, description="Page URL after the action")
    error: Optional[str] = Field(None, description="Error message if failed")
