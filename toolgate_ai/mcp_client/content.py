"""Conversion of MCP result content into tool-result text and images.

Images are returned as data URLs. They are kept only while the per-response
count and size limits hold, and only for supported image types; every
dropped image adds a line to ``errors`` so the caller can surface it.
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from mcp import types

SUPPORTED_IMAGE_TYPES = ("image/png", "image/jpeg", "image/gif", "image/webp", "image/svg+xml", "image/bmp")


@dataclass
class ProcessedContent:
    text: str = ""
    images: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def base64_size_bytes(data: str) -> int:
    padding = len(data) - len(data.rstrip("="))
    return (len(data) * 3) // 4 - padding


def _is_valid_base64(data: str) -> bool:
    try:
        base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True


def _strip_data_url(data: str) -> tuple[Optional[str], str]:
    if data.startswith("data:") and ";base64," in data:
        header, payload = data.split(";base64,", 1)
        return header[len("data:") :], payload
    return None, data


class _ImageCollector:
    def __init__(self, result: ProcessedContent, max_images: int, max_size_mb: float) -> None:
        self.result = result
        self.max_images = max_images
        self.max_size_mb = max_size_mb

    def add(self, data: Optional[str], mime_type: Optional[str]) -> None:
        result = self.result
        if not data:
            result.errors.append("Image data is missing")
            return
        embedded_mime, payload = _strip_data_url(data)
        mime_type = mime_type or embedded_mime or "image/png"

        if len(result.images) >= self.max_images:
            result.errors.append(f"Maximum number of images ({self.max_images}) exceeded")
            return
        if mime_type not in SUPPORTED_IMAGE_TYPES:
            result.errors.append(
                f"Unsupported image type: {mime_type}. Supported types: {', '.join(SUPPORTED_IMAGE_TYPES)}"
            )
            return
        if not _is_valid_base64(payload):
            result.errors.append("Invalid or corrupted base64 image data")
            return
        size_mb = base64_size_bytes(payload) / (1024 * 1024)
        if size_mb > self.max_size_mb:
            result.errors.append(
                f"Image size ({size_mb:.2f}MB) exceeds maximum allowed size ({self.max_size_mb}MB)"
            )
            return
        result.images.append(f"data:{mime_type};base64,{payload}")


def process_tool_content(
    content: Iterable[object],
    *,
    max_images: int,
    max_size_mb: float,
) -> ProcessedContent:
    """
    Flatten the content blocks of a ``CallToolResult``.

    Args:
        content: ``CallToolResult.content``.
        max_images: Images kept per response; extra images are dropped.
        max_size_mb: Largest image kept, in MB.

    Returns:
        Text parts joined by blank lines, the kept images and the drop reasons.
    """
    result = ProcessedContent()
    images = _ImageCollector(result, max_images, max_size_mb)
    text_parts: List[str] = []

    for item in content:
        if isinstance(item, types.TextContent):
            text_parts.append(item.text)
        elif isinstance(item, types.ImageContent):
            images.add(item.data, item.mimeType)
        elif isinstance(item, types.EmbeddedResource):
            resource = item.resource.model_dump(mode="json", by_alias=True, exclude={"blob"}, exclude_none=True)
            text_parts.append(json.dumps(resource, indent=2))

    result.text = "\n\n".join(part for part in text_parts if part)
    return result


def process_resource_contents(
    contents: Iterable[object],
    *,
    max_images: int,
    max_size_mb: float,
) -> ProcessedContent:
    """Flatten ``ReadResourceResult.contents``: text joined, image blobs collected."""
    result = ProcessedContent()
    images = _ImageCollector(result, max_images, max_size_mb)
    text_parts: List[str] = []

    for item in contents:
        if isinstance(item, types.TextResourceContents):
            text_parts.append(item.text)
        elif isinstance(item, types.BlobResourceContents):
            if item.mimeType and item.mimeType.startswith("image/"):
                images.add(item.blob, item.mimeType)
            else:
                text_parts.append(f"[binary resource {item.uri} ({item.mimeType or 'unknown type'})]")

    result.text = "\n\n".join(part for part in text_parts if part)
    return result
