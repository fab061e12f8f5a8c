from __future__ import annotations

import base64
import mimetypes
import uuid
from typing import Optional

from .config import settings


ACCEPTED_IMAGE_TYPES = (
    "image/jpeg",
    "image/png",
    "image/jpg",
    "image/webp",
    "image/svg+xml",
    "application/postscript",
    "application/eps",
    "application/x-eps",
    "image/eps",
    "application/illustrator",
)

ACCEPTED_VIDEO_TYPES = (
    "video/mp4",
    "video/quicktime",
    "video/x-msvideo",
    "video/mpeg",
    "video/webm",
    "video/x-matroska",
)

ACCEPTED_MEDIA_TYPES = ACCEPTED_IMAGE_TYPES + ACCEPTED_VIDEO_TYPES

SVG_CONTENT_TYPE = "image/svg+xml"

_SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]

_EXTRA_TYPES = {
    ".ai": "application/illustrator",
    ".eps": "application/postscript",
    ".svg": SVG_CONTENT_TYPE,
}


def generate_id() -> str:
    return uuid.uuid4().hex[:7]


def is_valid_media_type(content_type: Optional[str]) -> bool:
    return content_type in ACCEPTED_MEDIA_TYPES


def is_valid_file_size(size: int, max_size_gb: Optional[int] = None) -> bool:
    if max_size_gb is None:
        max_size_gb = settings.MAX_UPLOAD_SIZE_GB
    return size <= max_size_gb * 1024 * 1024 * 1024


def is_video(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.startswith("video/")


def is_svg(content_type: Optional[str], filename: str = "") -> bool:
    return content_type == SVG_CONTENT_TYPE or filename.lower().endswith(".svg")


def format_file_size(size: int) -> str:
    """Human readable size, e.g. 1536 -> '1.5 KB'."""
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    index = 0
    while value >= 1024 and index < len(_SIZE_UNITS) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[index]}"


def to_data_url(data: bytes, content_type: str) -> str:
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


def guess_content_type(filename: str) -> Optional[str]:
    """Content type from the file extension, for files read from disk."""
    for suffix, content_type in _EXTRA_TYPES.items():
        if filename.lower().endswith(suffix):
            return content_type
    return mimetypes.guess_type(filename)[0]
