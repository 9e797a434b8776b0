# -*- coding: utf-8 -*-
"""Image collaborator: turns a picked file into an opaque byte blob."""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from loguru import logger

from .errors import NotFoundError, ValidationError

# (magic prefix, offset, kind)
SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", 0, "PNG"),
    (b"\xff\xd8\xff", 0, "JPEG"),
    (b"GIF87a", 0, "GIF"),
    (b"GIF89a", 0, "GIF"),
    (b"BM", 0, "BMP"),
    (b"WEBP", 8, "WEBP"),
    (b"ftypheic", 4, "HEIC"),
    (b"ftypheix", 4, "HEIC"),
    (b"ftypmif1", 4, "HEIC"),
)


def image_kind(data: Optional[bytes]) -> Optional[str]:
    """Sniff the image format from magic bytes; None if unrecognized."""
    if not data:
        return None
    for magic, offset, kind in SIGNATURES:
        if data[offset:offset + len(magic)] == magic:
            if kind == "WEBP" and not data.startswith(b"RIFF"):
                continue
            return kind
    return None


def _human_size(n: int) -> str:
    if n < 1024:
        return f"{n} B"
    if n < 1024 * 1024:
        return f"{n / 1024:.1f} KB"
    return f"{n / (1024 * 1024):.1f} MB"


def describe_image(data: Optional[bytes]) -> str:
    """Short label for the detail view, e.g. ``"PNG image, 1.2 KB"``."""
    if not data:
        return "(no image)"
    kind = image_kind(data) or "Unknown"
    return f"{kind} image, {_human_size(len(data))}"


def load_image(path: Union[str, Path, None]) -> Optional[bytes]:
    """Read an image file chosen by the user; blank path means no image."""
    if path is None or not str(path).strip():
        return None
    p = Path(str(path).strip()).expanduser()
    if not p.is_file():
        raise NotFoundError(f"Image {p} not found")
    data = p.read_bytes()
    if not data:
        raise ValidationError(f"Image {p} is empty")
    if image_kind(data) is None:
        raise ValidationError(f"{p.name} is not a supported image")
    logger.debug("Loaded {} bytes from {}", len(data), p)
    return data
