# -*- coding: utf-8 -*-
"""Journal data structures and tag normalization.

This module is pure: no database or UI imports.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

NO_TITLE = "No Title"


# ---------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class JournalFolder:
    """A named grouping container for entries."""

    id: int
    name: str
    created_at: datetime


@dataclass
class JournalEntry:
    """Snapshot of a single journal record as read from the store."""

    id: int
    title: str
    content: str
    date: datetime
    tags: List[str] = field(default_factory=list)
    image_data: Optional[bytes] = None
    is_pinned: bool = False
    folder: Optional[JournalFolder] = None

    @property
    def display_title(self) -> str:
        return self.title.strip() or NO_TITLE

    @property
    def folder_id(self) -> Optional[int]:
        return self.folder.id if self.folder is not None else None

    @property
    def has_image(self) -> bool:
        return bool(self.image_data)


# ---------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------

def normalize_tags(tags: Union[str, Iterable[str], None]) -> List[str]:
    """Split on commas, trim each piece and drop empties; order and duplicates kept."""
    if tags is None:
        return []
    if isinstance(tags, str):
        tags = [tags]
    out: List[str] = []
    for raw in tags:
        for piece in str(raw).split(","):
            piece = piece.strip()
            if piece:
                out.append(piece)
    return out


def format_tags(tags: Iterable[str]) -> str:
    """Inverse of the tag input field: ``"a, b"``."""
    return ", ".join(tags)


# ---------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(ts: datetime) -> str:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.isoformat()


def from_iso(text: str) -> datetime:
    """Parse a stored timestamp; naive legacy values are taken as UTC."""
    ts = datetime.fromisoformat(text)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts
