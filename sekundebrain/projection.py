# -*- coding: utf-8 -*-
"""View Projection: the filtered, ordered list the home screen displays.

Everything here is a pure function of store snapshots plus the transient
filter state. Nothing is cached; callers recompute after every change.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .models import JournalEntry, JournalFolder

ALL_FOLDERS = "All Folders"

FolderSelection = Union[JournalFolder, int, None]


@dataclass(frozen=True)
class EntryProjection:
    """Pinned and unpinned groups, each already in display order."""

    pinned: Tuple[JournalEntry, ...] = ()
    unpinned: Tuple[JournalEntry, ...] = ()

    @property
    def entries(self) -> List[JournalEntry]:
        return [*self.pinned, *self.unpinned]

    def __len__(self) -> int:
        return len(self.pinned) + len(self.unpinned)


def matches_tag_filter(entry: JournalEntry, filter_text: str) -> bool:
    """True when any tag contains *filter_text*, ignoring case.

    Only tags are searched; title and content are not.
    """
    if not filter_text:
        return True
    needle = filter_text.casefold()
    return any(needle in tag.casefold() for tag in entry.tags)


def sort_entries(entries: Iterable[JournalEntry]) -> List[JournalEntry]:
    """Pinned first, then most recent first. Equal keys keep input order."""
    by_date = sorted(entries, key=lambda e: e.date, reverse=True)
    return sorted(by_date, key=lambda e: not e.is_pinned)


def _selected_folder_id(selected_folder: FolderSelection) -> Optional[int]:
    if selected_folder is None:
        return None
    if isinstance(selected_folder, JournalFolder):
        return selected_folder.id
    return int(selected_folder)


def project_entries(
    entries: Iterable[JournalEntry],
    folders: Sequence[JournalFolder],
    filter_text: str = "",
    selected_folder: FolderSelection = None,
) -> EntryProjection:
    """Filter by tag and folder, sort, and split into pinned/unpinned.

    A selected folder always filters, even one missing from *folders*; the
    home screen resets a deleted selection to "All Folders" before calling.
    """
    result = list(entries)

    if filter_text:
        result = [e for e in result if matches_tag_filter(e, filter_text)]

    folder_id = _selected_folder_id(selected_folder)
    if folder_id is not None:
        result = [e for e in result if e.folder_id == folder_id]

    ordered = sort_entries(result)
    return EntryProjection(
        pinned=tuple(e for e in ordered if e.is_pinned),
        unpinned=tuple(e for e in ordered if not e.is_pinned),
    )


def folder_choices(folders: Iterable[JournalFolder]) -> List[Tuple[str, Optional[int]]]:
    """Folder picker options: "All Folders" then folders by name."""
    ordered = sorted(folders, key=lambda f: (f.name.casefold(), f.id))
    return [(ALL_FOLDERS, None)] + [(f.name, f.id) for f in ordered]
