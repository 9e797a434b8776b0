# -*- coding: utf-8 -*-
"""Entry Store: application logic over the DB layer.

This module provides the public API used by the UI. It does not contain any
Textual UI code. Every mutation is committed before the call returns and
subscribers are notified only after a successful commit.
"""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Union
import inspect
import os
import shutil

from loguru import logger

from . import db
from .errors import NotFoundError, PersistenceError, ValidationError
from .models import (
    JournalEntry,
    JournalFolder,
    from_iso,
    normalize_tags,
    to_iso,
    utcnow,
)

FolderRef = Union[JournalFolder, int, None]
Listener = Callable[[], Union[None, Awaitable[Any]]]


# ---------------------------------------------------------------------
# Row conversion
# ---------------------------------------------------------------------

def _folder_from_row(row) -> JournalFolder:
    return JournalFolder(
        id=int(row["id"]),
        name=row["name"],
        created_at=from_iso(row["created_at"]),
    )


def _entry_from_row(row, tags: List[str]) -> JournalEntry:
    folder = None
    if row["folder_id"] is not None and row["folder_name"] is not None:
        folder = JournalFolder(
            id=int(row["folder_id"]),
            name=row["folder_name"],
            created_at=from_iso(row["folder_created_at"]),
        )
    return JournalEntry(
        id=int(row["id"]),
        title=row["title"] or "",
        content=row["content"] or "",
        date=from_iso(row["date"]),
        tags=list(tags),
        image_data=row["image_data"] or None,
        is_pinned=bool(row["is_pinned"]),
        folder=folder,
    )


def _require_content(content: str) -> None:
    if not content or not content.strip():
        raise ValidationError("Content is required")


def _require_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Folder name is required")
    return name


# ---------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------

class EntryStore:
    """Durable CRUD over journal entries and folders."""

    def __init__(
        self,
        db_path: Union[str, Path, None] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.db_path = str(db_path if db_path is not None else db.DB_PATH)
        self._clock = clock or utcnow
        self._listeners: List[Listener] = []

    async def init(self) -> None:
        """Initialize the SQLite database (create tables on first run)."""
        await db.init_db(self.db_path)
        logger.debug("Entry store ready at {}", self.db_path)

    # -- notifications -------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* after every successful mutation; returns an unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                result = listener()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Change listener failed")

    # -- folders -------------------------------------------------------

    async def _resolve_folder_id(self, folder: FolderRef) -> Optional[int]:
        if folder is None:
            return None
        folder_id = folder.id if isinstance(folder, JournalFolder) else int(folder)
        if await db.get_folder_row(self.db_path, folder_id) is None:
            raise NotFoundError(f"Folder {folder_id} not found")
        return folder_id

    async def create_folder(self, name: str) -> int:
        """Create a folder and return its id."""
        name = _require_name(name)
        folder_id = await db.insert_folder_row(self.db_path, name, to_iso(self._clock()))
        logger.info("Created folder {} ({!r})", folder_id, name)
        await self._notify()
        return folder_id

    async def rename_folder(self, folder_id: int, name: str) -> None:
        name = _require_name(name)
        if not await db.update_folder_name(self.db_path, folder_id, name):
            raise NotFoundError(f"Folder {folder_id} not found")
        logger.info("Renamed folder {} to {!r}", folder_id, name)
        await self._notify()

    async def delete_folder(self, folder_id: int) -> None:
        """Delete a folder; its entries are kept and become unfiled."""
        if not await db.delete_folder_row(self.db_path, folder_id):
            raise NotFoundError(f"Folder {folder_id} not found")
        logger.info("Deleted folder {}", folder_id)
        await self._notify()

    async def get_folder(self, folder_id: int) -> JournalFolder:
        row = await db.get_folder_row(self.db_path, folder_id)
        if row is None:
            raise NotFoundError(f"Folder {folder_id} not found")
        return _folder_from_row(row)

    async def list_folders(self) -> List[JournalFolder]:
        """Snapshot of all folders; ordering is the caller's job."""
        rows = await db.list_folder_rows(self.db_path)
        return [_folder_from_row(r) for r in rows]

    # -- entries -------------------------------------------------------

    async def create_entry(
        self,
        title: str,
        content: str,
        tags: Union[str, Iterable[str], None] = None,
        image_data: Optional[bytes] = None,
        folder: FolderRef = None,
    ) -> int:
        """Insert an entry dated now, unpinned; return the new entry id."""
        _require_content(content)
        folder_id = await self._resolve_folder_id(folder)
        entry_id = await db.insert_entry_row(
            self.db_path,
            title or "",
            content,
            to_iso(self._clock()),
            image_data or None,
            folder_id,
            normalize_tags(tags),
        )
        logger.info("Created entry {}", entry_id)
        await self._notify()
        return entry_id

    async def update_entry(
        self,
        entry_id: int,
        title: str,
        content: str,
        tags: Union[str, Iterable[str], None] = None,
        image_data: Optional[bytes] = None,
        folder: FolderRef = None,
    ) -> None:
        """Replace title, content, tags, image and folder. Date and pin are kept."""
        _require_content(content)
        folder_id = await self._resolve_folder_id(folder)
        updated = await db.update_entry_row(
            self.db_path,
            entry_id,
            title or "",
            content,
            image_data or None,
            folder_id,
            normalize_tags(tags),
        )
        if not updated:
            raise NotFoundError(f"Entry {entry_id} not found")
        logger.info("Updated entry {}", entry_id)
        await self._notify()

    async def delete_entry(self, entry_id: int) -> None:
        if not await db.delete_entry_row(self.db_path, entry_id):
            raise NotFoundError(f"Entry {entry_id} not found")
        logger.info("Deleted entry {}", entry_id)
        await self._notify()

    async def toggle_pin(self, entry_id: int) -> bool:
        """Flip the pin flag and return the new value."""
        pinned = await db.toggle_entry_pin(self.db_path, entry_id)
        if pinned is None:
            raise NotFoundError(f"Entry {entry_id} not found")
        logger.info("Entry {} {}", entry_id, "pinned" if pinned else "unpinned")
        await self._notify()
        return pinned

    async def get_entry(self, entry_id: int) -> JournalEntry:
        """Return one entry or raise NotFoundError."""
        row = await db.get_entry_row(self.db_path, entry_id)
        if row is None:
            raise NotFoundError(f"Entry {entry_id} not found")
        tags = await db.list_entry_tags(self.db_path, entry_id)
        return _entry_from_row(row, tags.get(entry_id, []))

    async def list_entries(self) -> List[JournalEntry]:
        """Snapshot of all entries; ordering is the projection's job."""
        rows = await db.list_entry_rows(self.db_path)
        tags = await db.list_entry_tags(self.db_path)
        entries = [_entry_from_row(r, tags.get(int(r["id"]), [])) for r in rows]
        logger.debug("Loaded {} entries", len(entries))
        return entries

    # -- backups -------------------------------------------------------

    def _resolved_db_path(self) -> Path:
        db_path = Path(self.db_path).expanduser()
        if not db_path.is_absolute():
            db_path = (Path.cwd() / db_path).resolve()
        return db_path

    def backups_dir(self) -> Path:
        return self._resolved_db_path().parent / "backups"

    def backup(self) -> Path:
        """Create a timestamped backup copy of the SQLite database."""
        db_path = self._resolved_db_path()
        if not db_path.exists():
            raise PersistenceError("Database file not found for backup")

        backups_dir = self.backups_dir()
        backups_dir.mkdir(parents=True, exist_ok=True)
        timestamp = self._clock().strftime("%Y%m%d-%H%M%S-%f")
        backup_path = backups_dir / f"{db_path.name}.bak-{timestamp}"
        try:
            shutil.copy2(db_path, backup_path)
        except OSError as exc:
            raise PersistenceError(f"Backup failed: {exc}") from exc
        logger.info("Backed up database to {}", backup_path)
        return backup_path

    def list_backups(self) -> List[Path]:
        """Return backup files, newest first."""
        backups_dir = self.backups_dir()
        if not backups_dir.is_dir():
            return []
        name = self._resolved_db_path().name
        return sorted(backups_dir.glob(f"{name}.bak-*"), reverse=True)

    async def restore(self, backup_path: Union[str, Path]) -> None:
        """Replace the database with *backup_path* and notify subscribers."""
        source = Path(backup_path).expanduser()
        if not source.is_file():
            raise NotFoundError(f"Backup {source} not found")

        db_path = self._resolved_db_path()
        staging = db_path.with_name(db_path.name + ".restore-tmp")
        try:
            shutil.copy2(source, staging)
        except OSError as exc:
            staging.unlink(missing_ok=True)
            raise PersistenceError(f"Restore failed: {exc}") from exc
        try:
            # WAL sidecars belong to the database being replaced.
            for suffix in ("-wal", "-shm"):
                Path(str(db_path) + suffix).unlink(missing_ok=True)
            os.replace(staging, db_path)
        except OSError as exc:
            staging.unlink(missing_ok=True)
            raise PersistenceError(f"Restore failed: {exc}") from exc
        await db.migrate_db(self.db_path)
        logger.info("Restored database from {}", source)
        await self._notify()
