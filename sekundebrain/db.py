#! /usr/bin/python3
# -*- coding: utf-8 -*-
"""SQLite schema and async data access for SekundeBrain.

Every function opens its own connection and commits once, so each call is a
single transaction. SQLite failures are re-raised as PersistenceError and
the uncommitted transaction is discarded when the connection closes.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional, Sequence
import os
import sqlite3

import aiosqlite
from loguru import logger

from .errors import PersistenceError

DB_PATH = os.environ.get("SEKUNDEBRAIN_DB", "sekundebrain.sqlite3")


# ---------------------------------------------------------------------
# Base schema (new installs)
# ---------------------------------------------------------------------

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA foreign_keys = ON;

CREATE TABLE IF NOT EXISTS folders (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    name            TEXT NOT NULL,
    created_at      TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS entries (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    title           TEXT NOT NULL DEFAULT '',
    content         TEXT NOT NULL,
    date            TEXT NOT NULL,

    -- Optional raw image bytes (one per entry)
    image_data      BLOB,

    is_pinned       INTEGER NOT NULL DEFAULT 0,
    folder_id       INTEGER REFERENCES folders(id) ON DELETE SET NULL
);

CREATE TABLE IF NOT EXISTS entry_tags (
    entry_id        INTEGER NOT NULL,
    position        INTEGER NOT NULL,
    tag             TEXT NOT NULL,
    PRIMARY KEY (entry_id, position),
    FOREIGN KEY (entry_id) REFERENCES entries(id) ON DELETE CASCADE
);
"""

# Indexes reference migrated columns, so they run after migrate_db().
INDEX_SQL = """
CREATE INDEX IF NOT EXISTS idx_entries_folder ON entries(folder_id);
CREATE INDEX IF NOT EXISTS idx_entry_tags_tag ON entry_tags(tag);
"""

ENTRY_SELECT = """
SELECT e.id,
       e.title,
       e.content,
       e.date,
       e.image_data,
       e.is_pinned,
       e.folder_id,
       f.name       AS folder_name,
       f.created_at AS folder_created_at
  FROM entries e
  LEFT JOIN folders f ON f.id = e.folder_id
"""


# ---------------------------------------------------------------------
# Connection
# ---------------------------------------------------------------------

@asynccontextmanager
async def connect(db_path: str) -> AsyncIterator[aiosqlite.Connection]:
    """Open a connection with Row results and foreign keys enabled."""
    try:
        async with aiosqlite.connect(db_path) as db:
            db.row_factory = aiosqlite.Row
            await db.execute("PRAGMA foreign_keys = ON;")
            yield db
    except sqlite3.Error as exc:
        logger.error("SQLite failure on {}: {}", db_path, exc)
        raise PersistenceError(str(exc)) from exc


# ---------------------------------------------------------------------
# Migrations (existing installs)
# ---------------------------------------------------------------------

async def _column_exists(db: aiosqlite.Connection, table: str, column: str) -> bool:
    """Return True if `column` is present in `table`."""
    cur = await db.execute(f"PRAGMA table_info({table})")
    rows = await cur.fetchall()
    await cur.close()
    for r in rows:
        # PRAGMA table_info columns: cid, name, type, notnull, default_value, pk
        if r["name"] == column:
            return True
    return False


LEGACY_ENTRY_COLUMNS = (
    ("image_data", "ALTER TABLE entries ADD COLUMN image_data BLOB;"),
    ("is_pinned", "ALTER TABLE entries ADD COLUMN is_pinned INTEGER NOT NULL DEFAULT 0;"),
    (
        "folder_id",
        "ALTER TABLE entries ADD COLUMN folder_id INTEGER "
        "REFERENCES folders(id) ON DELETE SET NULL;",
    ),
)


async def migrate_db(db_path: str = DB_PATH) -> List[str]:
    """Idempotent migrations for databases that predate pins, images and folders.

    Returns the statements that were applied.
    """
    async with connect(db_path) as db:
        statements = []
        for column, stmt in LEGACY_ENTRY_COLUMNS:
            if not await _column_exists(db, "entries", column):
                statements.append(stmt)

        for stmt in statements:
            await db.execute(stmt)
        await db.executescript(INDEX_SQL)
        await db.commit()

    for stmt in statements:
        logger.info("Applied migration: {}", stmt)
    return statements


async def init_db(db_path: str = DB_PATH) -> List[str]:
    """Create tables if they don't exist and run lightweight migrations.

    Returns the migration statements that were applied.
    """
    async with connect(db_path) as db:
        await db.executescript(SCHEMA_SQL)
        await db.commit()
    return await migrate_db(db_path)


# ---------------------------------------------------------------------
# Folders
# ---------------------------------------------------------------------

async def insert_folder_row(db_path: str, name: str, created_at: str) -> int:
    """Insert a folder and return its id."""
    async with connect(db_path) as db:
        cur = await db.execute(
            "INSERT INTO folders (name, created_at) VALUES (?, ?)",
            (name, created_at),
        )
        await db.commit()
        return cur.lastrowid


async def update_folder_name(db_path: str, folder_id: int, name: str) -> bool:
    """Rename a folder; False if it does not exist."""
    async with connect(db_path) as db:
        cur = await db.execute(
            "UPDATE folders SET name = ? WHERE id = ?",
            (name, folder_id),
        )
        await db.commit()
        return cur.rowcount > 0


async def delete_folder_row(db_path: str, folder_id: int) -> bool:
    """Delete a folder and unfile its entries; False if it does not exist."""
    async with connect(db_path) as db:
        cur = await db.execute("SELECT 1 FROM folders WHERE id = ?", (folder_id,))
        exists = await cur.fetchone()
        await cur.close()
        if not exists:
            return False
        await db.execute(
            "UPDATE entries SET folder_id = NULL WHERE folder_id = ?",
            (folder_id,),
        )
        await db.execute("DELETE FROM folders WHERE id = ?", (folder_id,))
        await db.commit()
        return True


async def get_folder_row(db_path: str, folder_id: int):
    """Return a folder row or None."""
    async with connect(db_path) as db:
        cur = await db.execute(
            "SELECT id, name, created_at FROM folders WHERE id = ?",
            (folder_id,),
        )
        row = await cur.fetchone()
        await cur.close()
        return row


async def list_folder_rows(db_path: str):
    """Return all folder rows in insertion order."""
    async with connect(db_path) as db:
        cur = await db.execute("SELECT id, name, created_at FROM folders ORDER BY id")
        rows = await cur.fetchall()
        await cur.close()
        return rows


# ---------------------------------------------------------------------
# Entries and tags
# ---------------------------------------------------------------------

async def _write_tags(db: aiosqlite.Connection, entry_id: int, tags: Sequence[str]) -> None:
    if not tags:
        return
    await db.executemany(
        "INSERT INTO entry_tags (entry_id, position, tag) VALUES (?, ?, ?)",
        [(entry_id, pos, tag) for pos, tag in enumerate(tags)],
    )


async def insert_entry_row(
    db_path: str,
    title: str,
    content: str,
    date: str,
    image_data: Optional[bytes],
    folder_id: Optional[int],
    tags: Sequence[str],
) -> int:
    """Insert an entry with its tags and return the new entry id."""
    async with connect(db_path) as db:
        cur = await db.execute(
            """
            INSERT INTO entries (title, content, date, image_data, is_pinned, folder_id)
            VALUES (?, ?, ?, ?, 0, ?)
            """,
            (title, content, date, image_data, folder_id),
        )
        entry_id = cur.lastrowid
        await _write_tags(db, entry_id, tags)
        await db.commit()
        return entry_id


async def update_entry_row(
    db_path: str,
    entry_id: int,
    title: str,
    content: str,
    image_data: Optional[bytes],
    folder_id: Optional[int],
    tags: Sequence[str],
) -> bool:
    """Replace the editable fields and tags of an entry; False if missing.

    `date` and `is_pinned` are left untouched.
    """
    async with connect(db_path) as db:
        cur = await db.execute(
            """
            UPDATE entries
               SET title = ?,
                   content = ?,
                   image_data = ?,
                   folder_id = ?
             WHERE id = ?
            """,
            (title, content, image_data, folder_id, entry_id),
        )
        if cur.rowcount == 0:
            return False
        await db.execute("DELETE FROM entry_tags WHERE entry_id = ?", (entry_id,))
        await _write_tags(db, entry_id, tags)
        await db.commit()
        return True


async def toggle_entry_pin(db_path: str, entry_id: int) -> Optional[bool]:
    """Flip `is_pinned` and return the new value, or None if missing."""
    async with connect(db_path) as db:
        cur = await db.execute(
            "UPDATE entries SET is_pinned = NOT is_pinned WHERE id = ?",
            (entry_id,),
        )
        if cur.rowcount == 0:
            return None
        cur = await db.execute("SELECT is_pinned FROM entries WHERE id = ?", (entry_id,))
        row = await cur.fetchone()
        await cur.close()
        await db.commit()
        return bool(row["is_pinned"])


async def delete_entry_row(db_path: str, entry_id: int) -> bool:
    """Delete an entry; tags are removed via FK cascade. False if missing."""
    async with connect(db_path) as db:
        cur = await db.execute("DELETE FROM entries WHERE id = ?", (entry_id,))
        await db.commit()
        return cur.rowcount > 0


async def get_entry_row(db_path: str, entry_id: int):
    """Return a single joined entry row (or None)."""
    async with connect(db_path) as db:
        cur = await db.execute(ENTRY_SELECT + " WHERE e.id = ?", (entry_id,))
        row = await cur.fetchone()
        await cur.close()
        return row


async def list_entry_rows(db_path: str):
    """Return all joined entry rows (no ordering guarantee for callers)."""
    async with connect(db_path) as db:
        cur = await db.execute(ENTRY_SELECT)
        rows = await cur.fetchall()
        await cur.close()
        return rows


async def list_entry_tags(db_path: str, entry_id: Optional[int] = None) -> Dict[int, List[str]]:
    """Return ``{entry_id: [tag, ...]}`` with tags in their stored order."""
    sql = "SELECT entry_id, tag FROM entry_tags"
    params: tuple = ()
    if entry_id is not None:
        sql += " WHERE entry_id = ?"
        params = (entry_id,)
    sql += " ORDER BY entry_id, position"

    async with connect(db_path) as db:
        cur = await db.execute(sql, params)
        rows = await cur.fetchall()
        await cur.close()

    out: Dict[int, List[str]] = {}
    for r in rows:
        out.setdefault(int(r["entry_id"]), []).append(r["tag"])
    return out
