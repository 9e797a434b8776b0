# -*- coding: utf-8 -*-
"""SekundeBrain package.

Modules:
    errors:     Error taxonomy (validation / not found / persistence).
    models:     Entry and folder dataclasses, tag normalization.
    db:         SQLite schema + async data access.
    logic:      EntryStore, the CRUD API the UI talks to.
    projection: Filtered, sorted, pinned/unpinned display list.
    auth:       Unlock gate and passcode hashing.
    images:     Image file loading and sniffing.
    settings:   User preferences (JSON on disk).
    logs:       loguru setup.
    ui:         Textual-based UI (screens, modals, app).
    theme.css:  Textual CSS theme (loaded by ui.py).
"""

__version__ = "1.0.0"

__all__ = [
    "auth",
    "db",
    "errors",
    "images",
    "logic",
    "logs",
    "models",
    "projection",
    "settings",
    "ui",
]
