# -*- coding: utf-8 -*-
"""Error taxonomy shared by the store, collaborators and UI."""
from __future__ import annotations


class JournalError(Exception):
    """Base class for every error raised by SekundeBrain."""


class ValidationError(JournalError, ValueError):
    """A required field is empty or a value is malformed."""


class NotFoundError(JournalError, ValueError):
    """An operation referenced an entry, folder or file that does not exist."""


class PersistenceError(JournalError):
    """The underlying SQLite read or write failed."""
