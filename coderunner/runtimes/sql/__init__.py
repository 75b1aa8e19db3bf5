"""SQL runtime: SQLite (``sqlite3``) inside a guest process.

Provides SQLRunner. Each execution gets a fresh in-memory database.
"""

from .runner import SQLRunner

__all__ = ["SQLRunner"]
