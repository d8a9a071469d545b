"""Session storage backends."""

from .base import SessionStore
from .file import FileStore
from .memory import MemoryStore
from .sqlite import SQLiteStore

__all__ = ["FileStore", "MemoryStore", "SQLiteStore", "SessionStore"]
