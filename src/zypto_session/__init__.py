"""Server-side session lifecycle and key/value access."""

from .config import SessionConfig, create_session, create_store, load_config, save_config
from .errors import ArgumentError, SessionError, StateError
from .logging import JSONLLogger, LogEntry
from .manager import SessionManager
from .session import DEFAULT_NAME, Session
from .stores import FileStore, MemoryStore, SessionStore, SQLiteStore

__all__ = [
    "ArgumentError",
    "DEFAULT_NAME",
    "FileStore",
    "JSONLLogger",
    "LogEntry",
    "MemoryStore",
    "SQLiteStore",
    "Session",
    "SessionConfig",
    "SessionError",
    "SessionManager",
    "SessionStore",
    "StateError",
    "create_session",
    "create_store",
    "load_config",
    "save_config",
]
