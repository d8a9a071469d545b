"""Base interface for session storage backends."""

import secrets
from abc import ABC, abstractmethod
from typing import Any


class SessionStore(ABC):
    """Persistence collaborator used by SessionManager.

    Records are addressed by the session name and the session id. Backends
    read and write whole payloads; the manager never asks for single keys.
    """

    def generate_id(self) -> str:
        """Issue a new session identifier."""
        return secrets.token_hex(16)

    @abstractmethod
    def read(self, name: str, session_id: str) -> dict[str, Any]:
        """Return the stored entries, or an empty dict for an unknown session."""
        ...

    @abstractmethod
    def write(self, name: str, session_id: str, data: dict[str, Any]) -> None:
        """Persist entries, replacing any previous record."""
        ...

    @abstractmethod
    def destroy(self, name: str, session_id: str) -> None:
        """Delete the record. Unknown sessions are ignored."""
        ...

    @abstractmethod
    def exists(self, name: str, session_id: str) -> bool:
        """Check whether a record is stored."""
        ...
