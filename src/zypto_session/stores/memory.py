"""In-process session store."""

import copy
from typing import Any

from .base import SessionStore


class MemoryStore(SessionStore):
    """Keeps session records in a dict. Useful for tests and CLIs."""

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], dict[str, Any]] = {}

    def read(self, name: str, session_id: str) -> dict[str, Any]:
        return copy.deepcopy(self._records.get((name, session_id), {}))

    def write(self, name: str, session_id: str, data: dict[str, Any]) -> None:
        self._records[(name, session_id)] = copy.deepcopy(data)

    def destroy(self, name: str, session_id: str) -> None:
        self._records.pop((name, session_id), None)

    def exists(self, name: str, session_id: str) -> bool:
        return (name, session_id) in self._records
