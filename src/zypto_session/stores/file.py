"""JSON file session store."""

import json
import logging
import os
from pathlib import Path
from typing import Any

from ..errors import ArgumentError
from .base import SessionStore

logger = logging.getLogger(__name__)


def _check_component(kind: str, value: str) -> str:
    # Names and ids become path components; they must not leave the store dir.
    if not value or value in (".", "..") or "/" in value or "\\" in value or "\x00" in value:
        raise ArgumentError(f"Invalid session {kind} for file store: {value!r}")
    return value


class FileStore(SessionStore):
    """Stores each session as ``<sessions_dir>/<name>/<session_id>.json``.

    Writes go to a temporary sibling file that replaces the record only once
    the payload has been serialised and flushed, so a failed write leaves the
    previous record intact.
    """

    def __init__(self, sessions_dir: Path | str) -> None:
        self.sessions_dir = Path(sessions_dir)
        self.sessions_dir.mkdir(parents=True, exist_ok=True)

    def _session_file(self, name: str, session_id: str) -> Path:
        """Get the file path for a session.

        Raises:
            ArgumentError: If the name or id would resolve outside sessions_dir.
        """
        _check_component("name", name)
        _check_component("id", session_id)
        path = self.sessions_dir / name / f"{session_id}.json"
        if not path.resolve().is_relative_to(self.sessions_dir.resolve()):
            raise ArgumentError(f"Session path escapes the store directory: {path}")
        return path

    def read(self, name: str, session_id: str) -> dict[str, Any]:
        path = self._session_file(name, session_id)
        if not path.exists():
            return {}

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except ValueError as e:
            # Covers both malformed JSON and undecodable bytes.
            logger.warning("Corrupt session file %s: %s. Starting empty.", path, e)
            return {}

        if not isinstance(data, dict):
            logger.warning("Session file %s does not hold an object. Starting empty.", path)
            return {}
        return data

    def write(self, name: str, session_id: str, data: dict[str, Any]) -> None:
        path = self._session_file(name, session_id)
        payload = json.dumps(data, indent=2)

        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(f".{path.name}.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except OSError:
            if tmp_path.exists():
                tmp_path.unlink()
            raise

    def destroy(self, name: str, session_id: str) -> None:
        path = self._session_file(name, session_id)
        if path.exists():
            path.unlink()

    def exists(self, name: str, session_id: str) -> bool:
        return self._session_file(name, session_id).exists()
