"""JSONL event log for session lifecycle observability."""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


@dataclass
class LogEntry:
    """A single log entry."""

    timestamp: str
    event: str
    session_name: str | None = None
    session_id: str | None = None
    previous_id: str | None = None
    error: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict, excluding None values."""
        data = asdict(self)
        return {k: v for k, v in data.items() if v is not None and v != {} and v != []}


class JSONLLogger:
    """Logger that writes structured logs in JSONL format."""

    def __init__(
        self,
        log_dir: str | Path | None = None,
        filename: str = "sessions.jsonl",
        max_size_mb: float = 10.0,
    ) -> None:
        if log_dir is None:
            log_dir = Path.home() / ".zypto" / "logs"
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.filename = filename
        self.max_size_bytes = int(max_size_mb * 1024 * 1024)

    @property
    def log_path(self) -> Path:
        """Current log file path."""
        return self.log_dir / self.filename

    def _rotate_if_needed(self) -> None:
        """Rotate log file if it exceeds max size."""
        if not self.log_path.exists():
            return

        if self.log_path.stat().st_size >= self.max_size_bytes:
            timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
            rotated_name = f"{self.log_path.stem}_{timestamp}.jsonl"
            self.log_path.rename(self.log_dir / rotated_name)

    def _write(self, entry: LogEntry) -> None:
        """Write a log entry to the file."""
        self._rotate_if_needed()

        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry.to_dict(), default=str) + "\n")

    def log(
        self,
        event: str,
        *,
        session_name: str | None = None,
        session_id: str | None = None,
        previous_id: str | None = None,
        error: str | None = None,
        **extra: Any,
    ) -> None:
        """Log an event."""
        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            event=event,
            session_name=session_name,
            session_id=session_id,
            previous_id=previous_id,
            error=error,
            extra=extra if extra else {},
        )
        self._write(entry)

    def log_transition(
        self,
        event: str,
        session_name: str | None,
        session_id: str | None,
        **extra: Any,
    ) -> None:
        """Log a lifecycle transition (resume, stop, abort, clear)."""
        self.log(event, session_name=session_name, session_id=session_id, **extra)

    def log_regenerate(
        self,
        session_name: str | None,
        previous_id: str | None,
        session_id: str,
        destroyed: bool,
    ) -> None:
        """Log a session id regeneration."""
        self.log(
            "session_regenerate",
            session_name=session_name,
            session_id=session_id,
            previous_id=previous_id,
            destroyed=destroyed,
        )

    def log_store_error(
        self,
        operation: str,
        error: BaseException,
        *,
        session_name: str | None = None,
        session_id: str | None = None,
    ) -> None:
        """Log a failure raised by the backing store."""
        self.log(
            "store_error",
            session_name=session_name,
            session_id=session_id,
            error=f"{type(error).__name__}: {error}",
            operation=operation,
        )
