"""Session manager: lifecycle state machine and key/value access."""

import copy
import logging
import threading
from collections.abc import Callable, Iterable, Mapping, MutableMapping
from typing import Any

from .errors import ArgumentError, StateError
from .logging import JSONLLogger
from .stores import SessionStore

logger = logging.getLogger(__name__)


def _check_key(key: Any) -> str:
    if not isinstance(key, str):
        raise ArgumentError(f"Session keys must be strings, got {type(key).__name__}")
    return key


def _check_keys(keys: Iterable[str]) -> list[str]:
    # A bare string would otherwise be iterated character by character.
    if isinstance(keys, str):
        raise ArgumentError("Expected a collection of keys, got a single string")
    return [_check_key(key) for key in keys]


class SessionManager:
    """Owns the running state of one session and all access to its entries.

    The manager moves between two states, not running and running. Entries
    are loaded from the store on ``resume`` into a working copy, mutated in
    memory, and written back on ``stop`` (or ``commit``). Every public method
    holds the manager lock, so a bulk ``add_many`` is never partially visible
    to another call on the same manager.

    When a ``mirror`` mapping is given and the session is resumed with
    ``populate_global=True``, the working copy is also reflected into the
    mirror until the session ends.
    """

    def __init__(
        self,
        store: SessionStore,
        session_id: str | None = None,
        mirror: MutableMapping[str, Any] | None = None,
        event_log: JSONLLogger | None = None,
    ) -> None:
        self.store = store
        self.mirror = mirror
        self.event_log = event_log
        self._session_id = session_id
        self._name: str | None = None
        self._running = False
        self._mirrored = False
        self._data: dict[str, Any] = {}
        self._snapshot: dict[str, Any] = {}
        self._lock = threading.RLock()

    @property
    def session_id(self) -> str | None:
        """Identifier of the current (or last) session."""
        return self._session_id

    @property
    def name(self) -> str | None:
        """Name the running session was resumed under."""
        return self._name

    def started(self) -> bool:
        """Check if a session is currently running."""
        return self._running

    def _require_running(self, operation: str) -> None:
        if not self._running:
            raise StateError(f"Cannot {operation}: no session is running")

    def _call_store(self, operation: str, func: Callable[..., Any], *args: Any) -> Any:
        """Run a store call, recording failures before re-raising them."""
        try:
            return func(*args)
        except Exception as e:
            logger.error("Session store %s failed for %s: %s", operation, self._session_id, e)
            if self.event_log:
                self.event_log.log_store_error(
                    operation, e, session_name=self._name, session_id=self._session_id
                )
            raise

    def _log_event(self, event: str, **extra: Any) -> None:
        if self.event_log:
            self.event_log.log_transition(event, self._name, self._session_id, **extra)

    def _resync_mirror(self) -> None:
        if self._mirrored:
            assert self.mirror is not None
            self.mirror.clear()
            self.mirror.update(self._data)

    def _finish(self) -> None:
        """Drop the working copy and leave the running state."""
        if self._mirrored:
            assert self.mirror is not None
            self.mirror.clear()
        self._running = False
        self._mirrored = False
        self._data = {}
        self._snapshot = {}

    # Lifecycle

    def resume(self, name: str, populate_global: bool = True) -> None:
        """Load the session ``name`` and enter the running state.

        A new identifier is issued when the manager has none yet.

        Raises:
            StateError: If a session is already running, or the store
                could not load the session (the store error is chained).
        """
        with self._lock:
            if self._running:
                raise StateError(f"Session '{self._name}' is already running")

            previous_name = self._name
            self._name = name
            try:
                if self._session_id is None:
                    self._session_id = self._call_store("generate_id", self.store.generate_id)
                data = self._call_store("read", self.store.read, name, self._session_id)
            except Exception as e:
                self._name = previous_name
                raise StateError(f"Could not resume session '{name}': {e}") from e

            self._data = dict(data)
            self._snapshot = copy.deepcopy(self._data)
            self._running = True
            self._mirrored = populate_global and self.mirror is not None
            self._resync_mirror()

            logger.debug("Resumed session %s (%s) with %d entries", name, self._session_id, len(self._data))
            self._log_event("session_resume", entries=len(self._data), mirrored=self._mirrored)

    def stop(self) -> None:
        """Persist the entries and end the session.

        If the store write fails the session stays running.

        Raises:
            StateError: If no session is running.
        """
        with self._lock:
            self._require_running("stop")
            self._call_store("write", self.store.write, self._name, self._session_id, self._data)
            self._log_event("session_stop", entries=len(self._data))
            logger.debug("Stopped session %s (%s)", self._name, self._session_id)
            self._finish()

    def commit(self) -> None:
        """Persist the entries without ending the session.

        Later ``abort`` calls roll back to this point.
        """
        with self._lock:
            self._require_running("commit")
            self._call_store("write", self.store.write, self._name, self._session_id, self._data)
            self._snapshot = copy.deepcopy(self._data)
            self._log_event("session_commit", entries=len(self._data))

    def regenerate_id(self, destroy_old: bool = False) -> None:
        """Issue a new session identifier, keeping the current entries.

        Args:
            destroy_old: Delete the record stored under the previous id.
                Otherwise it is left in the store.
        """
        with self._lock:
            self._require_running("regenerate id")
            previous_id = self._session_id
            new_id = self._call_store("generate_id", self.store.generate_id)
            if destroy_old and previous_id is not None:
                self._call_store("destroy", self.store.destroy, self._name, previous_id)
            self._session_id = new_id

            logger.debug("Regenerated session id %s -> %s", previous_id, new_id)
            if self.event_log:
                self.event_log.log_regenerate(self._name, previous_id, new_id, destroy_old)

    def empty_contents(self) -> None:
        """Remove every entry, keeping the session running."""
        with self._lock:
            self._require_running("empty contents")
            self._data.clear()
            self._resync_mirror()
            self._log_event("session_clear")

    def abort(self, finish_session: bool = False) -> None:
        """Discard changes made since the session was resumed or last committed.

        Args:
            finish_session: Also end the session. Nothing is written.
        """
        with self._lock:
            self._require_running("abort")
            self._data = copy.deepcopy(self._snapshot)
            self._log_event("session_abort", finished=finish_session)
            if finish_session:
                logger.debug("Aborted and finished session %s (%s)", self._name, self._session_id)
                self._finish()
            else:
                self._resync_mirror()

    # Key/value access

    def keys(self) -> list[str]:
        """List the keys currently set."""
        with self._lock:
            self._require_running("list keys")
            return list(self._data)

    def has(self, key: str) -> bool:
        with self._lock:
            self._require_running("check key")
            return _check_key(key) in self._data

    def has_many(self, keys: Iterable[str]) -> dict[str, bool]:
        with self._lock:
            self._require_running("check keys")
            return {key: key in self._data for key in _check_keys(keys)}

    def retrieve(self, key: str, default: Any = None) -> Any:
        with self._lock:
            self._require_running("retrieve")
            return self._data.get(_check_key(key), default)

    def retrieve_many(
        self,
        keys: Iterable[str],
        default: Any = None,
        defaults: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Get several entries at once.

        Absent keys take their value from ``defaults`` when listed there,
        otherwise ``default``.
        """
        defaults = defaults or {}
        with self._lock:
            self._require_running("retrieve")
            result: dict[str, Any] = {}
            for key in _check_keys(keys):
                if key in self._data:
                    result[key] = self._data[key]
                else:
                    result[key] = defaults.get(key, default)
            return result

    def remove(self, key: str) -> None:
        with self._lock:
            self._require_running("remove")
            key = _check_key(key)
            self._data.pop(key, None)
            if self._mirrored:
                assert self.mirror is not None
                self.mirror.pop(key, None)

    def remove_many(self, keys: Iterable[str]) -> None:
        with self._lock:
            self._require_running("remove")
            for key in _check_keys(keys):
                self._data.pop(key, None)
                if self._mirrored:
                    assert self.mirror is not None
                    self.mirror.pop(key, None)

    def add(self, key: str, value: Any) -> None:
        with self._lock:
            self._require_running("add")
            key = _check_key(key)
            self._data[key] = value
            if self._mirrored:
                assert self.mirror is not None
                self.mirror[key] = value

    def add_many(self, entries: Mapping[str, Any]) -> None:
        """Set several entries. Keys are validated before anything is applied."""
        with self._lock:
            self._require_running("add")
            if not isinstance(entries, Mapping):
                raise ArgumentError(f"Expected a mapping of entries, got {type(entries).__name__}")
            _check_keys(entries.keys())
            self._data.update(entries)
            if self._mirrored:
                assert self.mirror is not None
                self.mirror.update(entries)
