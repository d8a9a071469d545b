"""Session handle: a named facade over a SessionManager."""

from collections.abc import Iterable, Mapping
from types import TracebackType
from typing import Any

from .errors import ArgumentError
from .manager import SessionManager

DEFAULT_NAME = "ZyptoSession"


class Session:
    """Named session handle with dict-style access.

    Lifecycle verbs return the handle so calls can be chained::

        session.initialize().regenerate()
        session["user_id"] = 42

    Used as a context manager the session is initialized on entry, released
    on a clean exit and discarded (ending the session without saving) when
    the block raises.
    """

    # Sessions are keyed mappings; iterating them is not supported.
    __iter__ = None

    def __init__(
        self,
        manager: SessionManager,
        name: str = DEFAULT_NAME,
        populate_global: bool = True,
    ) -> None:
        self.manager = manager
        self.populate_global = populate_global
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def set_name(self, name: str = DEFAULT_NAME) -> "Session":
        """Set the session name. Only takes effect on the next ``initialize``."""
        self._name = name
        return self

    def running(self) -> bool:
        """Check if the session is running."""
        return self.manager.started()

    def initialize(self, populate_global: bool | None = None) -> "Session":
        """Resume the session unless it is already running.

        ``populate_global`` defaults to the value the handle was built with.

        Raises:
            StateError: If the store could not load the session.
        """
        if not self.running():
            if populate_global is None:
                populate_global = self.populate_global
            self.manager.resume(self._name, populate_global)
        return self

    def release(self) -> "Session":
        """Save and end the session.

        Raises:
            StateError: If the session is not running.
        """
        self.manager.stop()
        return self

    def regenerate(self, destroy_old: bool = False) -> "Session":
        self.manager.regenerate_id(destroy_old)
        return self

    def invalidate(self) -> "Session":
        """Issue a new id and drop every entry, e.g. after a privilege change."""
        self.regenerate()
        self.manager.empty_contents()
        return self

    def discard(self, finish_session: bool = False) -> "Session":
        """Roll back unsaved changes, optionally ending the session."""
        self.manager.abort(finish_session)
        return self

    def has(self, key: str) -> bool:
        return self.manager.has(key)

    def has_many(self, keys: Iterable[str]) -> dict[str, bool]:
        return self.manager.has_many(keys)

    def get(self, key: str, default: Any = None) -> Any:
        return self.manager.retrieve(key, default)

    def get_many(
        self,
        keys: Iterable[str],
        default: Any = None,
        defaults: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        return self.manager.retrieve_many(keys, default, defaults)

    def delete(self, key: str) -> None:
        self.manager.remove(key)

    def delete_many(self, keys: Iterable[str]) -> None:
        self.manager.remove_many(keys)

    def set(self, key: str, value: Any) -> None:
        self.manager.add(key, value)

    def set_many(self, entries: Mapping[str, Any]) -> None:
        self.manager.add_many(entries)

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        if key is None:
            raise ArgumentError("Sessions do not support append, a key is required")
        self.set(key, value)

    def __delitem__(self, key: str) -> None:
        self.delete(key)

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __enter__(self) -> "Session":
        return self.initialize()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        # The block may already have released or discarded the session.
        if not self.running():
            return
        if exc_type is None:
            self.release()
        else:
            self.discard(finish_session=True)

    def __repr__(self) -> str:
        state = "running" if self.running() else "stopped"
        return f"Session(name={self._name!r}, {state})"
