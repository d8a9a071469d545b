"""Exceptions raised by the session core."""


class SessionError(Exception):
    """Base class for session errors."""

    pass


class StateError(SessionError, RuntimeError):
    """Raised when a lifecycle operation is invalid in the current state."""

    pass


class ArgumentError(SessionError, ValueError):
    """Raised for an invalid key, including index writes without a key."""

    pass
