"""Exceptions raised by the health store, gateway and mutation API."""

from __future__ import annotations


class MonitorError(Exception):
    """Base class for labwatch errors."""


class IndexOutOfRange(MonitorError):
    """Raised when a mutation references a service position that doesn't exist."""

    def __init__(self, index: int, length: int) -> None:
        self.index = index
        self.length = length
        super().__init__("Index out of bounds")


class InternalStateError(MonitorError):
    """Raised when the health store lock can't be acquired."""


class PersistenceFailure(MonitorError):
    """Raised when the settings file can't be serialized or written."""


class LoadFailure(MonitorError):
    """Raised when the settings file can't be read or parsed."""
