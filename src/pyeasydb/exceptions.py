"""Custom exception hierarchy for pyeasydb."""

from __future__ import annotations


class EasyDbError(Exception):
    """Base exception for all pyeasydb errors."""


class EasyDbConfigError(EasyDbError):
    """Invalid or missing configuration (unbound role, unknown backend)."""


class EasyDbInputError(EasyDbError, ValueError):
    """Invalid collection name, document id, document data or filter.

    Raised synchronously, before any state is touched.
    """

    def __init__(self, message: str, *, field: str = "") -> None:
        self.field = field
        super().__init__(message)


class EasyDbClosedError(EasyDbError):
    """The subscription, subscription hub or facade has been closed."""


class EasyDbBackendError(EasyDbError):
    """Failure reported by a concrete storage adapter.

    Adapters wrapping a network or platform SDK raise this (or a subclass)
    instead of returning a default, so callers can tell "absent" apart from
    "operation failed".
    """

    def __init__(
        self,
        message: str,
        *,
        backend: str = "",
        operation: str = "",
    ) -> None:
        self.backend = backend
        self.operation = operation
        super().__init__(message)
