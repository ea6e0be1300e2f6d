"""Exception hierarchy for session-archive-store.

Classes
-------
- StoreError           — base class for every error raised by this package
- ConfigurationError   — missing or invalid store configuration
- ObjectNotFoundError  — the requested remote key does not exist
- StoreClientError     — any other failure reported by the object store
- TransferError        — the upload/download protocol was violated
"""
from __future__ import annotations


class StoreError(Exception):
    """Base class for all session-archive-store errors."""


class ConfigurationError(StoreError, ValueError):
    """Raised when the store is constructed with unusable settings."""


class ObjectNotFoundError(StoreError, KeyError):
    """Raised by a client when ``key`` does not exist in ``bucket``."""

    def __init__(self, bucket: str, key: str) -> None:
        self.bucket = bucket
        self.key = key
        super().__init__(f"Object {key!r} not found in bucket {bucket!r}.")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message.
        return str(self.args[0])


class StoreClientError(StoreError, RuntimeError):
    """Wraps an unexpected object-store failure.

    Parameters
    ----------
    message:
        Human-readable description of the failed operation.
    code:
        Store-specific error code (e.g. ``"AccessDenied"``), if known.
    status_code:
        Transport status code of the failed request, if known.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class TransferError(StoreError):
    """Raised when a transfer cannot be completed consistently."""


__all__ = [
    "ConfigurationError",
    "ObjectNotFoundError",
    "StoreClientError",
    "StoreError",
    "TransferError",
]
