"""Per-operation debug diagnostics.

When ``StoreConfig.debug`` is on, each operation phase is reported as one
INFO record of the form::

    2026-01-01T12:00:00.000000+00:00 [STORE_DEBUG] [METHOD: save] Triggered.

Classes
-------
- DebugLog  — callable that emits the line above when enabled
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

logger = logging.getLogger("session_archive_store")


class DebugLog:
    """Emit timestamped diagnostic lines, gated by a fixed flag.

    Parameters
    ----------
    enabled:
        Evaluated once; a disabled instance never formats anything.
    target:
        Logger receiving the records.  Defaults to the package logger.
    """

    def __init__(self, enabled: bool, target: logging.Logger | None = None) -> None:
        self._enabled = enabled
        self._logger = target or logger

    @property
    def enabled(self) -> bool:
        return self._enabled

    def __call__(self, method: str, message: str, *args: object) -> None:
        if not self._enabled:
            return
        timestamp = datetime.now(timezone.utc).isoformat()
        self._logger.info(
            "%s [STORE_DEBUG] [METHOD: %s] " + message, timestamp, method, *args
        )


__all__ = ["DebugLog"]
