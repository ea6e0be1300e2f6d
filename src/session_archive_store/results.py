"""Result types returned by ``SessionBlobStore``.

Classes
-------
- Presence  — outcome of an existence probe
"""
from __future__ import annotations

from enum import Enum


class Presence(str, Enum):
    """Whether a remote archive exists.

    ``INDETERMINATE`` means the store could not answer (misconfiguration or
    an unexpected error); callers that only need a yes/no should treat it
    like ``ABSENT``.
    """

    PRESENT = "present"
    ABSENT = "absent"
    INDETERMINATE = "indeterminate"

    def __bool__(self) -> bool:
        return self is Presence.PRESENT


__all__ = ["Presence"]
