"""Chunk accumulation for multipart uploads.

The accumulator turns an ordered stream of arbitrarily sized reads into
numbered parts of exactly ``part_size`` bytes (the last one may be
shorter).  It is an explicit state machine so the single-pass, in-order
contract cannot be broken by buffer arithmetic elsewhere:

- ``ACCUMULATING`` — fewer than ``part_size`` bytes buffered; ``feed`` allowed.
- ``PART_READY``   — a full part is buffered; ``take_part`` must run before
  any further ``feed``.
- ``FLUSHED``      — ``finish`` has drained the remainder; terminal.

Classes
-------
- ChunkState        — the three states above
- PendingPart       — a numbered part waiting to be uploaded
- ChunkAccumulator  — the state machine

Functions
---------
- plan_part_count   — number of parts an upload of a given size produces
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum


class ChunkState(str, Enum):
    """Lifecycle states of a ``ChunkAccumulator``."""

    ACCUMULATING = "accumulating"
    PART_READY = "part_ready"
    FLUSHED = "flushed"


@dataclass(frozen=True, slots=True)
class PendingPart:
    """A part cut from the stream, numbered from 1 in stream order."""

    part_number: int
    data: bytes

    def __len__(self) -> int:
        return len(self.data)


def plan_part_count(size: int, part_size: int) -> int:
    """Return how many parts a ``size``-byte upload is split into.

    Example
    -------
    >>> plan_part_count(45 * 1024 ** 3 // 10, 20 * 1024 ** 2)
    231
    """
    if part_size <= 0:
        raise ValueError("part_size must be positive")
    if size <= 0:
        return 0
    return math.ceil(size / part_size)


class ChunkAccumulator:
    """Buffers stream reads and cuts them into sequentially numbered parts.

    Parameters
    ----------
    part_size:
        Exact size of every part except the last.

    Raises
    ------
    ValueError
        If ``part_size`` is not positive.
    """

    def __init__(self, part_size: int) -> None:
        if part_size <= 0:
            raise ValueError("part_size must be positive")
        self._part_size = part_size
        self._buffer = bytearray()
        self._next_part_number = 1
        self._state = ChunkState.ACCUMULATING

    @property
    def state(self) -> ChunkState:
        return self._state

    @property
    def buffered(self) -> int:
        """Number of bytes currently held."""
        return len(self._buffer)

    @property
    def next_part_number(self) -> int:
        return self._next_part_number

    def _settle(self) -> None:
        if len(self._buffer) >= self._part_size:
            self._state = ChunkState.PART_READY
        else:
            self._state = ChunkState.ACCUMULATING

    def _cut(self, size: int) -> PendingPart:
        part = PendingPart(
            part_number=self._next_part_number,
            data=bytes(self._buffer[:size]),
        )
        del self._buffer[:size]
        self._next_part_number += 1
        return part

    def feed(self, data: bytes) -> ChunkState:
        """Append ``data`` read from the stream and return the new state.

        Raises
        ------
        RuntimeError
            If a full part is waiting or the accumulator is flushed.
        """
        if self._state is not ChunkState.ACCUMULATING:
            raise RuntimeError(f"Cannot feed data while {self._state.value}.")
        self._buffer.extend(data)
        self._settle()
        return self._state

    def take_part(self) -> PendingPart:
        """Remove and return the next full part.

        Raises
        ------
        RuntimeError
            If no full part is buffered.
        """
        if self._state is not ChunkState.PART_READY:
            raise RuntimeError(f"No part ready while {self._state.value}.")
        part = self._cut(self._part_size)
        self._settle()
        return part

    def finish(self) -> PendingPart | None:
        """Drain the short remainder (if any) as the final part.

        Returns ``None`` when the stream ended exactly on a part boundary.

        Raises
        ------
        RuntimeError
            If a full part is still waiting or ``finish`` already ran.
        """
        if self._state is not ChunkState.ACCUMULATING:
            raise RuntimeError(f"Cannot finish while {self._state.value}.")
        self._state = ChunkState.FLUSHED
        if not self._buffer:
            return None
        return self._cut(len(self._buffer))

    def __repr__(self) -> str:
        return (
            f"ChunkAccumulator(part_size={self._part_size}, "
            f"state={self._state.value}, buffered={len(self._buffer)})"
        )


__all__ = ["ChunkAccumulator", "ChunkState", "PendingPart", "plan_part_count"]
