"""Transfer subpackage: chunk accumulation and the upload/download engine."""
from __future__ import annotations

from session_archive_store.transfer.chunker import (
    ChunkAccumulator,
    ChunkState,
    PendingPart,
    plan_part_count,
)
from session_archive_store.transfer.engine import TransferEngine

__all__ = [
    "ChunkAccumulator",
    "ChunkState",
    "PendingPart",
    "TransferEngine",
    "plan_part_count",
]
