"""session-archive-store — Remote persistence of session zip archives.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import session_archive_store
>>> session_archive_store.__version__
'0.1.0'
"""
from __future__ import annotations

# Facade
from session_archive_store.store import SessionBlobStore
from session_archive_store.results import Presence
from session_archive_store.config import StoreConfig
from session_archive_store.keys import derive_key

# Clients
from session_archive_store.clients.base import (
    CompletedPart,
    MultipartUpload,
    ObjectHead,
    ObjectStoreClient,
    ProbeResult,
)
from session_archive_store.clients.memory import InMemoryObjectStoreClient
from session_archive_store.clients.s3 import S3ObjectStoreClient

# Transfer
from session_archive_store.transfer.chunker import (
    ChunkAccumulator,
    ChunkState,
    plan_part_count,
)
from session_archive_store.transfer.engine import TransferEngine

# Errors
from session_archive_store.errors import (
    ConfigurationError,
    ObjectNotFoundError,
    StoreClientError,
    StoreError,
    TransferError,
)

__version__: str = "0.1.0"

__all__ = [
    "__version__",
    # Facade
    "Presence",
    "SessionBlobStore",
    "StoreConfig",
    "derive_key",
    # Clients
    "CompletedPart",
    "InMemoryObjectStoreClient",
    "MultipartUpload",
    "ObjectHead",
    "ObjectStoreClient",
    "ProbeResult",
    "S3ObjectStoreClient",
    # Transfer
    "ChunkAccumulator",
    "ChunkState",
    "TransferEngine",
    "plan_part_count",
    # Errors
    "ConfigurationError",
    "ObjectNotFoundError",
    "StoreClientError",
    "StoreError",
    "TransferError",
]
