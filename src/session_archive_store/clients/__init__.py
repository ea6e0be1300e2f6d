"""Object-store client subpackage.

All clients implement the ``ObjectStoreClient`` ABC.  The S3 client guards
its ``boto3`` import so the package remains installable without it.

Public surface
--------------
- ObjectStoreClient          — abstract base class
- InMemoryObjectStoreClient  — dict-backed client (useful for testing)
- S3ObjectStoreClient        — AWS S3 client (requires ``boto3`` package)
"""
from __future__ import annotations

from session_archive_store.clients.base import (
    CompletedPart,
    MultipartUpload,
    ObjectHead,
    ObjectStoreClient,
    ProbeResult,
)
from session_archive_store.clients.memory import InMemoryObjectStoreClient
from session_archive_store.clients.s3 import S3ObjectStoreClient

__all__ = [
    "CompletedPart",
    "InMemoryObjectStoreClient",
    "MultipartUpload",
    "ObjectHead",
    "ObjectStoreClient",
    "ProbeResult",
    "S3ObjectStoreClient",
]
