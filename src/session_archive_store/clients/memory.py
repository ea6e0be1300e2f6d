"""Async in-memory object-store client.

Keeps objects and in-flight multipart uploads in plain dicts guarded by
``asyncio.Lock``.  All data is lost when the process exits.  This client is
primarily useful for tests and local prototyping; it enforces the same
multipart rules a real store does (contiguous part numbers starting at 1,
matching entity tags).

Classes
-------
- InMemoryObjectStoreClient  — dict-backed ``ObjectStoreClient``
"""
from __future__ import annotations

import asyncio
import hashlib
from dataclasses import dataclass, field
from typing import AsyncIterator, BinaryIO, Sequence
from uuid import uuid4

from session_archive_store.clients.base import (
    CompletedPart,
    MultipartUpload,
    ObjectHead,
    ObjectStoreClient,
    ProbeResult,
)
from session_archive_store.errors import ObjectNotFoundError, StoreClientError

_READ_CHUNK_SIZE = 64 * 1024


def _etag(data: bytes) -> str:
    return f'"{hashlib.md5(data).hexdigest()}"'  # noqa: S324


@dataclass
class _StoredObject:
    data: bytes
    content_type: str | None = None
    content_encoding: str | None = None


@dataclass
class _PendingUpload:
    bucket: str
    key: str
    content_type: str | None
    parts: dict[int, tuple[str, bytes]] = field(default_factory=dict)


class InMemoryObjectStoreClient(ObjectStoreClient):
    """Ephemeral object store backed by Python dicts.

    Parameters
    ----------
    buckets:
        Names of the buckets that exist.  Operations against any other
        bucket raise ``StoreClientError`` with code ``"NoSuchBucket"``.
    chunk_size:
        Size of the chunks yielded by ``get_object``.
    """

    def __init__(
        self,
        buckets: Sequence[str] = ("sessions",),
        chunk_size: int = _READ_CHUNK_SIZE,
    ) -> None:
        self._buckets: set[str] = set(buckets)
        self._chunk_size = chunk_size
        self._objects: dict[tuple[str, str], _StoredObject] = {}
        self._uploads: dict[str, _PendingUpload] = {}
        self._lock: asyncio.Lock = asyncio.Lock()
        self.aborted_uploads: list[str] = []

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _check_bucket(self, bucket: str) -> None:
        if bucket not in self._buckets:
            raise StoreClientError(
                f"Bucket {bucket!r} does not exist.",
                code="NoSuchBucket",
                status_code=404,
            )

    def _pending(self, bucket: str, key: str, upload_id: str) -> _PendingUpload:
        upload = self._uploads.get(upload_id)
        if upload is None or upload.bucket != bucket or upload.key != key:
            raise StoreClientError(
                f"Upload {upload_id!r} does not exist for key {key!r}.",
                code="NoSuchUpload",
                status_code=404,
            )
        return upload

    # ------------------------------------------------------------------
    # ObjectStoreClient interface
    # ------------------------------------------------------------------

    async def list_objects(self, bucket: str) -> ProbeResult:
        async with self._lock:
            self._check_bucket(bucket)
            return ProbeResult(status_code=200)

    async def head_object(self, bucket: str, key: str) -> ObjectHead:
        async with self._lock:
            self._check_bucket(bucket)
            stored = self._objects.get((bucket, key))
            if stored is None:
                raise ObjectNotFoundError(bucket, key)
            return ObjectHead(
                size_bytes=len(stored.data),
                etag=_etag(stored.data),
                content_type=stored.content_type,
                content_encoding=stored.content_encoding,
            )

    async def put_object(
        self,
        bucket: str,
        key: str,
        body: BinaryIO,
        *,
        content_type: str,
        content_encoding: str | None = None,
        accelerate: bool = False,
    ) -> None:
        chunks: list[bytes] = []
        while True:
            chunk = body.read(self._chunk_size)
            if not chunk:
                break
            chunks.append(chunk)
        async with self._lock:
            self._check_bucket(bucket)
            self._objects[(bucket, key)] = _StoredObject(
                data=b"".join(chunks),
                content_type=content_type,
                content_encoding=content_encoding,
            )

    async def get_object(self, bucket: str, key: str) -> AsyncIterator[bytes]:
        async with self._lock:
            self._check_bucket(bucket)
            stored = self._objects.get((bucket, key))
            if stored is None:
                raise ObjectNotFoundError(bucket, key)
            data = stored.data
        for offset in range(0, len(data), self._chunk_size):
            yield data[offset:offset + self._chunk_size]

    async def delete_object(self, bucket: str, key: str) -> None:
        async with self._lock:
            self._check_bucket(bucket)
            self._objects.pop((bucket, key), None)

    async def create_multipart_upload(
        self,
        bucket: str,
        key: str,
        *,
        acl: str,
        content_type: str,
    ) -> MultipartUpload:
        async with self._lock:
            self._check_bucket(bucket)
            upload_id = uuid4().hex
            self._uploads[upload_id] = _PendingUpload(
                bucket=bucket, key=key, content_type=content_type
            )
            return MultipartUpload(upload_id=upload_id, bucket=bucket, key=key)

    async def upload_part(
        self,
        bucket: str,
        key: str,
        upload_id: str,
        part_number: int,
        body: bytes,
    ) -> str:
        if part_number < 1:
            raise StoreClientError(
                f"Invalid part number {part_number}.", code="InvalidArgument"
            )
        async with self._lock:
            upload = self._pending(bucket, key, upload_id)
            etag = _etag(body)
            upload.parts[part_number] = (etag, bytes(body))
            return etag

    async def complete_multipart_upload(
        self,
        bucket: str,
        key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> None:
        async with self._lock:
            upload = self._pending(bucket, key, upload_id)
            numbers = [part.part_number for part in parts]
            if not numbers or numbers != list(range(1, len(numbers) + 1)):
                raise StoreClientError(
                    f"Parts must be contiguous from 1, got {numbers!r}.",
                    code="InvalidPartOrder",
                    status_code=400,
                )
            data: list[bytes] = []
            for part in parts:
                stored = upload.parts.get(part.part_number)
                if stored is None or stored[0] != part.etag:
                    raise StoreClientError(
                        f"Part {part.part_number} has no matching entity tag.",
                        code="InvalidPart",
                        status_code=400,
                    )
                data.append(stored[1])
            self._objects[(bucket, key)] = _StoredObject(
                data=b"".join(data), content_type=upload.content_type
            )
            del self._uploads[upload_id]

    async def abort_multipart_upload(
        self,
        bucket: str,
        key: str,
        upload_id: str,
    ) -> None:
        async with self._lock:
            self._pending(bucket, key, upload_id)
            del self._uploads[upload_id]
            self.aborted_uploads.append(upload_id)

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    @property
    def pending_uploads(self) -> list[str]:
        """Upload IDs that were initiated but neither completed nor aborted."""
        return list(self._uploads)

    def object_bytes(self, bucket: str, key: str) -> bytes:
        """Return the stored bytes of ``key``; raises ``ObjectNotFoundError``."""
        stored = self._objects.get((bucket, key))
        if stored is None:
            raise ObjectNotFoundError(bucket, key)
        return stored.data

    def __len__(self) -> int:
        return len(self._objects)

    def __repr__(self) -> str:
        return (
            f"InMemoryObjectStoreClient(buckets={sorted(self._buckets)!r}, "
            f"objects={len(self._objects)})"
        )


__all__ = ["InMemoryObjectStoreClient"]
