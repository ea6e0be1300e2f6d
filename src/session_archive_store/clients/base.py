"""Abstract base class for object-store clients.

``SessionBlobStore`` depends only on the primitive operations defined here,
never on a concrete SDK.  Every method is a coroutine so a call suspends
the calling task until the network round-trip completes.

Classes
-------
- ProbeResult        — outcome of the bucket listing used for validation
- ObjectHead         — metadata returned by ``head_object``
- MultipartUpload    — handle returned by ``create_multipart_upload``
- CompletedPart      — one acknowledged part of a multipart upload
- ObjectStoreClient  — abstract base for all clients
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator, BinaryIO, Sequence


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """Transport status of a bucket listing."""

    status_code: int | None


@dataclass(frozen=True, slots=True)
class ObjectHead:
    """Metadata from a HEAD object request."""

    size_bytes: int
    etag: str | None = None
    content_type: str | None = None
    content_encoding: str | None = None


@dataclass(frozen=True, slots=True)
class MultipartUpload:
    """Result of initiating a multipart upload."""

    upload_id: str
    bucket: str
    key: str


@dataclass(frozen=True, slots=True)
class CompletedPart:
    """A part accepted by the store, identified by number and entity tag."""

    part_number: int
    etag: str


class ObjectStoreClient(ABC):
    """Capability set consumed by ``SessionBlobStore``.

    Implementations raise ``ObjectNotFoundError`` from ``head_object`` and
    ``get_object`` when the key is missing, and ``StoreClientError`` (or
    let the SDK error through) for everything else.
    """

    @abstractmethod
    async def list_objects(self, bucket: str) -> ProbeResult:
        """List ``bucket`` and report the transport status code."""

    @abstractmethod
    async def head_object(self, bucket: str, key: str) -> ObjectHead:
        """Return metadata for ``key``.

        Raises
        ------
        ObjectNotFoundError
            If ``key`` does not exist.
        """

    @abstractmethod
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
        """Upload ``body`` as a single object.

        Parameters
        ----------
        bucket:
            Target bucket.
        key:
            Target object key.
        body:
            Readable binary file object; consumed to EOF, not closed.
        content_type:
            MIME type declared on the object.
        content_encoding:
            Content encoding declared on the object, if any.
        accelerate:
            Advisory transfer-acceleration hint.
        """

    @abstractmethod
    def get_object(self, bucket: str, key: str) -> AsyncIterator[bytes]:
        """Stream the content of ``key`` as a sequence of byte chunks.

        Implemented as an async generator; errors (including
        ``ObjectNotFoundError``) surface on the first iteration.
        """

    @abstractmethod
    async def delete_object(self, bucket: str, key: str) -> None:
        """Delete ``key`` from ``bucket``."""

    @abstractmethod
    async def create_multipart_upload(
        self,
        bucket: str,
        key: str,
        *,
        acl: str,
        content_type: str,
    ) -> MultipartUpload:
        """Initiate a multipart upload and return its handle."""

    @abstractmethod
    async def upload_part(
        self,
        bucket: str,
        key: str,
        upload_id: str,
        part_number: int,
        body: bytes,
    ) -> str:
        """Upload one part and return the entity tag the store computed."""

    @abstractmethod
    async def complete_multipart_upload(
        self,
        bucket: str,
        key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> None:
        """Assemble ``parts`` (ascending part numbers) into the final object."""

    @abstractmethod
    async def abort_multipart_upload(
        self,
        bucket: str,
        key: str,
        upload_id: str,
    ) -> None:
        """Abort a multipart upload and discard its uploaded parts."""


__all__ = [
    "CompletedPart",
    "MultipartUpload",
    "ObjectHead",
    "ObjectStoreClient",
    "ProbeResult",
]
