"""Archive transfer engine.

Moves a local archive to and from the object store without holding the
whole object in memory.

Upload strategy is chosen by size: archives up to
``StoreConfig.multipart_threshold`` are streamed in one ``put_object``;
larger ones go through multipart upload, with parts cut by a
``ChunkAccumulator`` and uploaded strictly in order, one at a time.  The
multipart session is a scoped resource: leaving the scope by any route
other than a successful completion aborts the upload on the store.

Classes
-------
- TransferEngine  — upload and download of a single archive
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing, asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from session_archive_store.clients.base import (
    CompletedPart,
    MultipartUpload,
    ObjectStoreClient,
)
from session_archive_store.config import MIB, StoreConfig
from session_archive_store.diagnostics import DebugLog
from session_archive_store.errors import TransferError
from session_archive_store.transfer.chunker import (
    ChunkAccumulator,
    ChunkState,
    PendingPart,
    plan_part_count,
)

logger = logging.getLogger(__name__)

_MAX_READ_SIZE = 1 * MIB


class TransferEngine:
    """Uploads and downloads one archive per call.

    Parameters
    ----------
    client:
        Object-store client used for every request.
    config:
        Store configuration (bucket, thresholds, upload headers).
    debug_log:
        Diagnostic sink; defaults to one driven by ``config.debug``.
    """

    def __init__(
        self,
        client: ObjectStoreClient,
        config: StoreConfig,
        debug_log: DebugLog | None = None,
    ) -> None:
        self._client = client
        self._config = config
        self._debug = debug_log or DebugLog(config.debug)
        self._read_size = min(config.part_size, _MAX_READ_SIZE)

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def uses_multipart(self, size: int) -> bool:
        """Return True if an archive of ``size`` bytes is uploaded in parts."""
        return size > self._config.multipart_threshold

    async def upload(self, key: str, source: Path) -> None:
        """Upload ``source`` to ``key``.

        Raises
        ------
        OSError
            If ``source`` cannot be read.
        TransferError
            If the store returns an inconsistent multipart response.
        """
        size = source.stat().st_size
        if self.uses_multipart(size):
            await self._upload_multipart(key, source, size)
        else:
            await self._upload_single(key, source, size)

    async def _upload_single(self, key: str, source: Path, size: int) -> None:
        self._debug("save", "Uploading single object. PATH='%s', SIZE=%d.", key, size)
        with source.open("rb") as stream:
            await self._client.put_object(
                self._config.bucket_name,
                key,
                stream,
                content_type=self._config.content_type,
                content_encoding=self._config.content_encoding,
                accelerate=self._config.accelerate,
            )

    @asynccontextmanager
    async def multipart_session(self, key: str) -> AsyncIterator[MultipartUpload]:
        """Initiate a multipart upload and abort it unless the block succeeds.

        An abort that itself fails is logged; the original error is the one
        that propagates.
        """
        upload = await self._client.create_multipart_upload(
            self._config.bucket_name,
            key,
            acl=self._config.acl,
            content_type=self._config.content_type,
        )
        if not upload.upload_id:
            raise TransferError(f"Store returned no upload id for {key!r}.")
        try:
            yield upload
        except BaseException:
            logger.warning("Aborting multipart upload %s for %r.", upload.upload_id, key)
            try:
                await self._client.abort_multipart_upload(
                    upload.bucket, upload.key, upload.upload_id
                )
            except Exception:
                logger.exception(
                    "Failed to abort multipart upload %s for %r.",
                    upload.upload_id,
                    key,
                )
            raise

    async def _send_part(
        self, upload: MultipartUpload, part: PendingPart
    ) -> CompletedPart:
        etag = await self._client.upload_part(
            upload.bucket, upload.key, upload.upload_id, part.part_number, part.data
        )
        if not etag:
            raise TransferError(
                f"Store returned no entity tag for part {part.part_number} "
                f"of {upload.key!r}."
            )
        self._debug(
            "save", "Uploaded part %d (%d bytes).", part.part_number, len(part)
        )
        return CompletedPart(part_number=part.part_number, etag=etag)

    async def _upload_multipart(self, key: str, source: Path, size: int) -> None:
        self._debug(
            "save",
            "Uploading multipart object. PATH='%s', SIZE=%d, PARTS=%d.",
            key,
            size,
            plan_part_count(size, self._config.part_size),
        )
        async with self.multipart_session(key) as upload:
            accumulator = ChunkAccumulator(self._config.part_size)
            parts: list[CompletedPart] = []
            with source.open("rb") as stream:
                while True:
                    chunk = await asyncio.to_thread(stream.read, self._read_size)
                    if not chunk:
                        break
                    accumulator.feed(chunk)
                    while accumulator.state is ChunkState.PART_READY:
                        parts.append(
                            await self._send_part(upload, accumulator.take_part())
                        )
            remainder = accumulator.finish()
            if remainder is not None:
                parts.append(await self._send_part(upload, remainder))

            expected = list(range(1, len(parts) + 1))
            if not parts or [p.part_number for p in parts] != expected:
                raise TransferError(
                    f"Refusing to complete {key!r} with parts "
                    f"{[p.part_number for p in parts]!r}."
                )
            await self._client.complete_multipart_upload(
                upload.bucket, upload.key, upload.upload_id, parts
            )

    # ------------------------------------------------------------------
    # Download
    # ------------------------------------------------------------------

    async def download(self, key: str, destination: Path) -> int:
        """Stream ``key`` into a new file at ``destination``.

        The file is closed before this returns.  On any error the partial
        file is removed and the error propagates.

        Returns
        -------
        int
            Number of bytes written.
        """
        written = 0
        sink = destination.open("wb")
        try:
            with sink:
                async with aclosing(
                    self._client.get_object(self._config.bucket_name, key)
                ) as chunks:
                    async for chunk in chunks:
                        await asyncio.to_thread(sink.write, chunk)
                        written += len(chunk)
                sink.flush()
        except BaseException:
            destination.unlink(missing_ok=True)
            raise
        return written


__all__ = ["TransferEngine"]
