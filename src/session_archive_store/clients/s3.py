"""AWS S3 object-store client.

Import-guarded: ``boto3`` is an optional dependency.  Building an
``S3ObjectStoreClient`` without passing a ready client and without
``boto3`` installed raises ``ImportError``.

boto3 is synchronous, so every request runs in a worker thread through
``asyncio.to_thread``; the calling task suspends until the round-trip
completes.  Request signing, retries and transport are boto3's concern.

Classes
-------
- S3ObjectStoreClient  — ``ObjectStoreClient`` backed by a boto3 S3 client
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, BinaryIO, Sequence

from session_archive_store.clients.base import (
    CompletedPart,
    MultipartUpload,
    ObjectHead,
    ObjectStoreClient,
    ProbeResult,
)
from session_archive_store.errors import ObjectNotFoundError, StoreClientError

logger = logging.getLogger(__name__)

_BOTO3_IMPORT_ERROR = (
    "The 'boto3' package is required for S3ObjectStoreClient. "
    "Install it with: pip install boto3"
)

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})
_DOWNLOAD_CHUNK_SIZE = 1024 * 1024


def _error_details(exc: BaseException) -> tuple[str, int | None]:
    """Return ``(code, status_code)`` from a botocore ``ClientError``."""
    response = getattr(exc, "response", None)
    if not isinstance(response, dict):
        return "", None
    code = str(response.get("Error", {}).get("Code", ""))
    status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return code, int(status) if status is not None else None


def _is_not_found(exc: BaseException) -> bool:
    code, status = _error_details(exc)
    return code in _NOT_FOUND_CODES or (not code and status == 404)


class S3ObjectStoreClient(ObjectStoreClient):
    """Adapts a boto3 S3 client to the ``ObjectStoreClient`` interface.

    Parameters
    ----------
    client:
        An already configured boto3 S3 client.  When omitted one is built
        from the remaining arguments.
    region_name:
        AWS region for the bucket.
    aws_access_key_id:
        Optional explicit AWS access key ID.
    aws_secret_access_key:
        Optional explicit AWS secret key.
    endpoint_url:
        Optional custom endpoint URL (e.g. for LocalStack or MinIO).
    use_accelerate_endpoint:
        Route requests through the S3 Transfer Acceleration endpoint.
        boto3 only supports this per client, so the per-request
        ``accelerate`` hint of ``put_object`` is advisory.
    """

    def __init__(
        self,
        client: Any | None = None,
        *,
        region_name: str | None = None,
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        endpoint_url: str | None = None,
        use_accelerate_endpoint: bool = False,
    ) -> None:
        if client is None:
            client = self._build_client(
                region_name=region_name,
                aws_access_key_id=aws_access_key_id,
                aws_secret_access_key=aws_secret_access_key,
                endpoint_url=endpoint_url,
                use_accelerate_endpoint=use_accelerate_endpoint,
            )
        self._s3 = client
        self._accelerated = use_accelerate_endpoint

    @staticmethod
    def _build_client(
        *,
        region_name: str | None,
        aws_access_key_id: str | None,
        aws_secret_access_key: str | None,
        endpoint_url: str | None,
        use_accelerate_endpoint: bool,
    ) -> Any:
        try:
            import boto3  # noqa: PLC0415
            from botocore.config import Config  # noqa: PLC0415
        except ImportError as exc:
            raise ImportError(_BOTO3_IMPORT_ERROR) from exc

        session = boto3.session.Session(
            region_name=region_name,
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key,
        )
        config = Config(s3={"use_accelerate_endpoint": use_accelerate_endpoint})
        return session.client("s3", endpoint_url=endpoint_url, config=config)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _call(self, operation: str, **params: Any) -> Any:
        """Run ``operation`` on the boto3 client off the event loop.

        Not-found responses become ``ObjectNotFoundError``; anything else
        is wrapped in ``StoreClientError``.
        """
        method = getattr(self._s3, operation)
        try:
            return await asyncio.to_thread(method, **params)
        except Exception as exc:
            if "Key" in params and _is_not_found(exc):
                raise ObjectNotFoundError(params["Bucket"], params["Key"]) from exc
            code, status = _error_details(exc)
            raise StoreClientError(
                f"S3 {operation} failed: {exc}", code=code or None, status_code=status
            ) from exc

    # ------------------------------------------------------------------
    # ObjectStoreClient interface
    # ------------------------------------------------------------------

    async def list_objects(self, bucket: str) -> ProbeResult:
        response = await self._call("list_objects_v2", Bucket=bucket, MaxKeys=1)
        status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        return ProbeResult(status_code=int(status) if status is not None else None)

    async def head_object(self, bucket: str, key: str) -> ObjectHead:
        response = await self._call("head_object", Bucket=bucket, Key=key)
        size = response.get("ContentLength")
        return ObjectHead(
            size_bytes=int(size) if size is not None else 0,
            etag=response.get("ETag"),
            content_type=response.get("ContentType"),
            content_encoding=response.get("ContentEncoding"),
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
        params: dict[str, Any] = {
            "Bucket": bucket,
            "Key": key,
            "Body": body,
            "ContentType": content_type,
        }
        if content_encoding:
            params["ContentEncoding"] = content_encoding
        if accelerate and not self._accelerated:
            logger.debug(
                "Transfer acceleration requested for %r but the client was "
                "built without use_accelerate_endpoint.",
                key,
            )
        await self._call("put_object", **params)

    async def get_object(self, bucket: str, key: str) -> AsyncIterator[bytes]:
        response = await self._call("get_object", Bucket=bucket, Key=key)
        body = response["Body"]
        try:
            while True:
                chunk = await asyncio.to_thread(body.read, _DOWNLOAD_CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk
        finally:
            body.close()

    async def delete_object(self, bucket: str, key: str) -> None:
        await self._call("delete_object", Bucket=bucket, Key=key)

    async def create_multipart_upload(
        self,
        bucket: str,
        key: str,
        *,
        acl: str,
        content_type: str,
    ) -> MultipartUpload:
        response = await self._call(
            "create_multipart_upload",
            Bucket=bucket,
            Key=key,
            ACL=acl,
            ContentType=content_type,
        )
        upload_id = response.get("UploadId")
        if not upload_id:
            raise StoreClientError("S3 response missing UploadId")
        return MultipartUpload(upload_id=str(upload_id), bucket=bucket, key=key)

    async def upload_part(
        self,
        bucket: str,
        key: str,
        upload_id: str,
        part_number: int,
        body: bytes,
    ) -> str:
        response = await self._call(
            "upload_part",
            Bucket=bucket,
            Key=key,
            UploadId=upload_id,
            PartNumber=int(part_number),
            Body=body,
        )
        return str(response.get("ETag") or "")

    async def complete_multipart_upload(
        self,
        bucket: str,
        key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> None:
        await self._call(
            "complete_multipart_upload",
            Bucket=bucket,
            Key=key,
            UploadId=upload_id,
            MultipartUpload={
                "Parts": [
                    {"PartNumber": int(part.part_number), "ETag": part.etag}
                    for part in parts
                ]
            },
        )

    async def abort_multipart_upload(
        self,
        bucket: str,
        key: str,
        upload_id: str,
    ) -> None:
        await self._call(
            "abort_multipart_upload", Bucket=bucket, Key=key, UploadId=upload_id
        )

    def __repr__(self) -> str:
        return f"S3ObjectStoreClient(accelerated={self._accelerated!r})"


__all__ = ["S3ObjectStoreClient"]
