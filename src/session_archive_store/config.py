"""Store configuration model.

``StoreConfig`` is an immutable Pydantic model holding everything the store
needs apart from the client handle.  The debug toggle is an ordinary field
read once at construction, so two stores in the same process may differ.

Classes
-------
- StoreConfig  — frozen configuration for ``SessionBlobStore``
"""
from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, Field, field_validator

MIB: int = 1024 * 1024
GIB: int = 1024 * MIB

DEFAULT_PART_SIZE: int = 20 * MIB
DEFAULT_MULTIPART_THRESHOLD: int = 4 * GIB

_TRUTHY = {"1", "true", "t", "yes", "y", "on"}


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


class StoreConfig(BaseModel):
    """Immutable settings for a ``SessionBlobStore``.

    Parameters
    ----------
    bucket_name:
        Bucket (container) holding the session archives.
    remote_data_path:
        Base path inside the bucket; keys are
        ``<remote_data_path>/<session_id>.zip``.
    debug:
        Emit a timestamped diagnostic line for every operation phase.
    part_size:
        Bytes buffered before a multipart part is flushed.
    multipart_threshold:
        Archives strictly larger than this use multipart upload.
    content_type:
        Content type declared on uploaded archives.
    content_encoding:
        Content encoding declared on single-shot uploads.  The bytes are
        sent as-is; ``None`` omits the header.
    accelerate:
        Request transfer acceleration on single-shot uploads.
    acl:
        Canned ACL applied when a multipart upload is initiated.
    """

    bucket_name: str = Field(min_length=1)
    remote_data_path: str = Field(min_length=1)
    debug: bool = False
    part_size: int = Field(default=DEFAULT_PART_SIZE, gt=0)
    multipart_threshold: int = Field(default=DEFAULT_MULTIPART_THRESHOLD, gt=0)
    content_type: str = "application/zip"
    content_encoding: str | None = "gzip"
    accelerate: bool = True
    acl: str = "private"

    model_config = {"frozen": True}

    @field_validator("bucket_name", "remote_data_path")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @classmethod
    def from_environment(cls, **overrides: Any) -> "StoreConfig":
        """Build a config from ``STORE_*`` environment variables.

        Keyword arguments take precedence over the environment.  Recognised
        variables: ``STORE_BUCKET``, ``STORE_REMOTE_PATH``, ``STORE_DEBUG``,
        ``STORE_PART_SIZE``, ``STORE_MULTIPART_THRESHOLD``.
        """
        values: dict[str, Any] = {
            "bucket_name": os.environ.get("STORE_BUCKET", ""),
            "remote_data_path": os.environ.get("STORE_REMOTE_PATH", ""),
            "debug": _as_bool(os.environ.get("STORE_DEBUG"), False),
        }
        part_size = os.environ.get("STORE_PART_SIZE")
        if part_size:
            values["part_size"] = int(part_size)
        threshold = os.environ.get("STORE_MULTIPART_THRESHOLD")
        if threshold:
            values["multipart_threshold"] = int(threshold)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


__all__ = [
    "DEFAULT_MULTIPART_THRESHOLD",
    "DEFAULT_PART_SIZE",
    "GIB",
    "MIB",
    "StoreConfig",
]
