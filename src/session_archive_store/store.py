"""Remote persistence of a session archive.

Provides ``SessionBlobStore``, the facade a session manager uses to keep one
zip archive per session in an object store.

Every public operation first runs the configuration check.  A failed check
turns the operation into a logged no-op; it never raises.  Read-only probes
(existence, the pre-delete check) fail open toward absence.  Only ``save``
and ``extract`` propagate transfer errors, because their correctness is
what the caller depends on.

Classes
-------
- SessionBlobStore  — exists / probe / save / extract / delete / delete_previous
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from session_archive_store.clients.base import ObjectStoreClient
from session_archive_store.config import StoreConfig
from session_archive_store.diagnostics import DebugLog
from session_archive_store.errors import ConfigurationError, ObjectNotFoundError
from session_archive_store.keys import ARCHIVE_SUFFIX, derive_key
from session_archive_store.results import Presence
from session_archive_store.transfer.engine import TransferEngine

logger = logging.getLogger(__name__)

_HTTP_OK = 200


class SessionBlobStore:
    """Save, restore, probe and delete session archives in an object store.

    Parameters
    ----------
    client:
        Authenticated object-store client.
    config:
        Complete store configuration.  When omitted, ``settings`` are
        passed to ``StoreConfig``.
    **settings:
        ``StoreConfig`` fields (``bucket_name``, ``remote_data_path``,
        ``debug``, ...).  Without ``config`` they build one; with it they
        override its fields.

    Raises
    ------
    ConfigurationError
        If the client is missing or the bucket name / remote path is empty.

    Example
    -------
    >>> from session_archive_store.clients import InMemoryObjectStoreClient
    >>> store = SessionBlobStore(
    ...     InMemoryObjectStoreClient(buckets=["sessions"]),
    ...     bucket_name="sessions",
    ...     remote_data_path="prod/auth",
    ... )
    >>> store.key_for("work-phone")
    'prod/auth/work-phone.zip'
    """

    def __init__(
        self,
        client: ObjectStoreClient | None,
        config: StoreConfig | None = None,
        **settings: Any,
    ) -> None:
        if client is None:
            raise ConfigurationError(
                "A valid object-store client is required for SessionBlobStore."
            )
        try:
            if config is None:
                config = StoreConfig(**settings)
            elif settings:
                config = StoreConfig(**{**config.model_dump(), **settings})
        except ValidationError as exc:
            fields = ", ".join(
                str(err["loc"][0]) for err in exc.errors() if err.get("loc")
            )
            raise ConfigurationError(
                f"Invalid SessionBlobStore configuration: {fields or exc}"
            ) from exc
        self._client = client
        self._config = config
        self._debug = DebugLog(config.debug)
        self._engine = TransferEngine(client, config, self._debug)

    @property
    def config(self) -> StoreConfig:
        return self._config

    def key_for(self, session_id: str) -> str:
        """Return the remote object key for ``session_id``."""
        return derive_key(self._config.remote_data_path, session_id)

    # ------------------------------------------------------------------
    # Configuration check
    # ------------------------------------------------------------------

    async def is_valid_config(self, session_id: str | None) -> bool:
        """Return True if an operation on ``session_id`` may proceed.

        Static fields are checked first.  The store is then probed by
        listing the bucket: an explicit non-success status fails the check,
        but a probe that raises passes it, since listing may be denied where
        reading and writing the key is allowed.
        """
        if not session_id:
            logger.warning("A valid session is required for SessionBlobStore.")
            return False
        if not self._config.bucket_name:
            logger.warning("A valid bucket name is required for SessionBlobStore.")
            return False
        if not self._config.remote_data_path:
            logger.warning("A valid remote dir path is required for SessionBlobStore.")
            return False
        if self._client is None:
            logger.warning("A valid object-store client is required for SessionBlobStore.")
            return False

        try:
            result = await self._client.list_objects(self._config.bucket_name)
        except Exception as exc:
            logger.warning("Invalid SessionBlobStore configuration: %s", exc)
            return True
        if result.status_code != _HTTP_OK:
            logger.warning(
                "Bucket probe for %r returned status %s.",
                self._config.bucket_name,
                result.status_code,
            )
            return False
        return True

    # ------------------------------------------------------------------
    # Existence
    # ------------------------------------------------------------------

    async def probe(self, session_id: str) -> Presence:
        """Report whether the archive for ``session_id`` exists.

        Returns ``Presence.INDETERMINATE`` when the configuration check
        fails or the store answers with anything but success / not-found.
        """
        self._debug("exists", "Triggered.")
        if not await self.is_valid_config(session_id):
            return Presence.INDETERMINATE

        key = self.key_for(session_id)
        try:
            await self._client.head_object(self._config.bucket_name, key)
        except ObjectNotFoundError:
            self._debug("exists", "File not found. PATH='%s'.", key)
            return Presence.ABSENT
        except Exception as exc:
            logger.warning("Existence check for %r failed: %s", key, exc)
            self._debug("exists", "Error: %s", exc)
            return Presence.INDETERMINATE
        self._debug("exists", "File found. PATH='%s'.", key)
        return Presence.PRESENT

    async def exists(self, session_id: str) -> bool:
        """Return True only if the archive is known to exist."""
        return (await self.probe(session_id)) is Presence.PRESENT

    # ------------------------------------------------------------------
    # Transfer
    # ------------------------------------------------------------------

    async def save(
        self,
        session_id: str,
        archive_path: str | os.PathLike[str] | None = None,
    ) -> bool:
        """Upload the local archive for ``session_id``.

        Parameters
        ----------
        session_id:
            Logical session name.
        archive_path:
            Local zip file.  Defaults to ``<session_id>.zip`` in the
            current working directory.

        Returns
        -------
        bool
            False if the configuration check skipped the upload.

        Raises
        ------
        OSError
            If the local archive cannot be read.
        StoreError
            If any upload request fails.  A failed multipart upload has
            already been aborted when this propagates.
        """
        self._debug("save", "Triggered.")
        if not await self.is_valid_config(session_id):
            return False

        key = self.key_for(session_id)
        source = Path(archive_path) if archive_path else Path(f"{session_id}{ARCHIVE_SUFFIX}")
        try:
            await self._engine.upload(key, source)
        except Exception as exc:
            self._debug("save", "Error: %s", exc)
            raise
        self._debug("save", "File saved. PATH='%s'.", key)
        return True

    async def extract(
        self,
        session_id: str,
        destination: str | os.PathLike[str],
    ) -> bool:
        """Download the archive for ``session_id`` into ``destination``.

        Returns
        -------
        bool
            False if the configuration check skipped the download.

        Raises
        ------
        ObjectNotFoundError
            If no archive exists for ``session_id``.
        OSError
            If the local file cannot be written.
        """
        self._debug("extract", "Triggered.")
        if not await self.is_valid_config(session_id):
            return False

        key = self.key_for(session_id)
        target = Path(destination)
        try:
            await self._engine.download(key, target)
        except Exception as exc:
            self._debug("extract", "Error: %s", exc)
            raise
        self._debug(
            "extract",
            "File extracted. REMOTE_PATH='%s', LOCAL_PATH='%s'.",
            key,
            target,
        )
        return True

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    async def _remove(self, method: str, key: str) -> None:
        """Delete ``key`` if a HEAD request finds it; never raises."""
        try:
            await self._client.head_object(self._config.bucket_name, key)
            await self._client.delete_object(self._config.bucket_name, key)
        except ObjectNotFoundError:
            self._debug(method, "File not found. PATH='%s'.", key)
            return
        except Exception as exc:
            logger.warning("Deleting %r failed: %s", key, exc)
            self._debug(method, "Error: %s", exc)
            return
        self._debug(method, "File deleted. PATH='%s'.", key)

    async def delete(self, session_id: str) -> None:
        """Delete the archive for ``session_id``.

        A missing archive is a no-op and store errors are logged, not
        raised, so calling this repeatedly is always safe.
        """
        self._debug("delete", "Triggered.")
        if not await self.is_valid_config(session_id):
            return
        await self._remove("delete", self.key_for(session_id))

    async def delete_previous(self, remote_key: str) -> None:
        """Delete the object stored under the exact key ``remote_key``.

        Used when a session moves to a new key and the old archive must
        go.  Apart from taking a key instead of a session id this behaves
        like ``delete``.

        Raises
        ------
        ConfigurationError
            If ``remote_key`` is empty.
        """
        self._debug("delete_previous", "Triggered.")
        if not remote_key:
            raise ConfigurationError(
                "A valid remote file path is required for SessionBlobStore."
            )
        if not await self.is_valid_config(remote_key):
            return
        await self._remove("delete_previous", remote_key)

    def __repr__(self) -> str:
        return (
            f"SessionBlobStore(bucket={self._config.bucket_name!r}, "
            f"remote_data_path={self._config.remote_data_path!r})"
        )


__all__ = ["SessionBlobStore"]
