"""Unit tests for session_archive_store.store.SessionBlobStore."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pytest

from session_archive_store.clients.base import ObjectHead, ProbeResult
from session_archive_store.clients.memory import InMemoryObjectStoreClient
from session_archive_store.config import StoreConfig
from session_archive_store.errors import (
    ConfigurationError,
    ObjectNotFoundError,
    StoreClientError,
)
from session_archive_store.results import Presence
from session_archive_store.store import SessionBlobStore

BUCKET = "sessions"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class ProbeClient(InMemoryObjectStoreClient):
    """In-memory client whose bucket probe and HEAD can be made to misbehave."""

    def __init__(self) -> None:
        super().__init__(buckets=[BUCKET])
        self.probe_error: Exception | None = None
        self.probe_status: int | None = 200
        self.head_error: Exception | None = None
        self.delete_error: Exception | None = None
        self.deleted: list[str] = []

    async def list_objects(self, bucket: str) -> ProbeResult:
        if self.probe_error is not None:
            raise self.probe_error
        return ProbeResult(status_code=self.probe_status)

    async def head_object(self, bucket: str, key: str) -> ObjectHead:
        if self.head_error is not None:
            raise self.head_error
        return await super().head_object(bucket, key)

    async def delete_object(self, bucket: str, key: str) -> None:
        if self.delete_error is not None:
            raise self.delete_error
        self.deleted.append(key)
        await super().delete_object(bucket, key)


def _make_store(client: Any, **settings: Any) -> SessionBlobStore:
    values: dict[str, Any] = {"bucket_name": BUCKET, "remote_data_path": "prod/auth"}
    values.update(settings)
    return SessionBlobStore(client, **values)


def _archive(tmp_path: Path, size: int = 32, name: str = "archive.zip") -> Path:
    path = tmp_path / name
    path.write_bytes(bytes((i * 7) % 256 for i in range(size)))
    return path


@pytest.fixture()
def client() -> ProbeClient:
    return ProbeClient()


@pytest.fixture()
def store(client: ProbeClient) -> SessionBlobStore:
    return _make_store(client)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestSessionBlobStoreConstruction:
    def test_missing_client_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="client"):
            _make_store(None)

    @pytest.mark.parametrize("field", ["bucket_name", "remote_data_path"])
    def test_empty_field_raises(self, client: ProbeClient, field: str) -> None:
        with pytest.raises(ConfigurationError, match=field):
            _make_store(client, **{field: ""})

    def test_configuration_error_is_value_error(self, client: ProbeClient) -> None:
        with pytest.raises(ValueError):
            _make_store(client, bucket_name="")

    def test_accepts_config_object(self, client: ProbeClient) -> None:
        config = StoreConfig(bucket_name=BUCKET, remote_data_path="x")
        store = SessionBlobStore(client, config)
        assert store.config is config

    def test_settings_override_config(self, client: ProbeClient) -> None:
        config = StoreConfig(bucket_name=BUCKET, remote_data_path="x")
        store = SessionBlobStore(client, config, debug=True)
        assert store.config.debug is True
        assert store.config.remote_data_path == "x"

    def test_invalid_override_raises(self, client: ProbeClient) -> None:
        config = StoreConfig(bucket_name=BUCKET, remote_data_path="x")
        with pytest.raises(ConfigurationError):
            SessionBlobStore(client, config, bucket_name="")

    def test_key_for(self, store: SessionBlobStore) -> None:
        assert store.key_for("work-phone") == "prod/auth/work-phone.zip"

    def test_repr(self, store: SessionBlobStore) -> None:
        assert BUCKET in repr(store)
        assert "prod/auth" in repr(store)


# ---------------------------------------------------------------------------
# Configuration check
# ---------------------------------------------------------------------------


class TestIsValidConfig:
    @pytest.mark.asyncio
    async def test_valid_when_probe_returns_200(self, store: SessionBlobStore) -> None:
        assert await store.is_valid_config("s1") is True

    @pytest.mark.asyncio
    async def test_missing_session_is_invalid(self, store: SessionBlobStore) -> None:
        assert await store.is_valid_config("") is False
        assert await store.is_valid_config(None) is False

    @pytest.mark.asyncio
    async def test_non_200_status_is_invalid(
        self, store: SessionBlobStore, client: ProbeClient
    ) -> None:
        client.probe_status = 403
        assert await store.is_valid_config("s1") is False

    @pytest.mark.asyncio
    async def test_missing_status_is_invalid(
        self, store: SessionBlobStore, client: ProbeClient
    ) -> None:
        client.probe_status = None
        assert await store.is_valid_config("s1") is False

    @pytest.mark.asyncio
    async def test_probe_that_raises_is_still_valid(
        self,
        store: SessionBlobStore,
        client: ProbeClient,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        client.probe_error = StoreClientError(
            "Access Denied", code="AccessDenied", status_code=403
        )
        with caplog.at_level(logging.WARNING):
            assert await store.is_valid_config("s1") is True
        assert "Access Denied" in caplog.text

    @pytest.mark.asyncio
    async def test_auth_rejected_probe_still_lets_save_proceed(
        self, store: SessionBlobStore, client: ProbeClient, tmp_path: Path
    ) -> None:
        client.probe_error = StoreClientError("Access Denied", code="AccessDenied")
        await store.save("s1", _archive(tmp_path))
        assert client.object_bytes(BUCKET, "prod/auth/s1.zip")


# ---------------------------------------------------------------------------
# Existence
# ---------------------------------------------------------------------------


class TestExistence:
    @pytest.mark.asyncio
    async def test_never_saved_is_absent(self, store: SessionBlobStore) -> None:
        assert await store.probe("ghost") is Presence.ABSENT
        assert await store.exists("ghost") is False

    @pytest.mark.asyncio
    async def test_saved_is_present(self, store: SessionBlobStore, tmp_path: Path) -> None:
        await store.save("s1", _archive(tmp_path))
        assert await store.probe("s1") is Presence.PRESENT
        assert await store.exists("s1") is True

    @pytest.mark.asyncio
    async def test_deleted_is_absent(self, store: SessionBlobStore, tmp_path: Path) -> None:
        await store.save("s1", _archive(tmp_path))
        await store.delete("s1")
        assert await store.exists("s1") is False

    @pytest.mark.asyncio
    async def test_unexpected_head_error_is_indeterminate(
        self, store: SessionBlobStore, client: ProbeClient
    ) -> None:
        client.head_error = StoreClientError("throttled", code="SlowDown")
        assert await store.probe("s1") is Presence.INDETERMINATE
        assert await store.exists("s1") is False

    @pytest.mark.asyncio
    async def test_failed_validation_is_indeterminate(
        self, store: SessionBlobStore, client: ProbeClient
    ) -> None:
        client.probe_status = 500
        assert await store.probe("s1") is Presence.INDETERMINATE

    def test_presence_truthiness(self) -> None:
        assert bool(Presence.PRESENT) is True
        assert bool(Presence.ABSENT) is False
        assert bool(Presence.INDETERMINATE) is False


# ---------------------------------------------------------------------------
# save / extract
# ---------------------------------------------------------------------------


class TestSaveExtract:
    @pytest.mark.asyncio
    async def test_round_trip_is_byte_identical(
        self, store: SessionBlobStore, tmp_path: Path
    ) -> None:
        source = _archive(tmp_path, 1000)
        assert await store.save("work-phone", source) is True
        target = tmp_path / "restored.zip"
        assert await store.extract("work-phone", target) is True
        assert target.read_bytes() == source.read_bytes()

    @pytest.mark.asyncio
    async def test_multipart_round_trip(self, client: ProbeClient, tmp_path: Path) -> None:
        store = _make_store(client, part_size=64, multipart_threshold=100)
        source = _archive(tmp_path, 1000)
        await store.save("big", source)
        assert client.pending_uploads == []
        target = tmp_path / "restored.zip"
        await store.extract("big", target)
        assert target.read_bytes() == source.read_bytes()

    @pytest.mark.asyncio
    async def test_save_defaults_to_session_zip_in_cwd(
        self,
        store: SessionBlobStore,
        client: ProbeClient,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.chdir(tmp_path)
        _archive(tmp_path, 5, name="s1.zip")
        await store.save("s1")
        assert client.object_bytes(BUCKET, "prod/auth/s1.zip") == (tmp_path / "s1.zip").read_bytes()

    @pytest.mark.asyncio
    async def test_save_missing_archive_raises(
        self, store: SessionBlobStore, tmp_path: Path
    ) -> None:
        with pytest.raises(FileNotFoundError):
            await store.save("s1", tmp_path / "absent.zip")

    @pytest.mark.asyncio
    async def test_save_is_noop_when_invalid(
        self, store: SessionBlobStore, client: ProbeClient, tmp_path: Path
    ) -> None:
        client.probe_status = 403
        assert await store.save("s1", _archive(tmp_path)) is False
        assert len(client) == 0

    @pytest.mark.asyncio
    async def test_save_without_session_is_noop(
        self, store: SessionBlobStore, client: ProbeClient, tmp_path: Path
    ) -> None:
        await store.save("", _archive(tmp_path))
        assert len(client) == 0

    @pytest.mark.asyncio
    async def test_extract_missing_raises(
        self, store: SessionBlobStore, tmp_path: Path
    ) -> None:
        target = tmp_path / "restored.zip"
        with pytest.raises(ObjectNotFoundError):
            await store.extract("ghost", target)
        assert not target.exists()

    @pytest.mark.asyncio
    async def test_extract_is_noop_when_invalid(
        self, store: SessionBlobStore, client: ProbeClient, tmp_path: Path
    ) -> None:
        client.probe_status = 403
        target = tmp_path / "restored.zip"
        assert await store.extract("s1", target) is False
        assert not target.exists()


# ---------------------------------------------------------------------------
# delete / delete_previous
# ---------------------------------------------------------------------------


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_removes_archive(
        self, store: SessionBlobStore, client: ProbeClient, tmp_path: Path
    ) -> None:
        await store.save("s1", _archive(tmp_path))
        await store.delete("s1")
        assert client.deleted == ["prod/auth/s1.zip"]

    @pytest.mark.asyncio
    async def test_delete_twice_never_raises(
        self, store: SessionBlobStore, client: ProbeClient, tmp_path: Path
    ) -> None:
        await store.save("s1", _archive(tmp_path))
        await store.delete("s1")
        await store.delete("s1")
        assert client.deleted == ["prod/auth/s1.zip"]

    @pytest.mark.asyncio
    async def test_delete_missing_skips_delete_request(
        self, store: SessionBlobStore, client: ProbeClient
    ) -> None:
        await store.delete("ghost")
        assert client.deleted == []

    @pytest.mark.asyncio
    async def test_delete_swallows_head_errors(
        self, store: SessionBlobStore, client: ProbeClient
    ) -> None:
        client.head_error = StoreClientError("throttled", code="SlowDown")
        assert await store.delete("s1") is None
        assert client.deleted == []

    @pytest.mark.asyncio
    async def test_delete_swallows_delete_errors(
        self,
        store: SessionBlobStore,
        client: ProbeClient,
        tmp_path: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        await store.save("s1", _archive(tmp_path))
        client.delete_error = StoreClientError("Access Denied", code="AccessDenied")
        with caplog.at_level(logging.WARNING):
            await store.delete("s1")
        assert "Access Denied" in caplog.text


class TestDeletePrevious:
    @pytest.mark.asyncio
    async def test_empty_key_raises(self, store: SessionBlobStore) -> None:
        with pytest.raises(ConfigurationError, match="remote file path"):
            await store.delete_previous("")

    @pytest.mark.asyncio
    async def test_deletes_exact_key(
        self, store: SessionBlobStore, client: ProbeClient, tmp_path: Path
    ) -> None:
        await store.save("s1", _archive(tmp_path))
        await store.delete_previous("prod/auth/s1.zip")
        assert client.deleted == ["prod/auth/s1.zip"]
        assert await store.exists("s1") is False

    @pytest.mark.asyncio
    async def test_missing_key_is_noop(
        self, store: SessionBlobStore, client: ProbeClient
    ) -> None:
        await store.delete_previous("legacy/s1.zip")
        assert client.deleted == []


# ---------------------------------------------------------------------------
# Debug diagnostics
# ---------------------------------------------------------------------------


class TestDebugDiagnostics:
    @pytest.mark.asyncio
    async def test_debug_lines_emitted_when_enabled(
        self,
        client: ProbeClient,
        tmp_path: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        store = _make_store(client, debug=True)
        with caplog.at_level(logging.INFO, logger="session_archive_store"):
            await store.save("s1", _archive(tmp_path))
        assert "[STORE_DEBUG] [METHOD: save] Triggered." in caplog.text
        assert "File saved. PATH='prod/auth/s1.zip'." in caplog.text

    @pytest.mark.asyncio
    async def test_no_debug_lines_when_disabled(
        self,
        store: SessionBlobStore,
        tmp_path: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.INFO, logger="session_archive_store"):
            await store.save("s1", _archive(tmp_path))
        assert "STORE_DEBUG" not in caplog.text

    @pytest.mark.asyncio
    async def test_environment_toggle_is_read_once(
        self,
        client: ProbeClient,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("STORE_DEBUG", "true")
        config = StoreConfig.from_environment(bucket_name=BUCKET, remote_data_path="p")
        monkeypatch.setenv("STORE_DEBUG", "false")
        store = SessionBlobStore(client, config)
        assert store.config.debug is True
