"""Tests for ailens.api.upload_store: reference image storage and cleanup.

Tests cover:
- Unique filename generation preserving the extension.
- Saving, resolving, and path traversal rejection.
- Leases protecting files from the sweeper.
- Retention-based sweeping.
- The UploadJanitor background task lifecycle.
"""

from __future__ import annotations

import asyncio
import os
import re
import time
from pathlib import Path

from ailens.api.upload_store import UploadJanitor, UploadStore


def _age(path: Path, seconds: float) -> None:
    """Backdate a file's mtime by *seconds*."""
    stamp = time.time() - seconds
    os.utime(path, (stamp, stamp))


class TestFilenames:
    """Test UploadStore.new_filename()."""

    def test_pattern_keeps_extension(self):
        name = UploadStore.new_filename("Holiday Photo.JPG")
        assert re.fullmatch(r"\d+-\d+\.jpg", name)

    def test_no_extension(self):
        assert re.fullmatch(r"\d+-\d+", UploadStore.new_filename("blob"))

    def test_missing_name(self):
        assert re.fullmatch(r"\d+-\d+", UploadStore.new_filename(None))


class TestSaveAndResolve:
    """Test saving and resolving uploads."""

    def test_creates_directory(self, temp_dir: Path):
        store = UploadStore(temp_dir / "a" / "b" / "uploads")
        assert store.directory.is_dir()

    def test_save_and_resolve(self, upload_store: UploadStore):
        path = upload_store.save(b"data", "cat.png")
        assert path.read_bytes() == b"data"
        assert path.parent == upload_store.directory
        assert upload_store.resolve(path.name) == path

    def test_resolve_missing(self, upload_store: UploadStore):
        assert upload_store.resolve("nope.jpg") is None
        assert upload_store.resolve(None) is None
        assert upload_store.resolve("") is None

    def test_resolve_rejects_traversal(self, upload_store: UploadStore, temp_dir: Path):
        (temp_dir / "secret.txt").write_text("top secret")
        assert upload_store.resolve("../secret.txt") is None
        assert upload_store.resolve(str(temp_dir / "secret.txt")) is None
        assert upload_store.resolve("..") is None

    def test_read_reference(self, upload_store: UploadStore):
        path = upload_store.save(b"png", "shot.png")
        reference = upload_store.read_reference(path.name)
        assert reference.filename == path.name
        assert reference.data == b"png"
        assert reference.mime_type == "image/png"

    def test_read_reference_unknown_type_defaults_to_jpeg(self, upload_store: UploadStore):
        path = upload_store.save(b"raw", "shot")
        assert upload_store.read_reference(path.name).mime_type == "image/jpeg"

    def test_read_reference_missing(self, upload_store: UploadStore):
        assert upload_store.read_reference("gone.jpg") is None
        assert upload_store.read_reference(None) is None


class TestLeases:
    """Test UploadStore.lease()."""

    def test_lease_yields_path_and_releases(self, upload_store: UploadStore):
        path = upload_store.save(b"x", "a.jpg")
        with upload_store.lease(path.name) as leased:
            assert leased == path
            assert upload_store.is_leased(path.name)
        assert not upload_store.is_leased(path.name)

    def test_nested_leases(self, upload_store: UploadStore):
        path = upload_store.save(b"x", "a.jpg")
        with upload_store.lease(path.name):
            with upload_store.lease(path.name):
                pass
            assert upload_store.is_leased(path.name)
        assert not upload_store.is_leased(path.name)

    def test_lease_released_on_error(self, upload_store: UploadStore):
        path = upload_store.save(b"x", "a.jpg")
        try:
            with upload_store.lease(path.name):
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        assert not upload_store.is_leased(path.name)

    def test_lease_of_missing_file_yields_none(self, upload_store: UploadStore):
        with upload_store.lease("missing.jpg") as leased:
            assert leased is None


class TestSweep:
    """Test UploadStore.sweep()."""

    def test_removes_only_expired(self, upload_store: UploadStore):
        old = upload_store.save(b"old", "old.jpg")
        fresh = upload_store.save(b"new", "new.jpg")
        _age(old, 2 * 3600)

        removed = upload_store.sweep()

        assert removed == [old.name]
        assert not old.exists()
        assert fresh.exists()

    def test_skips_leased_files(self, upload_store: UploadStore):
        old = upload_store.save(b"old", "old.jpg")
        _age(old, 2 * 3600)

        with upload_store.lease(old.name):
            assert upload_store.sweep() == []
            assert old.exists()

        assert upload_store.sweep() == [old.name]

    def test_explicit_now(self, upload_store: UploadStore):
        path = upload_store.save(b"x", "x.jpg")
        assert upload_store.sweep(now=time.time() + 3601) == [path.name]

    def test_ignores_directories(self, upload_store: UploadStore):
        nested = upload_store.directory / "nested"
        nested.mkdir()
        _age(nested, 2 * 3600)
        assert upload_store.sweep() == []
        assert nested.exists()


class TestUploadJanitor:
    """Test the background sweep task."""

    def test_start_sweeps_and_stop(self, temp_dir: Path):
        store = UploadStore(temp_dir / "uploads", retention_seconds=1)
        old = store.save(b"old", "old.jpg")
        _age(old, 60)

        async def scenario():
            janitor = UploadJanitor(store, interval_seconds=0.01)
            janitor.start()
            assert janitor.running
            for _ in range(200):
                if not old.exists():
                    break
                await asyncio.sleep(0.01)
            await janitor.stop()
            assert not janitor.running

        asyncio.run(scenario())
        assert not old.exists()

    def test_start_is_idempotent(self, upload_store: UploadStore):
        async def scenario():
            janitor = UploadJanitor(upload_store, interval_seconds=60)
            janitor.start()
            first = janitor._task
            janitor.start()
            assert janitor._task is first
            await janitor.stop()

        asyncio.run(scenario())

    def test_stop_without_start(self, upload_store: UploadStore):
        asyncio.run(UploadJanitor(upload_store).stop())
