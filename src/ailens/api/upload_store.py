"""Disk-backed storage for uploaded reference images.

This module isolates upload persistence from ``ailens.api.main`` so route
handlers can focus on HTTP concerns while the file store stays testable as a
small unit.

The store is intentionally simple:

- every upload is written once under a unique name
  (``{epoch_ms}-{random}{ext}``) and never modified
- files older than the retention window are deleted by :meth:`UploadStore.sweep`
- a request that is reading a reference image holds a *lease* on it, and the
  sweeper skips leased files, so a sweep never deletes an image out from
  under an in-flight request

:class:`UploadJanitor` runs :meth:`UploadStore.sweep` on a fixed interval as
an asyncio task whose lifetime is tied to the application lifespan.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import mimetypes
import random
import threading
import time
from collections import Counter
from collections.abc import Iterator
from pathlib import Path

from ailens.core.models import ReferenceImage

logger = logging.getLogger(__name__)


class UploadStore:
    """File store for uploaded reference images.

    Attributes:
        directory (Path): Directory holding the uploads.
        retention_seconds (int): Age after which :meth:`sweep` deletes a file.
    """

    def __init__(self, directory: Path, retention_seconds: int = 60 * 60) -> None:
        self.directory = Path(directory)
        self.retention_seconds = retention_seconds
        self.directory.mkdir(parents=True, exist_ok=True)

        self._lock = threading.Lock()
        self._leases: Counter[str] = Counter()

    # -- Writing ------------------------------------------------------------

    @staticmethod
    def new_filename(original_name: str | None) -> str:
        """Return a collision-avoiding name that keeps the original extension."""
        suffix = Path(original_name or "").suffix.lower()
        return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{suffix}"

    def save(self, data: bytes, original_name: str | None) -> Path:
        """Persist an upload and return its path."""
        path = self.directory / self.new_filename(original_name)
        path.write_bytes(data)
        logger.info("Stored upload %s (%d bytes).", path.name, len(data))
        return path

    # -- Reading ------------------------------------------------------------

    def resolve(self, filename: str | None) -> Path | None:
        """Map an upload name to an existing file inside the store.

        Names containing path components are rejected so a client cannot
        read files outside the upload directory.

        Returns:
            The file path, or ``None`` if the name is unsafe or missing.
        """
        if not filename or Path(filename).name != filename or filename in (".", ".."):
            return None
        path = self.directory / filename
        return path if path.is_file() else None

    @contextlib.contextmanager
    def lease(self, filename: str | None) -> Iterator[Path | None]:
        """Protect an upload from the sweeper while the block runs.

        Yields:
            The resolved path, or ``None`` if the upload does not exist.
        """
        if not filename:
            yield None
            return
        with self._lock:
            self._leases[filename] += 1
        try:
            yield self.resolve(filename)
        finally:
            with self._lock:
                self._leases[filename] -= 1
                if self._leases[filename] <= 0:
                    del self._leases[filename]

    def is_leased(self, filename: str) -> bool:
        with self._lock:
            return self._leases[filename] > 0

    def read_reference(self, filename: str | None) -> ReferenceImage | None:
        """Load an upload as a :class:`ReferenceImage`.

        Returns:
            The image, or ``None`` when no name was given or the file is gone.
        """
        with self.lease(filename) as path:
            if path is None:
                if filename:
                    logger.warning("Reference image %r not found in upload store.", filename)
                return None
            mime_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
            return ReferenceImage(
                filename=path.name,
                path=path,
                data=path.read_bytes(),
                mime_type=mime_type,
            )

    # -- Cleanup ------------------------------------------------------------

    def sweep(self, now: float | None = None) -> list[str]:
        """Delete uploads older than the retention window.

        Leased files are skipped and picked up by a later sweep.

        Args:
            now: Reference timestamp (defaults to ``time.time()``).

        Returns:
            Names of the deleted files.
        """
        now = time.time() if now is None else now
        removed: list[str] = []

        for path in sorted(self.directory.iterdir()):
            if not path.is_file():
                continue
            with self._lock:
                if self._leases[path.name] > 0:
                    continue
                try:
                    if now - path.stat().st_mtime <= self.retention_seconds:
                        continue
                    path.unlink()
                except FileNotFoundError:
                    continue
            removed.append(path.name)
            logger.info("Cleaned up old upload: %s", path.name)

        return removed


class UploadJanitor:
    """Background task that sweeps an :class:`UploadStore` periodically.

    Started and stopped by the FastAPI lifespan.  The sweep itself runs in a
    worker thread so file I/O never blocks the event loop.
    """

    def __init__(self, store: UploadStore, interval_seconds: float = 30 * 60) -> None:
        self._store = store
        self._interval = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop (idempotent)."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="upload-janitor"
        )
        logger.info("Upload janitor started (every %ss).", self._interval)

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Upload janitor stopped.")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await asyncio.to_thread(self._store.sweep)
            except Exception:
                logger.exception("Upload sweep failed.")
