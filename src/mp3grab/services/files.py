"""Artifact lifecycle: lookup, deferred deletion, and age-based sweeping.

This is the only component that deletes files from the output directory.
Two deletion paths race over the same files (post-download deletion and
the periodic sweep), so every delete re-checks existence first and a
missing file is never an error.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import BinaryIO

from mp3grab.errors import ArtifactNotFound, StrategyFailure
from mp3grab.models.artifact import Artifact

logger = logging.getLogger(__name__)

_FORBIDDEN_NAME_CHARS = ("/", "\\", "\x00")


def is_bare_filename(filename: str) -> bool:
    """True if ``filename`` names a single entry with no directory part."""
    if not filename or filename in (".", ".."):
        return False
    if any(ch in filename for ch in _FORBIDDEN_NAME_CHARS):
        return False
    return Path(filename).name == filename


class FileLifecycleManager:
    """Owns the output directory and every file in it."""

    def __init__(
        self,
        output_dir: Path,
        max_age_seconds: float = 3600.0,
        delete_delay_seconds: float = 1.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.output_dir = Path(output_dir).resolve()
        self.max_age_seconds = max_age_seconds
        self.delete_delay_seconds = delete_delay_seconds
        self._clock = clock
        self._pending: set[asyncio.Task[bool]] = set()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def path_for(self, filename: str) -> Path:
        """Return where a writer should create ``filename``."""
        if not is_bare_filename(filename):
            raise ValueError(f"Not a bare filename: {filename!r}")
        return self.output_dir / filename

    def locate(self, filename: str) -> Path:
        """Resolve a requested filename strictly inside the output directory.

        Raises:
            ArtifactNotFound: If the name is not a bare filename or no such
                file exists.
        """
        if not is_bare_filename(filename):
            raise ArtifactNotFound("File not found")
        path = self.output_dir / filename
        if not path.is_file():
            raise ArtifactNotFound("File not found")
        return path

    def open_artifact(self, filename: str) -> tuple[Path, BinaryIO]:
        """Locate and open an artifact for reading.

        The returned handle stays readable even if the file is unlinked
        afterwards by a sweep or deferred delete.

        Raises:
            ArtifactNotFound: If the file is absent or vanishes before it
                can be opened.
        """
        path = self.locate(filename)
        try:
            handle = path.open("rb")
        except FileNotFoundError as exc:
            raise ArtifactNotFound("File not found") from exc
        return path, handle

    def register(self, path: Path) -> Artifact:
        """Confirm a strategy's output exists in the output directory.

        Raises:
            StrategyFailure: If the file is missing or lives elsewhere.
        """
        path = Path(path).resolve()
        if path.parent != self.output_dir:
            raise StrategyFailure(f"Artifact outside output directory: {path.name}")
        try:
            artifact = Artifact.from_path(path)
        except FileNotFoundError as exc:
            raise StrategyFailure(f"Artifact missing after conversion: {path.name}") from exc
        logger.info("Registered artifact %s (%d bytes)", artifact.filename, artifact.size_bytes)
        return artifact

    def find_by_prefix(self, prefix: str, suffix: str = "") -> list[Path]:
        """List files whose names start with ``prefix`` (and end with ``suffix``)."""
        try:
            entries = list(self.output_dir.iterdir())
        except FileNotFoundError:
            return []
        return sorted(
            p for p in entries
            if p.is_file() and p.name.startswith(prefix) and p.name.endswith(suffix)
        )

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def discard(self, path: Path) -> bool:
        """Delete one file if it still exists.

        Returns:
            True if this call removed the file, False if it was already gone
            or could not be removed.
        """
        path = Path(path)
        if path.resolve().parent != self.output_dir:
            logger.warning("Refusing to delete file outside output directory: %s", path)
            return False
        if not path.exists():
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.error("Error deleting file %s: %s", path.name, exc)
            return False
        logger.info("Deleted file: %s", path.name)
        return True

    def discard_all(self, paths: Iterable[Path]) -> int:
        """Discard several files; return how many were removed."""
        return sum(1 for p in paths if self.discard(p))

    async def schedule_deletion(
        self, path: Path, delay: float | None = None
    ) -> asyncio.Task[bool]:
        """Delete ``path`` after a short delay without blocking the caller.

        Used once a download finishes so the transfer can fully flush.
        """
        delay = self.delete_delay_seconds if delay is None else delay
        task = asyncio.create_task(self._delete_later(Path(path), delay))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _delete_later(self, path: Path, delay: float) -> bool:
        await asyncio.sleep(delay)
        return self.discard(path)

    async def cancel_pending(self) -> None:
        """Cancel deferred deletions that have not fired yet."""
        tasks = list(self._pending)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    @property
    def pending_deletions(self) -> int:
        return len(self._pending)

    # ------------------------------------------------------------------
    # Sweep
    # ------------------------------------------------------------------

    def sweep(self, now: float | None = None) -> list[str]:
        """Delete every file older than ``max_age_seconds``.

        Per-file failures are logged and skipped.

        Args:
            now: Epoch seconds to measure ages against (defaults to the clock).

        Returns:
            Names of the files this pass removed.
        """
        now = self._clock() if now is None else now
        try:
            entries = list(self.output_dir.iterdir())
        except OSError as exc:
            logger.error("Error during cleanup: %s", exc)
            return []

        removed: list[str] = []
        for path in entries:
            try:
                if not path.is_file():
                    continue
                age = now - path.stat().st_mtime
            except FileNotFoundError:
                continue
            except OSError as exc:
                logger.error("Error cleaning up file %s: %s", path.name, exc)
                continue
            if age > self.max_age_seconds and self.discard(path):
                removed.append(path.name)

        if removed:
            logger.info("Cleaned up %d old file(s)", len(removed))
        return removed


class PeriodicSweeper:
    """Background task that runs :meth:`FileLifecycleManager.sweep` on a timer."""

    def __init__(self, files: FileLifecycleManager, interval_seconds: float) -> None:
        self._files = files
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        logger.info("Sweeper started (every %.0fs)", self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Sweeper stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await asyncio.to_thread(self._files.sweep)
            except Exception:
                logger.exception("Sweep pass failed")
