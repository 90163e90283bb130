"""
Vogue Change Detector.

Detects stylesheet changes by comparing successive stat snapshots.
Requires Python 3.11+.
"""

from enum import Enum
from pathlib import Path

from utils.config import FAST_POLL_INTERVAL_MS, get_settings
from utils.logger import LoggerMixin
from watcher.fs import FileSnapshot, LocalFileSystem
from watcher.registry import WatchRegistry, WatchTier


class ChangeKind(str, Enum):
    """Outcome of one detection cycle."""

    UNCHANGED = "unchanged"
    MODIFIED = "modified"
    DELETED = "deleted"


def classify(previous: FileSnapshot, current: FileSnapshot | None) -> ChangeKind:
    """
    Compare two snapshots of the same file.

    A missing snapshot or a zero link count means the file is gone.
    Modification times are compared at full nanosecond precision.
    """
    if current is None or current.nlink == 0:
        return ChangeKind.DELETED
    if current.mtime_ns != previous.mtime_ns:
        return ChangeKind.MODIFIED
    return ChangeKind.UNCHANGED


class ChangeDetector(LoggerMixin):
    """
    Runs detection cycles for entries of a WatchRegistry.

    Only snapshots are updated here; tier changes and unregistration are
    left to the caller.
    """

    def __init__(
        self,
        registry: WatchRegistry,
        fs: LocalFileSystem | None = None,
        poll_interval_ms: int | None = None,
    ) -> None:
        """
        Initialize the change detector.

        Args:
            registry: Registry holding the stored snapshots
            fs: Filesystem to stat (defaults to the local one)
            poll_interval_ms: Normal-tier interval in milliseconds
        """
        settings = get_settings()

        self._registry = registry
        self._fs = fs or LocalFileSystem()
        self._poll_interval_ms = poll_interval_ms or settings.watcher.poll_interval_ms

    def interval_for(self, tier: WatchTier) -> float:
        """Get the polling interval of a tier in seconds."""
        if tier is WatchTier.FAST:
            return FAST_POLL_INTERVAL_MS / 1000.0
        return self._poll_interval_ms / 1000.0

    async def snapshot(self, path: Path) -> FileSnapshot | None:
        """
        Stat a file.

        Returns:
            The snapshot, or None if the file vanished

        Raises:
            OSError: For failures other than a missing file
        """
        try:
            return await self._fs.stat(path)
        except (FileNotFoundError, NotADirectoryError):
            return None

    async def check(self, path: Path) -> ChangeKind:
        """
        Run one detection cycle for a watched path.

        The first cycle of an entry only records the baseline snapshot.
        A modified file has its stored snapshot replaced.

        Args:
            path: Watched path

        Returns:
            ChangeKind of this cycle
        """
        entry = self._registry.get(path)
        if entry is None:
            return ChangeKind.UNCHANGED

        current = await self.snapshot(path)

        # The entry may have been replaced or dropped while the stat ran
        if self._registry.get(path) is not entry:
            return ChangeKind.UNCHANGED

        if entry.snapshot is None:
            if current is None or current.nlink == 0:
                return ChangeKind.DELETED
            entry.snapshot = current
            return ChangeKind.UNCHANGED

        kind = classify(entry.snapshot, current)
        if kind is ChangeKind.MODIFIED:
            entry.snapshot = current
            self.log.debug("stylesheet_modified", path=str(path), mtime_ns=current.mtime_ns)
        return kind
