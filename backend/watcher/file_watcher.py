"""
Vogue Stylesheet Watcher.

Stat-based polling of every stylesheet under the watched directories,
with per-file polling tasks and a periodic rescan for new files.
Requires Python 3.11+.
"""

import asyncio
from pathlib import Path
from typing import Any

from utils.logger import LoggerMixin
from watcher.broadcaster import NotificationBroadcaster
from watcher.detector import ChangeDetector, ChangeKind
from watcher.escalation import escalate
from watcher.fs import LocalFileSystem
from watcher.registry import WatchRegistry
from watcher.scheduler import RescanReport, RescanScheduler, Sleep


class StylesheetWatcher(LoggerMixin):
    """
    Watches directory trees for stylesheet changes.

    Each watched file gets its own polling task, sleeping for the
    interval of its current tier between checks. A modified file is
    moved to the fast tier and clients are notified; a deleted file is
    unregistered, which ends its task.
    """

    def __init__(
        self,
        roots: list[Path],
        broadcaster: NotificationBroadcaster,
        poll_interval_ms: int | None = None,
        rescan_interval_ms: int | None = None,
        fs: LocalFileSystem | None = None,
        sleep: Sleep = asyncio.sleep,
        polling: bool = True,
    ) -> None:
        """
        Initialize the stylesheet watcher.

        Args:
            roots: Absolute directories to watch
            broadcaster: Receives one notification per detected change
            poll_interval_ms: Normal-tier polling interval in milliseconds
            rescan_interval_ms: Delay between rescans in milliseconds
            fs: Filesystem to read (defaults to the local one)
            sleep: Awaitable delay, replaceable by a virtual clock
            polling: Start a polling task per file; when False, cycles
                only run through poll_once()
        """
        self._roots = tuple(roots)
        self._broadcaster = broadcaster
        self._sleep = sleep
        self._running = False

        self._registry = WatchRegistry(self._start_polling if polling else None)
        self._detector = ChangeDetector(
            self._registry,
            fs=fs,
            poll_interval_ms=poll_interval_ms,
        )
        self._scheduler = RescanScheduler(
            list(self._roots),
            self._registry,
            broadcaster,
            fs=fs,
            rescan_interval_ms=rescan_interval_ms,
            sleep=sleep,
            on_report=self._log_report,
        )

    async def start(self) -> RescanReport:
        """
        Register every stylesheet under the roots and start watching.

        Returns:
            Report of the initial scan
        """
        if self._running:
            return RescanReport()

        self.log.info("watching_directories", directories=[str(r) for r in self._roots])
        report = await self.rescan()
        self._scheduler.start()
        self._running = True
        return report

    async def stop(self) -> None:
        """Stop the rescan loop and every polling task."""
        if not self._running and not len(self._registry):
            return

        await self._scheduler.stop()

        tasks = [
            entry.task
            for entry in map(self._registry.get, self._registry.paths())
            if entry is not None and entry.task is not None
        ]
        self._registry.clear()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self._running = False
        self.log.info("stylesheet_watcher_stopped")

    async def rescan(self) -> RescanReport:
        """Walk the roots once, outside of the scheduled loop."""
        report = await self._scheduler.rescan()
        self._log_report(report)
        return report

    async def poll_once(self, path: Path) -> ChangeKind:
        """
        Run one detection cycle for a path and act on the result.

        Args:
            path: Watched path

        Returns:
            ChangeKind of the cycle
        """
        try:
            kind = await self._detector.check(path)
        except OSError as e:
            self.log.warning("stat_failed", path=str(path), error=str(e))
            return ChangeKind.UNCHANGED

        if kind is ChangeKind.MODIFIED:
            if escalate(self._registry, path):
                self.log.debug("polling_escalated", path=str(path))
            self.log.info("stylesheet_changed", path=str(path))
            await self._broadcaster.notify_changed()

        elif kind is ChangeKind.DELETED:
            self._registry.unregister(path)
            self.log.info("stylesheet_removed", path=str(path))
            await self._broadcaster.notify_changed()

        return kind

    def _start_polling(self, path: Path) -> "asyncio.Task[None]":
        return asyncio.create_task(self._poll_loop(path), name=f"vogue-poll:{path}")

    async def _poll_loop(self, path: Path) -> None:
        entry = self._registry.get(path)

        # First cycle records the baseline snapshot
        if await self.poll_once(path) is ChangeKind.DELETED:
            return

        while entry is not None and self._registry.get(path) is entry:
            await self._sleep(self._detector.interval_for(entry.tier))
            if await self.poll_once(path) is ChangeKind.DELETED:
                return

    def _log_report(self, report: RescanReport) -> None:
        self.log.info("now_watching_new_files", count=report.total_new)
        for error in report.errors:
            self.log.warning("walk_failed", path=str(error.path), error=str(error.cause))

    @property
    def registry(self) -> WatchRegistry:
        return self._registry

    @property
    def detector(self) -> ChangeDetector:
        return self._detector

    @property
    def roots(self) -> tuple[Path, ...]:
        return self._roots

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._running

    @property
    def watched_count(self) -> int:
        """Get number of watched stylesheets."""
        return len(self._registry)

    async def __aenter__(self) -> "StylesheetWatcher":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        await self.stop()
