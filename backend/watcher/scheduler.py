"""
Vogue Rescan Scheduler.

Periodically re-walks the watched roots to pick up new stylesheets.
Requires Python 3.11+.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from utils.config import get_settings
from utils.errors import WalkError
from utils.logger import LoggerMixin
from watcher.broadcaster import NotificationBroadcaster
from watcher.fs import LocalFileSystem
from watcher.registry import WatchRegistry
from watcher.walker import walk

Sleep = Callable[[float], Awaitable[Any]]


@dataclass
class RescanReport:
    """Outcome of one rescan of every root."""

    new_files: dict[Path, int] = field(default_factory=dict)
    errors: list[WalkError] = field(default_factory=list)
    broadcast: bool = False

    @property
    def total_new(self) -> int:
        """Get number of files registered by this rescan."""
        return sum(self.new_files.values())


class RescanScheduler(LoggerMixin):
    """
    Walks all roots and registers every stylesheet found.

    A rescan that registers at least one file sends exactly one
    notification, however many files were added.
    """

    def __init__(
        self,
        roots: list[Path],
        registry: WatchRegistry,
        broadcaster: NotificationBroadcaster,
        fs: LocalFileSystem | None = None,
        rescan_interval_ms: int | None = None,
        sleep: Sleep = asyncio.sleep,
        on_report: Callable[[RescanReport], Any] | None = None,
    ) -> None:
        """
        Initialize the scheduler.

        Args:
            roots: Directories to walk, in order
            registry: Registry receiving discovered files
            broadcaster: Notified after a productive rescan
            fs: Filesystem to walk (defaults to the local one)
            rescan_interval_ms: Delay between rescans in milliseconds
            sleep: Awaitable delay, replaceable by a virtual clock
            on_report: Called with the report of every scheduled rescan
        """
        settings = get_settings()

        self._roots = list(roots)
        self._registry = registry
        self._broadcaster = broadcaster
        self._fs = fs or LocalFileSystem()
        self._interval = (rescan_interval_ms or settings.watcher.rescan_interval_ms) / 1000.0
        self._sleep = sleep
        self._on_report = on_report
        self._task: asyncio.Task[None] | None = None

    async def rescan(self) -> RescanReport:
        """
        Walk every root once and register new stylesheets.

        Returns:
            RescanReport with per-root counts of new files and walk errors
        """
        report = RescanReport()

        for root in self._roots:
            result = await walk(root, self._fs)
            added = 0
            for path in result.files:
                if self._registry.register_if_absent(path):
                    added += 1
            report.new_files[root] = added
            report.errors.extend(result.errors)

        # Pages linking to new stylesheets usually need a reload anyway
        if report.total_new > 0:
            await self._broadcaster.notify_changed()
            report.broadcast = True

        return report

    def start(self) -> None:
        """Start rescanning in the background."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background rescans."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    @property
    def is_running(self) -> bool:
        """Check if the background task is active."""
        return self._task is not None and not self._task.done()

    @property
    def interval(self) -> float:
        """Get the delay between rescans in seconds."""
        return self._interval

    async def _run(self) -> None:
        while True:
            await self._sleep(self._interval)
            try:
                report = await self.rescan()
                if self._on_report is not None:
                    self._on_report(report)
            except Exception as e:
                self.log.error("rescan_failed", error=str(e))
