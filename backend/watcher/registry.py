"""
Vogue Watch Registry.

Tracks every watched stylesheet, its polling tier and its polling task.
Requires Python 3.11+.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from watcher.fs import FileSnapshot

STYLESHEET_EXTENSIONS: frozenset[str] = frozenset({"css", "sass", "scss", "less", "styl"})


class WatchTier(str, Enum):
    """Polling cadence of a watched file."""

    NORMAL = "normal"
    FAST = "fast"


@dataclass
class WatchEntry:
    """A single watched file."""

    path: Path
    tier: WatchTier = WatchTier.NORMAL
    snapshot: FileSnapshot | None = None  # None until the baseline stat
    task: asyncio.Task[None] | None = None


PollerFactory = Callable[[Path], "asyncio.Task[None] | None"]


def is_stylesheet(path: Path) -> bool:
    """Check if the text after the last dot of the file name is a stylesheet extension."""
    name = path.name
    if "." not in name:
        return False
    return name.rsplit(".", 1)[1] in STYLESHEET_EXTENSIONS


class WatchRegistry:
    """
    Owns all WatchEntry records.

    Every method is synchronous, so on the event loop each call is
    atomic with respect to the polling tasks.
    """

    def __init__(self, poller_factory: PollerFactory | None = None) -> None:
        """
        Initialize the registry.

        Args:
            poller_factory: Called with a newly registered path; returns the
                task polling it, or None when polling is driven externally
        """
        self._entries: dict[Path, WatchEntry] = {}
        self._poller_factory = poller_factory

    def set_poller_factory(self, poller_factory: PollerFactory | None) -> None:
        """Set or update the factory used to start polling new entries."""
        self._poller_factory = poller_factory

    def register_if_absent(self, path: Path) -> bool:
        """
        Start watching a stylesheet if it is not watched yet.

        Args:
            path: Absolute path of a discovered file

        Returns:
            True if a new entry was created
        """
        if path in self._entries or not is_stylesheet(path):
            return False

        entry = WatchEntry(path=path)
        self._entries[path] = entry
        if self._poller_factory is not None:
            entry.task = self._poller_factory(path)
        return True

    def unregister(self, path: Path) -> WatchEntry | None:
        """
        Stop watching a file and cancel its polling task.

        A task unregistering its own path is not cancelled; it is
        expected to return on its own.

        Returns:
            The removed entry, or None if the path was not watched
        """
        entry = self._entries.pop(path, None)
        if entry is None:
            return None
        _cancel(entry.task)
        entry.task = None
        return entry

    def clear(self) -> None:
        """Stop watching every file."""
        for path in list(self._entries):
            self.unregister(path)

    def get(self, path: Path) -> WatchEntry | None:
        return self._entries.get(path)

    def tier_of(self, path: Path) -> WatchTier | None:
        """Get the polling tier of a path, or None if it is not watched."""
        entry = self._entries.get(path)
        return entry.tier if entry is not None else None

    def set_tier(self, path: Path, tier: WatchTier) -> None:
        """
        Change the polling tier of a watched path.

        Raises:
            KeyError: If the path is not watched
            ValueError: On an attempt to move a fast entry back to normal
        """
        entry = self._entries[path]
        if entry.tier is WatchTier.FAST and tier is WatchTier.NORMAL:
            raise ValueError(f"Cannot downgrade {path} from fast to normal polling")
        entry.tier = tier

    def paths(self) -> list[Path]:
        return list(self._entries)

    def snapshot(self) -> dict[Path, WatchTier]:
        """Copy of path -> tier for every watched file."""
        return {path: entry.tier for path, entry in self._entries.items()}

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def _cancel(task: "asyncio.Task[None] | None") -> None:
    if task is None or task.done():
        return
    try:
        current = asyncio.current_task()
    except RuntimeError:
        current = None
    if task is not current:
        task.cancel()
