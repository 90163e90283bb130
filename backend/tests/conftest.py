"""
Vogue Test Configuration.

Pytest fixtures and test doubles.
Requires Python 3.11+.
"""

import asyncio
import os
from pathlib import Path

import pytest

from watcher.broadcaster import NotificationBroadcaster
from watcher.fs import DirectoryListing, DirEntry, FileSnapshot


class RecordingChannel:
    """Delivery channel that remembers every event it was asked to send."""

    def __init__(self, name: str = "plain", fail: bool = False) -> None:
        self.name = name
        self.fail = fail
        self.events: list[str] = []

    async def broadcast(self, event_name: str) -> None:
        if self.fail:
            raise ConnectionError("channel down")
        self.events.append(event_name)


class FakeWebSocket:
    """Client socket recording the text frames it was sent."""

    def __init__(self) -> None:
        self.sent: list[str] = []

    async def accept(self) -> None:
        pass

    async def send_text(self, data: str) -> None:
        self.sent.append(data)


class StalledWebSocket(FakeWebSocket):
    """Client socket whose sends never complete."""

    async def send_text(self, data: str) -> None:
        await asyncio.Event().wait()


class FakeFileSystem:
    """In-memory filesystem with the same async interface as LocalFileSystem."""

    def __init__(self) -> None:
        self.files: dict[Path, FileSnapshot] = {}
        self.dirs: set[Path] = set()
        self.unreadable: set[Path] = set()
        self.stat_errors: dict[Path, OSError] = {}

    def mkdir(self, path: str | Path) -> Path:
        path = Path(path)
        self.dirs.add(path)
        self.dirs.update(path.parents)
        return path

    def add(self, path: str | Path, mtime_ns: int = 1_000) -> Path:
        path = Path(path)
        self.mkdir(path.parent)
        self.files[path] = FileSnapshot(mtime_ns=mtime_ns, nlink=1)
        return path

    def touch(self, path: Path) -> None:
        old = self.files[path]
        self.files[path] = FileSnapshot(mtime_ns=old.mtime_ns + 1, nlink=old.nlink)

    def remove(self, path: Path) -> None:
        del self.files[path]

    async def list_dir(self, path: Path) -> DirectoryListing:
        if path in self.unreadable:
            raise PermissionError(13, "Permission denied", str(path))
        if path not in self.dirs:
            raise FileNotFoundError(2, "No such file or directory", str(path))
        entries = [DirEntry(f.name, False, True) for f in self.files if f.parent == path]
        entries += [DirEntry(d.name, True, False) for d in self.dirs if d.parent == path and d != path]
        entries.sort(key=lambda entry: entry.name)
        return DirectoryListing(identity=path, entries=entries)

    async def stat(self, path: Path) -> FileSnapshot:
        if path in self.stat_errors:
            raise self.stat_errors[path]
        if path not in self.files:
            raise FileNotFoundError(2, "No such file or directory", str(path))
        return self.files[path]


class ManualClock:
    """Virtual clock: sleepers only wake up on tick()."""

    def __init__(self) -> None:
        self.sleeps: list[float] = []
        self._waiters: list[asyncio.Future[None]] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        await waiter

    @property
    def pending(self) -> int:
        return sum(1 for waiter in self._waiters if not waiter.done())

    async def tick(self) -> None:
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)
        await settle()


async def settle(rounds: int = 20) -> None:
    """Let pending tasks run until they block again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def bump_mtime(path: Path, seconds: int = 5) -> None:
    """Move a file's mtime forward so a poll sees it as modified."""
    mtime_ns = path.stat().st_mtime_ns + seconds * 1_000_000_000
    os.utime(path, ns=(mtime_ns, mtime_ns))


@pytest.fixture
def channel() -> RecordingChannel:
    """A delivery channel recording broadcasts."""
    return RecordingChannel()


@pytest.fixture
def broadcaster(channel: RecordingChannel) -> NotificationBroadcaster:
    """A broadcaster delivering to the recording channel."""
    return NotificationBroadcaster([channel])


@pytest.fixture
def fake_fs() -> FakeFileSystem:
    """An empty in-memory filesystem."""
    return FakeFileSystem()


@pytest.fixture
def clock() -> ManualClock:
    """A virtual clock."""
    return ManualClock()


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """Create a small website tree with stylesheets and other files."""
    root = tmp_path / "site"
    (root / "css" / "vendor").mkdir(parents=True)
    (root / "js").mkdir()

    (root / "index.html").write_text("<html></html>")
    (root / "main.css").write_text("body { color: red; }")
    (root / "css" / "theme.scss").write_text("$c: blue;")
    (root / "css" / "vendor" / "reset.less").write_text("* { margin: 0; }")
    (root / "css" / "print.styl").write_text("body\n  color black")
    (root / "js" / "app.js").write_text("console.log(1);")
    (root / "README").write_text("no extension")

    return root
