"""
Vogue Filesystem Access.

Thin async wrapper over the blocking os calls used by the watcher.
Requires Python 3.11+.
"""

import asyncio
import os
from collections.abc import Hashable
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class FileSnapshot:
    """Stat fields compared between polls."""

    mtime_ns: int
    nlink: int

    @classmethod
    def from_stat(cls, st: os.stat_result) -> "FileSnapshot":
        return cls(mtime_ns=st.st_mtime_ns, nlink=st.st_nlink)


@dataclass(frozen=True)
class DirEntry:
    """One child of a listed directory."""

    name: str
    is_dir: bool
    is_file: bool


@dataclass
class DirectoryListing:
    """Children of a directory plus an identity used to detect symlink cycles."""

    identity: Hashable
    entries: list[DirEntry] = field(default_factory=list)


class LocalFileSystem:
    """
    Reads the real filesystem.

    Every call runs in a worker thread so a slow disk never blocks
    the event loop.
    """

    async def list_dir(self, path: Path) -> DirectoryListing:
        """
        List a directory.

        Raises:
            OSError: If the directory cannot be read
        """
        return await asyncio.to_thread(self._list_dir, path)

    async def stat(self, path: Path) -> FileSnapshot:
        """
        Stat a file, following symlinks.

        Raises:
            FileNotFoundError: If the file no longer exists
        """
        st = await asyncio.to_thread(os.stat, path)
        return FileSnapshot.from_stat(st)

    @staticmethod
    def _list_dir(path: Path) -> DirectoryListing:
        st = os.stat(path)
        listing = DirectoryListing(identity=(st.st_dev, st.st_ino))
        with os.scandir(path) as it:
            for child in it:
                try:
                    is_dir = child.is_dir()
                    is_file = not is_dir and child.is_file()
                except OSError:
                    # Broken symlink or vanished entry
                    is_dir = is_file = False
                listing.entries.append(DirEntry(child.name, is_dir, is_file))
        listing.entries.sort(key=lambda entry: entry.name)
        return listing
