"""
Vogue Tree Walker.

Recursive, asynchronous enumeration of every file under a root directory.
Requires Python 3.11+.
"""

from collections.abc import Hashable
from dataclasses import dataclass, field
from pathlib import Path

from utils.errors import WalkError
from watcher.fs import LocalFileSystem


@dataclass
class WalkResult:
    """Files found by a walk, plus the subtrees that could not be read."""

    root: Path
    files: list[Path] = field(default_factory=list)
    errors: list[WalkError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True if every directory was read."""
        return not self.errors


async def walk(root: Path, fs: LocalFileSystem | None = None) -> WalkResult:
    """
    Walk a directory tree depth-first.

    Siblings are visited in name order. A directory that cannot be read
    is recorded in ``errors`` and skipped; the rest of the tree is still
    walked. Directories reached through symlinks are followed, but each
    real directory is entered once per walk.

    Args:
        root: Directory to enumerate
        fs: Filesystem to read (defaults to the local one)

    Returns:
        WalkResult with all regular files found
    """
    fs = fs or LocalFileSystem()
    result = WalkResult(root=root)
    seen: set[Hashable] = set()
    await _walk_dir(root, fs, result, seen)
    return result


async def _walk_dir(
    directory: Path,
    fs: LocalFileSystem,
    result: WalkResult,
    seen: set[Hashable],
) -> None:
    try:
        listing = await fs.list_dir(directory)
    except OSError as e:
        result.errors.append(WalkError(directory, e))
        return

    if listing.identity in seen:
        return
    seen.add(listing.identity)

    for entry in listing.entries:
        child = directory / entry.name
        if entry.is_dir:
            await _walk_dir(child, fs, result, seen)
        elif entry.is_file:
            result.files.append(child)
