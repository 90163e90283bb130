"""
Vogue Watcher Package.

Stat-polling change detection for stylesheets.
Requires Python 3.11+.
"""

from watcher.broadcaster import UPDATE_EVENT, NotificationBroadcaster
from watcher.detector import ChangeDetector, ChangeKind
from watcher.file_watcher import StylesheetWatcher
from watcher.registry import STYLESHEET_EXTENSIONS, WatchRegistry, WatchTier
from watcher.scheduler import RescanReport, RescanScheduler
from watcher.walker import WalkResult, walk

__all__ = [
    "UPDATE_EVENT",
    "STYLESHEET_EXTENSIONS",
    "NotificationBroadcaster",
    "ChangeDetector",
    "ChangeKind",
    "StylesheetWatcher",
    "WatchRegistry",
    "WatchTier",
    "RescanReport",
    "RescanScheduler",
    "WalkResult",
    "walk",
]
