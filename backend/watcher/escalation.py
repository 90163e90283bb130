"""
Vogue Escalation Policy.

Moves a file to fast polling after its first modification, so the rest
of an editor's save burst is picked up quickly.
Requires Python 3.11+.
"""

from pathlib import Path

from watcher.registry import WatchRegistry, WatchTier


def escalate(registry: WatchRegistry, path: Path) -> bool:
    """
    Promote a watched file from normal to fast polling.

    The transition is one-way and happens at most once per entry.

    Returns:
        True if the tier changed
    """
    if registry.tier_of(path) is not WatchTier.NORMAL:
        return False
    registry.set_tier(path, WatchTier.FAST)
    return True
