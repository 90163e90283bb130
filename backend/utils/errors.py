"""
Vogue Error Types.

Exception hierarchy shared by the watcher core and the server.
Requires Python 3.11+.
"""

from pathlib import Path


class VogueError(Exception):
    """Base class for all Vogue errors."""


class ConfigurationError(VogueError):
    """Invalid startup configuration. Fatal: the server does not start."""


class WalkError(VogueError):
    """A directory could not be listed during a tree walk."""

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Cannot read directory {path}: {cause}")
        self.path = path
        self.cause = cause


class DeliveryError(VogueError):
    """A delivery channel failed to broadcast an event."""

    def __init__(self, channel: str, cause: BaseException) -> None:
        super().__init__(f"Broadcast failed on channel {channel}: {cause}")
        self.channel = channel
        self.cause = cause
