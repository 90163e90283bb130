"""
Vogue Notification Broadcaster.

Fans a single "update" signal out to every delivery channel.
Requires Python 3.11+.
"""

import asyncio
from typing import Protocol

from utils.errors import DeliveryError
from utils.logger import LoggerMixin

# Event name understood by the client script
UPDATE_EVENT = "update"


class DeliveryChannel(Protocol):
    """Anything that can push an event to its connected clients."""

    name: str

    async def broadcast(self, event_name: str) -> None: ...


class NotificationBroadcaster(LoggerMixin):
    """
    Sends UPDATE_EVENT to all channels.

    Holds no state besides the channel list, so concurrent calls
    need no locking.
    """

    def __init__(self, channels: list[DeliveryChannel] | None = None) -> None:
        self._channels: list[DeliveryChannel] = list(channels or [])

    def add_channel(self, channel: DeliveryChannel) -> None:
        """Attach another delivery channel."""
        self._channels.append(channel)

    @property
    def channels(self) -> list[DeliveryChannel]:
        return list(self._channels)

    async def notify_changed(self) -> int:
        """
        Tell every connected client that a stylesheet changed.

        A failing channel is logged and does not prevent delivery
        on the others.

        Returns:
            Number of channels that accepted the event
        """
        channels = list(self._channels)
        if not channels:
            return 0

        results = await asyncio.gather(
            *(channel.broadcast(UPDATE_EVENT) for channel in channels),
            return_exceptions=True,
        )

        delivered = 0
        for channel, result in zip(channels, results):
            if isinstance(result, BaseException):
                error = DeliveryError(getattr(channel, "name", repr(channel)), result)
                self.log.warning("broadcast_failed", channel=error.channel, error=str(error))
            else:
                delivered += 1
        return delivered
