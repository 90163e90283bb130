"""
Vogue API Dependencies.

Shared dependencies for FastAPI routes.
Requires Python 3.11+.
"""

from typing import TYPE_CHECKING

from fastapi import HTTPException
from fastapi.requests import HTTPConnection

from utils.config import Settings, get_settings

if TYPE_CHECKING:
    from api.routes.websocket import WebSocketManager


def get_channel(connection: HTTPConnection) -> "WebSocketManager":
    """
    Dependency returning the delivery channel of the serving app.

    Raises HTTPException if the app was built without a channel.
    """
    channel = getattr(connection.app.state, "channel", None)
    if channel is None:
        raise HTTPException(
            status_code=503,
            detail="Delivery channel unavailable",
        )
    return channel


def get_settings_dep() -> Settings:
    """Dependency returning the cached settings."""
    return get_settings()
