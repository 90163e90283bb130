"""
Vogue Backend Utilities Package.

Common utilities shared across all backend modules.
Requires Python 3.11+.
"""

from utils.config import FAST_POLL_INTERVAL_MS, Settings, get_settings
from utils.errors import ConfigurationError, DeliveryError, VogueError, WalkError
from utils.logger import configure_logging, get_logger, logger, LoggerMixin

__all__ = [
    "FAST_POLL_INTERVAL_MS",
    "Settings",
    "get_settings",
    "VogueError",
    "ConfigurationError",
    "WalkError",
    "DeliveryError",
    "configure_logging",
    "get_logger",
    "logger",
    "LoggerMixin",
]
