"""
Vogue Configuration Module.

Centralizes all configuration settings using Pydantic Settings.
Requires Python 3.11+.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from utils.errors import ConfigurationError

# Load .env file into os.environ at module import time
# This ensures nested BaseSettings classes can read the values
_env_file = Path(__file__).parent.parent / ".env"
if _env_file.exists():
    load_dotenv(_env_file)
else:
    # Try current working directory
    load_dotenv()


# Fast-tier polling is fixed, only the normal tier is configurable
FAST_POLL_INTERVAL_MS = 100


class WatcherSettings(BaseSettings):
    """Stylesheet watcher configuration settings."""

    model_config = SettingsConfigDict(env_prefix="WATCHER_")

    directories: Annotated[list[Path], NoDecode] = Field(
        default_factory=list,
        description="Directories to watch (colon-separated in the environment)",
    )
    poll_interval_ms: int = Field(default=2000, ge=FAST_POLL_INTERVAL_MS, le=60000)
    rescan_interval_ms: int = Field(default=20000, ge=500)

    @field_validator("directories", mode="before")
    @classmethod
    def parse_directories(cls, v: str | list[str] | list[Path]) -> list[str] | list[Path]:
        """Parse directories from a colon-separated string or list."""
        if isinstance(v, str):
            return [d.strip() for d in v.split(":") if d.strip()]
        return v


class APISettings(BaseSettings):
    """HTTP and WebSocket server configuration settings."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8001, ge=1, le=65535)
    ssl_port: int = Field(default=8002, ge=1, le=65535)
    ssl_key: Path | None = Field(default=None, description="Private key (.pem or .key)")
    ssl_cert: Path | None = Field(default=None, description="Certificate (.pem or .crt)")
    ssl_ca: Path | None = Field(default=None, description="Intermediate certificate")
    heartbeat_seconds: float = Field(default=30.0, ge=1.0)
    send_timeout_seconds: float = Field(default=5.0, gt=0)


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO")
    format: str = Field(default="console")  # "json" or "console"


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="Vogue")
    app_version: str = Field(default="0.1.0")
    environment: str = Field(default="development")

    # Sub-settings
    watcher: WatcherSettings = Field(default_factory=WatcherSettings)
    api: APISettings = Field(default_factory=APISettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() in ("development", "dev", "local")

    @property
    def ssl_enabled(self) -> bool:
        """Check if the secure channel is configured."""
        return self.api.ssl_key is not None


def resolve_directories(
    directories: list[str] | list[Path],
    cwd: Path | None = None,
) -> list[Path]:
    """
    Resolve and validate the directories to watch.

    Relative paths are resolved against ``cwd``. An empty list means
    the current directory.

    Raises:
        ConfigurationError: If a path is missing or not a directory
    """
    base = cwd or Path.cwd()
    resolved: list[Path] = []
    for raw in directories or [base]:
        path = Path(raw)
        if not path.is_absolute():
            path = base / path
        path = path.resolve()
        if not path.exists():
            raise ConfigurationError(f"Path not found: {path}")
        if not path.is_dir():
            raise ConfigurationError(f"Path is not a directory: {path}")
        if path not in resolved:
            resolved.append(path)
    return resolved


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns singleton instance of Settings for performance.
    """
    return Settings()
