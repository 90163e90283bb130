"""
Vogue API Main Application.

FastAPI application serving one delivery channel: the WebSocket endpoint,
a health check and the client script.
Requires Python 3.11+.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from api.dependencies import get_channel
from api.routes.websocket import WebSocketManager
from utils.config import get_settings, resolve_directories
from utils.logger import configure_logging, get_logger
from watcher.broadcaster import NotificationBroadcaster
from watcher.file_watcher import StylesheetWatcher


# Initialize logging
configure_logging()
logger = get_logger("api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan manager.

    Starts a watcher of its own when the app owns one; apps created by
    the server runner share a watcher started outside of them.
    """
    settings = get_settings()
    channel: WebSocketManager = app.state.channel
    logger.info(
        "starting_channel",
        app_name=settings.app_name,
        version=settings.app_version,
        channel=channel.name,
    )

    watcher: StylesheetWatcher | None = None
    if app.state.manage_watcher:
        watcher = StylesheetWatcher(
            roots=resolve_directories(settings.watcher.directories),
            broadcaster=NotificationBroadcaster([channel]),
        )
        await watcher.start()
    app.state.watcher = watcher

    yield

    # Cleanup
    logger.info("stopping_channel", channel=channel.name)
    if watcher is not None:
        await watcher.stop()


def create_app(
    channel: WebSocketManager | None = None,
    manage_watcher: bool = False,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        channel: Delivery channel served by this app
        manage_watcher: Start and stop a watcher with the app lifespan

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    application = FastAPI(
        title=settings.app_name,
        description="Stylesheet live-reload server",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
    )
    application.state.channel = channel or WebSocketManager()
    application.state.manage_watcher = manage_watcher
    application.state.watcher = None

    # Global exception handler
    @application.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.exception(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": str(exc) if settings.is_development else "An unexpected error occurred",
            },
        )

    # Health check endpoint
    @application.get("/health")
    async def health_check(
        manager: WebSocketManager = Depends(get_channel),
    ) -> dict[str, Any]:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": settings.app_version,
            "channel": manager.name,
            "connections": manager.connection_count,
        }

    # Import and include routers here to avoid circular imports
    from api.routes import client, websocket

    application.include_router(websocket.router, prefix="/ws", tags=["WebSocket"])
    # Catch-all, must stay last
    application.include_router(client.router, tags=["Client"])

    return application


# Standalone instance for `uvicorn api.main:app`
app = create_app(manage_watcher=True)
