"""
Vogue Server Runner.

Command line entry point: validates the options, then runs the plain and
(optionally) secure channels next to a shared stylesheet watcher.
Requires Python 3.11+.

Usage:
    vogue [-p PORT] [-s SSL_PORT] [-k KEY -c CERT [-a CA]] [-t MS] [DIRS]
    vogue -p 8001 ./myweb
"""

import argparse
import asyncio
import ssl
import sys
from dataclasses import dataclass
from pathlib import Path

import uvicorn
from pydantic import ValidationError

from api.main import create_app
from api.routes.websocket import WebSocketManager
from utils.config import (
    APISettings,
    Settings,
    WatcherSettings,
    get_settings,
    resolve_directories,
)
from utils.errors import ConfigurationError
from utils.logger import configure_logging, get_logger
from watcher.broadcaster import NotificationBroadcaster
from watcher.file_watcher import StylesheetWatcher

logger = get_logger("server")


@dataclass(frozen=True)
class TLSFiles:
    """Certificate material for the secure channel."""

    key: Path
    cert: Path
    ca: Path | None = None


@dataclass(frozen=True)
class ServerOptions:
    """Validated startup configuration."""

    directories: list[Path]
    host: str
    port: int
    ssl_port: int
    tls: TLSFiles | None
    poll_interval_ms: int
    rescan_interval_ms: int


def build_parser() -> argparse.ArgumentParser:
    """Create the command line parser."""
    parser = argparse.ArgumentParser(
        prog="vogue",
        description="Watch stylesheets and tell connected browsers to reload them.",
        epilog="e.g. vogue -p 8001 ./myweb",
    )
    parser.add_argument(
        "directories",
        nargs="?",
        default=None,
        help="Website root directory; join several with ':' (default: current directory)",
    )
    parser.add_argument("-p", "--port", type=int, help="Port to run the server on (http)")
    parser.add_argument(
        "-s", "--ssl_port", "--ssl-port",
        dest="ssl_port",
        type=int,
        help="Port to run the server on (https)",
    )
    parser.add_argument("-k", "--key", type=Path, help="A private key file (.pem or .key format)")
    parser.add_argument("-c", "--cert", type=Path, help="A certificate file (.pem or .crt format)")
    parser.add_argument(
        "-a", "--ca",
        type=Path,
        help="An intermediate certificate file (.pem or .crt format)",
    )
    parser.add_argument(
        "-t", "--refresh",
        type=int,
        help="Milliseconds between checking the file tree for new stylesheets",
    )
    parser.add_argument(
        "--poll",
        type=int,
        help="Milliseconds between checks of an unchanged stylesheet",
    )
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    return parser


def load_tls(key: Path | None, cert: Path | None, ca: Path | None) -> TLSFiles | None:
    """
    Validate the certificate options.

    The secure channel is enabled by a key; a key needs a certificate.

    Raises:
        ConfigurationError: If the files are missing or cannot be loaded
    """
    if key is None:
        if cert is not None:
            raise ConfigurationError("A certificate was given without a private key (--key)")
        return None
    if cert is None:
        raise ConfigurationError("A private key was given without a certificate (--cert)")

    for path in (key, cert, ca):
        if path is not None and not path.is_file():
            raise ConfigurationError(f"TLS file not found: {path}")

    try:
        context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
        context.load_cert_chain(certfile=cert, keyfile=key)
        if ca is not None:
            context.load_verify_locations(cafile=ca)
    except (ssl.SSLError, OSError) as e:
        raise ConfigurationError(f"Cannot load TLS certificate: {e}") from e

    return TLSFiles(key=key, cert=cert, ca=ca)


def load_options(
    args: argparse.Namespace,
    settings: Settings,
    cwd: Path | None = None,
) -> ServerOptions:
    """
    Merge command line arguments over settings and validate the result.

    Raises:
        ConfigurationError: On an invalid directory, TLS file, port or interval
    """
    if args.directories:
        raw_dirs: list[str] | list[Path] = [d for d in args.directories.split(":") if d]
    else:
        raw_dirs = settings.watcher.directories

    directories = resolve_directories(raw_dirs, cwd=cwd)
    tls = load_tls(
        args.key or settings.api.ssl_key,
        args.cert or settings.api.ssl_cert,
        args.ca or settings.api.ssl_ca,
    )

    # Command line values go through the same limits as the settings
    try:
        api = APISettings(
            port=settings.api.port if args.port is None else args.port,
            ssl_port=settings.api.ssl_port if args.ssl_port is None else args.ssl_port,
        )
        watcher = WatcherSettings(
            poll_interval_ms=(
                settings.watcher.poll_interval_ms if args.poll is None else args.poll
            ),
            rescan_interval_ms=(
                settings.watcher.rescan_interval_ms if args.refresh is None else args.refresh
            ),
        )
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"Invalid option: {problems}") from e

    return ServerOptions(
        directories=directories,
        host=settings.api.host,
        port=api.port,
        ssl_port=api.ssl_port,
        tls=tls,
        poll_interval_ms=watcher.poll_interval_ms,
        rescan_interval_ms=watcher.rescan_interval_ms,
    )


async def serve(options: ServerOptions) -> None:
    """Run the delivery channels and the watcher until interrupted."""
    channels = [WebSocketManager("plain")]
    configs = [
        uvicorn.Config(
            create_app(channels[0]),
            host=options.host,
            port=options.port,
            log_config=None,
        )
    ]
    logger.info("listening_for_clients", url=f"http://localhost:{options.port}/")

    if options.tls is not None:
        channels.append(WebSocketManager("secure"))
        configs.append(
            uvicorn.Config(
                create_app(channels[1]),
                host=options.host,
                port=options.ssl_port,
                ssl_keyfile=str(options.tls.key),
                ssl_certfile=str(options.tls.cert),
                ssl_ca_certs=str(options.tls.ca) if options.tls.ca else None,
                log_config=None,
            )
        )
        logger.info("listening_for_ssl_clients", url=f"https://localhost:{options.ssl_port}/")

    watcher = StylesheetWatcher(
        roots=options.directories,
        broadcaster=NotificationBroadcaster(channels),
        poll_interval_ms=options.poll_interval_ms,
        rescan_interval_ms=options.rescan_interval_ms,
    )

    await watcher.start()
    try:
        await asyncio.gather(*(uvicorn.Server(config).serve() for config in configs))
    finally:
        await watcher.stop()


def main(argv: list[str] | None = None) -> int:
    """Command line entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        options = load_options(args, get_settings())
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        asyncio.run(serve(options))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
