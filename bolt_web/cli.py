"""Command line for the Bolt.new web interface."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
from typing import List, Optional

from .errors import ConfigurationError, WebServerError
from .lifecycle import start_server
from .settings import Settings, load_settings
from .transports import TRANSPORT_CHOICES

logger = logging.getLogger(__name__)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bolt-web", description="Serve the Bolt.new demo chat and editor UI."
    )
    parser.add_argument("--cwd", default=None, help="Project directory (default: current directory)")
    parser.add_argument(
        "--host", default=settings.host, help=f"Interface to bind (default: {settings.host})"
    )
    parser.add_argument(
        "--port", type=int, default=settings.port, help=f"Port number (default: {settings.port})"
    )
    parser.add_argument(
        "--transport",
        choices=TRANSPORT_CHOICES,
        default=settings.transport,
        help="HTTP implementation; 'auto' uses FastAPI when it is installed",
    )
    return parser


def validate_options(cwd: Optional[str], port: int) -> str:
    """Return the absolute project directory or raise ConfigurationError."""

    if not 0 <= port <= 65535:
        raise ConfigurationError(f"Invalid port {port}; expected 0-65535.")
    cwd = os.path.abspath(cwd or os.getcwd())
    if not os.path.isdir(cwd):
        raise ConfigurationError(f"Project directory {cwd} does not exist.")
    return cwd


async def serve(
    cwd: str, port: int, host: str, transport: str, response_delay: float
) -> None:
    """Run until the server is closed by SIGINT."""

    try:
        handle = await start_server(
            cwd, port, host=host, transport=transport, response_delay=response_delay
        )
    except OSError as exc:
        raise WebServerError(f"Unable to start web server: {exc}") from exc
    try:
        await handle.wait_closed()
    finally:
        await handle.close()


def main(argv: Optional[List[str]] = None) -> int:
    settings = load_settings()
    args = build_parser(settings).parse_args(argv)
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        cwd = validate_options(args.cwd, args.port)
        logger.info("Starting Bolt.new web interface...")
        logger.info("Server will be available at http://localhost:%d", args.port)
        asyncio.run(serve(cwd, args.port, args.host, args.transport, settings.response_delay))
    except KeyboardInterrupt:
        logger.info("Shutting down web server...")
    except WebServerError as exc:
        logger.error("%s", exc)
        return 1
    return 0
