"""Start the web interface and shut it down on Ctrl+C."""
from __future__ import annotations

import asyncio
import logging
import os
import signal
from typing import Optional

from .generator import ResponseGenerator, Selector
from .router import DEFAULT_RESPONSE_DELAY, ChatRouter
from .transports import DEFAULT_HOST, Listener, select_transport

logger = logging.getLogger(__name__)


class ServerHandle:
    """Owns one listening server and the single shutdown hook tied to it."""

    def __init__(self, listener: Listener, cwd: str, transport: str) -> None:
        self._listener = listener
        self.cwd = cwd
        self.transport = transport
        self.host = listener.host
        self.port = listener.port
        self._loop = asyncio.get_running_loop()
        self._signal: Optional[int] = None
        self._shutdown: Optional["asyncio.Task[None]"] = None
        self._closed = asyncio.Event()

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def install_shutdown_hook(self, sig: int = signal.SIGINT) -> None:
        """Close this server when ``sig`` arrives. Only one hook per handle."""

        if self._signal is not None:
            raise RuntimeError("A shutdown hook is already installed for this server.")
        self._loop.add_signal_handler(sig, self._on_signal)
        self._signal = sig

    def _on_signal(self) -> None:
        logger.info("Shutting down web server...")
        self._begin_close()

    def _begin_close(self) -> "asyncio.Task[None]":
        if self._shutdown is None:
            self._shutdown = self._loop.create_task(self._close())
        return self._shutdown

    async def _close(self) -> None:
        try:
            if self._signal is not None:
                self._loop.remove_signal_handler(self._signal)
                self._signal = None
            await self._listener.close()
        finally:
            self._closed.set()
        logger.info("Web server on %s stopped", self.url)

    async def close(self) -> None:
        """Stop listening and wait for in-flight requests; safe to call twice."""

        await asyncio.shield(self._begin_close())

    async def wait_closed(self) -> None:
        await self._closed.wait()


async def start_server(
    cwd: Optional[str],
    port: int,
    *,
    host: str = DEFAULT_HOST,
    transport: str = "auto",
    response_delay: float = DEFAULT_RESPONSE_DELAY,
    selector: Optional[Selector] = None,
    handle_signals: bool = True,
    access_log: bool = True,
) -> ServerHandle:
    """Bind the web interface on ``host:port`` and return once it is listening.

    The transport is chosen by :func:`~bolt_web.transports.select_transport`.
    Bind failures raise the underlying :class:`OSError`. With
    ``handle_signals`` the server closes itself on SIGINT.
    """

    cwd = os.path.abspath(cwd or os.getcwd())
    generator = ResponseGenerator(selector) if selector is not None else ResponseGenerator()
    router = ChatRouter(generator, delay=response_delay)
    transport_class = select_transport(transport)
    adapter = transport_class(router, host, access_log=access_log)

    listener = await adapter.bind(port)
    handle = ServerHandle(listener, cwd, adapter.name)
    if handle_signals:
        try:
            handle.install_shutdown_hook()
        except NotImplementedError:
            # Windows event loops; the CLI falls back to KeyboardInterrupt.
            logger.warning("Signal handlers are not supported by this event loop")
        except (RuntimeError, ValueError):
            await handle.close()
            raise

    logger.info("Bolt.new web interface running at http://localhost:%d", handle.port)
    logger.info("Serving project %s using the %s transport", cwd, adapter.name)
    return handle
