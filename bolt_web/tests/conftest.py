"""Shared fixtures: deterministic routers and servers running in a background loop."""
from __future__ import annotations

import asyncio
import sys
import threading
from pathlib import Path
from typing import Callable, List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bolt_web.generator import ResponseGenerator  # noqa: E402
from bolt_web.lifecycle import ServerHandle, start_server  # noqa: E402
from bolt_web.router import ChatRouter  # noqa: E402
from bolt_web.transports import probe_rich_transport  # noqa: E402

HAVE_RICH_TRANSPORT = probe_rich_transport()

requires_rich = pytest.mark.skipif(
    not HAVE_RICH_TRANSPORT, reason="fastapi and uvicorn are not installed"
)

TRANSPORTS = [
    pytest.param("minimal", id="minimal"),
    pytest.param("fastapi", id="fastapi", marks=requires_rich),
]


def first_response(responses):
    return responses[0]


class BackgroundServer:
    """Run ``start_server`` on an event loop owned by a daemon thread."""

    def __init__(self, transport: str, delay: float = 0.0) -> None:
        self.transport = transport
        self.delay = delay
        self.loop = asyncio.new_event_loop()
        self.thread = threading.Thread(target=self._run, daemon=True)
        self.handle: Optional[ServerHandle] = None

    def _run(self) -> None:
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    def call(self, coro, timeout: float = 10.0):
        return asyncio.run_coroutine_threadsafe(coro, self.loop).result(timeout)

    def start(self, port: int = 0) -> ServerHandle:
        self.thread.start()
        self.handle = self.call(self.launch(port))
        return self.handle

    def launch(self, port: int):
        return start_server(
            None,
            port,
            transport=self.transport,
            response_delay=self.delay,
            selector=first_response,
            handle_signals=False,
            access_log=False,
        )

    @property
    def url(self) -> str:
        assert self.handle is not None
        return self.handle.url

    def stop(self) -> None:
        try:
            if self.handle is not None:
                self.call(self.handle.close())
        finally:
            self.loop.call_soon_threadsafe(self.loop.stop)
            self.thread.join(timeout=10)
            self.loop.close()


@pytest.fixture
def router() -> ChatRouter:
    return ChatRouter(ResponseGenerator(first_response), delay=0)


@pytest.fixture
def server_factory() -> Callable[..., BackgroundServer]:
    servers: List[BackgroundServer] = []

    def factory(transport: str, delay: float = 0.0) -> BackgroundServer:
        server = BackgroundServer(transport, delay)
        servers.append(server)
        server.start()
        return server

    yield factory

    for server in servers:
        server.stop()


@pytest.fixture(params=TRANSPORTS)
def live_server(request, server_factory) -> BackgroundServer:
    return server_factory(request.param)
