"""FastAPI transport served by an embedded uvicorn server."""
from __future__ import annotations

import asyncio
import contextlib
import logging
import socket
from typing import Iterator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import RequestParseError
from .router import CHAT_PATH, ChatRouter, Reply
from .transports import DEFAULT_HOST, Listener, TransportAdapter

logger = logging.getLogger(__name__)

_STARTUP_POLL_INTERVAL = 0.01


def to_response(reply: Reply) -> Response:
    return Response(content=reply.body, status_code=reply.status, headers=reply.headers())


def create_app(router: ChatRouter) -> FastAPI:
    """Build the FastAPI application exposing ``router``."""

    app = FastAPI(
        title="Bolt.new Web Interface",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
    )

    @app.middleware("http")
    async def answer_preflight(request: Request, call_next):
        # Preflights never reach the routes, whatever the path.
        if request.method == "OPTIONS":
            return to_response(router.preflight())
        return await call_next(request)

    @app.exception_handler(RequestParseError)
    async def handle_request_parse_error(
        request: Request, exc: RequestParseError
    ) -> Response:
        logger.debug("Rejected chat payload: %s", exc)
        return to_response(router.invalid_json())

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> Response:
        # Unknown paths (404) and known paths with the wrong method (405)
        # both answer with the plain Not Found reply.
        if exc.status_code in (404, 405):
            return to_response(router.not_found())
        detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return to_response(Reply(exc.status_code, detail.encode("utf-8"), "text/plain; charset=utf-8"))

    @app.get("/")
    async def index() -> Response:
        return to_response(router.index())

    @app.post(CHAT_PATH)
    async def chat(request: Request) -> Response:
        chat_request = router.parse_chat_request(await request.body())
        return to_response(await router.chat(chat_request))

    return app


class _EmbeddedServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to the lifecycle manager."""

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield

    def install_signal_handlers(self) -> None:  # uvicorn < 0.29
        return None


class UvicornListener(Listener):
    def __init__(self, server: _EmbeddedServer, task: "asyncio.Task[None]", sock: socket.socket) -> None:
        self._server = server
        self._task = task
        self._sock = sock
        self.host, self.port = sock.getsockname()[:2]

    async def close(self) -> None:
        self._server.should_exit = True
        try:
            await self._task
        finally:
            self._sock.close()


class FastAPITransport(TransportAdapter):
    name = "fastapi"

    def __init__(
        self,
        router: ChatRouter,
        host: str = DEFAULT_HOST,
        access_log: bool = True,
    ) -> None:
        super().__init__(router, host, access_log)
        self.app = create_app(router)

    def _bind_socket(self, port: int) -> socket.socket:
        # uvicorn's own bind helper exits the process on failure, so the
        # socket is bound here and OSError reaches the caller instead.
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, port))
            sock.listen()
            sock.setblocking(False)
        except OSError:
            sock.close()
            raise
        return sock

    async def bind(self, port: int) -> Listener:
        sock = self._bind_socket(port)
        config = uvicorn.Config(
            self.app,
            lifespan="off",
            log_config=None,
            access_log=self.access_log,
            server_header=False,
            date_header=False,
        )
        server = _EmbeddedServer(config)
        task = asyncio.ensure_future(server.serve(sockets=[sock]))

        while not server.started:
            if task.done():
                sock.close()
                task.result()
                raise RuntimeError("uvicorn stopped before it started listening")
            await asyncio.sleep(_STARTUP_POLL_INTERVAL)

        return UvicornListener(server, task, sock)
