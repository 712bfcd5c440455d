"""Dependency-free transport built on asyncio streams.

Used whenever FastAPI or uvicorn is missing. It speaks just enough HTTP/1.1
for the chat UI: a request line, headers, a body sized by ``Content-Length``
or sent with chunked transfer encoding, and keep-alive connections. Every
reply comes from :class:`~bolt_web.router.ChatRouter`, so the wire output
matches the FastAPI transport.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Dict, Optional, Set

from .router import ChatRouter, Reply
from .transports import DEFAULT_HOST, Listener, TransportAdapter

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024
MAX_HEADER_COUNT = 100
DEFAULT_KEEP_ALIVE_TIMEOUT = 5.0


class MalformedRequest(Exception):
    """The bytes on the connection are not a request we can answer."""


@dataclass
class IncomingRequest:
    method: str
    target: str
    version: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def keep_alive(self) -> bool:
        connection = self.headers.get("connection", "").lower()
        if self.version == "HTTP/1.0":
            return connection == "keep-alive"
        return connection != "close"


async def read_request(
    reader: asyncio.StreamReader, idle_timeout: Optional[float] = None
) -> Optional[IncomingRequest]:
    """Read one request from ``reader``.

    ``None`` means the peer hung up, or sent nothing within ``idle_timeout``
    seconds.
    """

    try:
        line = await asyncio.wait_for(reader.readline(), idle_timeout)
    except asyncio.TimeoutError:
        return None
    except ValueError as exc:  # line longer than the stream limit
        raise MalformedRequest("Request line too long") from exc
    if not line:
        return None

    parts = line.decode("latin-1").strip().split()
    if len(parts) != 3 or not parts[2].startswith("HTTP/"):
        raise MalformedRequest(f"Bad request line: {line!r}")
    method, target, version = parts
    request = IncomingRequest(method.upper(), target, version)

    while True:
        try:
            line = await reader.readline()
        except ValueError as exc:
            raise MalformedRequest("Header line too long") from exc
        if line in (b"\r\n", b"\n"):
            break
        if not line:
            raise MalformedRequest("Connection closed inside the headers")
        name, sep, value = line.decode("latin-1").partition(":")
        if not sep or not name.strip():
            raise MalformedRequest(f"Bad header line: {line!r}")
        request.headers[name.strip().lower()] = value.strip()
        if len(request.headers) > MAX_HEADER_COUNT:
            raise MalformedRequest("Too many headers")

    request.body = await read_body(reader, request.headers)
    return request


async def read_body(reader: asyncio.StreamReader, headers: Dict[str, str]) -> bytes:
    """Accumulate the request body chunk by chunk and return it whole."""

    chunks = []
    try:
        if "chunked" in headers.get("transfer-encoding", "").lower():
            while True:
                size_line = await reader.readline()
                size = int(size_line.split(b";", 1)[0].strip(), 16)
                if size == 0:
                    # Trailer section ends with an empty line.
                    while (await reader.readline()) not in (b"\r\n", b"\n", b""):
                        pass
                    break
                chunks.append(await reader.readexactly(size))
                await reader.readexactly(2)
        else:
            remaining = int(headers.get("content-length", "0") or "0")
            if remaining < 0:
                raise MalformedRequest("Negative Content-Length")
            while remaining:
                chunk = await reader.read(min(remaining, READ_CHUNK_SIZE))
                if not chunk:
                    raise MalformedRequest("Connection closed inside the body")
                chunks.append(chunk)
                remaining -= len(chunk)
    except ValueError as exc:
        raise MalformedRequest("Bad body framing") from exc
    except asyncio.IncompleteReadError as exc:
        raise MalformedRequest("Connection closed inside the body") from exc
    return b"".join(chunks)


def encode_reply(reply: Reply, keep_alive: bool = True) -> bytes:
    """Serialise ``reply`` into status line, headers and body."""

    try:
        phrase = HTTPStatus(reply.status).phrase
    except ValueError:
        phrase = ""
    lines = [f"HTTP/1.1 {reply.status} {phrase}"]
    lines.extend(f"{name}: {value}" for name, value in reply.headers().items())
    if not keep_alive:
        lines.append("connection: close")
    head = "\r\n".join(lines) + "\r\n\r\n"
    return head.encode("latin-1") + reply.body


class AsyncioListener(Listener):
    def __init__(self, transport: "MinimalTransport", server: asyncio.AbstractServer) -> None:
        self._transport = transport
        self._server = server
        self.host, self.port = server.sockets[0].getsockname()[:2]

    async def close(self) -> None:
        self._server.close()
        await self._transport.drain_connections()
        await self._server.wait_closed()


class MinimalTransport(TransportAdapter):
    """Serve the router with nothing but the standard library."""

    name = "minimal"

    def __init__(
        self,
        router: ChatRouter,
        host: str = DEFAULT_HOST,
        access_log: bool = True,
        keep_alive_timeout: float = DEFAULT_KEEP_ALIVE_TIMEOUT,
    ) -> None:
        super().__init__(router, host, access_log)
        self.keep_alive_timeout = keep_alive_timeout
        self._closing = False
        self._connections: Set["asyncio.Task[None]"] = set()
        self._writers: Set[asyncio.StreamWriter] = set()
        self._busy: Set[asyncio.StreamWriter] = set()

    async def bind(self, port: int) -> Listener:
        server = await asyncio.start_server(self.handle_connection, self.host, port)
        return AsyncioListener(self, server)

    async def drain_connections(self) -> None:
        """Close every connection not dispatching a request, then wait for the rest."""

        self._closing = True
        # Connections still reading a request line, headers or body are
        # closed as well, so a stalled client cannot hold up shutdown.
        for writer in self._writers - self._busy:
            writer.close()
        if self._connections:
            await asyncio.wait(list(self._connections))

    async def handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        task = asyncio.current_task()
        if task is not None:
            self._connections.add(task)
        self._writers.add(writer)
        peer = writer.get_extra_info("peername")
        try:
            await self._serve_requests(reader, writer, peer)
        except (ConnectionError, asyncio.IncompleteReadError) as exc:
            logger.debug("Connection from %s dropped: %s", peer, exc)
        finally:
            self._writers.discard(writer)
            self._busy.discard(writer)
            if task is not None:
                self._connections.discard(task)
            writer.close()
            try:
                await writer.wait_closed()
            except ConnectionError:
                pass

    async def _serve_requests(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter, peer
    ) -> None:
        while not self._closing:
            try:
                request = await read_request(reader, self.keep_alive_timeout)
            except MalformedRequest as exc:
                logger.debug("Malformed request from %s: %s", peer, exc)
                if writer.is_closing():
                    return
                reply = Reply(400, b"Bad Request", "text/plain; charset=utf-8")
                writer.write(encode_reply(reply, keep_alive=False))
                await writer.drain()
                return
            if request is None or writer.is_closing():
                return

            self._busy.add(writer)
            try:
                reply = await self.router.dispatch(request.method, request.target, request.body)
                keep_alive = request.keep_alive and not self._closing
                writer.write(encode_reply(reply, keep_alive=keep_alive))
                await writer.drain()
            finally:
                self._busy.discard(writer)
            self.log_request(peer, request, reply)
            if not keep_alive:
                return

    def log_request(self, peer, request: IncomingRequest, reply: Reply) -> None:
        if not self.access_log:
            return
        host = peer[0] if peer else "-"
        logger.info(
            '%s - "%s %s %s" %d', host, request.method, request.target, request.version, reply.status
        )
