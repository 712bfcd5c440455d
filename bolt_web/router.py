"""Transport-neutral request handling.

Both transports funnel requests through :class:`ChatRouter` and write the
:class:`Reply` objects it returns unchanged, so the status codes, headers and
bodies seen on the wire do not depend on which transport is running.
"""
from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import ValidationError

from .errors import RequestParseError
from .generator import ResponseGenerator
from .models import ChatRequest, ChatResponse

logger = logging.getLogger(__name__)

StaticDir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "static")
INDEX_PATH = os.path.join(StaticDir, "index.html")

CHAT_PATH = "/api/chat"
DEFAULT_RESPONSE_DELAY = 1.0

CORS_HEADERS = {
    "access-control-allow-origin": "*",
    "access-control-allow-methods": "GET, POST, OPTIONS",
    "access-control-allow-headers": "Content-Type",
}

HTML_CONTENT_TYPE = "text/html; charset=utf-8"
JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"

INVALID_JSON_PAYLOAD = {"error": "Invalid JSON"}


def render_json(content: Any) -> bytes:
    """Encode ``content`` the same way FastAPI's ``JSONResponse`` does."""

    return json.dumps(
        content,
        ensure_ascii=False,
        allow_nan=False,
        indent=None,
        separators=(",", ":"),
    ).encode("utf-8")


def load_index_html(path: str = INDEX_PATH) -> str:
    with open(path, encoding="utf-8") as handle:
        return handle.read()


@dataclass(frozen=True)
class Reply:
    """A complete HTTP response, independent of the server writing it."""

    status: int
    body: bytes = b""
    content_type: Optional[str] = None

    def headers(self) -> Dict[str, str]:
        headers = dict(CORS_HEADERS)
        if self.content_type is not None:
            headers["content-type"] = self.content_type
        headers["content-length"] = str(len(self.body))
        return headers


class ChatRouter:
    """Map method and path to one of the three behaviours of the server."""

    def __init__(
        self,
        generator: Optional[ResponseGenerator] = None,
        delay: float = DEFAULT_RESPONSE_DELAY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        index_html: Optional[str] = None,
    ) -> None:
        self.generator = generator or ResponseGenerator()
        self.delay = delay
        self._sleep = sleep
        if index_html is None:
            index_html = load_index_html()
        self._index_body = index_html.encode("utf-8")

    def preflight(self) -> Reply:
        return Reply(200)

    def index(self) -> Reply:
        return Reply(200, self._index_body, HTML_CONTENT_TYPE)

    def not_found(self) -> Reply:
        return Reply(404, b"Not Found", TEXT_CONTENT_TYPE)

    def invalid_json(self) -> Reply:
        return Reply(400, render_json(INVALID_JSON_PAYLOAD), JSON_CONTENT_TYPE)

    def parse_chat_request(self, body: bytes) -> ChatRequest:
        """Validate a raw request body, raising :class:`RequestParseError`."""

        try:
            return ChatRequest.model_validate_json(body)
        except ValidationError as exc:
            raise RequestParseError(str(exc)) from exc

    async def chat(self, chat_request: ChatRequest) -> Reply:
        generation = self.generator.generate(chat_request.message)
        # Emulates model latency without blocking other connections.
        await self._sleep(self.delay)
        payload = ChatResponse(response=generation.response, files=generation.files)
        return Reply(200, render_json(payload.model_dump()), JSON_CONTENT_TYPE)

    async def dispatch(self, method: str, target: str, body: bytes = b"") -> Reply:
        method = method.upper()
        if method == "OPTIONS":
            return self.preflight()

        # Only the query string is stripped; "//host/" stays a distinct path.
        path = target.split("?", 1)[0]
        if method == "GET" and path == "/":
            return self.index()
        if method == "POST" and path == CHAT_PATH:
            try:
                chat_request = self.parse_chat_request(body)
            except RequestParseError as exc:
                logger.debug("Rejected chat payload: %s", exc)
                return self.invalid_json()
            return await self.chat(chat_request)
        return self.not_found()
