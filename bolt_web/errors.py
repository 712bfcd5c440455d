"""Exceptions shared by the server, the transports and the CLI."""
from __future__ import annotations


class WebServerError(Exception):
    """Failure that is reported to the person who started the server."""


class ConfigurationError(WebServerError):
    """Invalid port, working directory or transport choice."""


class RequestParseError(ValueError):
    """The body of a chat request is not a usable ChatRequest payload."""
