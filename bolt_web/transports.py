"""Transport adapters and the capability probe that picks one.

A transport binds a :class:`~bolt_web.router.ChatRouter` to a listening
socket. FastAPI and uvicorn are optional: when they are importable the
FastAPI transport is used, otherwise the asyncio-only transport takes over.
"""
from __future__ import annotations

import abc
import logging
from importlib import import_module
from typing import Tuple, Type

from .errors import ConfigurationError
from .router import ChatRouter

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
RICH_TRANSPORT_MODULES = ("fastapi", "uvicorn")
TRANSPORT_CHOICES = ("auto", "fastapi", "minimal")


class Listener(abc.ABC):
    """A bound, listening server socket owned by one transport."""

    host: str
    port: int

    @abc.abstractmethod
    async def close(self) -> None:
        """Stop accepting connections and let in-flight requests finish."""


class TransportAdapter(abc.ABC):
    name = "abstract"

    def __init__(
        self, router: ChatRouter, host: str = DEFAULT_HOST, access_log: bool = True
    ) -> None:
        self.router = router
        self.host = host
        self.access_log = access_log

    @abc.abstractmethod
    async def bind(self, port: int) -> Listener:
        """Bind ``port`` and start serving; bind errors propagate as ``OSError``."""


def probe_rich_transport(modules: Tuple[str, ...] = RICH_TRANSPORT_MODULES) -> bool:
    """Return True when every optional web framework module can be imported.

    Only a missing module counts as "unavailable". Any other failure while
    importing (a broken install, a syntax error) is raised to the caller.
    """

    for name in modules:
        try:
            import_module(name)
        except ModuleNotFoundError as exc:
            logger.info("%s is not installed (%s)", name, exc)
            return False
    return True


def _rich_transport_class() -> Type[TransportAdapter]:
    from .app import FastAPITransport

    return FastAPITransport


def _minimal_transport_class() -> Type[TransportAdapter]:
    from .minimal import MinimalTransport

    return MinimalTransport


def select_transport(preference: str = "auto") -> Type[TransportAdapter]:
    """Return the transport class for ``preference`` ("auto", "fastapi" or "minimal")."""

    preference = (preference or "auto").lower()
    if preference not in TRANSPORT_CHOICES:
        raise ConfigurationError(
            f"Unknown transport {preference!r}; expected one of {', '.join(TRANSPORT_CHOICES)}."
        )

    if preference == "minimal":
        return _minimal_transport_class()

    if probe_rich_transport():
        return _rich_transport_class()

    if preference == "fastapi":
        raise ConfigurationError(
            "The fastapi transport needs the optional web dependencies: "
            "pip install 'bolt-web[web]'"
        )

    logger.info("FastAPI not available, using the built-in asyncio HTTP server...")
    return _minimal_transport_class()
