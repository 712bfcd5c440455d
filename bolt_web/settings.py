"""Environment-driven defaults for the command line."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .router import DEFAULT_RESPONSE_DELAY
from .transports import DEFAULT_HOST, TRANSPORT_CHOICES

DEFAULT_PORT = 3000
DEFAULT_LOG_LEVEL = "INFO"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    response_delay: float = DEFAULT_RESPONSE_DELAY
    transport: str = "auto"
    log_level: str = DEFAULT_LOG_LEVEL


def _resolve_port(raw_value: Optional[str]) -> int:
    if raw_value is None:
        return DEFAULT_PORT
    try:
        parsed = int(raw_value)
    except ValueError:
        logger.warning("Ignoring BOLT_WEB_PORT=%r; using %d", raw_value, DEFAULT_PORT)
        return DEFAULT_PORT
    return parsed if 0 <= parsed <= 65535 else DEFAULT_PORT


def _resolve_delay(raw_value: Optional[str]) -> float:
    if raw_value is None:
        return DEFAULT_RESPONSE_DELAY
    try:
        parsed = float(raw_value)
    except ValueError:
        return DEFAULT_RESPONSE_DELAY
    return parsed if parsed >= 0 else DEFAULT_RESPONSE_DELAY


def _resolve_transport(raw_value: Optional[str]) -> str:
    value = (raw_value or "auto").strip().lower()
    return value if value in TRANSPORT_CHOICES else "auto"


def _resolve_log_level(raw_value: Optional[str]) -> str:
    value = (raw_value or DEFAULT_LOG_LEVEL).strip().upper()
    return value if isinstance(logging.getLevelName(value), int) else DEFAULT_LOG_LEVEL


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read ``BOLT_WEB_*`` variables, falling back to defaults on bad values."""

    env = os.environ if environ is None else environ
    return Settings(
        host=env.get("BOLT_WEB_HOST") or DEFAULT_HOST,
        port=_resolve_port(env.get("BOLT_WEB_PORT")),
        response_delay=_resolve_delay(env.get("BOLT_WEB_RESPONSE_DELAY")),
        transport=_resolve_transport(env.get("BOLT_WEB_TRANSPORT")),
        log_level=_resolve_log_level(env.get("BOLT_WEB_LOG_LEVEL")),
    )
