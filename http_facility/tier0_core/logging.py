"""
http_facility.tier0_core.logging
──────────────────────────────────
Structured logs with levels, context injection, and redaction of
credentials that commonly ride along with HTTP calls.

Minimal stack: structlog (stdout JSON or console)
Configure via: HTTP_FACILITY_LOG_LEVEL, HTTP_FACILITY_LOG_FORMAT=json|console
"""
from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog


# ── Configuration ─────────────────────────────────────────────────────────────

def _configure_structlog() -> None:
    log_level = os.getenv("HTTP_FACILITY_LOG_LEVEL", "INFO").upper()
    log_format = os.getenv("HTTP_FACILITY_LOG_FORMAT", "json").lower()

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _redact_processor,
    ]

    if log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer(default=repr)

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level, logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))


# ── Redaction processor ───────────────────────────────────────────────────────

_REDACT_KEYS = frozenset({
    "password", "secret", "token", "api_key", "apikey",
    "authorization", "proxy-authorization", "cookie", "set-cookie",
    "x-api-key", "access_token", "refresh_token", "client_secret",
})

_REDACTED = "[REDACTED]"


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: _REDACTED if isinstance(k, str) and k.lower() in _REDACT_KEYS else _redact(v)
            for k, v in value.items()
        }
    return value


def _redact_processor(
    logger: Any, method: str, event_dict: dict
) -> dict:
    """Strip sensitive fields (including nested header maps) before output."""
    for key in list(event_dict.keys()):
        if key.lower() in _REDACT_KEYS:
            event_dict[key] = _REDACTED
        else:
            event_dict[key] = _redact(event_dict[key])
    return event_dict


# ── Public API ────────────────────────────────────────────────────────────────

_configured = False


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Return a structured logger bound to the given name.

    Usage:
        log = get_logger(__name__)
        log.debug("http.request", method="GET", url="http://svc/users")
        log.error("http.decode_failed", url=url, error=str(exc))
    """
    global _configured
    if not _configured:
        _configure_structlog()
        _configured = True
    return structlog.get_logger(name or __name__)
