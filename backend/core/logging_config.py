"""Structured logging configuration using structlog.

JSON logs in production, colored console output in development. Every event
passes through ``redact_secrets`` first, so a raw API key or a credentials
payload that ends up in a log call is masked before it is rendered.
"""

import logging
import re
import sys

import structlog
from app.config import get_settings

REDACTED = "[REDACTED]"

# Event keys whose values are never logged
SENSITIVE_KEYS = frozenset({
    "raw_key",
    "raw_secret",
    "credentials",
    "encrypted_key",
    "encrypted_credentials",
    "session_token",
    "authorization",
    "x-api-key",
})

_RAW_KEY_PATTERN = re.compile(r"\b([A-Za-z]{2,10})_[A-Za-z0-9_-]{32,}")


def _mask(value):
    if isinstance(value, str):
        return _RAW_KEY_PATTERN.sub(lambda m: f"{m.group(1)}_{REDACTED}", value)
    return value


def redact_secrets(logger, method_name, event_dict):
    """structlog processor: drop sensitive fields and mask raw keys in text."""
    for key in list(event_dict):
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = REDACTED
        else:
            event_dict[key] = _mask(event_dict[key])
    return event_dict


def setup_logging() -> None:
    """Configure structured logging for the entire application.

    In development (or with LOG_FORMAT=text): colored console output
    Otherwise: JSON-formatted logs for log aggregation
    """
    settings = get_settings()

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.stdlib.ExtraAdder(),
        redact_secrets,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_development or settings.LOG_FORMAT in ("text", "colored"):
        renderer = structlog.dev.ConsoleRenderer(colors=settings.is_development)
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Route stdlib logging through the structlog formatter
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.DEBUG if settings.SQLALCHEMY_ECHO else logging.WARNING
    )
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
