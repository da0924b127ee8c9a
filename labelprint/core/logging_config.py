"""Centralized logging configuration with structured logging.

Provides:
- Pretty console logs for development (colored, key-value pairs)
- JSON logs for production (machine-parseable)
- Request ID correlation between log lines and X-Request-ID headers
- Separate log level for httpx

Usage:
    from labelprint.core.logging_config import setup_logging
    setup_logging()  # Call once at startup
"""

import importlib.util
import logging
import sys
from typing import Any

import structlog
from asgi_correlation_id import correlation_id

from labelprint.core.enums import LogFormat
from labelprint.main_config import LoggingConfig, get_logging_config


def get_request_id(_logger: Any, _method_name: str, event_dict: dict) -> dict:
    """Add request_id from the correlation-id contextvar to log events."""
    request_id = correlation_id.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure structured logging for the client.

    Behavior:
    - Reads LOG_FORMAT, LOG_LEVEL, LOG_LEVEL_HTTPX from environment
    - JSON format for production (LOG_FORMAT=json)
    - Pretty console for local/dev (LOG_FORMAT=console)
    - Request ID added to every log line emitted during a request
    """
    config = config or get_logging_config()
    log_level = config.level.upper()

    shared_processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        get_request_id,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if config.format == LogFormat.JSON:
        renderer = structlog.processors.JSONRenderer()
    else:
        # rich gives colored tracebacks when installed (dev dependency)
        colors = importlib.util.find_spec("rich") is not None
        renderer = structlog.dev.ConsoleRenderer(colors=colors)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    logging.getLogger("httpx").setLevel(config.level_httpx.upper())
    logging.getLogger("httpcore").setLevel(config.level_httpx.upper())

    logger = structlog.get_logger(__name__)
    logger.info(
        "logging_configured",
        log_format=config.format.value,
        log_level=log_level,
    )
