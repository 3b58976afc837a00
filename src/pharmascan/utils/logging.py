"""Structured logging setup using structlog."""

import logging
import sys
from typing import Any

import structlog
from structlog.types import FilteringBoundLogger

# Third-party loggers that are chatty at INFO (one line per HTTP request or job run).
NOISY_LOGGERS = ("httpx", "httpcore", "apscheduler", "asyncio")


def setup_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """Configure structlog for scan workers and the API process.

    Scan-scoped values bound with ``LoggingContextManager`` are merged into
    every event. Library loggers in ``NOISY_LOGGERS`` stay at WARNING unless
    the process itself runs at DEBUG.
    """
    level = getattr(logging, log_level.upper())

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    if level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        _add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.format_exc_info,
    ]

    if json_logs:
        processors.append(structlog.processors.JSONRenderer(ensure_ascii=False))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.WriteLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _add_logger_name(logger, method_name: str, event_dict):
    # WriteLogger has no name; StructuredLogger passes it as ``logger_name``.
    name = event_dict.pop("logger_name", None) or getattr(logger, "name", None)
    event_dict["logger"] = name or "pharmascan"
    return event_dict


def get_logger(name: str) -> FilteringBoundLogger:
    """Get a configured structlog logger."""
    return structlog.get_logger(name)


class LoggingContextManager:
    """Binds scan-scoped values (target id, search term) to every log line."""

    def __init__(self, **context: Any):
        self.context = context
        self._tokens: dict[str, Any] = {}

    def __enter__(self):
        self._tokens = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        structlog.contextvars.reset_contextvars(**self._tokens)


class StructuredLogger:
    """Module logger taking an event message plus keyword context."""

    def __init__(self, name: str):
        self.logger = get_logger(name)
        self.name = name

    def debug(self, message: str, **kwargs: Any) -> None:
        self.logger.debug(message, logger_name=self.name, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self.logger.info(message, logger_name=self.name, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self.logger.warning(message, logger_name=self.name, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.logger.error(message, logger_name=self.name, **kwargs)


def get_structured_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name)
