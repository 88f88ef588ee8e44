"""
Structured Logging Configuration
Version: 1.0

structlog on top of stdlib logging. Module loggers created with
logging.getLogger(__name__) render through the same pipeline.
JSON in production, console otherwise; every record carries the
request trace id when one is set.
DEPENDS ON: structlog
"""
import logging
import sys
import time
from contextvars import ContextVar
from typing import Optional

import structlog

SERVICE_NAME = "fleet-rental-api"

# Libraries that log every statement / request at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncpg", "uvicorn.access")

trace_id_var: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)


def set_trace_id(trace_id: str) -> None:
    trace_id_var.set(trace_id)


def add_trace_id(logger, method_name, event_dict):
    trace_id = trace_id_var.get()
    if trace_id:
        event_dict["trace_id"] = trace_id
    return event_dict


def configure_logging(json_format: bool = False, log_level: str = "INFO") -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        json_format: JSON lines (production) instead of coloured console output
        log_level: Minimum level name; unknown names fall back to INFO
    """
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_trace_id,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if json_format:
        structlog.contextvars.bind_contextvars(service=SERVICE_NAME)
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


class LogTimer:
    """
    Times a block and logs its outcome.

    After the block, `elapsed` holds the duration in seconds so callers
    can feed the same measurement to a metric.
    """

    def __init__(self, logger, operation: str, **extra):
        self.logger = logger
        self.operation = operation
        self.extra = extra
        self.elapsed = 0.0
        self._started = 0.0

    def __enter__(self):
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed = time.perf_counter() - self._started
        duration_ms = round(self.elapsed * 1000, 2)

        if exc_type:
            self.logger.error(f"{self.operation} failed", duration_ms=duration_ms, error=str(exc_val), **self.extra)
        else:
            self.logger.info(f"{self.operation} completed", duration_ms=duration_ms, **self.extra)
        return False
